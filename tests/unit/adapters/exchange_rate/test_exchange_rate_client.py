"""
환율 REST 클라이언트 테스트
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from adapters.exchange_rate.rest_client import ExchangeRateRestClient, ExchangeRateSourceError


def make_response(status_code: int, json_data=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.headers = {}
    return response


async def _get_rate_with(response=None, side_effect=None) -> Decimal:
    client = ExchangeRateRestClient()
    with patch.object(client, "_get_client") as mock_get_client:
        mock_http_client = AsyncMock()
        if side_effect is not None:
            mock_http_client.get.side_effect = side_effect
        else:
            mock_http_client.get.return_value = response
        mock_get_client.return_value = mock_http_client
        return await client.get_rate()


class TestGetRate:
    """USD → VND 환율 조회"""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        rate = await _get_rate_with(make_response(200, {"base": "USD", "rates": {"VND": 25410.5}}))

        assert rate == Decimal("25410.5")

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        with pytest.raises(ExchangeRateSourceError, match="HTTP 503"):
            await _get_rate_with(make_response(503, {}))

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        with pytest.raises(ExchangeRateSourceError):
            await _get_rate_with(side_effect=httpx.ConnectError("refused"))

    @pytest.mark.asyncio
    async def test_missing_currency(self) -> None:
        with pytest.raises(ExchangeRateSourceError, match="VND"):
            await _get_rate_with(make_response(200, {"rates": {"EUR": 0.9}}))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [0, -1, "abc"])
    async def test_invalid_rate(self, raw) -> None:
        with pytest.raises(ExchangeRateSourceError):
            await _get_rate_with(make_response(200, {"rates": {"VND": raw}}))

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        response = make_response(200)
        response.json.side_effect = ValueError("not json")

        with pytest.raises(ExchangeRateSourceError, match="파싱"):
            await _get_rate_with(response)
