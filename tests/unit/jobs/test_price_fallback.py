"""
시세 조회 + 캐시 폴백 테스트
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from adapters.coingecko.rate_limiter import CoinGeckoApiError, RateLimitError
from adapters.mock.sources import MOCK_PRICES_USD, MockPriceSource, deterministic_price
from core.ledger.valuation import PriceQuote
from core.types import RateSource
from jobs.prices import fetch_prices_with_fallback


def make_config_store(cached: dict[str, PriceQuote] | None = None) -> AsyncMock:
    store = AsyncMock()
    store.get_price_cache.return_value = cached or {}
    return store


class TestMockPriceSource:
    """로컬 Mock 시세"""

    @pytest.mark.asyncio
    async def test_known_prices(self) -> None:
        quotes = await MockPriceSource().get_prices(["bitcoin", "ethereum"])

        assert quotes["bitcoin"].usd == MOCK_PRICES_USD["bitcoin"]
        assert quotes["ethereum"].usd == Decimal("3400")

    @pytest.mark.asyncio
    async def test_configured_zero_price_kept(self) -> None:
        """설정한 0 가격은 누락이 아니라 0으로 반환"""
        source = MockPriceSource(prices={"bitcoin": Decimal("0")})

        quotes = await source.get_prices(["bitcoin"])

        assert quotes["bitcoin"].usd == Decimal("0")

    def test_deterministic_price(self) -> None:
        """알 수 없는 코인은 ID별 고정 가격 (1 ~ 101)"""
        price = deterministic_price("some-new-coin")

        assert price == deterministic_price("some-new-coin")
        assert Decimal("1") <= price < Decimal("101")


class TestFetchPricesWithFallback:
    """fetch_prices_with_fallback"""

    @pytest.mark.asyncio
    async def test_success_updates_cache(self) -> None:
        store = make_config_store()

        result = await fetch_prices_with_fallback(
            MockPriceSource(), ["ethereum", "bitcoin", "bitcoin"], config_store=store,
        )

        assert result.source == RateSource.API
        assert set(result.prices) == {"bitcoin", "ethereum"}
        assert result.missing_ids == []
        store.update_price_cache.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dedup_and_sorted_request(self) -> None:
        source = MockPriceSource()

        await fetch_prices_with_fallback(source, ["solana", "bitcoin", "solana"])

        assert source.calls == [["bitcoin", "solana"]]

    @pytest.mark.asyncio
    async def test_missing_ids_reported(self) -> None:
        source = MockPriceSource(missing_ids={"dogecoin"})

        result = await fetch_prices_with_fallback(source, ["bitcoin", "dogecoin"])

        assert result.missing_ids == ["dogecoin"]

    @pytest.mark.asyncio
    async def test_rate_limit_uses_cache(self) -> None:
        """Rate Limit → 캐시 시세, 캐시에 없는 코인은 누락"""
        cached = {"bitcoin": PriceQuote(coingecko_id="bitcoin", usd=Decimal("90000"))}
        store = make_config_store(cached)
        source = MockPriceSource(error=RateLimitError(retry_after=60))

        result = await fetch_prices_with_fallback(source, ["bitcoin", "ethereum"], config_store=store)

        assert result.source == RateSource.CACHE
        assert result.prices["bitcoin"].usd == Decimal("90000")
        assert result.missing_ids == ["ethereum"]
        store.update_price_cache.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_without_store(self) -> None:
        """저장소 없이 실패하면 전부 누락"""
        source = MockPriceSource(error=CoinGeckoApiError(500, "boom"))

        result = await fetch_prices_with_fallback(source, ["bitcoin"])

        assert result.prices == {}
        assert result.missing_ids == ["bitcoin"]

    @pytest.mark.asyncio
    async def test_cache_save_failure_ignored(self) -> None:
        store = make_config_store()
        store.update_price_cache.side_effect = RuntimeError("readonly")

        result = await fetch_prices_with_fallback(MockPriceSource(), ["bitcoin"], config_store=store)

        assert "bitcoin" in result.prices

    @pytest.mark.asyncio
    async def test_update_cache_disabled(self) -> None:
        store = make_config_store()

        await fetch_prices_with_fallback(
            MockPriceSource(), ["bitcoin"], config_store=store, update_cache=False,
        )

        store.update_price_cache.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self) -> None:
        """가격 소스 에러가 아니면 전파"""
        source = MockPriceSource(error=RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await fetch_prices_with_fallback(source, ["bitcoin"])
