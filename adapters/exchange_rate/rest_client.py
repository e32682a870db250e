"""
환율 API 클라이언트

exchangerate-api.com의 USD 기준 최신 환율에서 VND만 사용.
IExchangeRateSource Protocol 준수.
"""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from core.constants import Defaults, ExchangeRateEndpoints

logger = logging.getLogger(__name__)


class ExchangeRateSourceError(Exception):
    """환율 조회 실패"""

    pass


class ExchangeRateRestClient:
    """환율 REST API 클라이언트

    Args:
        url: USD 기준 최신 환율 URL
        currency: 대상 통화 코드
        timeout: 요청 타임아웃 (초)
    """

    def __init__(
        self,
        url: str = ExchangeRateEndpoints.LATEST_USD_URL,
        currency: str = "VND",
        timeout: float = Defaults.HTTP_TIMEOUT_SEC,
    ):
        self.url = url
        self.currency = currency
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_rate(self) -> Decimal:
        """USD → VND 환율 조회

        응답 예시:
        {"base": "USD", "date": "2026-02-21", "rates": {"VND": 25410.5, ...}}

        Returns:
            1 USD당 VND

        Raises:
            ExchangeRateSourceError: 네트워크 오류, HTTP 에러, 잘못된 환율 값
        """
        client = await self._get_client()
        try:
            response = await client.get(self.url)
        except httpx.HTTPError as e:
            raise ExchangeRateSourceError(f"환율 API 요청 실패: {e}") from e

        if response.status_code >= 400:
            raise ExchangeRateSourceError(
                f"환율 API 응답 에러: HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExchangeRateSourceError("환율 API 응답 파싱 실패") from e

        raw = (data.get("rates") or {}).get(self.currency) if isinstance(data, dict) else None
        if raw is None or isinstance(raw, bool):
            raise ExchangeRateSourceError(f"응답에 {self.currency} 환율이 없습니다")

        try:
            rate = Decimal(str(raw))
        except InvalidOperation as e:
            raise ExchangeRateSourceError(f"환율 값이 숫자가 아닙니다: {raw!r}") from e

        if not rate.is_finite() or rate <= 0:
            raise ExchangeRateSourceError(f"유효하지 않은 환율: {raw!r}")

        logger.debug(f"환율 조회 완료: 1 USD = {rate} {self.currency}")
        return rate
