"""
CoinGecko REST API 클라이언트

/coins/markets 배치 조회로 USD 시세와 기간별 변동률을 한 번에 수집.
IPriceSource Protocol 준수.
"""

import logging
from typing import Any

import httpx

from adapters.coingecko.models import parse_market
from adapters.coingecko.rate_limiter import (
    CoinGeckoApiError,
    RateLimitError,
    RequestThrottle,
    parse_retry_after,
)
from core.constants import CoinGeckoEndpoints, Defaults, RateLimitDefaults
from core.ledger.valuation import PriceQuote

logger = logging.getLogger(__name__)


def chunk_ids(ids: list[str], size: int) -> list[list[str]]:
    """ID 목록을 size 단위로 분할"""
    return [ids[i:i + size] for i in range(0, len(ids), size)]


class CoinGeckoRestClient:
    """CoinGecko REST API 클라이언트

    IPriceSource Protocol 구현.
    모든 가격은 Decimal 타입으로 반환.

    Args:
        base_url: REST API 베이스 URL
        api_key: Demo API 키 (없으면 키 없이 호출)
        timeout: 요청 타임아웃 (초)
        max_retries: 429 수신 시 재시도 횟수
        max_backoff: 허용하는 최대 대기 시간 (초, 초과 시 즉시 RateLimitError)
        throttle: 요청 간격 제어기 (None이면 기본값으로 생성)
    """

    def __init__(
        self,
        base_url: str = CoinGeckoEndpoints.REST_URL,
        api_key: str = "",
        timeout: float = Defaults.HTTP_TIMEOUT_SEC,
        max_retries: int = RateLimitDefaults.MAX_RETRIES,
        max_backoff: float = RateLimitDefaults.MAX_BACKOFF_SEC,
        throttle: RequestThrottle | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_backoff = max_backoff
        self.throttle = throttle or RequestThrottle()
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

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def _request(self, path: str, params: dict[str, Any]) -> Any:
        """API 요청 실행

        Raises:
            RateLimitError: 429가 재시도 후에도 계속되거나 대기 시간이 너무 긴 경우
            CoinGeckoApiError: 그 밖의 HTTP 에러 또는 네트워크 에러
        """
        url = f"{self.base_url}{path}"
        client = await self._get_client()

        for attempt in range(self.max_retries + 1):
            await self.throttle.acquire()
            try:
                response = await client.request(
                    "GET",
                    url,
                    params=params,
                    headers=self._headers(),
                )
            except httpx.TimeoutException as e:
                logger.warning(
                    "CoinGecko 요청 타임아웃",
                    extra={"path": path, "attempt": attempt + 1},
                )
                raise CoinGeckoApiError(status_code=0, message=f"timeout: {e}") from e
            except httpx.RequestError as e:
                logger.error(
                    "CoinGecko 요청 에러",
                    extra={"path": path, "error": str(e), "attempt": attempt + 1},
                )
                raise CoinGeckoApiError(status_code=0, message=str(e)) from e

            if response.status_code == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                logger.warning(
                    "CoinGecko Rate Limit",
                    extra={"retry_after": retry_after, "attempt": attempt + 1},
                )
                if attempt < self.max_retries and retry_after <= self.max_backoff:
                    await self.throttle.backoff(retry_after)
                    continue
                raise RateLimitError(retry_after=retry_after)

            if response.status_code >= 400:
                try:
                    error_data = response.json()
                    message = str(error_data.get("error", response.text))
                except ValueError:
                    message = response.text
                raise CoinGeckoApiError(status_code=response.status_code, message=message)

            try:
                return response.json()
            except ValueError as e:
                raise CoinGeckoApiError(
                    status_code=response.status_code,
                    message="JSON 응답 파싱 실패",
                ) from e

        # 도달하지 않음 (마지막 시도는 반드시 반환 또는 예외)
        raise RateLimitError(retry_after=RateLimitDefaults.DEFAULT_RETRY_AFTER_SEC)

    async def get_prices(self, coingecko_ids: list[str]) -> dict[str, PriceQuote]:
        """여러 코인의 현재 시세 조회

        중복 ID는 제거하고 MAX_IDS_PER_REQUEST 단위로 나누어 조회.
        응답에 없는 ID는 결과에서 빠진다 (호출자가 missing으로 처리).

        Args:
            coingecko_ids: CoinGecko 코인 ID 목록

        Returns:
            coingecko_id → PriceQuote
        """
        unique_ids = sorted({cid for cid in coingecko_ids if cid})
        if not unique_ids:
            return {}

        quotes: dict[str, PriceQuote] = {}
        for chunk in chunk_ids(unique_ids, CoinGeckoEndpoints.MAX_IDS_PER_REQUEST):
            data = await self._request(
                CoinGeckoEndpoints.MARKETS_PATH,
                {
                    "vs_currency": "usd",
                    "ids": ",".join(chunk),
                    "per_page": len(chunk),
                    "page": 1,
                    "price_change_percentage": ",".join(CoinGeckoEndpoints.CHANGE_PERIODS),
                },
            )
            if not isinstance(data, list):
                raise CoinGeckoApiError(status_code=200, message="예상하지 못한 응답 형식")

            for item in data:
                quote = parse_market(item)
                if quote is not None:
                    quotes[quote.coingecko_id] = quote

        logger.info(
            f"CoinGecko 시세 조회 완료: {len(quotes)}/{len(unique_ids)}",
            extra={"requested": len(unique_ids), "received": len(quotes)},
        )
        return quotes
