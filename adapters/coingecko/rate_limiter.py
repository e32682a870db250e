"""
CoinGecko Rate Limit 관리

무료 티어는 분당 요청 수가 매우 적어 429가 자주 발생한다.
고정 sleep 대신 요청 간 최소 간격을 보장하는 RequestThrottle과
Retry-After 기반 백오프를 사용.
"""

import asyncio
import time
from typing import Awaitable, Callable

from core.constants import RateLimitDefaults


class PriceSourceError(Exception):
    """가격 소스 조회 실패 (모든 가격 소스 에러의 상위 클래스)"""

    pass


class RateLimitError(PriceSourceError):
    """Rate Limit 초과 에러

    429 응답 수신 시 발생.
    retry_after 초 후 재시도 필요.
    """

    def __init__(self, retry_after: int, message: str = "Rate limit exceeded"):
        self.retry_after = retry_after
        self.message = message
        super().__init__(f"{message}. Retry after {retry_after} seconds.")


class CoinGeckoApiError(PriceSourceError):
    """CoinGecko API 에러

    4xx/5xx 응답 또는 형식이 맞지 않는 응답 수신 시 발생.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"CoinGecko API Error [{status_code}]: {message}")


def parse_retry_after(value: str | None, default: int = RateLimitDefaults.DEFAULT_RETRY_AFTER_SEC) -> int:
    """Retry-After 헤더 파싱 (초 단위 정수만 지원, 그 외는 기본값)"""
    if value is None:
        return default
    try:
        seconds = int(value.strip())
    except ValueError:
        return default
    return max(0, seconds)


class RequestThrottle:
    """요청 간 최소 간격 보장

    여러 코루틴이 같은 클라이언트를 공유해도 Lock으로 직렬화되어
    min_interval 이상 간격으로만 요청이 나간다.

    Args:
        min_interval: 요청 간 최소 간격 (초)
        clock: 단조 시계 (테스트 주입용)
        sleep: 대기 함수 (테스트 주입용)
    """

    def __init__(
        self,
        min_interval: float = RateLimitDefaults.MIN_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: float | None = None

    async def acquire(self) -> float:
        """다음 요청 슬롯 확보

        Returns:
            실제로 대기한 시간 (초)
        """
        async with self._lock:
            waited = 0.0
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    await self._sleep(waited)
            self._last_request_at = self._clock()
            return waited

    async def backoff(self, seconds: float) -> None:
        """429 이후 대기 (다음 acquire도 이 시점 기준으로 간격 계산)"""
        async with self._lock:
            await self._sleep(seconds)
            self._last_request_at = self._clock()
