"""
환율 결정 (API → 마지막 저장값 → 기본값)

어떤 경우에도 예외를 던지지 않고 출처(source)와 함께 환율을 반환.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from adapters.interfaces import IExchangeRateSource
from core.storage.config_store import ConfigStore
from core.types import RateSource
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)

# 저장된 환율을 API 호출 없이 재사용하는 기간 (prefer_cache=True일 때)
CACHE_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class ExchangeRateResult:
    """환율 결정 결과

    Attributes:
        rate: VND/USD
        source: api | cache | fallback | mock
        last_updated: 환율 기준 시각 (기본값이면 None)
    """

    rate: Decimal
    source: RateSource
    last_updated: datetime | None = None


class ExchangeRateResolver:
    """3단계 폴백 환율 결정기

    Args:
        source: 환율 소스
        config_store: 마지막 환율 저장소 (None이면 캐시 단계 생략)
        default_rate: 최후 기본값
        live_source: API 성공 시 보고할 출처 (로컬 Mock이면 MOCK)
    """

    def __init__(
        self,
        source: IExchangeRateSource,
        config_store: ConfigStore | None,
        default_rate: Decimal,
        live_source: RateSource = RateSource.API,
    ):
        self.source = source
        self.config_store = config_store
        self.default_rate = default_rate
        self.live_source = live_source

    async def _load_cached(self) -> tuple[Decimal, datetime | None] | None:
        if self.config_store is None:
            return None
        try:
            cached = await self.config_store.get_exchange_rate()
        except Exception as e:
            logger.warning(f"저장된 환율 조회 실패: {e}", exc_info=True)
            return None
        if cached is None:
            return None
        rate, updated_at = cached
        if updated_at is not None and updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return rate, updated_at

    async def _save(self, rate: Decimal) -> None:
        if self.config_store is None:
            return
        try:
            await self.config_store.set_exchange_rate(rate)
        except Exception as e:
            logger.warning(f"환율 저장 실패: {e}", exc_info=True)

    async def resolve(self, prefer_cache: bool = False) -> ExchangeRateResult:
        """환율 결정

        Args:
            prefer_cache: 24시간 이내 저장값이 있으면 API 호출 생략 (Web 조회용)
        """
        cached = await self._load_cached() if prefer_cache else None
        if cached is not None:
            rate, updated_at = cached
            if updated_at is not None and now_utc() - updated_at < CACHE_TTL:
                return ExchangeRateResult(rate=rate, source=RateSource.CACHE, last_updated=updated_at)

        try:
            rate = await self.source.get_rate()
        except Exception as e:
            logger.warning(f"환율 API 조회 실패, 폴백 사용: {e}")
        else:
            await self._save(rate)
            return ExchangeRateResult(rate=rate, source=self.live_source, last_updated=now_utc())

        if cached is None:
            cached = await self._load_cached()
        if cached is not None:
            rate, updated_at = cached
            logger.info(f"저장된 환율 사용: {rate}")
            return ExchangeRateResult(rate=rate, source=RateSource.CACHE, last_updated=updated_at)

        logger.warning(f"저장된 환율 없음, 기본값 사용: {self.default_rate}")
        return ExchangeRateResult(rate=self.default_rate, source=RateSource.FALLBACK, last_updated=None)
