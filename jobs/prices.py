"""
시세 조회 + 캐시 폴백

가격 소스 에러(Rate Limit 포함)는 배치 전체 실패로 보지 않고
config_store의 마지막 시세로 대체한다. 캐시에도 없는 코인은 누락으로 보고.
"""

import logging
from dataclasses import dataclass, field

from adapters.coingecko.rate_limiter import PriceSourceError
from adapters.interfaces import IPriceSource
from core.ledger.valuation import PriceQuote
from core.storage.config_store import ConfigStore
from core.types import RateSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceFetchResult:
    """시세 조회 결과

    Attributes:
        prices: coingecko_id → PriceQuote
        source: 시세 출처 (api/mock 또는 cache)
        missing_ids: 시세를 얻지 못한 코인 ID (정렬됨)
    """

    prices: dict[str, PriceQuote]
    source: RateSource
    missing_ids: list[str] = field(default_factory=list)


async def fetch_prices_with_fallback(
    price_source: IPriceSource,
    coingecko_ids: list[str],
    config_store: ConfigStore | None = None,
    live_source: RateSource = RateSource.API,
    update_cache: bool = True,
) -> PriceFetchResult:
    """시세 조회 (실패 시 마지막 시세)

    Args:
        price_source: 시세 소스
        coingecko_ids: 조회할 코인 ID
        config_store: 시세 캐시 (None이면 폴백/저장 없음)
        live_source: 조회 성공 시 보고할 출처
        update_cache: 조회 성공 시 캐시 갱신 여부 (읽기 전용 연결이면 False)

    Raises:
        PriceSourceError 이외의 예외는 그대로 전파
    """
    ids = sorted(set(coingecko_ids))

    try:
        prices = await price_source.get_prices(ids)
        source = live_source
    except PriceSourceError as e:
        logger.warning(f"시세 조회 실패, 마지막 시세 사용: {e}")
        cached = await config_store.get_price_cache() if config_store is not None else {}
        prices = {cid: cached[cid] for cid in ids if cid in cached}
        source = RateSource.CACHE
    else:
        if update_cache and config_store is not None and prices:
            try:
                await config_store.update_price_cache(prices)
            except Exception as e:
                logger.warning(f"시세 캐시 저장 실패: {e}", exc_info=True)

    missing_ids = [cid for cid in ids if cid not in prices]
    if missing_ids:
        logger.warning(f"시세 누락: {missing_ids}")

    return PriceFetchResult(prices=prices, source=source, missing_ids=missing_ids)
