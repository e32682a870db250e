"""
배치 조립

설정(모드)에 맞는 가격/환율 소스를 만들고 저장소와 연결하여 작업 실행.
CLI(python -m jobs)와 Web 트리거가 공통으로 사용.
"""

import logging
from datetime import date
from typing import Any

from adapters.coingecko.rest_client import CoinGeckoRestClient
from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.exchange_rate.rest_client import ExchangeRateRestClient
from adapters.interfaces import IExchangeRateSource, IPriceSource
from adapters.mock.sources import MockExchangeRateSource, MockPriceSource
from core.config.loader import Settings
from core.storage.bank_ledger_store import BankLedgerStore
from core.storage.config_store import ConfigStore
from core.storage.crypto_store import CryptoStore
from core.storage.snapshot_store import SnapshotStore
from core.types import RateSource
from jobs.exchange_rate import ExchangeRateResolver
from jobs.net_worth_snapshot import NetWorthSnapshotJob
from jobs.portfolio_snapshot import PortfolioSnapshotJob

logger = logging.getLogger(__name__)


def create_price_source(settings: Settings) -> tuple[IPriceSource, RateSource]:
    """모드별 시세 소스 (LOCAL: Mock)"""
    if settings.is_local:
        logger.info("로컬 모드: Mock 시세 사용")
        return MockPriceSource(), RateSource.MOCK
    return CoinGeckoRestClient(api_key=settings.coingecko_api_key), RateSource.API


def create_exchange_rate_source(settings: Settings) -> tuple[IExchangeRateSource, RateSource]:
    """모드별 환율 소스 (LOCAL: Mock)"""
    if settings.is_local:
        return MockExchangeRateSource(rate=settings.default_exchange_rate), RateSource.MOCK
    return ExchangeRateRestClient(), RateSource.API


def create_rate_resolver(
    db: SQLiteAdapter,
    settings: Settings,
    source: IExchangeRateSource,
    live_source: RateSource,
) -> ExchangeRateResolver:
    return ExchangeRateResolver(
        source=source,
        config_store=ConfigStore(db),
        default_rate=settings.default_exchange_rate,
        live_source=live_source,
    )


async def run_portfolio_snapshot(
    db: SQLiteAdapter,
    settings: Settings,
    snapshot_date: date | None = None,
) -> dict[str, Any]:
    """포트폴리오 스냅샷 실행"""
    price_source, live_source = create_price_source(settings)
    try:
        job = PortfolioSnapshotJob(
            crypto_repo=CryptoStore(db),
            snapshot_repo=SnapshotStore(db),
            price_source=price_source,
            config_store=ConfigStore(db),
            live_source=live_source,
        )
        return await job.run(snapshot_date)
    finally:
        await price_source.close()


async def run_net_worth_snapshot(
    db: SQLiteAdapter,
    settings: Settings,
    snapshot_date: date | None = None,
) -> dict[str, Any]:
    """순자산 스냅샷 실행"""
    rate_source, live_source = create_exchange_rate_source(settings)
    try:
        job = NetWorthSnapshotJob(
            bank_ledger=BankLedgerStore(db),
            snapshot_repo=SnapshotStore(db),
            rate_resolver=create_rate_resolver(db, settings, rate_source, live_source),
        )
        return await job.run(snapshot_date)
    finally:
        await rate_source.close()
