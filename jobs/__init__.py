"""
일별 스냅샷 배치

- PortfolioSnapshotJob: 사용자별 포트폴리오 가치/비중
- NetWorthSnapshotJob: 사용자별 순자산 (은행 잔고 + 암호화폐)
"""

from jobs.base import JobSetupError, SnapshotJob, UserSnapshotResult
from jobs.exchange_rate import ExchangeRateResolver, ExchangeRateResult
from jobs.prices import PriceFetchResult, fetch_prices_with_fallback
from jobs.net_worth_snapshot import NetWorthSnapshotJob
from jobs.portfolio_snapshot import PortfolioSnapshotJob

__all__ = [
    "SnapshotJob",
    "JobSetupError",
    "UserSnapshotResult",
    "PortfolioSnapshotJob",
    "NetWorthSnapshotJob",
    "ExchangeRateResolver",
    "ExchangeRateResult",
    "PriceFetchResult",
    "fetch_prices_with_fallback",
]
