"""
일별 스냅샷 모델

(user_id, snapshot_date)당 한 행. 같은 날 재실행 시 마지막 값으로 덮어씀.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.ledger.valuation import Allocation


@dataclass(frozen=True)
class PortfolioSnapshot:
    """암호화폐 포트폴리오 스냅샷

    allocations: coingecko_id → Allocation(percentage, value_usd)
    """

    user_id: str
    snapshot_date: date
    total_value_usd: Decimal
    allocations: dict[str, Allocation] = field(default_factory=dict)


@dataclass(frozen=True)
class NetWorthSnapshot:
    """순자산 스냅샷 (VND)"""

    user_id: str
    snapshot_date: date
    bank_balance: int
    crypto_value_vnd: int
    total_net_worth: int
    exchange_rate: Decimal
