"""
히스토리 서비스

일일 스냅샷 기반 차트 데이터 (날짜 오름차순).
"""

from datetime import date
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.snapshot_store import SnapshotStore
from core.types import NetWorthRange, PortfolioRange
from core.utils.timezone import net_worth_range_start, portfolio_range_start


class HistoryService:
    """스냅샷 히스토리 조회"""

    def __init__(self, db: SQLiteAdapter):
        self.snapshot_store = SnapshotStore(db)

    async def get_portfolio_history(
        self,
        user_id: str,
        range_: PortfolioRange = PortfolioRange.D30,
        today: date | None = None,
    ) -> dict[str, Any]:
        """포트폴리오 가치 추이

        Args:
            user_id: 사용자 ID
            range_: 7d, 30d, 60d, 1y, all
            today: 기준일 (테스트용, 기본: 오늘 UTC)
        """
        start = portfolio_range_start(range_, today)
        snapshots = await self.snapshot_store.get_portfolio_history(user_id, start)
        return {
            "user_id": user_id,
            "range": range_.value,
            "items": [
                {
                    "snapshot_date": s.snapshot_date.isoformat(),
                    "total_value_usd": str(s.total_value_usd),
                    "allocations": {cid: a.to_dict() for cid, a in s.allocations.items()},
                }
                for s in snapshots
            ],
        }

    async def get_net_worth_history(
        self,
        user_id: str,
        range_: NetWorthRange = NetWorthRange.Y1,
        today: date | None = None,
    ) -> dict[str, Any]:
        """순자산 추이 (1m, 1y, all)"""
        start = net_worth_range_start(range_, today)
        snapshots = await self.snapshot_store.get_net_worth_history(user_id, start)
        return {
            "user_id": user_id,
            "range": range_.value,
            "items": [
                {
                    "snapshot_date": s.snapshot_date.isoformat(),
                    "bank_balance": s.bank_balance,
                    "crypto_value_vnd": s.crypto_value_vnd,
                    "total_net_worth": s.total_net_worth,
                    "exchange_rate": str(s.exchange_rate),
                }
                for s in snapshots
            ],
        }
