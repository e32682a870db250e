"""
SnapshotStore - 일별 스냅샷 저장소

crypto_portfolio_snapshots, net_worth_snapshots 테이블 관리.
ISnapshotRepository Protocol 구현.

(user_id, snapshot_date) UNIQUE 제약 + ON CONFLICT DO UPDATE로
같은 날 재실행해도 한 행만 유지 (마지막 쓰기 우선).
"""

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.snapshots import NetWorthSnapshot, PortfolioSnapshot
from core.ledger.valuation import Allocation
from core.utils.timezone import now_iso

logger = logging.getLogger(__name__)


def _allocations_to_json(allocations: dict[str, Allocation]) -> str:
    return json.dumps(
        {cid: alloc.to_dict() for cid, alloc in allocations.items()},
        ensure_ascii=False,
        sort_keys=True,
    )


def _allocations_from_json(raw: str | None) -> dict[str, Allocation]:
    if not raw:
        return {}
    data: dict[str, Any] = json.loads(raw)
    return {
        cid: Allocation(
            percentage=Decimal(str(item.get("percentage", "0"))),
            value_usd=Decimal(str(item.get("value_usd", "0"))),
        )
        for cid, item in data.items()
    }


class SnapshotStore:
    """스냅샷 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # =========================================================================
    # 포트폴리오 스냅샷
    # =========================================================================

    async def upsert_portfolio_snapshot(self, snapshot: PortfolioSnapshot) -> None:
        now = now_iso()
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO crypto_portfolio_snapshots (
                    user_id, snapshot_date, total_value_usd, allocations,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, snapshot_date) DO UPDATE SET
                    total_value_usd = excluded.total_value_usd,
                    allocations = excluded.allocations,
                    updated_at = excluded.updated_at
                """,
                (
                    snapshot.user_id,
                    snapshot.snapshot_date.isoformat(),
                    str(snapshot.total_value_usd),
                    _allocations_to_json(snapshot.allocations),
                    now,
                    now,
                ),
            )

        logger.debug(
            "포트폴리오 스냅샷 저장",
            extra={"user_id": snapshot.user_id, "snapshot_date": snapshot.snapshot_date.isoformat()},
        )

    async def get_portfolio_history(
        self,
        user_id: str,
        start: date | None = None,
    ) -> list[PortfolioSnapshot]:
        sql = """
            SELECT user_id, snapshot_date, total_value_usd, allocations
            FROM crypto_portfolio_snapshots
            WHERE user_id = ?
        """
        params: tuple[Any, ...] = (user_id,)
        if start is not None:
            sql += " AND snapshot_date >= ?"
            params = (user_id, start.isoformat())
        sql += " ORDER BY snapshot_date ASC"

        rows = await self.db.fetchall(sql, params)
        return [
            PortfolioSnapshot(
                user_id=row[0],
                snapshot_date=date.fromisoformat(row[1]),
                total_value_usd=Decimal(row[2]),
                allocations=_allocations_from_json(row[3]),
            )
            for row in rows
        ]

    async def get_latest_crypto_values(self, as_of: date) -> dict[str, Decimal]:
        """사용자별 as_of 이하 최신 스냅샷의 USD 가치

        오늘 행이 있으면 오늘, 없으면 가장 최근 이전 날짜의 값.
        """
        rows = await self.db.fetchall(
            """
            SELECT s.user_id, s.total_value_usd
            FROM crypto_portfolio_snapshots AS s
            JOIN (
                SELECT user_id, MAX(snapshot_date) AS latest_date
                FROM crypto_portfolio_snapshots
                WHERE snapshot_date <= ?
                GROUP BY user_id
            ) AS latest
              ON latest.user_id = s.user_id
             AND latest.latest_date = s.snapshot_date
            """,
            (as_of.isoformat(),),
        )
        return {row[0]: Decimal(row[1]) for row in rows}

    # =========================================================================
    # 순자산 스냅샷
    # =========================================================================

    async def upsert_net_worth_snapshot(self, snapshot: NetWorthSnapshot) -> None:
        now = now_iso()
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO net_worth_snapshots (
                    user_id, snapshot_date, bank_balance, crypto_value_vnd,
                    total_net_worth, exchange_rate, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, snapshot_date) DO UPDATE SET
                    bank_balance = excluded.bank_balance,
                    crypto_value_vnd = excluded.crypto_value_vnd,
                    total_net_worth = excluded.total_net_worth,
                    exchange_rate = excluded.exchange_rate,
                    updated_at = excluded.updated_at
                """,
                (
                    snapshot.user_id,
                    snapshot.snapshot_date.isoformat(),
                    snapshot.bank_balance,
                    snapshot.crypto_value_vnd,
                    snapshot.total_net_worth,
                    str(snapshot.exchange_rate),
                    now,
                    now,
                ),
            )

        logger.debug(
            "순자산 스냅샷 저장",
            extra={"user_id": snapshot.user_id, "snapshot_date": snapshot.snapshot_date.isoformat()},
        )

    async def get_net_worth_history(
        self,
        user_id: str,
        start: date | None = None,
    ) -> list[NetWorthSnapshot]:
        sql = """
            SELECT user_id, snapshot_date, bank_balance, crypto_value_vnd,
                   total_net_worth, exchange_rate
            FROM net_worth_snapshots
            WHERE user_id = ?
        """
        params: tuple[Any, ...] = (user_id,)
        if start is not None:
            sql += " AND snapshot_date >= ?"
            params = (user_id, start.isoformat())
        sql += " ORDER BY snapshot_date ASC"

        rows = await self.db.fetchall(sql, params)
        return [
            NetWorthSnapshot(
                user_id=row[0],
                snapshot_date=date.fromisoformat(row[1]),
                bank_balance=int(row[2]),
                crypto_value_vnd=int(row[3]),
                total_net_worth=int(row[4]),
                exchange_rate=Decimal(row[5]),
            )
            for row in rows
        ]
