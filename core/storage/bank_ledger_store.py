"""
BankLedgerStore - 캘린더 거래 기반 은행 잔고

calendar_transactions 전체를 사용자별로 그룹 합산 (수입 +, 지출 -).
IBankLedger Protocol 구현.
"""

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import CalendarTransactionType


_SIGNED_AMOUNT = """
    CASE type
        WHEN ? THEN amount
        WHEN ? THEN -amount
        ELSE 0
    END
"""


class BankLedgerStore:
    """은행 잔고 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_all_bank_balances(self) -> dict[str, int]:
        """사용자별 은행 잔고 (단일 쿼리 풀스캔)"""
        rows = await self.db.fetchall(
            f"""
            SELECT user_id, COALESCE(SUM({_SIGNED_AMOUNT}), 0)
            FROM calendar_transactions
            GROUP BY user_id
            """,
            (CalendarTransactionType.INCOME.value, CalendarTransactionType.EXPENSE.value),
        )
        return {row[0]: int(row[1]) for row in rows}

    async def get_bank_balance(self, user_id: str) -> int:
        row = await self.db.fetchone(
            f"""
            SELECT COALESCE(SUM({_SIGNED_AMOUNT}), 0)
            FROM calendar_transactions
            WHERE user_id = ?
            """,
            (
                CalendarTransactionType.INCOME.value,
                CalendarTransactionType.EXPENSE.value,
                user_id,
            ),
        )
        return int(row[0]) if row else 0
