"""
CryptoStore - 자산/보관처/거래 조회

crypto_assets, crypto_storages, crypto_transactions 테이블을 읽는 저장소.
ICryptoRepository Protocol 구현.

거래 행은 parse_transactions()를 거쳐 형식 오류 행이 제외된 상태로 반환.
"""

import logging

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import CryptoAsset, CryptoStorage
from core.domain.transactions import CryptoTransaction, parse_transactions

logger = logging.getLogger(__name__)


_ASSET_COLUMNS = "id, user_id, coingecko_id, name, symbol, icon_url"
_STORAGE_COLUMNS = "id, user_id, type, name, address, explorer_url"
_TRANSACTION_COLUMNS = """
    id, user_id, type, date,
    asset_id, amount, storage_id, fiat_amount, linked_transaction_id,
    from_storage_id, to_storage_id,
    from_asset_id, from_amount, to_asset_id, to_amount,
    tx_id, tx_explorer_url, created_at, updated_at
"""

# SQLite 바인딩 변수 한도(기본 999) 이하로 IN 절 분할
_IN_CLAUSE_CHUNK = 500


class CryptoStore:
    """암호화폐 원장 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        store = CryptoStore(db)
        assets = await store.list_assets("user-1")
        txs = await store.list_transactions("user-1")
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def list_assets(self, user_id: str) -> list[CryptoAsset]:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_ASSET_COLUMNS}
            FROM crypto_assets
            WHERE user_id = ?
            ORDER BY created_at, id
            """,
            (user_id,),
        )
        return [CryptoAsset.from_row(row) for row in rows]

    async def list_storages(self, user_id: str) -> list[CryptoStorage]:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_STORAGE_COLUMNS}
            FROM crypto_storages
            WHERE user_id = ?
            ORDER BY created_at, id
            """,
            (user_id,),
        )
        return [CryptoStorage.from_row(row) for row in rows]

    async def list_transactions(self, user_id: str) -> list[CryptoTransaction]:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_TRANSACTION_COLUMNS}
            FROM crypto_transactions
            WHERE user_id = ?
            ORDER BY date, created_at, id
            """,
            (user_id,),
        )
        transactions = parse_transactions(rows)
        if len(transactions) != len(rows):
            logger.warning(
                f"형식 오류 거래 {len(rows) - len(transactions)}건 제외",
                extra={"user_id": user_id},
            )
        return transactions

    async def list_all_assets(self) -> list[CryptoAsset]:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_ASSET_COLUMNS}
            FROM crypto_assets
            ORDER BY user_id, created_at, id
            """
        )
        return [CryptoAsset.from_row(row) for row in rows]

    async def list_transactions_for_users(
        self,
        user_ids: list[str],
    ) -> dict[str, list[CryptoTransaction]]:
        """여러 사용자의 거래 일괄 조회 (사용자별 쿼리 없음)"""
        result: dict[str, list[CryptoTransaction]] = {uid: [] for uid in user_ids}
        if not user_ids:
            return result

        rows = []
        for i in range(0, len(user_ids), _IN_CLAUSE_CHUNK):
            chunk = user_ids[i:i + _IN_CLAUSE_CHUNK]
            placeholders = ", ".join("?" for _ in chunk)
            rows.extend(
                await self.db.fetchall_dicts(
                    f"""
                    SELECT {_TRANSACTION_COLUMNS}
                    FROM crypto_transactions
                    WHERE user_id IN ({placeholders})
                    ORDER BY date, created_at, id
                    """,
                    tuple(chunk),
                )
            )

        transactions = parse_transactions(rows)
        skipped = len(rows) - len(transactions)
        if skipped:
            logger.warning(f"형식 오류 거래 {skipped}건 제외")

        for tx in transactions:
            if tx.user_id in result:
                result[tx.user_id].append(tx)
        return result

    async def get_asset(self, user_id: str, asset_id: str) -> CryptoAsset | None:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_ASSET_COLUMNS}
            FROM crypto_assets
            WHERE user_id = ? AND id = ?
            """,
            (user_id, asset_id),
        )
        return CryptoAsset.from_row(rows[0]) if rows else None

    async def get_storage(self, user_id: str, storage_id: str) -> CryptoStorage | None:
        rows = await self.db.fetchall_dicts(
            f"""
            SELECT {_STORAGE_COLUMNS}
            FROM crypto_storages
            WHERE user_id = ? AND id = ?
            """,
            (user_id, storage_id),
        )
        return CryptoStorage.from_row(rows[0]) if rows else None
