"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
스냅샷 배치와 Web이 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)
        # WAL 모드 설정 (쓰기 연결에서만 변경 가능)
        await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (Web 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        return await self._conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchall()

    async def fetchall_dicts(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행 조회 (컬럼명 → 값 딕셔너리)

        거래 행처럼 유형별로 채워지는 컬럼이 다른 경우 사용.
        """
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        columns = [col[0] for col in cursor.description or ()]
        return [dict(zip(columns, row)) for row in rows]

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        try:
            yield self._conn
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    금액/수량은 모두 TEXT (Decimal 문자열)로 저장.
    fiat 금액(VND)은 정수.

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # crypto_assets
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS crypto_assets (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            coingecko_id     TEXT NOT NULL,
            name             TEXT NOT NULL,
            symbol           TEXT NOT NULL,
            icon_url         TEXT,

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # crypto_storages
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS crypto_storages (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('cex', 'wallet')),
            name             TEXT NOT NULL,
            address          TEXT,
            explorer_url     TEXT,

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # crypto_transactions (유형별로 일부 컬럼만 채워지는 평면 행)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS crypto_transactions (
            id                     TEXT PRIMARY KEY,
            user_id                TEXT NOT NULL,
            type                   TEXT NOT NULL,
            date                   TEXT NOT NULL,

            asset_id               TEXT,
            amount                 TEXT,
            storage_id             TEXT,
            fiat_amount            INTEGER,
            linked_transaction_id  TEXT,

            from_storage_id        TEXT,
            to_storage_id          TEXT,

            from_asset_id          TEXT,
            from_amount            TEXT,
            to_asset_id            TEXT,
            to_amount              TEXT,

            tx_id                  TEXT,
            tx_explorer_url        TEXT,

            created_at             TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at             TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # calendar_transactions (은행 잔고 계산용 법정화폐 거래)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS calendar_transactions (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            amount           INTEGER NOT NULL,
            date             TEXT NOT NULL,
            description      TEXT,

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # crypto_portfolio_snapshots
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS crypto_portfolio_snapshots (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id          TEXT NOT NULL,
            snapshot_date    TEXT NOT NULL,
            total_value_usd  TEXT NOT NULL,
            allocations      TEXT NOT NULL DEFAULT '{}',

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, snapshot_date)
        )
    """)

    # net_worth_snapshots
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS net_worth_snapshots (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id          TEXT NOT NULL,
            snapshot_date    TEXT NOT NULL,
            bank_balance     INTEGER NOT NULL,
            crypto_value_vnd INTEGER NOT NULL,
            total_net_worth  INTEGER NOT NULL,
            exchange_rate    TEXT NOT NULL,

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(user_id, snapshot_date)
        )
    """)

    # config_store
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS config_store (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            config_key   TEXT NOT NULL UNIQUE,
            value_json   TEXT NOT NULL,
            version      INTEGER NOT NULL DEFAULT 1,

            updated_by   TEXT NOT NULL,
            created_at   TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at   TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_crypto_assets_user
        ON crypto_assets(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_crypto_storages_user
        ON crypto_storages(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_crypto_transactions_user
        ON crypto_transactions(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_calendar_transactions_user
        ON calendar_transactions(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_portfolio_snapshots_date
        ON crypto_portfolio_snapshots(snapshot_date)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_net_worth_snapshots_date
        ON net_worth_snapshots(snapshot_date)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
