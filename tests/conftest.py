"""
pytest 공통 fixture 정의

임시 secrets.yaml, 임시 SQLite DB, 테스트 데이터 시드 헬퍼.
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_secrets_file(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (local 모드)"""
    secrets_content = """# 테스트용 secrets.yaml
mode: local
cron_secret: "test_cron_secret_xyz"

coingecko:
  api_key: "cg_demo_key_12345"

exchange_rate:
  default: 25500
"""
    secrets_path = temp_dir / "secrets.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_production(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (production 모드, 선택 항목 생략)"""
    secrets_content = """mode: production
cron_secret: "prod_cron_secret"
"""
    secrets_path = temp_dir / "secrets_prod.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 secrets.yaml 파일 생성"""
    secrets_content = """mode: invalid_mode
cron_secret: "secret"
"""
    secrets_path = temp_dir / "secrets_invalid.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 전후)"""
    Settings.reset()
    yield
    Settings.reset()


# -------------------------------------------------------------------------
# DB fixture
# -------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db(temp_dir: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 임시 파일 DB"""
    adapter = SQLiteAdapter(temp_dir / "test.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


SeedFn = Callable[..., Awaitable[None]]


@pytest.fixture
def add_asset(db: SQLiteAdapter) -> SeedFn:
    """crypto_assets 행 추가"""

    async def _add(
        asset_id: str,
        user_id: str,
        coingecko_id: str,
        symbol: str | None = None,
        name: str | None = None,
    ) -> None:
        await db.execute(
            """
            INSERT INTO crypto_assets (id, user_id, coingecko_id, name, symbol)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                asset_id,
                user_id,
                coingecko_id,
                name or coingecko_id.title(),
                symbol or coingecko_id[:3].upper(),
            ),
        )
        await db.commit()

    return _add


@pytest.fixture
def add_storage(db: SQLiteAdapter) -> SeedFn:
    """crypto_storages 행 추가"""

    async def _add(storage_id: str, user_id: str, type_: str = "cex", name: str | None = None) -> None:
        await db.execute(
            "INSERT INTO crypto_storages (id, user_id, type, name) VALUES (?, ?, ?, ?)",
            (storage_id, user_id, type_, name or storage_id),
        )
        await db.commit()

    return _add


@pytest.fixture
def add_transaction(db: SQLiteAdapter) -> SeedFn:
    """crypto_transactions 행 추가 (유형별 필드는 키워드 인자)"""

    async def _add(tx_id: str, user_id: str, type_: str, **fields: Any) -> None:
        row: dict[str, Any] = {
            "id": tx_id,
            "user_id": user_id,
            "type": type_,
            "date": fields.pop("date", "2026-01-15"),
        }
        for key, value in fields.items():
            row[key] = str(value) if isinstance(value, Decimal) else value

        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        await db.execute(
            f"INSERT INTO crypto_transactions ({columns}) VALUES ({placeholders})",
            tuple(row.values()),
        )
        await db.commit()

    return _add


@pytest.fixture
def add_calendar_transaction(db: SQLiteAdapter) -> SeedFn:
    """calendar_transactions 행 추가 (은행 잔고용)"""

    async def _add(
        tx_id: str,
        user_id: str,
        type_: str,
        amount: int,
        on: date = date(2026, 1, 10),
    ) -> None:
        await db.execute(
            """
            INSERT INTO calendar_transactions (id, user_id, type, amount, date)
            VALUES (?, ?, ?, ?, ?)
            """,
            (tx_id, user_id, type_, amount, on.isoformat()),
        )
        await db.commit()

    return _add


@pytest.fixture
def count_portfolio_rows(db: SQLiteAdapter) -> Callable[[str, date], Awaitable[int]]:
    """(user_id, snapshot_date) 포트폴리오 스냅샷 행 수"""

    async def _count(user_id: str, snapshot_date: date) -> int:
        row = await db.fetchone(
            """
            SELECT COUNT(*) FROM crypto_portfolio_snapshots
            WHERE user_id = ? AND snapshot_date = ?
            """,
            (user_id, snapshot_date.isoformat()),
        )
        return int(row[0]) if row else 0

    return _count
