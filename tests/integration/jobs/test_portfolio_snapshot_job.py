"""
PortfolioSnapshotJob 통합 테스트

임시 SQLite + Mock 시세 소스.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from adapters.coingecko.rate_limiter import RateLimitError
from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.mock.sources import MockPriceSource
from core.ledger.valuation import PriceQuote
from core.storage.config_store import ConfigStore
from core.storage.crypto_store import CryptoStore
from core.storage.snapshot_store import SnapshotStore
from jobs.portfolio_snapshot import PortfolioSnapshotJob

DAY = date(2026, 2, 21)
PRICES = {"bitcoin": Decimal("50000"), "ethereum": Decimal("2500")}


def make_job(db: SQLiteAdapter, source: MockPriceSource | None = None, snapshot_repo=None) -> PortfolioSnapshotJob:
    return PortfolioSnapshotJob(
        crypto_repo=CryptoStore(db),
        snapshot_repo=snapshot_repo or SnapshotStore(db),
        price_source=source or MockPriceSource(prices=dict(PRICES)),
        config_store=ConfigStore(db),
    )


@pytest.fixture
async def seeded(db: SQLiteAdapter, add_asset, add_transaction) -> SQLiteAdapter:
    """u1: BTC 1.2 + ETH 8, u2: BTC 0.1"""
    await add_asset("u1-btc", "u1", "bitcoin")
    await add_asset("u1-eth", "u1", "ethereum")
    await add_asset("u2-btc", "u2", "bitcoin")

    await add_transaction("t1", "u1", "buy", asset_id="u1-btc", amount="1.0", storage_id="binance", fiat_amount=1_000_000)
    await add_transaction("t2", "u1", "buy", asset_id="u1-btc", amount="0.5", storage_id="ledger", fiat_amount=500_000)
    await add_transaction("t3", "u1", "sell", asset_id="u1-btc", amount="0.3", storage_id="binance", fiat_amount=300_000)
    await add_transaction(
        "t4", "u1", "transfer_between",
        asset_id="u1-btc", amount="0.2", from_storage_id="binance", to_storage_id="ledger",
    )
    await add_transaction(
        "t5", "u1", "swap",
        from_asset_id="u1-btc", from_amount="0.2", to_asset_id="u1-eth", to_amount="8.0", storage_id="ledger",
    )
    await add_transaction("t6", "u2", "transfer_in", asset_id="u2-btc", amount="0.1", storage_id="wallet")
    return db


class TestPortfolioSnapshotJob:
    """스냅샷 생성"""

    @pytest.mark.asyncio
    async def test_creates_snapshots(self, seeded: SQLiteAdapter) -> None:
        result = await make_job(seeded).run(DAY)

        assert result["success"] is True
        assert result["users_processed"] == 2
        assert result["snapshots_created"] == 2
        assert result["snapshots_failed"] == 0
        assert result["price_source"] == "api"
        # u1: BTC 1.0 * 50000 + ETH 8 * 2500 = 70000, u2: 5000
        assert Decimal(result["total_portfolio_value_usd"]) == Decimal("75000")

        history = await SnapshotStore(seeded).get_portfolio_history("u1")
        assert len(history) == 1
        snapshot = history[0]
        assert snapshot.snapshot_date == DAY
        assert snapshot.total_value_usd == Decimal("70000")
        assert snapshot.allocations["bitcoin"].value_usd == Decimal("50000")
        assert snapshot.allocations["bitcoin"].percentage == Decimal("71.4286")
        assert snapshot.allocations["ethereum"].percentage == Decimal("28.5714")

    @pytest.mark.asyncio
    async def test_single_price_request(self, seeded: SQLiteAdapter) -> None:
        """모든 사용자 공통 1회 시세 조회"""
        source = MockPriceSource(prices=dict(PRICES))

        await make_job(seeded, source).run(DAY)

        assert source.calls == [["bitcoin", "ethereum"]]

    @pytest.mark.asyncio
    async def test_rerun_upserts(self, seeded: SQLiteAdapter, count_portfolio_rows) -> None:
        """같은 날 재실행 → 한 행, 두 번째 값"""
        await make_job(seeded).run(DAY)
        higher = MockPriceSource(prices={"bitcoin": Decimal("60000"), "ethereum": Decimal("2500")})
        await make_job(seeded, higher).run(DAY)

        store = SnapshotStore(seeded)
        assert await count_portfolio_rows("u1", DAY) == 1
        history = await store.get_portfolio_history("u1")
        assert history[0].total_value_usd == Decimal("80000")

    @pytest.mark.asyncio
    async def test_zero_value_user_skipped(self, db: SQLiteAdapter, add_asset, add_transaction) -> None:
        """가치 0 사용자는 행을 만들지 않고 skipped"""
        await add_asset("a1", "u1", "bitcoin")
        await add_transaction("t1", "u1", "buy", asset_id="a1", amount="1", storage_id="s1")
        await add_transaction("t2", "u1", "sell", asset_id="a1", amount="1", storage_id="s1")

        result = await make_job(db).run(DAY)

        assert result["success"] is True
        assert result["snapshots_created"] == 0
        assert result["snapshots_skipped"] == 1
        assert await SnapshotStore(db).get_portfolio_history("u1") == []

    @pytest.mark.asyncio
    async def test_zero_price_user_skipped(self, seeded: SQLiteAdapter) -> None:
        """잔고가 있어도 모든 시세가 0이면 skipped, 누락으로 보지 않음"""
        source = MockPriceSource(prices={"bitcoin": Decimal("0"), "ethereum": Decimal("0")})

        result = await make_job(seeded, source).run(DAY)

        assert result["success"] is True
        assert result["snapshots_created"] == 0
        assert result["snapshots_skipped"] == 2
        assert result["missing_price_ids"] == []
        assert await SnapshotStore(seeded).get_portfolio_history("u1") == []

    @pytest.mark.asyncio
    async def test_no_assets(self, db: SQLiteAdapter) -> None:
        result = await make_job(db).run(DAY)

        assert result["success"] is True
        assert result["message"] == "No crypto assets found"
        assert result["users_processed"] == 0

    @pytest.mark.asyncio
    async def test_missing_price_excluded(self, seeded: SQLiteAdapter) -> None:
        """시세 누락 코인은 가치/비중에서 제외"""
        source = MockPriceSource(prices=dict(PRICES), missing_ids={"ethereum"})

        result = await make_job(seeded, source).run(DAY)

        assert result["missing_price_ids"] == ["ethereum"]
        history = await SnapshotStore(seeded).get_portfolio_history("u1")
        assert set(history[0].allocations) == {"bitcoin"}
        assert history[0].allocations["bitcoin"].percentage == Decimal("100")


class TestPortfolioSnapshotFailures:
    """장애 처리"""

    @pytest.mark.asyncio
    async def test_user_failure_isolated(self, seeded: SQLiteAdapter) -> None:
        """한 사용자 저장 실패가 다른 사용자에 영향 없음"""
        real_store = SnapshotStore(seeded)
        failing = AsyncMock(wraps=real_store)

        async def upsert(snapshot):
            if snapshot.user_id == "u1":
                raise RuntimeError("disk full")
            await real_store.upsert_portfolio_snapshot(snapshot)

        failing.upsert_portfolio_snapshot.side_effect = upsert

        result = await make_job(seeded, snapshot_repo=failing).run(DAY)

        assert result["success"] is True
        assert result["snapshots_created"] == 1
        assert result["snapshots_failed"] == 1
        failed = [r for r in result["results"] if not r["success"]]
        assert failed == [{"user_id": "u1", "success": False, "error": "disk full"}]
        assert len(await real_store.get_portfolio_history("u2")) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_uses_cached_prices(self, seeded: SQLiteAdapter) -> None:
        """Rate Limit → 마지막 시세로 계속"""
        await ConfigStore(seeded).update_price_cache({
            "bitcoin": PriceQuote(coingecko_id="bitcoin", usd=Decimal("40000")),
            "ethereum": PriceQuote(coingecko_id="ethereum", usd=Decimal("2000")),
        })
        source = MockPriceSource(error=RateLimitError(retry_after=60))

        result = await make_job(seeded, source).run(DAY)

        assert result["success"] is True
        assert result["price_source"] == "cache"
        history = await SnapshotStore(seeded).get_portfolio_history("u2")
        assert history[0].total_value_usd == Decimal("4000")

    @pytest.mark.asyncio
    async def test_setup_failure(self, db: SQLiteAdapter) -> None:
        """자산 목록 조회 실패 → success=False"""
        crypto_repo = AsyncMock()
        crypto_repo.list_all_assets.side_effect = RuntimeError("connection lost")
        job = PortfolioSnapshotJob(
            crypto_repo=crypto_repo,
            snapshot_repo=SnapshotStore(db),
            price_source=MockPriceSource(),
        )

        result = await job.run(DAY)

        assert result["success"] is False
        assert "connection lost" in result["error"]
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_unexpected_price_error_is_setup_failure(self, seeded: SQLiteAdapter) -> None:
        source = MockPriceSource(error=RuntimeError("bug"))

        result = await make_job(seeded, source).run(DAY)

        assert result["success"] is False
        assert "시세 조회 실패" in result["error"]
