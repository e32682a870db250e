"""
Web API 통합 테스트

httpx ASGITransport로 앱 호출. DB/설정은 dependency_overrides로 임시 파일 DB에 연결.
로컬 모드라 시세/환율은 Mock (bitcoin 97000 USD, 환율 25500).
"""

from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from web.app import app
from web.dependencies import get_app_settings, get_cron_secret, get_db, get_db_write

CRON_SECRET = "test_cron_secret_xyz"
AUTH = {"Authorization": f"Bearer {CRON_SECRET}"}


@pytest.fixture
def settings(temp_secrets_file: Path, reset_settings) -> Settings:
    """로컬 모드 설정 (임시 secrets.yaml)"""
    return get_settings(temp_secrets_file)


@pytest_asyncio.fixture
async def client(db: SQLiteAdapter, settings: Settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """테스트 DB/설정이 주입된 클라이언트"""

    async def override_db() -> AsyncGenerator[SQLiteAdapter, None]:
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_db_write] = override_db
    app.dependency_overrides[get_app_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def btc_user(add_asset, add_storage, add_transaction) -> str:
    """u1: Binance에 BTC 0.5"""
    await add_asset("a-btc", "u1", "bitcoin", symbol="BTC", name="Bitcoin")
    await add_storage("s-binance", "u1", "cex", name="Binance")
    await add_transaction(
        "t1", "u1", "buy",
        asset_id="a-btc", amount="0.5", storage_id="s-binance", fiat_amount=1_200_000_000,
    )
    return "u1"


class TestHealth:
    """GET /health"""

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "mode": "local", "version": "1.0.0"}


class TestSnapshotTriggerAuth:
    """스냅샷 트리거 인증"""

    @pytest.mark.asyncio
    async def test_missing_header(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/functions/v1/snapshot-crypto-portfolio")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Missing authorization"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_not_bearer(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/functions/v1/snapshot-net-worth",
            headers={"Authorization": f"Basic {CRON_SECRET}"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Missing authorization"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/functions/v1/snapshot-crypto-portfolio",
            headers={"Authorization": "Bearer wrong"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid authorization token"

    @pytest.mark.asyncio
    async def test_secret_not_configured(self, client: httpx.AsyncClient) -> None:
        """cron_secret 미설정 → 500"""
        app.dependency_overrides[get_cron_secret] = lambda: None

        response = await client.post("/functions/v1/snapshot-net-worth", headers=AUTH)

        assert response.status_code == 500
        assert response.json()["error"] == "Server configuration error"

    @pytest.mark.asyncio
    async def test_get_not_allowed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/functions/v1/snapshot-crypto-portfolio", headers=AUTH)

        assert response.status_code == 405


class TestSnapshotTriggers:
    """스냅샷 트리거 실행"""

    @pytest.mark.asyncio
    async def test_portfolio_then_net_worth(
        self, client: httpx.AsyncClient, btc_user: str, add_calendar_transaction
    ) -> None:
        await add_calendar_transaction("c1", btc_user, "income", 10_000_000)

        response = await client.post("/functions/v1/snapshot-crypto-portfolio", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["snapshots_created"] == 1
        assert body["price_source"] == "mock"
        assert Decimal(body["total_portfolio_value_usd"]) == Decimal("48500")

        response = await client.post("/functions/v1/snapshot-net-worth", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["exchange_rate"] == "25500"
        assert body["exchange_rate_source"] == "mock"
        # 10,000,000 + 48,500 * 25,500
        assert body["total_net_worth_vnd"] == 10_000_000 + 1_236_750_000

        history = await client.get(f"/api/users/{btc_user}/net-worth/history", params={"range": "all"})
        assert len(history.json()["items"]) == 1

    @pytest.mark.asyncio
    async def test_job_failure_returns_500(self, client: httpx.AsyncClient) -> None:
        failed = {"success": False, "error": "자산 목록 조회 실패", "timestamp": "2026-02-21T00:00:00+00:00"}
        with patch("web.routes.snapshots.run_portfolio_snapshot", AsyncMock(return_value=failed)):
            response = await client.post("/functions/v1/snapshot-crypto-portfolio", headers=AUTH)

        assert response.status_code == 500
        assert response.json() == failed

    @pytest.mark.asyncio
    async def test_unexpected_exception_returns_500(self, client: httpx.AsyncClient) -> None:
        with patch(
            "web.routes.snapshots.run_net_worth_snapshot",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            response = await client.post("/functions/v1/snapshot-net-worth", headers=AUTH)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "boom"


class TestPortfolioRoutes:
    """사용자 조회 API"""

    @pytest.mark.asyncio
    async def test_balances(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.get(f"/api/users/{btc_user}/balances")

        assert response.status_code == 200
        assert response.json()["balances"] == [
            {"asset_id": "a-btc", "storage_id": "s-binance", "balance": "0.5"},
        ]

    @pytest.mark.asyncio
    async def test_balance_of_asset(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.get(
            f"/api/users/{btc_user}/balances", params={"asset_id": "a-btc"},
        )

        entry = response.json()["balances"][0]
        assert entry["storage_id"] is None
        assert Decimal(entry["balance"]) == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_portfolio(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.get(f"/api/users/{btc_user}/portfolio")

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total_value_usd"]) == Decimal("48500")
        assert Decimal(body["total_value_vnd"]) == Decimal("1236750000")
        assert body["exchange_rate"]["rate"] == "25500"
        assert body["exchange_rate"]["source"] == "mock"
        assert body["price_source"] == "mock"
        assert Decimal(body["assets"][0]["percentage"]) == Decimal("100")
        storage = body["storages"][0]
        assert storage["type"] == "cex"
        assert storage["holdings"][0]["symbol"] == "BTC"

    @pytest.mark.asyncio
    async def test_portfolio_empty_user(self, client: httpx.AsyncClient) -> None:
        """자산 없음 → 총액 0, 비중 0"""
        response = await client.get("/api/users/nobody/portfolio")

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total_value_vnd"]) == 0
        assert body["assets"] == []

    @pytest.mark.asyncio
    async def test_net_worth(
        self, client: httpx.AsyncClient, btc_user: str, add_calendar_transaction
    ) -> None:
        await add_calendar_transaction("c1", btc_user, "expense", 750_000)

        response = await client.get(f"/api/users/{btc_user}/net-worth")

        assert response.status_code == 200
        body = response.json()
        assert body["bank_balance"] == -750_000
        assert body["crypto_value_vnd"] == 1_236_750_000
        assert body["total_net_worth"] == 1_236_000_000

    @pytest.mark.asyncio
    async def test_history_invalid_range(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/users/u1/portfolio/history", params={"range": "2w"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_history_empty(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/users/u1/portfolio/history", params={"range": "7d"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "u1", "range": "7d", "items": []}

    @pytest.mark.asyncio
    async def test_asset_not_deletable(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.get(f"/api/users/{btc_user}/assets/a-btc/deletable")

        assert response.status_code == 200
        assert response.json() == {
            "id": "a-btc",
            "deletable": False,
            "balances": {"s-binance": "0.5"},
        }

    @pytest.mark.asyncio
    async def test_storage_deletable_after_sell(
        self, client: httpx.AsyncClient, btc_user: str, add_transaction
    ) -> None:
        await add_transaction(
            "t2", btc_user, "sell", asset_id="a-btc", amount="0.5", storage_id="s-binance",
        )

        response = await client.get(f"/api/users/{btc_user}/storages/s-binance/deletable")

        assert response.json()["deletable"] is True

    @pytest.mark.asyncio
    async def test_unknown_asset_404(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.get(f"/api/users/{btc_user}/assets/a-unknown/deletable")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_users_storage_404(self, client: httpx.AsyncClient, btc_user: str) -> None:
        """다른 사용자의 보관처는 찾을 수 없음"""
        response = await client.get("/api/users/u2/storages/s-binance/deletable")

        assert response.status_code == 404


class TestValidateTransaction:
    """POST /transactions/validate"""

    @pytest.mark.asyncio
    async def test_valid_sell(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.post(
            f"/api/users/{btc_user}/transactions/validate",
            json={
                "type": "sell", "date": "2026-02-21",
                "asset_id": "a-btc", "amount": "0.2", "storage_id": "s-binance",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert Decimal(body["required"]) == Decimal("0.2")

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, client: httpx.AsyncClient, btc_user: str) -> None:
        response = await client.post(
            f"/api/users/{btc_user}/transactions/validate",
            json={
                "type": "transfer_between", "date": "2026-02-21",
                "asset_id": "a-btc", "amount": "1.0",
                "from_storage_id": "s-binance", "to_storage_id": "s-ledger",
            },
        )

        assert response.status_code == 422
        body = response.json()
        assert body["valid"] is False
        assert body["error"] == "Insufficient balance"
        assert body["storage_id"] == "s-binance"
        assert Decimal(body["required"]) == Decimal("1.0")
        assert Decimal(body["available"]) == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_edit_excludes_own_effect(
        self, client: httpx.AsyncClient, btc_user: str, add_transaction
    ) -> None:
        """수정 중인 sell 0.4 → 0.5로 변경 가능"""
        await add_transaction(
            "t2", btc_user, "sell", asset_id="a-btc", amount="0.4", storage_id="s-binance",
        )

        response = await client.post(
            f"/api/users/{btc_user}/transactions/validate",
            json={
                "id": "t2", "type": "sell", "date": "2026-02-21",
                "asset_id": "a-btc", "amount": "0.5", "storage_id": "s-binance",
            },
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_malformed(self, client: httpx.AsyncClient, btc_user: str) -> None:
        """유형에 필요한 필드 누락 → 400"""
        response = await client.post(
            f"/api/users/{btc_user}/transactions/validate",
            json={"type": "sell", "date": "2026-02-21", "asset_id": "a-btc", "amount": "0.1"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_type(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/users/u1/transactions/validate",
            json={"type": "airdrop", "date": "2026-02-21"},
        )

        assert response.status_code == 422
