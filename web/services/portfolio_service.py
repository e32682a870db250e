"""
포트폴리오 서비스

잔고 조회, 실시간 평가, 현재 순자산, 삭제 가능 여부, 거래 잔고 검증.
잔고는 저장값이 아니라 매 요청마다 거래 목록에서 재계산한다.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IExchangeRateSource, IPriceSource
from core.domain.transactions import build_transaction
from core.ledger.balance import (
    can_delete_asset,
    can_delete_storage,
    check_sufficient_balance,
    compute_balance,
    get_all_balances,
)
from core.ledger.valuation import compute_net_worth, compute_valuation
from core.storage.bank_ledger_store import BankLedgerStore
from core.storage.config_store import ConfigStore
from core.storage.crypto_store import CryptoStore
from core.types import RateSource
from jobs.exchange_rate import ExchangeRateResolver, ExchangeRateResult
from jobs.prices import fetch_prices_with_fallback

logger = logging.getLogger(__name__)


def _str_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _rate_info(result: ExchangeRateResult) -> dict[str, Any]:
    return {
        "rate": str(result.rate),
        "source": result.source.value,
        "last_updated": result.last_updated.isoformat() if result.last_updated else None,
    }


class PortfolioService:
    """포트폴리오 조회 서비스

    Args:
        db: SQLite 어댑터
        price_source: 시세 소스 (평가 조회 시 필요)
        rate_source: 환율 소스 (평가/순자산 조회 시 필요)
        default_rate: 환율 최후 기본값
        price_live_source: 시세 조회 성공 시 출처 라벨
        rate_live_source: 환율 조회 성공 시 출처 라벨
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        price_source: IPriceSource | None = None,
        rate_source: IExchangeRateSource | None = None,
        default_rate: Decimal | None = None,
        price_live_source: RateSource = RateSource.API,
        rate_live_source: RateSource = RateSource.API,
    ):
        self.crypto_store = CryptoStore(db)
        self.bank_ledger = BankLedgerStore(db)
        self.config_store = ConfigStore(db)
        self.price_source = price_source
        self.rate_source = rate_source
        self.default_rate = default_rate
        self.price_live_source = price_live_source
        self.rate_live_source = rate_live_source

    # =========================================================================
    # 잔고
    # =========================================================================

    async def get_balances(
        self,
        user_id: str,
        asset_id: str | None = None,
        storage_id: str | None = None,
    ) -> dict[str, Any]:
        """잔고 조회

        - asset_id 지정: 해당 자산 잔고 (storage_id 지정 시 해당 보관처만)
        - storage_id만 지정: 해당 보관처의 0이 아닌 자산별 잔고
        - 둘 다 없음: 0이 아닌 (자산, 보관처) 전체
        """
        transactions = await self.crypto_store.list_transactions(user_id)

        if asset_id is not None:
            balance = compute_balance(asset_id, storage_id, transactions)
            entries = [{"asset_id": asset_id, "storage_id": storage_id, "balance": str(balance)}]
            return {"user_id": user_id, "balances": entries}

        all_balances = get_all_balances(transactions)
        entries = [
            {"asset_id": aid, "storage_id": sid, "balance": str(balance)}
            for aid, per_storage in all_balances.items()
            for sid, balance in per_storage.items()
            if storage_id is None or sid == storage_id
        ]
        return {"user_id": user_id, "balances": entries}

    # =========================================================================
    # 평가
    # =========================================================================

    def _rate_resolver(self) -> ExchangeRateResolver:
        if self.rate_source is None or self.default_rate is None:
            raise RuntimeError("환율 소스가 설정되지 않았습니다")
        return ExchangeRateResolver(
            source=self.rate_source,
            config_store=self.config_store,
            default_rate=self.default_rate,
            live_source=self.rate_live_source,
        )

    async def get_portfolio(self, user_id: str) -> dict[str, Any]:
        """실시간 포트폴리오 평가

        시세 실패 시 캐시, 환율은 24시간 캐시 우선.
        """
        if self.price_source is None:
            raise RuntimeError("시세 소스가 설정되지 않았습니다")

        assets = await self.crypto_store.list_assets(user_id)
        storages = await self.crypto_store.list_storages(user_id)
        transactions = await self.crypto_store.list_transactions(user_id)

        fetched = await fetch_prices_with_fallback(
            self.price_source,
            [asset.coingecko_id for asset in assets],
            config_store=self.config_store,
            live_source=self.price_live_source,
        )
        rate_result = await self._rate_resolver().resolve(prefer_cache=True)

        valuation = compute_valuation(
            assets, storages, transactions, fetched.prices, rate_result.rate
        )

        return {
            "user_id": user_id,
            "total_value_vnd": str(valuation.total_value_vnd),
            "total_value_usd": str(valuation.total_value_usd),
            "change_24h": _str_or_none(valuation.change_24h),
            "change_7d": _str_or_none(valuation.change_7d),
            "exchange_rate": _rate_info(rate_result),
            "price_source": fetched.source.value,
            "missing_price_ids": valuation.missing_price_ids,
            "assets": [
                {
                    "asset_id": a.asset_id,
                    "coingecko_id": a.coingecko_id,
                    "name": a.name,
                    "symbol": a.symbol,
                    "balance": str(a.balance),
                    "price_usd": _str_or_none(a.price_usd),
                    "value_usd": str(a.value_usd),
                    "value_vnd": str(a.value_vnd),
                    "percentage": str(a.percentage),
                    "price_missing": a.price_missing,
                    "change_24h": _str_or_none(a.change_24h),
                    "change_7d": _str_or_none(a.change_7d),
                    "change_30d": _str_or_none(a.change_30d),
                    "change_60d": _str_or_none(a.change_60d),
                    "change_1y": _str_or_none(a.change_1y),
                }
                for a in valuation.assets
            ],
            "storages": [
                {
                    "storage_id": s.storage_id,
                    "name": s.name,
                    "type": s.type,
                    "value_vnd": str(s.value_vnd),
                    "percentage": str(s.percentage),
                    "holdings": [
                        {
                            "asset_id": h.asset_id,
                            "coingecko_id": h.coingecko_id,
                            "symbol": h.symbol,
                            "balance": str(h.balance),
                            "value_vnd": str(h.value_vnd),
                        }
                        for h in s.holdings
                    ],
                }
                for s in valuation.storages
            ],
        }

    async def get_net_worth(self, user_id: str) -> dict[str, Any]:
        """현재 순자산 (은행 잔고 + 실시간 암호화폐 가치)"""
        portfolio = await self.get_portfolio(user_id)
        bank_balance = await self.bank_ledger.get_bank_balance(user_id)

        rate = Decimal(portfolio["exchange_rate"]["rate"])
        net_worth = compute_net_worth(
            bank_balance, Decimal(portfolio["total_value_usd"]), rate
        )
        return {
            "user_id": user_id,
            "bank_balance": net_worth.bank_balance,
            "crypto_value_vnd": net_worth.crypto_value_vnd,
            "total_net_worth": net_worth.total_net_worth,
            "exchange_rate": portfolio["exchange_rate"],
        }

    # =========================================================================
    # 삭제 가능 여부
    # =========================================================================

    async def check_asset_deletable(self, user_id: str, asset_id: str) -> dict[str, Any] | None:
        """자산 삭제 가능 여부 (없는 자산이면 None)"""
        if await self.crypto_store.get_asset(user_id, asset_id) is None:
            return None
        transactions = await self.crypto_store.list_transactions(user_id)
        remaining = get_all_balances(transactions).get(asset_id, {})
        return {
            "id": asset_id,
            "deletable": can_delete_asset(asset_id, transactions),
            "balances": {sid: str(balance) for sid, balance in remaining.items()},
        }

    async def check_storage_deletable(self, user_id: str, storage_id: str) -> dict[str, Any] | None:
        if await self.crypto_store.get_storage(user_id, storage_id) is None:
            return None
        transactions = await self.crypto_store.list_transactions(user_id)
        remaining = {
            aid: per_storage[storage_id]
            for aid, per_storage in get_all_balances(transactions).items()
            if storage_id in per_storage
        }
        return {
            "id": storage_id,
            "deletable": can_delete_storage(storage_id, transactions),
            "balances": {aid: str(balance) for aid, balance in remaining.items()},
        }

    # =========================================================================
    # 거래 검증
    # =========================================================================

    async def validate_transaction(self, user_id: str, row: dict[str, Any]) -> dict[str, Any]:
        """신규/수정 거래의 잔고 검증

        Raises:
            MalformedTransactionError: 유형에 맞지 않는 필드
            InsufficientBalanceError: 출고 수량 > 사용 가능 잔고
        """
        transaction = build_transaction(row)
        transactions = await self.crypto_store.list_transactions(user_id)

        check_sufficient_balance(
            transaction,
            transactions,
            exclude_transaction_id=row.get("id"),
        )

        leg = transaction.outgoing_leg()
        logger.debug(
            "거래 잔고 검증 통과",
            extra={"user_id": user_id, "type": transaction.type.value},
        )
        return {
            "valid": True,
            "asset_id": leg.asset_id if leg else None,
            "storage_id": leg.storage_id if leg else None,
            "required": str(leg.amount) if leg else None,
        }
