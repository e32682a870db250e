"""
PortfolioSnapshotJob

하루 한 번 모든 사용자의 암호화폐 포트폴리오 가치와 코인별 비중을 저장.

1. 자산 보유 사용자 전체의 자산/거래를 일괄 조회
2. 모든 coingecko_id를 모아 시세 배치 조회 (Rate Limit은 클라이언트의 throttle이 처리)
3. 사용자별 가치 계산, 0이면 건너뜀, 아니면 (user_id, snapshot_date) upsert
4. 사용자별 실패는 격리하고 요약 반환
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any

from adapters.interfaces import ICryptoRepository, IPriceSource, ISnapshotRepository
from core.domain.models import CryptoAsset
from core.domain.snapshots import PortfolioSnapshot
from core.domain.transactions import ZERO, CryptoTransaction
from core.ledger.balance import compute_balance
from core.ledger.valuation import PriceQuote, compute_allocations
from core.storage.config_store import ConfigStore
from core.types import RateSource
from jobs.base import JobSetupError, SnapshotJob, UserSnapshotResult
from jobs.prices import PriceFetchResult, fetch_prices_with_fallback

logger = logging.getLogger(__name__)


class PortfolioSnapshotJob(SnapshotJob):
    """포트폴리오 스냅샷 배치

    Args:
        crypto_repo: 자산/거래 저장소
        snapshot_repo: 스냅샷 저장소
        price_source: 시세 소스
        config_store: 시세 캐시 저장소 (None이면 캐시 폴백 없음)
        live_source: 시세 조회 성공 시 보고할 출처
    """

    def __init__(
        self,
        crypto_repo: ICryptoRepository,
        snapshot_repo: ISnapshotRepository,
        price_source: IPriceSource,
        config_store: ConfigStore | None = None,
        live_source: RateSource = RateSource.API,
    ):
        self.crypto_repo = crypto_repo
        self.snapshot_repo = snapshot_repo
        self.price_source = price_source
        self.config_store = config_store
        self.live_source = live_source

    @property
    def job_name(self) -> str:
        return "포트폴리오 스냅샷"

    async def _fetch_prices(self, coingecko_ids: list[str]) -> PriceFetchResult:
        """시세 배치 조회

        가격 소스 에러(Rate Limit 포함)는 마지막 시세 캐시로 대체.
        그 밖의 예외는 준비 단계 실패로 처리.
        """
        try:
            return await fetch_prices_with_fallback(
                self.price_source,
                coingecko_ids,
                config_store=self.config_store,
                live_source=self.live_source,
            )
        except Exception as e:
            raise JobSetupError(f"시세 조회 실패: {e}") from e

    async def _execute(self, snapshot_date: date) -> dict[str, Any]:
        # 1. 자산 보유 사용자 및 거래 일괄 조회
        try:
            all_assets = await self.crypto_repo.list_all_assets()
        except Exception as e:
            raise JobSetupError(f"자산 목록 조회 실패: {e}") from e

        if not all_assets:
            logger.info("암호화폐 자산 없음, 스냅샷 생략")
            return {
                "snapshot_date": snapshot_date.isoformat(),
                "message": "No crypto assets found",
                **self._count([]),
                "total_portfolio_value_usd": "0",
                "price_source": None,
                "missing_price_ids": [],
                "results": [],
            }

        assets_by_user: dict[str, list[CryptoAsset]] = defaultdict(list)
        for asset in all_assets:
            assets_by_user[asset.user_id].append(asset)
        user_ids = list(assets_by_user)
        coingecko_ids = sorted({asset.coingecko_id for asset in all_assets})
        logger.info(f"자산 보유 사용자 {len(user_ids)}명, 코인 {len(coingecko_ids)}종")

        try:
            txs_by_user = await self.crypto_repo.list_transactions_for_users(user_ids)
        except Exception as e:
            raise JobSetupError(f"거래 목록 조회 실패: {e}") from e

        # 2. 시세 배치 조회 (전체 사용자 공통 1회)
        fetched = await self._fetch_prices(coingecko_ids)
        prices = fetched.prices

        # 3. 사용자별 스냅샷
        async def handle(user_id: str) -> UserSnapshotResult:
            return await self._snapshot_user(
                user_id,
                assets_by_user[user_id],
                txs_by_user.get(user_id, []),
                prices,
                snapshot_date,
            )

        results = await self._process_users(user_ids, handle)

        total_value = sum(
            (Decimal(r.details["total_value_usd"]) for r in results if r.success and not r.skipped),
            ZERO,
        )

        return {
            "snapshot_date": snapshot_date.isoformat(),
            **self._count(results),
            "total_portfolio_value_usd": str(total_value),
            "price_source": fetched.source.value,
            "missing_price_ids": fetched.missing_ids,
            "results": [r.to_dict() for r in results],
        }

    async def _snapshot_user(
        self,
        user_id: str,
        assets: list[CryptoAsset],
        transactions: list[CryptoTransaction],
        prices: dict[str, PriceQuote],
        snapshot_date: date,
    ) -> UserSnapshotResult:
        """단일 사용자 스냅샷 (가치 0이면 행을 만들지 않음)"""
        values_usd: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for asset in assets:
            quote = prices.get(asset.coingecko_id)
            if quote is None:
                continue
            balance = compute_balance(asset.id, None, transactions)
            values_usd[asset.coingecko_id] += balance * quote.usd

        total_value_usd, allocations = compute_allocations(values_usd)

        if total_value_usd == 0:
            logger.info(f"사용자 {user_id}: 포트폴리오 가치 없음, 스냅샷 생략")
            return UserSnapshotResult(
                user_id=user_id,
                success=True,
                skipped=True,
                details={"total_value_usd": "0", "asset_count": 0},
            )

        await self.snapshot_repo.upsert_portfolio_snapshot(
            PortfolioSnapshot(
                user_id=user_id,
                snapshot_date=snapshot_date,
                total_value_usd=total_value_usd,
                allocations=allocations,
            )
        )

        logger.info(
            f"사용자 {user_id}: 스냅샷 저장 - ${total_value_usd:.2f} ({len(allocations)}개 자산)"
        )
        return UserSnapshotResult(
            user_id=user_id,
            success=True,
            details={
                "total_value_usd": str(total_value_usd),
                "asset_count": len(allocations),
            },
        )
