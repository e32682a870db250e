"""
NetWorthSnapshotJob

하루 한 번, 포트폴리오 스냅샷 이후 실행.
은행 잔고 + 암호화폐 가치(VND)를 사용자별 순자산 스냅샷으로 저장.

- 은행 잔고: 캘린더 거래 풀스캔 (수입 +, 지출 -)
- 암호화폐 가치: 오늘 또는 가장 최근 이전 포트폴리오 스냅샷
- 환율: API → 마지막 저장값 → 기본값 (예외 없음)
- 대상: 은행 잔고 또는 포트폴리오 스냅샷이 있는 사용자의 합집합
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from adapters.interfaces import IBankLedger, ISnapshotRepository
from core.domain.snapshots import NetWorthSnapshot
from core.domain.transactions import ZERO
from core.ledger.valuation import compute_net_worth
from jobs.base import JobSetupError, SnapshotJob, UserSnapshotResult
from jobs.exchange_rate import ExchangeRateResolver

logger = logging.getLogger(__name__)


class NetWorthSnapshotJob(SnapshotJob):
    """순자산 스냅샷 배치

    Args:
        bank_ledger: 은행 잔고 저장소
        snapshot_repo: 스냅샷 저장소
        rate_resolver: 환율 결정기
    """

    def __init__(
        self,
        bank_ledger: IBankLedger,
        snapshot_repo: ISnapshotRepository,
        rate_resolver: ExchangeRateResolver,
    ):
        self.bank_ledger = bank_ledger
        self.snapshot_repo = snapshot_repo
        self.rate_resolver = rate_resolver

    @property
    def job_name(self) -> str:
        return "순자산 스냅샷"

    async def _execute(self, snapshot_date: date) -> dict[str, Any]:
        # 1. 은행 잔고 (사용자별 그룹 합산)
        try:
            bank_balances = await self.bank_ledger.get_all_bank_balances()
        except Exception as e:
            raise JobSetupError(f"은행 잔고 조회 실패: {e}") from e

        # 2. 사용자별 최신 포트폴리오 가치 (snapshot_date 이하)
        try:
            crypto_values = await self.snapshot_repo.get_latest_crypto_values(snapshot_date)
        except Exception as e:
            raise JobSetupError(f"포트폴리오 스냅샷 조회 실패: {e}") from e

        # 3. 환율 (실패해도 폴백으로 계속)
        rate_result = await self.rate_resolver.resolve()
        exchange_rate = rate_result.rate
        logger.info(f"환율: {exchange_rate} ({rate_result.source.value})")

        # 4. 합집합 사용자별 순자산
        user_ids = sorted(set(bank_balances) | set(crypto_values))
        logger.info(f"순자산 대상 사용자 {len(user_ids)}명")

        async def handle(user_id: str) -> UserSnapshotResult:
            return await self._snapshot_user(
                user_id,
                bank_balances.get(user_id, 0),
                crypto_values.get(user_id, ZERO),
                exchange_rate,
                snapshot_date,
            )

        results = await self._process_users(user_ids, handle)
        counts = self._count(results)
        counts.pop("snapshots_skipped")

        total_net_worth = sum(
            r.details["total_net_worth"] for r in results if r.success
        )

        return {
            "snapshot_date": snapshot_date.isoformat(),
            **counts,
            "total_net_worth_vnd": total_net_worth,
            "exchange_rate": str(exchange_rate),
            "exchange_rate_source": rate_result.source.value,
            "results": [r.to_dict() for r in results],
        }

    async def _snapshot_user(
        self,
        user_id: str,
        bank_balance: int,
        crypto_value_usd: Decimal,
        exchange_rate: Decimal,
        snapshot_date: date,
    ) -> UserSnapshotResult:
        net_worth = compute_net_worth(bank_balance, crypto_value_usd, exchange_rate)

        await self.snapshot_repo.upsert_net_worth_snapshot(
            NetWorthSnapshot(
                user_id=user_id,
                snapshot_date=snapshot_date,
                bank_balance=net_worth.bank_balance,
                crypto_value_vnd=net_worth.crypto_value_vnd,
                total_net_worth=net_worth.total_net_worth,
                exchange_rate=exchange_rate,
            )
        )

        logger.info(f"사용자 {user_id}: 순자산 {net_worth.total_net_worth:,} VND")
        return UserSnapshotResult(
            user_id=user_id,
            success=True,
            details={
                "bank_balance": net_worth.bank_balance,
                "crypto_value_vnd": net_worth.crypto_value_vnd,
                "total_net_worth": net_worth.total_net_worth,
            },
        )
