"""
SnapshotJob

일별 스냅샷 배치의 베이스 클래스.
공통 실행 흐름, 사용자별 장애 격리, 요약 리포트 생성 제공.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable

from core.utils.timezone import now_iso, today_utc

logger = logging.getLogger(__name__)


class JobSetupError(Exception):
    """공통 준비 단계 실패

    전체 목록 조회 등 모든 사용자에게 필요한 단계가 실패한 경우.
    이 경우에만 배치 전체가 실패(success=false)로 끝난다.
    """

    pass


@dataclass
class UserSnapshotResult:
    """사용자별 처리 결과

    Attributes:
        user_id: 사용자 ID
        success: 성공 여부
        skipped: 스냅샷 미작성 (가치 0 등)
        error: 실패 메시지
        details: 작업별 추가 정보 (금액은 문자열)
    """

    user_id: str
    success: bool
    skipped: bool = False
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"user_id": self.user_id, "success": self.success}
        if self.skipped:
            result["skipped"] = True
        if self.error is not None:
            result["error"] = self.error
        result.update(self.details)
        return result


class SnapshotJob(ABC):
    """스냅샷 배치 베이스 클래스

    run()은 예외를 던지지 않는다.
    - 준비 단계 실패: {"success": False, "error", "timestamp"}
    - 그 외: {"success": True, ...요약, "timestamp"}
    """

    @property
    @abstractmethod
    def job_name(self) -> str:
        """작업 이름 (로깅용)"""
        ...

    @abstractmethod
    async def _execute(self, snapshot_date: date) -> dict[str, Any]:
        """실제 배치 로직

        Returns:
            요약 dict (success/timestamp 제외)

        Raises:
            JobSetupError: 공통 준비 단계 실패
        """
        ...

    async def run(self, snapshot_date: date | None = None) -> dict[str, Any]:
        """배치 실행

        Args:
            snapshot_date: 스냅샷 날짜 (기본: 오늘 UTC)

        Returns:
            실행 요약
        """
        snapshot_date = snapshot_date or today_utc()
        start_time = datetime.now(timezone.utc)
        logger.info(f"{self.job_name} 시작: {snapshot_date.isoformat()}")

        try:
            summary = await self._execute(snapshot_date)
        except JobSetupError as e:
            logger.error(
                f"{self.job_name} 실패",
                extra={"error": str(e)},
                exc_info=True,
            )
            return {"success": False, "error": str(e), "timestamp": now_iso()}

        duration_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
        logger.info(
            f"{self.job_name} 완료",
            extra={
                "snapshot_date": snapshot_date.isoformat(),
                "users_processed": summary.get("users_processed", 0),
                "snapshots_failed": summary.get("snapshots_failed", 0),
                "duration_ms": duration_ms,
            },
        )
        return {"success": True, **summary, "timestamp": now_iso()}

    async def _process_users(
        self,
        user_ids: list[str],
        handler: Callable[[str], Awaitable[UserSnapshotResult]],
    ) -> list[UserSnapshotResult]:
        """사용자별 처리 (한 사용자의 실패가 다른 사용자에 영향 없음)"""
        results = []
        for user_id in user_ids:
            try:
                result = await handler(user_id)
            except Exception as e:
                logger.error(
                    f"{self.job_name}: 사용자 {user_id} 처리 실패 - {e}",
                    extra={"user_id": user_id},
                    exc_info=True,
                )
                result = UserSnapshotResult(user_id=user_id, success=False, error=str(e))
            results.append(result)
        return results

    @staticmethod
    def _count(results: list[UserSnapshotResult]) -> dict[str, int]:
        """결과 집계"""
        return {
            "users_processed": len(results),
            "snapshots_created": sum(1 for r in results if r.success and not r.skipped),
            "snapshots_skipped": sum(1 for r in results if r.success and r.skipped),
            "snapshots_failed": sum(1 for r in results if not r.success),
        }
