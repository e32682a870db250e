"""
스냅샷 트리거 API

외부 스케줄러(cron)가 하루 한 번 호출.
POST만 허용하며 Authorization: Bearer <cron_secret> 필수.

- POST /functions/v1/snapshot-crypto-portfolio
- POST /functions/v1/snapshot-net-worth
"""

import logging
from datetime import date
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.utils.timezone import now_iso
from jobs.runner import run_net_worth_snapshot, run_portfolio_snapshot
from web.dependencies import get_app_settings, get_db_write, verify_cron_token
from web.models.responses import JobRunResponse, error_body

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/functions/v1",
    tags=["Snapshots"],
    dependencies=[Depends(verify_cron_token)],
)

JobRunner = Callable[[SQLiteAdapter, Settings, date | None], Awaitable[dict[str, Any]]]


async def _run_job(
    name: str,
    runner: JobRunner,
    db: SQLiteAdapter,
    settings: Settings,
) -> JSONResponse:
    """작업 실행 후 결과 봉투(envelope) 반환

    success=False 또는 예외 → 500
    """
    try:
        result = await runner(db, settings, None)
    except Exception as e:
        logger.error(f"{name} 실행 중 예외: {e}", exc_info=True)
        return JSONResponse(status_code=500, content=error_body(str(e), now_iso()))

    status_code = 200 if result.get("success") else 500
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result))


@router.post(
    "/snapshot-crypto-portfolio",
    response_model=JobRunResponse,
    responses={401: {"model": JobRunResponse}, 500: {"model": JobRunResponse}},
)
async def snapshot_crypto_portfolio(
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
):
    """포트폴리오 스냅샷 생성

    모든 사용자의 보유 자산을 평가하여 오늘 날짜로 upsert.
    """
    return await _run_job("포트폴리오 스냅샷", run_portfolio_snapshot, db, settings)


@router.post(
    "/snapshot-net-worth",
    response_model=JobRunResponse,
    responses={401: {"model": JobRunResponse}, 500: {"model": JobRunResponse}},
)
async def snapshot_net_worth(
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
):
    """순자산 스냅샷 생성

    포트폴리오 스냅샷 이후 실행. 은행 잔고 + 암호화폐 가치(VND).
    """
    return await _run_job("순자산 스냅샷", run_net_worth_snapshot, db, settings)
