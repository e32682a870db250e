"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.logging import setup_logging
from core.utils.timezone import now_iso

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.dependencies import CronAuthError
from web.models.responses import error_body
from web.routes import health, portfolio, snapshots
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
    logger.info(f"Web 시작: mode={settings.mode.value}, db={settings.db_path}")

    yield

    logger.info("Web 종료")


app = FastAPI(
    title="Cryptofolio API",
    description="암호화폐 포트폴리오 잔고/평가 및 일일 스냅샷 API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CronAuthError)
async def cron_auth_error_handler(request: Request, exc: CronAuthError) -> JSONResponse:
    """스냅샷 트리거 인증 실패 → {success: false, error, timestamp}"""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, now_iso()),
    )


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(snapshots.router)
app.include_router(portfolio.router)
