"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

import hmac
import logging
from typing import AsyncGenerator

from fastapi import Depends, Header

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IExchangeRateSource, IPriceSource
from core.config.loader import SecretsLoadError, Settings, get_settings
from core.types import RateSource
from jobs.runner import create_exchange_rate_source, create_price_source

logger = logging.getLogger(__name__)


class CronAuthError(Exception):
    """스냅샷 트리거 인증 실패

    app의 예외 핸들러가 {success: false, error, timestamp} 응답으로 변환.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    조회 API는 읽기만 수행.
    스냅샷 트리거는 readonly=False로 별도 처리.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    스냅샷 upsert, 시세/환율 캐시 저장 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


async def get_price_source(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[tuple[IPriceSource, RateSource], None]:
    """모드별 시세 소스 (요청 종료 시 close)"""
    source, live_source = create_price_source(settings)
    try:
        yield source, live_source
    finally:
        await source.close()


async def get_exchange_rate_source(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[tuple[IExchangeRateSource, RateSource], None]:
    """모드별 환율 소스 (요청 종료 시 close)"""
    source, live_source = create_exchange_rate_source(settings)
    try:
        yield source, live_source
    finally:
        await source.close()


# =========================================================================
# 스냅샷 트리거 인증 (Bearer 토큰)
# =========================================================================


def get_cron_secret() -> str | None:
    """설정된 cron_secret (설정 로드 실패 시 None)"""
    try:
        settings = get_settings()
    except (SecretsLoadError, ValueError) as e:
        logger.error(f"설정 로드 실패: {e}")
        return None
    return settings.cron_secret or None


async def verify_cron_token(
    authorization: str | None = Header(default=None),
    cron_secret: str | None = Depends(get_cron_secret),
) -> None:
    """Authorization: Bearer <cron_secret> 검증

    Raises:
        CronAuthError: 헤더 없음(401), 토큰 불일치(401), 시크릿 미설정(500)
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise CronAuthError(401, "Missing authorization")

    if not cron_secret:
        raise CronAuthError(500, "Server configuration error")

    token = authorization[len("Bearer "):]
    if not hmac.compare_digest(token.encode("utf-8"), cron_secret.encode("utf-8")):
        logger.warning("스냅샷 트리거 인증 실패: 잘못된 토큰")
        raise CronAuthError(401, "Invalid authorization token")
