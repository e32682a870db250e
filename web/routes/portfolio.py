"""
포트폴리오 API 라우트

사용자별 잔고, 실시간 평가, 순자산, 히스토리, 삭제 가능 여부, 거래 검증.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IExchangeRateSource, IPriceSource
from core.config.loader import Settings
from core.domain.transactions import MalformedTransactionError
from core.ledger.balance import InsufficientBalanceError
from core.types import NetWorthRange, PortfolioRange, RateSource
from web.dependencies import (
    get_app_settings,
    get_db,
    get_db_write,
    get_exchange_rate_source,
    get_price_source,
)
from web.models.requests import TransactionValidateRequest
from web.models.responses import (
    BalanceListResponse,
    DeletableResponse,
    NetWorthHistoryResponse,
    NetWorthResponse,
    PortfolioHistoryResponse,
    PortfolioResponse,
    TransactionValidateResponse,
)
from web.services.history_service import HistoryService
from web.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users/{user_id}", tags=["Portfolio"])


def _live_service(
    db: SQLiteAdapter,
    settings: Settings,
    price: tuple[IPriceSource, RateSource],
    rate: tuple[IExchangeRateSource, RateSource],
) -> PortfolioService:
    price_source, price_live_source = price
    rate_source, rate_live_source = rate
    return PortfolioService(
        db,
        price_source=price_source,
        rate_source=rate_source,
        default_rate=settings.default_exchange_rate,
        price_live_source=price_live_source,
        rate_live_source=rate_live_source,
    )


@router.get("/balances", response_model=BalanceListResponse)
async def get_balances(
    user_id: str,
    asset_id: str | None = Query(default=None, description="자산 ID"),
    storage_id: str | None = Query(default=None, description="보관처 ID"),
    db: SQLiteAdapter = Depends(get_db),
):
    """잔고 조회

    거래 목록 재생으로 계산한 현재 잔고.
    """
    service = PortfolioService(db)
    return await service.get_balances(user_id, asset_id=asset_id, storage_id=storage_id)


@router.get("/portfolio", response_model=PortfolioResponse)
async def get_portfolio(
    user_id: str,
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
    price: tuple[IPriceSource, RateSource] = Depends(get_price_source),
    rate: tuple[IExchangeRateSource, RateSource] = Depends(get_exchange_rate_source),
):
    """실시간 포트폴리오 평가

    자산별/보관처별 VND 가치, 비중, 변동률, 적용 환율.
    """
    service = _live_service(db, settings, price, rate)
    return await service.get_portfolio(user_id)


@router.get("/portfolio/history", response_model=PortfolioHistoryResponse)
async def get_portfolio_history(
    user_id: str,
    range_: PortfolioRange = Query(default=PortfolioRange.D30, alias="range"),
    db: SQLiteAdapter = Depends(get_db),
):
    """포트폴리오 가치 추이 (7d, 30d, 60d, 1y, all)"""
    service = HistoryService(db)
    return await service.get_portfolio_history(user_id, range_)


@router.get("/net-worth", response_model=NetWorthResponse)
async def get_net_worth(
    user_id: str,
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
    price: tuple[IPriceSource, RateSource] = Depends(get_price_source),
    rate: tuple[IExchangeRateSource, RateSource] = Depends(get_exchange_rate_source),
):
    """현재 순자산 (은행 잔고 + 실시간 암호화폐 가치)"""
    service = _live_service(db, settings, price, rate)
    return await service.get_net_worth(user_id)


@router.get("/net-worth/history", response_model=NetWorthHistoryResponse)
async def get_net_worth_history(
    user_id: str,
    range_: NetWorthRange = Query(default=NetWorthRange.Y1, alias="range"),
    db: SQLiteAdapter = Depends(get_db),
):
    """순자산 추이 (1m, 1y, all)"""
    service = HistoryService(db)
    return await service.get_net_worth_history(user_id, range_)


@router.get("/assets/{asset_id}/deletable", response_model=DeletableResponse)
async def check_asset_deletable(
    user_id: str,
    asset_id: str,
    db: SQLiteAdapter = Depends(get_db),
):
    """자산 삭제 가능 여부 (전체 잔고 0)"""
    service = PortfolioService(db)
    result = await service.check_asset_deletable(user_id, asset_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return result


@router.get("/storages/{storage_id}/deletable", response_model=DeletableResponse)
async def check_storage_deletable(
    user_id: str,
    storage_id: str,
    db: SQLiteAdapter = Depends(get_db),
):
    """보관처 삭제 가능 여부 (보관 중인 모든 자산 잔고 0)"""
    service = PortfolioService(db)
    result = await service.check_storage_deletable(user_id, storage_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Storage not found")
    return result


@router.post(
    "/transactions/validate",
    response_model=TransactionValidateResponse,
    responses={422: {"model": TransactionValidateResponse}},
)
async def validate_transaction(
    user_id: str,
    request: TransactionValidateRequest,
    db: SQLiteAdapter = Depends(get_db),
):
    """거래 잔고 검증

    sell, transfer_out, transfer_between, swap의 출고 수량이
    사용 가능 잔고를 넘으면 422. 수정 중인 거래(id)는 자기 효과를 제외하고 계산.
    """
    service = PortfolioService(db)
    try:
        return await service.validate_transaction(user_id, request.to_row(user_id))
    except MalformedTransactionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InsufficientBalanceError as e:
        logger.info(
            f"잔고 부족: {e}",
            extra={"user_id": user_id, "asset_id": e.asset_id, "storage_id": e.storage_id},
        )
        body = TransactionValidateResponse(
            valid=False,
            asset_id=e.asset_id,
            storage_id=e.storage_id,
            required=str(e.required),
            available=str(e.available),
            error="Insufficient balance",
        )
        return JSONResponse(status_code=422, content=body.model_dump())
