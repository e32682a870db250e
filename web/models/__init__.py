"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import TransactionValidateRequest
from web.models.responses import (
    AssetValuationResponse,
    BalanceEntry,
    BalanceListResponse,
    DeletableResponse,
    ExchangeRateInfo,
    HealthResponse,
    JobRunResponse,
    NetWorthHistoryPoint,
    NetWorthHistoryResponse,
    NetWorthResponse,
    PortfolioHistoryPoint,
    PortfolioHistoryResponse,
    PortfolioResponse,
    StorageHoldingResponse,
    StorageValuationResponse,
    TransactionValidateResponse,
    error_body,
)

__all__ = [
    # Requests
    "TransactionValidateRequest",
    # Responses
    "AssetValuationResponse",
    "BalanceEntry",
    "BalanceListResponse",
    "DeletableResponse",
    "ExchangeRateInfo",
    "HealthResponse",
    "JobRunResponse",
    "NetWorthHistoryPoint",
    "NetWorthHistoryResponse",
    "NetWorthResponse",
    "PortfolioHistoryPoint",
    "PortfolioHistoryResponse",
    "PortfolioResponse",
    "StorageHoldingResponse",
    "StorageValuationResponse",
    "TransactionValidateResponse",
    "error_body",
]
