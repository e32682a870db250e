"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액/수량/비중은 정밀도 보존을 위해 문자열, VND 정수 금액은 int.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (local/production)")
    version: str = Field(..., description="API 버전")


class JobRunResponse(BaseModel):
    """스냅샷 작업 응답

    성공 시 작업별 요약 필드가 추가됨 (snapshots_created 등).
    """

    success: bool = Field(..., description="작업 성공 여부")
    error: str | None = Field(default=None, description="실패 사유")
    timestamp: str = Field(..., description="응답 시간 (UTC ISO)")

    model_config = {"extra": "allow"}


class ExchangeRateInfo(BaseModel):
    """환율 정보"""

    rate: str = Field(..., description="VND/USD")
    source: str = Field(..., description="출처 (api/cache/fallback/mock)")
    last_updated: str | None = Field(default=None, description="환율 기준 시각")


class BalanceEntry(BaseModel):
    """자산/보관처별 잔고"""

    asset_id: str = Field(..., description="자산 ID")
    storage_id: str | None = Field(default=None, description="보관처 ID (None이면 전체 합계)")
    balance: str = Field(..., description="잔고")


class BalanceListResponse(BaseModel):
    """잔고 목록 응답"""

    user_id: str = Field(..., description="사용자 ID")
    balances: list[BalanceEntry] = Field(default_factory=list, description="0이 아닌 잔고")


class AssetValuationResponse(BaseModel):
    """자산별 평가"""

    asset_id: str = Field(..., description="자산 ID")
    coingecko_id: str = Field(..., description="CoinGecko ID")
    name: str = Field(..., description="자산명")
    symbol: str = Field(..., description="심볼")
    balance: str = Field(..., description="전체 잔고")
    price_usd: str | None = Field(default=None, description="USD 가격 (없으면 None)")
    value_usd: str = Field(..., description="USD 가치")
    value_vnd: str = Field(..., description="VND 가치")
    percentage: str = Field(..., description="포트폴리오 비중 (%)")
    price_missing: bool = Field(default=False, description="시세 누락 여부")
    change_24h: str | None = Field(default=None, description="24시간 변동률 (%)")
    change_7d: str | None = Field(default=None, description="7일 변동률 (%)")
    change_30d: str | None = Field(default=None, description="30일 변동률 (%)")
    change_60d: str | None = Field(default=None, description="60일 변동률 (%)")
    change_1y: str | None = Field(default=None, description="1년 변동률 (%)")


class StorageHoldingResponse(BaseModel):
    """보관처 내 자산"""

    asset_id: str = Field(..., description="자산 ID")
    coingecko_id: str = Field(..., description="CoinGecko ID")
    symbol: str = Field(..., description="심볼")
    balance: str = Field(..., description="잔고")
    value_vnd: str = Field(..., description="VND 가치")


class StorageValuationResponse(BaseModel):
    """보관처별 평가"""

    storage_id: str = Field(..., description="보관처 ID")
    name: str = Field(..., description="보관처명")
    type: str = Field(..., description="보관처 유형 (cex/wallet)")
    value_vnd: str = Field(..., description="VND 가치")
    percentage: str = Field(..., description="포트폴리오 비중 (%)")
    holdings: list[StorageHoldingResponse] = Field(default_factory=list, description="보유 자산")


class PortfolioResponse(BaseModel):
    """포트폴리오 평가 응답"""

    user_id: str = Field(..., description="사용자 ID")
    total_value_vnd: str = Field(..., description="총 VND 가치")
    total_value_usd: str = Field(..., description="총 USD 가치")
    change_24h: str | None = Field(default=None, description="가치 가중 24시간 변동률 (%)")
    change_7d: str | None = Field(default=None, description="가치 가중 7일 변동률 (%)")
    exchange_rate: ExchangeRateInfo = Field(..., description="적용 환율")
    price_source: str = Field(..., description="시세 출처 (api/cache/mock)")
    missing_price_ids: list[str] = Field(default_factory=list, description="시세 누락 코인")
    assets: list[AssetValuationResponse] = Field(default_factory=list, description="자산별 평가")
    storages: list[StorageValuationResponse] = Field(default_factory=list, description="보관처별 평가")


class NetWorthResponse(BaseModel):
    """현재 순자산 응답"""

    user_id: str = Field(..., description="사용자 ID")
    bank_balance: int = Field(..., description="은행 잔고 (VND)")
    crypto_value_vnd: int = Field(..., description="암호화폐 가치 (VND)")
    total_net_worth: int = Field(..., description="순자산 (VND)")
    exchange_rate: ExchangeRateInfo = Field(..., description="적용 환율")


class PortfolioHistoryPoint(BaseModel):
    """포트폴리오 스냅샷 1건"""

    snapshot_date: str = Field(..., description="스냅샷 날짜")
    total_value_usd: str = Field(..., description="총 USD 가치")
    allocations: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="coingecko_id → {percentage, value_usd}",
    )


class PortfolioHistoryResponse(BaseModel):
    """포트폴리오 히스토리 응답"""

    user_id: str = Field(..., description="사용자 ID")
    range: str = Field(..., description="조회 기간")
    items: list[PortfolioHistoryPoint] = Field(default_factory=list, description="날짜 오름차순")


class NetWorthHistoryPoint(BaseModel):
    """순자산 스냅샷 1건"""

    snapshot_date: str = Field(..., description="스냅샷 날짜")
    bank_balance: int = Field(..., description="은행 잔고 (VND)")
    crypto_value_vnd: int = Field(..., description="암호화폐 가치 (VND)")
    total_net_worth: int = Field(..., description="순자산 (VND)")
    exchange_rate: str = Field(..., description="적용 환율")


class NetWorthHistoryResponse(BaseModel):
    """순자산 히스토리 응답"""

    user_id: str = Field(..., description="사용자 ID")
    range: str = Field(..., description="조회 기간")
    items: list[NetWorthHistoryPoint] = Field(default_factory=list, description="날짜 오름차순")


class DeletableResponse(BaseModel):
    """삭제 가능 여부 응답"""

    id: str = Field(..., description="자산 또는 보관처 ID")
    deletable: bool = Field(..., description="잔고가 모두 0이면 True")
    balances: dict[str, str] = Field(
        default_factory=dict,
        description="남아 있는 잔고 (자산이면 보관처별, 보관처면 자산별)",
    )


class TransactionValidateResponse(BaseModel):
    """거래 잔고 검증 응답"""

    valid: bool = Field(..., description="검증 통과 여부")
    asset_id: str | None = Field(default=None, description="출고 자산 ID")
    storage_id: str | None = Field(default=None, description="출고 보관처 ID")
    required: str | None = Field(default=None, description="필요 수량")
    available: str | None = Field(default=None, description="사용 가능 수량")
    error: str | None = Field(default=None, description="실패 사유")


def error_body(message: str, timestamp: str, **extra: Any) -> dict[str, Any]:
    """작업 트리거 실패 응답 본문"""
    return {"success": False, "error": message, "timestamp": timestamp, **extra}
