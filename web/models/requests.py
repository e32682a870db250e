"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from core.types import CryptoTransactionType


class TransactionValidateRequest(BaseModel):
    """거래 잔고 검증 요청

    신규 거래 또는 수정 중인 거래(id 지정)의 출고 수량이
    보관처 잔고를 넘는지 확인. 유형별로 필요한 필드만 채움.
    """

    id: str | None = Field(default=None, description="수정 대상 거래 ID (신규면 생략)")
    type: CryptoTransactionType = Field(..., description="거래 유형")
    date: dt.date = Field(..., description="거래일")

    asset_id: str | None = Field(default=None, description="자산 ID (buy/sell/transfer)")
    amount: Decimal | None = Field(default=None, description="수량")
    storage_id: str | None = Field(default=None, description="보관처 ID (buy/sell/transfer_in/out/swap)")
    fiat_amount: int | None = Field(default=None, description="VND 금액 (buy/sell)")

    from_storage_id: str | None = Field(default=None, description="출발 보관처 (transfer_between)")
    to_storage_id: str | None = Field(default=None, description="도착 보관처 (transfer_between)")

    from_asset_id: str | None = Field(default=None, description="교환 전 자산 (swap)")
    from_amount: Decimal | None = Field(default=None, description="교환 전 수량 (swap)")
    to_asset_id: str | None = Field(default=None, description="교환 후 자산 (swap)")
    to_amount: Decimal | None = Field(default=None, description="교환 후 수량 (swap)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "sell",
                    "date": "2026-02-21",
                    "asset_id": "asset-btc",
                    "amount": "0.3",
                    "storage_id": "storage-binance",
                    "fiat_amount": 300000,
                },
                {
                    "id": "tx-123",
                    "type": "transfer_between",
                    "date": "2026-02-21",
                    "asset_id": "asset-btc",
                    "amount": "0.2",
                    "from_storage_id": "storage-binance",
                    "to_storage_id": "storage-ledger",
                },
            ]
        }
    }

    def to_row(self, user_id: str) -> dict[str, Any]:
        """거래 행 형태로 변환 (build_transaction 입력용)"""
        row = self.model_dump()
        row["id"] = self.id or "__pending__"
        row["user_id"] = user_id
        row["type"] = self.type.value
        return row
