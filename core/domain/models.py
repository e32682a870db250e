"""
암호화폐 자산/보관처 도메인 모델
"""

from dataclasses import dataclass
from typing import Any, Mapping

from core.types import StorageType


@dataclass(frozen=True)
class CryptoAsset:
    """사용자가 등록한 암호화폐 자산

    coingecko_id는 가격 조회 키. 같은 코인을 여러 사용자가 등록해도
    자산 ID는 사용자별로 다름.
    """

    id: str
    user_id: str
    coingecko_id: str
    name: str
    symbol: str
    icon_url: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CryptoAsset":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            coingecko_id=str(row["coingecko_id"]),
            name=str(row.get("name") or ""),
            symbol=str(row.get("symbol") or ""),
            icon_url=row.get("icon_url"),
        )


@dataclass(frozen=True)
class CryptoStorage:
    """보관처 (거래소 계정 또는 개인 지갑)

    address는 지갑에만 존재.
    """

    id: str
    user_id: str
    type: StorageType
    name: str
    address: str | None = None
    explorer_url: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CryptoStorage":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            type=StorageType(row["type"]),
            name=str(row.get("name") or ""),
            address=row.get("address"),
            explorer_url=row.get("explorer_url"),
        )
