"""
암호화폐 거래 도메인 모델

거래 유형별로 필요한 필드만 가지는 Tagged Union.
DB에는 유형별로 일부 컬럼만 채워진 평면 행으로 저장되며,
parse_transaction()이 경계에서 유형별 dataclass로 변환한다.

형식이 맞지 않는 행(필수 필드 누락, 음수 수량 등)은 None으로 변환되어
잔고 계산에 도달하지 않는다.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Iterable, Mapping

from core.types import CryptoTransactionType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class OutgoingLeg:
    """거래로 인해 보관처에서 빠져나가는 수량

    잔고 부족 검증에 사용.
    """

    asset_id: str
    storage_id: str
    amount: Decimal


@dataclass(frozen=True, kw_only=True)
class CryptoTransaction(ABC):
    """암호화폐 거래 공통 필드

    Attributes:
        id: 거래 ID
        user_id: 소유 사용자 ID
        date: 거래일 (시간 없음)
        tx_id: 블록체인 트랜잭션 해시 (선택)
        tx_explorer_url: 익스플로러 링크 (선택)
    """

    type: ClassVar[CryptoTransactionType]

    id: str
    user_id: str
    date: date
    tx_id: str | None = None
    tx_explorer_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @abstractmethod
    def balance_effect(self, asset_id: str, storage_id: str | None = None) -> Decimal:
        """(asset_id, storage_id) 잔고에 대한 이 거래의 부호 있는 기여분

        Args:
            asset_id: 대상 자산 ID
            storage_id: 대상 보관처 ID (None이면 전체 보관처 합산)

        Returns:
            잔고 변화량 (관계없으면 0)
        """
        ...

    @abstractmethod
    def asset_ids(self) -> tuple[str, ...]:
        """이 거래가 참조하는 자산 ID 목록"""
        ...

    @abstractmethod
    def storage_ids(self) -> tuple[str, ...]:
        """이 거래가 참조하는 보관처 ID 목록"""
        ...

    def outgoing_leg(self) -> OutgoingLeg | None:
        """보관처에서 빠져나가는 수량 (없으면 None)"""
        return None


@dataclass(frozen=True, kw_only=True)
class _SingleStorageTransaction(CryptoTransaction):
    """단일 자산/단일 보관처 거래 (buy, sell, transfer_in, transfer_out)"""

    _sign: ClassVar[int] = 1

    asset_id: str
    amount: Decimal
    storage_id: str

    def balance_effect(self, asset_id: str, storage_id: str | None = None) -> Decimal:
        if asset_id != self.asset_id:
            return ZERO
        if storage_id is not None and storage_id != self.storage_id:
            return ZERO
        return self.amount if self._sign > 0 else -self.amount

    def asset_ids(self) -> tuple[str, ...]:
        return (self.asset_id,)

    def storage_ids(self) -> tuple[str, ...]:
        return (self.storage_id,)

    def outgoing_leg(self) -> OutgoingLeg | None:
        if self._sign > 0:
            return None
        return OutgoingLeg(self.asset_id, self.storage_id, self.amount)


@dataclass(frozen=True, kw_only=True)
class BuyTransaction(_SingleStorageTransaction):
    """매수: 보관처 잔고 증가

    fiat_amount는 지불한 VND 금액,
    linked_transaction_id는 캘린더에 생성된 지출 행 ID.
    """

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.BUY
    _sign: ClassVar[int] = 1

    fiat_amount: int | None = None
    linked_transaction_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class SellTransaction(_SingleStorageTransaction):
    """매도: 보관처 잔고 감소 (캘린더 수입 행과 연결 가능)"""

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.SELL
    _sign: ClassVar[int] = -1

    fiat_amount: int | None = None
    linked_transaction_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class TransferInTransaction(_SingleStorageTransaction):
    """외부 입고"""

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.TRANSFER_IN
    _sign: ClassVar[int] = 1


@dataclass(frozen=True, kw_only=True)
class TransferOutTransaction(_SingleStorageTransaction):
    """외부 출고"""

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.TRANSFER_OUT
    _sign: ClassVar[int] = -1


@dataclass(frozen=True, kw_only=True)
class TransferBetweenTransaction(CryptoTransaction):
    """보관처 간 이동

    전체 보유량은 변하지 않고 위치만 바뀜.
    """

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.TRANSFER_BETWEEN

    asset_id: str
    amount: Decimal
    from_storage_id: str
    to_storage_id: str

    def balance_effect(self, asset_id: str, storage_id: str | None = None) -> Decimal:
        # 전체 합산 기준으로는 항상 0
        if asset_id != self.asset_id or storage_id is None:
            return ZERO
        if storage_id == self.from_storage_id:
            return -self.amount
        if storage_id == self.to_storage_id:
            return self.amount
        return ZERO

    def asset_ids(self) -> tuple[str, ...]:
        return (self.asset_id,)

    def storage_ids(self) -> tuple[str, ...]:
        return (self.from_storage_id, self.to_storage_id)

    def outgoing_leg(self) -> OutgoingLeg | None:
        return OutgoingLeg(self.asset_id, self.from_storage_id, self.amount)


@dataclass(frozen=True, kw_only=True)
class SwapTransaction(CryptoTransaction):
    """동일 보관처 내 자산 교환 (from_asset 감소, to_asset 증가)"""

    type: ClassVar[CryptoTransactionType] = CryptoTransactionType.SWAP

    from_asset_id: str
    from_amount: Decimal
    to_asset_id: str
    to_amount: Decimal
    storage_id: str

    def balance_effect(self, asset_id: str, storage_id: str | None = None) -> Decimal:
        if storage_id is not None and storage_id != self.storage_id:
            return ZERO

        effect = ZERO
        if asset_id == self.from_asset_id:
            effect -= self.from_amount
        if asset_id == self.to_asset_id:
            effect += self.to_amount
        return effect

    def asset_ids(self) -> tuple[str, ...]:
        return (self.from_asset_id, self.to_asset_id)

    def storage_ids(self) -> tuple[str, ...]:
        return (self.storage_id,)

    def outgoing_leg(self) -> OutgoingLeg | None:
        return OutgoingLeg(self.from_asset_id, self.storage_id, self.from_amount)


# =========================================================================
# 평면 행 → Tagged Union 변환
# =========================================================================


class MalformedTransactionError(ValueError):
    """유형에 맞지 않는 거래 행"""

    pass


def _to_amount(value: Any, field: str) -> Decimal:
    """양수 Decimal 수량으로 변환

    float 입력은 str 경유로 변환하여 이진 부동소수 오차를 남기지 않음.
    """
    if value is None:
        raise MalformedTransactionError(f"'{field}' 값이 없습니다")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise MalformedTransactionError(f"'{field}' 값이 숫자가 아닙니다: {value!r}") from e

    if not amount.is_finite() or amount <= 0:
        raise MalformedTransactionError(f"'{field}' 값은 양수여야 합니다: {value!r}")
    return amount


def _to_id(value: Any, field: str) -> str:
    if value is None or value == "":
        raise MalformedTransactionError(f"'{field}' 값이 없습니다")
    return str(value)


def _to_optional_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise MalformedTransactionError(f"'date' 형식 오류: {value!r}") from e
    raise MalformedTransactionError("'date' 값이 없습니다")


def _to_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _to_fiat(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise MalformedTransactionError(f"'fiat_amount' 형식 오류: {value!r}") from e
    if not d.is_finite():
        raise MalformedTransactionError(f"'fiat_amount' 유한하지 않은 값: {value!r}")
    return int(d)


_SINGLE_STORAGE_CLASSES: dict[CryptoTransactionType, type[_SingleStorageTransaction]] = {
    CryptoTransactionType.BUY: BuyTransaction,
    CryptoTransactionType.SELL: SellTransaction,
    CryptoTransactionType.TRANSFER_IN: TransferInTransaction,
    CryptoTransactionType.TRANSFER_OUT: TransferOutTransaction,
}


def build_transaction(row: Mapping[str, Any]) -> CryptoTransaction:
    """평면 행을 유형별 거래 객체로 변환

    Args:
        row: DB 행 (컬럼명 → 값)

    Returns:
        유형별 CryptoTransaction

    Raises:
        MalformedTransactionError: 유형 또는 필수 필드가 맞지 않는 경우
    """
    raw_type = row.get("type")
    try:
        tx_type = CryptoTransactionType(raw_type)
    except ValueError as e:
        raise MalformedTransactionError(f"알 수 없는 거래 유형: {raw_type!r}") from e

    common: dict[str, Any] = {
        "id": _to_id(row.get("id"), "id"),
        "user_id": _to_id(row.get("user_id"), "user_id"),
        "date": _to_date(row.get("date")),
        "tx_id": _to_optional_id(row.get("tx_id")),
        "tx_explorer_url": _to_optional_id(row.get("tx_explorer_url")),
        "created_at": _to_datetime(row.get("created_at")),
        "updated_at": _to_datetime(row.get("updated_at")),
    }

    if tx_type in _SINGLE_STORAGE_CLASSES:
        cls = _SINGLE_STORAGE_CLASSES[tx_type]
        fields: dict[str, Any] = {
            "asset_id": _to_id(row.get("asset_id"), "asset_id"),
            "amount": _to_amount(row.get("amount"), "amount"),
            "storage_id": _to_id(row.get("storage_id"), "storage_id"),
        }
        if tx_type in (CryptoTransactionType.BUY, CryptoTransactionType.SELL):
            fields["fiat_amount"] = _to_fiat(row.get("fiat_amount"))
            fields["linked_transaction_id"] = _to_optional_id(row.get("linked_transaction_id"))
        return cls(**common, **fields)

    if tx_type == CryptoTransactionType.TRANSFER_BETWEEN:
        from_storage_id = _to_id(row.get("from_storage_id"), "from_storage_id")
        to_storage_id = _to_id(row.get("to_storage_id"), "to_storage_id")
        if from_storage_id == to_storage_id:
            raise MalformedTransactionError("from_storage_id와 to_storage_id가 같습니다")
        return TransferBetweenTransaction(
            **common,
            asset_id=_to_id(row.get("asset_id"), "asset_id"),
            amount=_to_amount(row.get("amount"), "amount"),
            from_storage_id=from_storage_id,
            to_storage_id=to_storage_id,
        )

    # SWAP
    from_asset_id = _to_id(row.get("from_asset_id"), "from_asset_id")
    to_asset_id = _to_id(row.get("to_asset_id"), "to_asset_id")
    if from_asset_id == to_asset_id:
        raise MalformedTransactionError("from_asset_id와 to_asset_id가 같습니다")
    return SwapTransaction(
        **common,
        from_asset_id=from_asset_id,
        from_amount=_to_amount(row.get("from_amount"), "from_amount"),
        to_asset_id=to_asset_id,
        to_amount=_to_amount(row.get("to_amount"), "to_amount"),
        storage_id=_to_id(row.get("storage_id"), "storage_id"),
    )


def parse_transaction(row: Mapping[str, Any]) -> CryptoTransaction | None:
    """평면 행을 거래 객체로 변환 (형식 오류 시 None)

    잔고 재생(replay)은 부분적으로 손상된 데이터에도 계속 동작해야 하므로
    예외 대신 None을 반환하고 DEBUG 로그만 남김.
    """
    try:
        return build_transaction(row)
    except MalformedTransactionError as e:
        logger.debug(
            f"형식 오류 거래 건너뜀: {e}",
            extra={"transaction_id": row.get("id"), "type": row.get("type")},
        )
        return None


def parse_transactions(rows: Iterable[Mapping[str, Any]]) -> list[CryptoTransaction]:
    """여러 행을 변환하고 형식 오류 행은 제외"""
    transactions = []
    for row in rows:
        tx = parse_transaction(row)
        if tx is not None:
            transactions.append(tx)
    return transactions
