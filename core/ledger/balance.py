"""
잔고 계산 엔진 (Ledger Replay)

거래 로그 전체를 재생(replay)하여 자산/보관처별 잔고를 계산.
잔고는 저장되지 않으며 매번 거래 목록에서 다시 계산한다.

- 순서 무관 (교환 가능한 합산)
- 음수 잔고도 그대로 반환 (클램핑 없음)
- Decimal 연산으로 부동소수 누적 오차 없음
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from core.domain.transactions import ZERO, CryptoTransaction


class InsufficientBalanceError(Exception):
    """출고 수량이 보관처 잔고를 초과

    Attributes:
        asset_id: 자산 ID
        storage_id: 보관처 ID
        required: 필요 수량
        available: 사용 가능 수량
    """

    def __init__(
        self,
        asset_id: str,
        storage_id: str,
        required: Decimal,
        available: Decimal,
    ):
        self.asset_id = asset_id
        self.storage_id = storage_id
        self.required = required
        self.available = available
        super().__init__(
            f"잔고 부족: asset={asset_id}, storage={storage_id}, "
            f"필요={required}, 사용 가능={available}"
        )


def compute_balance(
    asset_id: str,
    storage_id: str | None,
    transactions: Iterable[CryptoTransaction],
) -> Decimal:
    """자산 잔고 계산

    Args:
        asset_id: 자산 ID
        storage_id: 보관처 ID (None이면 모든 보관처 합산)
        transactions: 사용자의 전체 거래 목록 (순서 무관)

    Returns:
        잔고 (거래가 없으면 Decimal("0"))
    """
    balance = ZERO
    for tx in transactions:
        balance += tx.balance_effect(asset_id, storage_id)
    return balance


def get_available_balance(
    asset_id: str,
    storage_id: str,
    transactions: Iterable[CryptoTransaction],
    exclude_transaction_id: str | None = None,
) -> Decimal:
    """출고 가능한 잔고

    거래 수정 시에는 수정 대상 거래의 기존 효과를 제외해야
    자기 자신의 출고량이 이중으로 차감되지 않는다.
    """
    return compute_balance(
        asset_id,
        storage_id,
        (tx for tx in transactions if tx.id != exclude_transaction_id),
    )


def check_sufficient_balance(
    transaction: CryptoTransaction,
    transactions: Iterable[CryptoTransaction],
    exclude_transaction_id: str | None = None,
) -> None:
    """신규/수정 거래의 출고 수량 검증

    buy, transfer_in은 항상 통과.

    Raises:
        InsufficientBalanceError: 출고 수량 > 사용 가능 잔고
    """
    leg = transaction.outgoing_leg()
    if leg is None:
        return

    available = get_available_balance(
        leg.asset_id,
        leg.storage_id,
        transactions,
        exclude_transaction_id=exclude_transaction_id,
    )
    if leg.amount > available:
        raise InsufficientBalanceError(
            asset_id=leg.asset_id,
            storage_id=leg.storage_id,
            required=leg.amount,
            available=available,
        )


def referenced_asset_ids(transactions: Iterable[CryptoTransaction]) -> set[str]:
    """거래가 참조하는 모든 자산 ID"""
    ids: set[str] = set()
    for tx in transactions:
        ids.update(tx.asset_ids())
    return ids


def referenced_storage_ids(transactions: Iterable[CryptoTransaction]) -> set[str]:
    """거래가 참조하는 모든 보관처 ID"""
    ids: set[str] = set()
    for tx in transactions:
        ids.update(tx.storage_ids())
    return ids


def get_all_balances(
    transactions: Iterable[CryptoTransaction],
) -> dict[str, dict[str, Decimal]]:
    """자산별/보관처별 잔고 (0이 아닌 것만)

    Returns:
        {asset_id: {storage_id: balance}}
    """
    transactions = list(transactions)
    storage_ids = referenced_storage_ids(transactions)

    balances: dict[str, dict[str, Decimal]] = defaultdict(dict)
    for asset_id in sorted(referenced_asset_ids(transactions)):
        for storage_id in sorted(storage_ids):
            balance = compute_balance(asset_id, storage_id, transactions)
            if balance != 0:
                balances[asset_id][storage_id] = balance
    return dict(balances)


def can_delete_asset(
    asset_id: str,
    transactions: Iterable[CryptoTransaction],
) -> bool:
    """자산 삭제 가능 여부 (전체 잔고가 0일 때만)"""
    return compute_balance(asset_id, None, transactions) == 0


def can_delete_storage(
    storage_id: str,
    transactions: Iterable[CryptoTransaction],
) -> bool:
    """보관처 삭제 가능 여부 (해당 보관처의 모든 자산 잔고가 0일 때만)"""
    transactions = list(transactions)
    for asset_id in referenced_asset_ids(transactions):
        if compute_balance(asset_id, storage_id, transactions) != 0:
            return False
    return True
