"""
잔고 계산 및 포트폴리오 평가

거래 로그를 재생하여 잔고를 계산하고, 가격/환율을 곱해 가치와 비중을 산출.

사용 예시:
```python
from core.ledger import compute_balance, compute_valuation

# 보관처별 잔고
balance = compute_balance("asset-btc", "storage-binance", transactions)

# 전체 보유량 (보관처 간 이동은 0으로 상쇄)
total = compute_balance("asset-btc", None, transactions)

# 포트폴리오 평가
valuation = compute_valuation(assets, storages, transactions, prices, Decimal("25000"))
```
"""

from core.ledger.balance import (
    InsufficientBalanceError,
    can_delete_asset,
    can_delete_storage,
    check_sufficient_balance,
    compute_balance,
    get_all_balances,
    get_available_balance,
    referenced_asset_ids,
    referenced_storage_ids,
)
from core.ledger.valuation import (
    Allocation,
    AssetValuation,
    NetWorth,
    PortfolioValuation,
    PriceQuote,
    StorageHolding,
    StorageValuation,
    compute_allocations,
    compute_net_worth,
    compute_valuation,
    convert_usd_to_vnd,
    percentage_of,
)

__all__ = [
    # 잔고
    "compute_balance",
    "get_available_balance",
    "get_all_balances",
    "check_sufficient_balance",
    "referenced_asset_ids",
    "referenced_storage_ids",
    "can_delete_asset",
    "can_delete_storage",
    "InsufficientBalanceError",
    # 평가
    "PriceQuote",
    "AssetValuation",
    "StorageHolding",
    "StorageValuation",
    "PortfolioValuation",
    "NetWorth",
    "Allocation",
    "compute_valuation",
    "compute_net_worth",
    "compute_allocations",
    "convert_usd_to_vnd",
    "percentage_of",
]
