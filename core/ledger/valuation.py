"""
포트폴리오 평가 및 비중 계산

잔고 × USD 가격 × 환율로 자산/보관처별 VND 가치와 비중을 계산.
순수 함수만 존재하며 I/O 없음.

- 총액이 0이면 모든 비중은 0 (ZeroDivisionError, NaN 없음)
- 가격이 없는 자산은 0으로 평가하되 price_missing으로 구분
- 변동률은 가격 소스 값 그대로 전달 (없으면 None)
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Sequence

from core.domain.models import CryptoAsset, CryptoStorage
from core.domain.transactions import ZERO, CryptoTransaction
from core.ledger.balance import compute_balance

HUNDRED = Decimal("100")

# 비중(%) 저장 정밀도
PERCENTAGE_QUANT = Decimal("0.0001")


@dataclass(frozen=True)
class PriceQuote:
    """코인 시세 (USD)

    변동률은 % 단위. None은 "데이터 없음"이며 0과 구분됨.
    """

    coingecko_id: str
    usd: Decimal
    change_24h: Decimal | None = None
    change_7d: Decimal | None = None
    change_30d: Decimal | None = None
    change_60d: Decimal | None = None
    change_1y: Decimal | None = None
    market_cap_usd: Decimal | None = None
    last_updated_at: datetime | None = None


@dataclass(frozen=True)
class AssetValuation:
    """자산별 평가 결과"""

    asset_id: str
    coingecko_id: str
    name: str
    symbol: str
    balance: Decimal
    price_usd: Decimal | None
    value_usd: Decimal
    value_vnd: Decimal
    percentage: Decimal
    price_missing: bool = False
    change_24h: Decimal | None = None
    change_7d: Decimal | None = None
    change_30d: Decimal | None = None
    change_60d: Decimal | None = None
    change_1y: Decimal | None = None


@dataclass(frozen=True)
class StorageHolding:
    """보관처 내 단일 자산 보유량"""

    asset_id: str
    coingecko_id: str
    symbol: str
    balance: Decimal
    value_vnd: Decimal


@dataclass(frozen=True)
class StorageValuation:
    """보관처별 평가 결과"""

    storage_id: str
    name: str
    type: str
    value_vnd: Decimal
    percentage: Decimal
    holdings: list[StorageHolding] = field(default_factory=list)


@dataclass(frozen=True)
class PortfolioValuation:
    """포트폴리오 전체 평가 결과"""

    assets: list[AssetValuation]
    storages: list[StorageValuation]
    total_value_vnd: Decimal
    total_value_usd: Decimal
    exchange_rate: Decimal
    missing_price_ids: list[str]
    change_24h: Decimal | None = None
    change_7d: Decimal | None = None


@dataclass(frozen=True)
class NetWorth:
    """순자산 = 은행 잔고 + 암호화폐 가치 (VND)"""

    bank_balance: int
    crypto_value_vnd: int
    total_net_worth: int
    exchange_rate: Decimal


@dataclass(frozen=True)
class Allocation:
    """스냅샷 비중 항목"""

    percentage: Decimal
    value_usd: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "percentage": str(self.percentage),
            "value_usd": str(self.value_usd),
        }


def percentage_of(value: Decimal, total: Decimal) -> Decimal:
    """비중(%) 계산 (total이 0 이하이면 0)"""
    if total <= 0:
        return ZERO
    return (value / total * HUNDRED).quantize(PERCENTAGE_QUANT, rounding=ROUND_HALF_UP)


def convert_usd_to_vnd(usd: Decimal, rate: Decimal) -> int:
    """USD → VND (원 단위 반올림)"""
    return int((usd * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _weighted_change(
    pairs: Iterable[tuple[Decimal, Decimal | None]],
) -> Decimal | None:
    """가치 가중 평균 변동률

    양의 가치 + 변동률 데이터가 있는 자산만 반영. 해당 자산이 없으면 None.
    """
    weighted_sum = ZERO
    weight_total = ZERO
    for value, change in pairs:
        if change is None or value <= 0:
            continue
        weighted_sum += value * change
        weight_total += value

    if weight_total == 0:
        return None
    return (weighted_sum / weight_total).quantize(PERCENTAGE_QUANT, rounding=ROUND_HALF_UP)


def compute_valuation(
    assets: Sequence[CryptoAsset],
    storages: Sequence[CryptoStorage],
    transactions: Sequence[CryptoTransaction],
    prices: Mapping[str, PriceQuote],
    exchange_rate: Decimal,
) -> PortfolioValuation:
    """포트폴리오 평가

    Args:
        assets: 사용자 자산 목록
        storages: 사용자 보관처 목록
        transactions: 사용자 전체 거래 (형식 오류 행은 이미 제외된 상태)
        prices: coingecko_id → PriceQuote
        exchange_rate: VND/USD

    Returns:
        PortfolioValuation
    """
    # 1. 자산별 가치
    asset_rows: list[tuple[CryptoAsset, Decimal, PriceQuote | None, Decimal, Decimal]] = []
    missing_price_ids: list[str] = []
    total_usd = ZERO
    total_vnd = ZERO

    for asset in assets:
        balance = compute_balance(asset.id, None, transactions)
        quote = prices.get(asset.coingecko_id)
        if quote is None and asset.coingecko_id not in missing_price_ids:
            missing_price_ids.append(asset.coingecko_id)

        price = quote.usd if quote is not None else ZERO
        value_usd = balance * price
        value_vnd = value_usd * exchange_rate
        total_usd += value_usd
        total_vnd += value_vnd
        asset_rows.append((asset, balance, quote, value_usd, value_vnd))

    asset_valuations = [
        AssetValuation(
            asset_id=asset.id,
            coingecko_id=asset.coingecko_id,
            name=asset.name,
            symbol=asset.symbol,
            balance=balance,
            price_usd=quote.usd if quote is not None else None,
            value_usd=value_usd,
            value_vnd=value_vnd,
            percentage=percentage_of(value_vnd, total_vnd),
            price_missing=quote is None,
            change_24h=quote.change_24h if quote is not None else None,
            change_7d=quote.change_7d if quote is not None else None,
            change_30d=quote.change_30d if quote is not None else None,
            change_60d=quote.change_60d if quote is not None else None,
            change_1y=quote.change_1y if quote is not None else None,
        )
        for asset, balance, quote, value_usd, value_vnd in asset_rows
    ]

    # 2. 보관처별 가치
    storage_valuations = []
    for storage in storages:
        holdings = []
        storage_vnd = ZERO
        for asset in assets:
            balance = compute_balance(asset.id, storage.id, transactions)
            if balance == 0:
                continue
            quote = prices.get(asset.coingecko_id)
            price = quote.usd if quote is not None else ZERO
            value_vnd = balance * price * exchange_rate
            storage_vnd += value_vnd
            holdings.append(
                StorageHolding(
                    asset_id=asset.id,
                    coingecko_id=asset.coingecko_id,
                    symbol=asset.symbol,
                    balance=balance,
                    value_vnd=value_vnd,
                )
            )

        holdings.sort(key=lambda h: h.value_vnd, reverse=True)
        storage_valuations.append(
            StorageValuation(
                storage_id=storage.id,
                name=storage.name,
                type=storage.type.value,
                value_vnd=storage_vnd,
                percentage=percentage_of(storage_vnd, total_vnd),
                holdings=holdings,
            )
        )

    return PortfolioValuation(
        assets=asset_valuations,
        storages=storage_valuations,
        total_value_vnd=total_vnd,
        total_value_usd=total_usd,
        exchange_rate=exchange_rate,
        missing_price_ids=missing_price_ids,
        change_24h=_weighted_change((a.value_usd, a.change_24h) for a in asset_valuations),
        change_7d=_weighted_change((a.value_usd, a.change_7d) for a in asset_valuations),
    )


def compute_net_worth(
    bank_balance: int,
    crypto_value_usd: Decimal,
    exchange_rate: Decimal,
) -> NetWorth:
    """순자산 계산

    Args:
        bank_balance: 은행 잔고 (VND, 수입 - 지출)
        crypto_value_usd: 암호화폐 가치 (USD)
        exchange_rate: VND/USD
    """
    crypto_value_vnd = convert_usd_to_vnd(crypto_value_usd, exchange_rate)
    return NetWorth(
        bank_balance=bank_balance,
        crypto_value_vnd=crypto_value_vnd,
        total_net_worth=bank_balance + crypto_value_vnd,
        exchange_rate=exchange_rate,
    )


def compute_allocations(
    values_usd: Mapping[str, Decimal],
) -> tuple[Decimal, dict[str, Allocation]]:
    """스냅샷 비중 계산

    양의 가치만 포함. 총액이 0이면 빈 비중.

    Args:
        values_usd: coingecko_id → USD 가치

    Returns:
        (총 USD 가치, coingecko_id → Allocation)
    """
    positive = {cid: value for cid, value in values_usd.items() if value > 0}
    total = sum(positive.values(), ZERO)
    if total == 0:
        return ZERO, {}

    allocations = {
        cid: Allocation(percentage=percentage_of(value, total), value_usd=value)
        for cid, value in positive.items()
    }
    return total, allocations
