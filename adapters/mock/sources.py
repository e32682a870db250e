"""
Mock 가격/환율 소스

로컬 개발 모드와 테스트에서 외부 API 대신 사용.
IPriceSource, IExchangeRateSource Protocol 준수.
"""

import hashlib
from dataclasses import dataclass, field
from decimal import Decimal

from core.ledger.valuation import PriceQuote


# 로컬 개발용 고정 시세 (USD)
MOCK_PRICES_USD: dict[str, Decimal] = {
    "bitcoin": Decimal("97000"),
    "ethereum": Decimal("3400"),
    "solana": Decimal("190"),
    "ripple": Decimal("2.2"),
    "cardano": Decimal("0.95"),
    "dogecoin": Decimal("0.32"),
    "polkadot": Decimal("6.8"),
    "avalanche": Decimal("38"),
    "chainlink": Decimal("22"),
    "uniswap": Decimal("13"),
}


def deterministic_price(coingecko_id: str) -> Decimal:
    """고정 시세가 없는 코인의 Mock 가격 (1 ~ 101 USD, ID별로 항상 동일)"""
    digest = hashlib.sha256(coingecko_id.encode("utf-8")).digest()
    cents = int.from_bytes(digest[:4], "big") % 10000
    return Decimal(1) + Decimal(cents) / Decimal(100)


@dataclass
class MockPriceSource:
    """Mock 가격 소스

    Attributes:
        prices: 시세 재정의 (coingecko_id → USD). 없으면 MOCK_PRICES_USD 사용
        missing_ids: 응답에서 제외할 ID (가격 누락 시뮬레이션)
        error: 설정 시 get_prices 호출마다 이 예외를 발생
        calls: 호출 기록 (요청된 ID 목록)
    """

    prices: dict[str, Decimal] = field(default_factory=dict)
    missing_ids: set[str] = field(default_factory=set)
    error: Exception | None = None
    calls: list[list[str]] = field(default_factory=list)

    async def get_prices(self, coingecko_ids: list[str]) -> dict[str, PriceQuote]:
        self.calls.append(list(coingecko_ids))
        if self.error is not None:
            raise self.error

        quotes: dict[str, PriceQuote] = {}
        for cid in coingecko_ids:
            if cid in self.missing_ids:
                continue
            if cid in self.prices:
                usd = self.prices[cid]
            elif cid in MOCK_PRICES_USD:
                usd = MOCK_PRICES_USD[cid]
            else:
                usd = deterministic_price(cid)
            quotes[cid] = PriceQuote(coingecko_id=cid, usd=usd)
        return quotes

    async def close(self) -> None:
        pass


@dataclass
class MockExchangeRateSource:
    """Mock 환율 소스

    Attributes:
        rate: 반환할 환율 (VND/USD)
        error: 설정 시 get_rate 호출마다 이 예외를 발생
    """

    rate: Decimal = Decimal("25000")
    error: Exception | None = None
    call_count: int = 0

    async def get_rate(self) -> Decimal:
        self.call_count += 1
        if self.error is not None:
            raise self.error
        return self.rate

    async def close(self) -> None:
        pass
