"""
Mock 어댑터

로컬 개발/테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.sources import (
    MOCK_PRICES_USD,
    MockExchangeRateSource,
    MockPriceSource,
    deterministic_price,
)

__all__ = [
    "MockPriceSource",
    "MockExchangeRateSource",
    "MOCK_PRICES_USD",
    "deterministic_price",
]
