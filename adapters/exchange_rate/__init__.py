"""
USD → VND 환율 소스 어댑터
"""

from adapters.exchange_rate.rest_client import (
    ExchangeRateRestClient,
    ExchangeRateSourceError,
)

__all__ = [
    "ExchangeRateRestClient",
    "ExchangeRateSourceError",
]
