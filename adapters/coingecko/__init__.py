"""
CoinGecko 가격 소스 어댑터
"""

from adapters.coingecko.rate_limiter import (
    CoinGeckoApiError,
    PriceSourceError,
    RateLimitError,
    RequestThrottle,
)
from adapters.coingecko.rest_client import CoinGeckoRestClient

__all__ = [
    "CoinGeckoRestClient",
    "RequestThrottle",
    "PriceSourceError",
    "RateLimitError",
    "CoinGeckoApiError",
]
