"""
유틸리티 패키지

타임존 처리, 조회 기간 계산 등 공통 유틸리티
"""

from core.utils.timezone import (
    net_worth_range_start,
    now_iso,
    now_utc,
    portfolio_range_start,
    today_utc,
)

__all__ = [
    "now_utc",
    "now_iso",
    "today_utc",
    "portfolio_range_start",
    "net_worth_range_start",
]
