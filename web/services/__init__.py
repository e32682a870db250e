"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.history_service import HistoryService
from web.services.portfolio_service import PortfolioService

__all__ = [
    "HistoryService",
    "PortfolioService",
]
