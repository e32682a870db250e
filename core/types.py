"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class RuntimeMode(str, Enum):
    """실행 모드 (실서비스 / 로컬 개발)

    LOCAL 모드에서는 외부 API 대신 Mock 가격/환율 사용.
    """

    PRODUCTION = "production"
    LOCAL = "local"


class CryptoTransactionType(str, Enum):
    """암호화폐 거래 유형 (DB enum 값과 동일)"""

    BUY = "buy"
    SELL = "sell"
    TRANSFER_BETWEEN = "transfer_between"  # 보관처 간 이동
    SWAP = "swap"  # 동일 보관처 내 자산 교환
    TRANSFER_IN = "transfer_in"  # 외부 입고
    TRANSFER_OUT = "transfer_out"  # 외부 출고


class StorageType(str, Enum):
    """보관처 유형"""

    CEX = "cex"  # 중앙화 거래소 계정
    WALLET = "wallet"  # 개인 지갑


class CalendarTransactionType(str, Enum):
    """캘린더(법정화폐) 거래 유형"""

    INCOME = "income"
    EXPENSE = "expense"


class RateSource(str, Enum):
    """가격/환율 데이터 출처"""

    API = "api"  # 외부 API에서 방금 조회
    CACHE = "cache"  # 마지막으로 저장된 값 재사용
    FALLBACK = "fallback"  # 하드코딩/설정 기본값
    MOCK = "mock"  # 로컬 개발용 Mock


class PortfolioRange(str, Enum):
    """포트폴리오 스냅샷 조회 기간"""

    D7 = "7d"
    D30 = "30d"
    D60 = "60d"
    Y1 = "1y"
    ALL = "all"


class NetWorthRange(str, Enum):
    """순자산 스냅샷 조회 기간"""

    M1 = "1m"
    Y1 = "1y"
    ALL = "all"
