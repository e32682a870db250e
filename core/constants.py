"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → cryptofolio/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class CoinGeckoEndpoints:
    """CoinGecko API 엔드포인트 (고정값)

    공식 문서: https://docs.coingecko.com/reference/coins-markets
    """

    REST_URL: str = "https://api.coingecko.com/api/v3"
    MARKETS_PATH: str = "/coins/markets"

    # /coins/markets 한 번에 조회 가능한 최대 ID 수
    MAX_IDS_PER_REQUEST: int = 250

    # 응답에 포함할 변동률 기간 (price_change_percentage 파라미터)
    CHANGE_PERIODS: tuple[str, ...] = ("24h", "7d", "30d", "60d", "1y")


class ExchangeRateEndpoints:
    """환율 API 엔드포인트 (고정값)"""

    LATEST_USD_URL: str = "https://api.exchangerate-api.com/v4/latest/USD"


class Defaults:
    """기본값 상수"""

    # USD → VND 기본 환율 (API/캐시 모두 실패 시 최후의 폴백)
    # secrets.yaml의 exchange_rate.default로 재정의 가능
    EXCHANGE_RATE_VND: Decimal = Decimal("25000")

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"
    HTTP_TIMEOUT_SEC: float = 30.0


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    JOBS_LOGS_DIR: Path = LOGS_DIR / "jobs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "cryptofolio_prod.db"
    LOCAL_DB: Path = DATA_DIR / "cryptofolio_local.db"


class RateLimitDefaults:
    """CoinGecko 무료 티어 Rate Limit 기본값"""

    MIN_INTERVAL_SEC: float = 1.5  # 요청 간 최소 간격
    MAX_RETRIES: int = 2  # 429 수신 시 재시도 횟수
    DEFAULT_RETRY_AFTER_SEC: int = 60  # Retry-After 헤더가 없을 때 대기 시간
    MAX_BACKOFF_SEC: float = 30.0  # 배치 작업에서 허용하는 최대 대기 시간


class ConfigKeys:
    """config_store 키 상수"""

    PRICE_CACHE: str = "price_cache"
    EXCHANGE_RATE: str = "exchange_rate"
