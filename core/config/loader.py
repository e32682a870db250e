"""
설정 로더

secrets.yaml 로드 및 실행 모드별 설정 생성
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import RuntimeMode


@dataclass(frozen=True)
class Secrets:
    """보안 설정 (secrets.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: RuntimeMode
    cron_secret: str
    coingecko_api_key: str
    default_exchange_rate: Decimal


class SecretsLoadError(Exception):
    """Secrets 로드 실패 예외"""

    pass


def _parse_default_rate(data: dict) -> Decimal:
    """exchange_rate.default 파싱 (없으면 상수 기본값)"""
    rate_config = data.get("exchange_rate") or {}
    raw = rate_config.get("default")
    if raw is None:
        return Defaults.EXCHANGE_RATE_VND

    try:
        rate = Decimal(str(raw))
    except InvalidOperation as e:
        raise SecretsLoadError(
            f"exchange_rate.default 값이 숫자가 아닙니다: {raw!r}"
        ) from e

    if rate <= 0:
        raise SecretsLoadError(
            f"exchange_rate.default는 0보다 커야 합니다: {raw!r}"
        )
    return rate


def load_secrets(path: Path | None = None) -> Secrets:
    """secrets.yaml 파일 로드

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Secrets 인스턴스

    Raises:
        SecretsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE

    if not path.exists():
        raise SecretsLoadError(f"secrets.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SecretsLoadError("secrets.yaml이 비어 있습니다")

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SecretsLoadError("secrets.yaml에 'mode' 필드가 없습니다")

    try:
        mode = RuntimeMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in RuntimeMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    # 스케줄러 호출 인증용 시크릿
    cron_secret = str(data.get("cron_secret") or "").strip()
    if not cron_secret:
        raise SecretsLoadError("secrets.yaml에 'cron_secret'이 없습니다")

    coingecko_config = data.get("coingecko") or {}
    coingecko_api_key = str(coingecko_config.get("api_key") or "").strip()

    return Secrets(
        mode=mode,
        cron_secret=cron_secret,
        coingecko_api_key=coingecko_api_key,
        default_exchange_rate=_parse_default_rate(data),
    )


def get_db_path(secrets: Secrets) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        secrets: Secrets 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if secrets.mode == RuntimeMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.LOCAL_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    secrets.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _secrets: Secrets | None = None

    def __new__(cls, secrets_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, secrets_path: Path | None = None) -> None:
        if self._secrets is None:
            # 클래스 속성에 저장하여 싱글턴 간 공유
            type(self)._secrets = load_secrets(secrets_path)

    @property
    def mode(self) -> RuntimeMode:
        """현재 실행 모드"""
        assert self._secrets is not None
        return self._secrets.mode

    @property
    def is_local(self) -> bool:
        """로컬 개발 모드 여부 (Mock 가격/환율 사용)"""
        return self.mode == RuntimeMode.LOCAL

    @property
    def cron_secret(self) -> str:
        """스냅샷 작업 호출용 Bearer 토큰"""
        assert self._secrets is not None
        return self._secrets.cron_secret

    @property
    def coingecko_api_key(self) -> str:
        """CoinGecko API 키 (없으면 빈 문자열)"""
        assert self._secrets is not None
        return self._secrets.coingecko_api_key

    @property
    def default_exchange_rate(self) -> Decimal:
        """USD → VND 기본 환율"""
        assert self._secrets is not None
        return self._secrets.default_exchange_rate

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._secrets is not None
        return get_db_path(self._secrets)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None


def get_settings(secrets_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        secrets_path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(secrets_path)
