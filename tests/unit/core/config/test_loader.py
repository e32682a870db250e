"""
core/config/loader.py 테스트

secrets.yaml 로드, 검증, Settings 싱글턴 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    Secrets,
    SecretsLoadError,
    Settings,
    get_db_path,
    get_settings,
    load_secrets,
)
from core.constants import Defaults, Paths
from core.types import RuntimeMode


class TestSecrets:
    """Secrets 데이터클래스 테스트"""

    def test_frozen(self) -> None:
        """불변성 확인"""
        secrets = Secrets(
            mode=RuntimeMode.LOCAL,
            cron_secret="secret",
            coingecko_api_key="",
            default_exchange_rate=Decimal("25000"),
        )

        with pytest.raises(AttributeError):
            secrets.cron_secret = "new"  # type: ignore


class TestLoadSecrets:
    """load_secrets 함수 테스트"""

    def test_load_local(self, temp_secrets_file: Path) -> None:
        """전체 항목 로드"""
        secrets = load_secrets(temp_secrets_file)

        assert secrets.mode == RuntimeMode.LOCAL
        assert secrets.cron_secret == "test_cron_secret_xyz"
        assert secrets.coingecko_api_key == "cg_demo_key_12345"
        assert secrets.default_exchange_rate == Decimal("25500")

    def test_optional_fields_default(self, temp_secrets_file_production: Path) -> None:
        """coingecko/exchange_rate 생략 시 기본값"""
        secrets = load_secrets(temp_secrets_file_production)

        assert secrets.mode == RuntimeMode.PRODUCTION
        assert secrets.coingecko_api_key == ""
        assert secrets.default_exchange_rate == Defaults.EXCHANGE_RATE_VND

    def test_file_not_found(self, temp_dir: Path) -> None:
        with pytest.raises(SecretsLoadError, match="찾을 수 없습니다"):
            load_secrets(temp_dir / "nope.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="비어 있습니다"):
            load_secrets(path)

    def test_missing_mode(self, temp_dir: Path) -> None:
        path = temp_dir / "no_mode.yaml"
        path.write_text('cron_secret: "x"\n', encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="mode"):
            load_secrets(path)

    def test_invalid_mode(self, temp_secrets_file_invalid_mode: Path) -> None:
        with pytest.raises(ValueError, match="유효하지 않은 mode"):
            load_secrets(temp_secrets_file_invalid_mode)

    def test_missing_cron_secret(self, temp_dir: Path) -> None:
        path = temp_dir / "no_secret.yaml"
        path.write_text("mode: local\ncron_secret: ''\n", encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="cron_secret"):
            load_secrets(path)

    @pytest.mark.parametrize("raw", ["abc", "0", "-100"])
    def test_invalid_default_rate(self, temp_dir: Path, raw: str) -> None:
        path = temp_dir / "bad_rate.yaml"
        path.write_text(
            f"mode: local\ncron_secret: x\nexchange_rate:\n  default: '{raw}'\n",
            encoding="utf-8",
        )

        with pytest.raises(SecretsLoadError, match="exchange_rate.default"):
            load_secrets(path)


class TestGetDbPath:
    """모드별 DB 경로"""

    def test_production(self, temp_secrets_file_production: Path) -> None:
        assert get_db_path(load_secrets(temp_secrets_file_production)) == Paths.PROD_DB

    def test_local(self, temp_secrets_file: Path) -> None:
        assert get_db_path(load_secrets(temp_secrets_file)) == Paths.LOCAL_DB


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_secrets_file: Path, reset_settings) -> None:
        """같은 인스턴스 반환"""
        first = get_settings(temp_secrets_file)
        second = get_settings()

        assert first is second

    def test_properties(self, temp_secrets_file: Path, reset_settings) -> None:
        settings = get_settings(temp_secrets_file)

        assert settings.mode == RuntimeMode.LOCAL
        assert settings.is_local is True
        assert settings.cron_secret == "test_cron_secret_xyz"
        assert settings.default_exchange_rate == Decimal("25500")
        assert settings.db_path == Paths.LOCAL_DB

    def test_reset(
        self,
        temp_secrets_file: Path,
        temp_secrets_file_production: Path,
        reset_settings,
    ) -> None:
        """reset 후 다른 파일로 재로드"""
        assert get_settings(temp_secrets_file).is_local is True

        Settings.reset()

        assert get_settings(temp_secrets_file_production).is_local is False
