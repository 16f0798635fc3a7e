"""
core/config/loader.py 테스트

secrets.yaml 로드, 검증, OTP/DB 설정 생성 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    OtpConfig,
    Secrets,
    SecretsLoadError,
    Settings,
    get_db_path,
    get_otp_config,
    get_settings,
    load_secrets,
)
from core.constants import Defaults, Paths
from core.types import AppMode


class TestSecrets:
    """Secrets 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        secrets = Secrets(mode=AppMode.DEVELOPMENT, web_secret_key="key")

        assert secrets.session_days == Defaults.SESSION_DAYS
        assert secrets.termii_api_key == ""
        assert secrets.db_path is None

    def test_frozen(self) -> None:
        """불변성 확인"""
        secrets = Secrets(mode=AppMode.DEVELOPMENT, web_secret_key="key")

        with pytest.raises(AttributeError):
            secrets.web_secret_key = "other"  # type: ignore


class TestLoadSecrets:
    """load_secrets 테스트"""

    def test_load_development(self, temp_secrets_file: Path, db_path: Path) -> None:
        secrets = load_secrets(temp_secrets_file)

        assert secrets.mode == AppMode.DEVELOPMENT
        assert secrets.web_secret_key == "test_secret_key_xyz"
        assert secrets.session_days == 7
        assert secrets.db_path == db_path

    def test_load_production(self, temp_secrets_file_production: Path) -> None:
        secrets = load_secrets(temp_secrets_file_production)

        assert secrets.mode == AppMode.PRODUCTION
        assert secrets.termii_api_key == "termii_live_key_12345"
        assert secrets.termii_sender_id == "LedgerLite"

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(SecretsLoadError):
            load_secrets(temp_dir / "nope.yaml")

    def test_invalid_mode(self, temp_secrets_file_invalid_mode: Path) -> None:
        with pytest.raises(ValueError, match="invalid_mode"):
            load_secrets(temp_secrets_file_invalid_mode)

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SecretsLoadError):
            load_secrets(path)

    def test_missing_mode(self, temp_dir: Path) -> None:
        path = temp_dir / "no_mode.yaml"
        path.write_text("web:\n  secret_key: x\n", encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="mode"):
            load_secrets(path)

    def test_missing_secret_key(self, temp_dir: Path) -> None:
        path = temp_dir / "no_key.yaml"
        path.write_text("mode: development\n", encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="secret_key"):
            load_secrets(path)

    def test_invalid_session_days(self, temp_dir: Path) -> None:
        path = temp_dir / "bad_days.yaml"
        path.write_text(
            "mode: development\nweb:\n  secret_key: x\n  session_days: 0\n",
            encoding="utf-8",
        )

        with pytest.raises(SecretsLoadError, match="session_days"):
            load_secrets(path)

    def test_production_requires_termii(self, temp_dir: Path) -> None:
        path = temp_dir / "prod_no_termii.yaml"
        path.write_text("mode: production\nweb:\n  secret_key: x\n", encoding="utf-8")

        with pytest.raises(SecretsLoadError, match="api_key"):
            load_secrets(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        path.write_text("mode: [development\n", encoding="utf-8")

        with pytest.raises(SecretsLoadError):
            load_secrets(path)


class TestOtpConfig:
    def test_mock_when_no_api_key(self) -> None:
        config = get_otp_config(Secrets(mode=AppMode.DEVELOPMENT, web_secret_key="k"))

        assert config.uses_termii is False
        assert config.sender_id == Defaults.OTP_SENDER_ID

    def test_termii_when_api_key(self) -> None:
        config = OtpConfig(api_key="abc", sender_id="N-Alert")

        assert config.uses_termii is True


class TestGetDbPath:
    """get_db_path 테스트"""

    def test_production_mode(self) -> None:
        secrets = Secrets(mode=AppMode.PRODUCTION, web_secret_key="k", termii_api_key="t")

        assert get_db_path(secrets) == Paths.PROD_DB

    def test_development_mode(self) -> None:
        secrets = Secrets(mode=AppMode.DEVELOPMENT, web_secret_key="k")

        assert get_db_path(secrets) == Paths.DEV_DB

    def test_explicit_path_wins(self, temp_dir: Path) -> None:
        secrets = Secrets(
            mode=AppMode.PRODUCTION,
            web_secret_key="k",
            termii_api_key="t",
            db_path=temp_dir / "custom.db",
        )

        assert get_db_path(secrets) == temp_dir / "custom.db"


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_secrets_file: Path, reset_settings: None) -> None:
        first = get_settings(temp_secrets_file)
        second = get_settings()

        assert first is second
        assert second.mode == AppMode.DEVELOPMENT
        assert second.session_days == 7
        assert second.secure_cookies is False

    def test_production_secure_cookies(
        self, temp_secrets_file_production: Path, reset_settings: None
    ) -> None:
        settings = Settings(temp_secrets_file_production)

        assert settings.secure_cookies is True
        assert settings.otp_config.uses_termii is True
        assert settings.db_path == Paths.PROD_DB

    def test_reset(self, temp_secrets_file: Path, temp_secrets_file_production: Path, reset_settings: None) -> None:
        assert get_settings(temp_secrets_file).mode == AppMode.DEVELOPMENT

        Settings.reset()

        assert get_settings(temp_secrets_file_production).mode == AppMode.PRODUCTION
