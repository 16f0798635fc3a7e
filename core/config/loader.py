"""
설정 로더

config/secrets.yaml을 읽어 Secrets(불변)로 만들고,
프로세스 전역 Settings 싱글턴으로 노출한다.

secrets.yaml 예시는 config/secrets.yaml.example 참고.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import AppMode


class SecretsLoadError(Exception):
    """secrets.yaml 로드 실패"""


@dataclass(frozen=True)
class Secrets:
    """secrets.yaml 내용"""

    mode: AppMode
    web_secret_key: str
    session_days: int = Defaults.SESSION_DAYS
    termii_api_key: str = ""
    termii_sender_id: str = Defaults.OTP_SENDER_ID
    db_path: Path | None = None


@dataclass(frozen=True)
class OtpConfig:
    """OTP 발송 설정. api_key가 없으면 Mock 게이트웨이로 동작"""

    api_key: str
    sender_id: str

    @property
    def uses_termii(self) -> bool:
        return bool(self.api_key)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise SecretsLoadError(f"secrets.yaml 파일을 찾을 수 없습니다: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SecretsLoadError("secrets.yaml이 비어 있습니다")
    if not isinstance(data, dict):
        raise SecretsLoadError("secrets.yaml 최상위는 매핑이어야 합니다")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SecretsLoadError(f"secrets.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return value


def _parse_mode(raw: Any) -> AppMode:
    if raw is None:
        raise SecretsLoadError("secrets.yaml에 'mode' 필드가 없습니다")
    try:
        return AppMode(raw)
    except ValueError as e:
        allowed = ", ".join(m.value for m in AppMode)
        raise ValueError(f"유효하지 않은 mode입니다: '{raw}' (허용: {allowed})") from e


def load_secrets(path: Path | None = None) -> Secrets:
    """secrets.yaml 로드 및 검증

    Args:
        path: 파일 경로 (None이면 Paths.SECRETS_FILE)

    Raises:
        SecretsLoadError: 파일 없음, YAML 오류, 필수 값 누락
        ValueError: 알 수 없는 mode
    """
    data = _read_yaml(path or Paths.SECRETS_FILE)
    mode = _parse_mode(data.get("mode"))

    web = _section(data, "web")
    secret_key = web.get("secret_key") or ""
    if not secret_key:
        raise SecretsLoadError("secrets.yaml의 web 섹션에 'secret_key'가 없습니다")

    session_days = web.get("session_days", Defaults.SESSION_DAYS)
    # bool은 int의 하위 타입
    if isinstance(session_days, bool) or not isinstance(session_days, int) or session_days <= 0:
        raise SecretsLoadError(f"web.session_days는 양의 정수여야 합니다: {session_days!r}")

    termii = _section(data, "termii")
    api_key = termii.get("api_key") or ""
    if mode == AppMode.PRODUCTION and not api_key:
        raise SecretsLoadError("production 모드에는 termii 섹션의 'api_key'가 필요합니다")

    db_path = _section(data, "database").get("path")

    return Secrets(
        mode=mode,
        web_secret_key=secret_key,
        session_days=session_days,
        termii_api_key=api_key,
        termii_sender_id=termii.get("sender_id") or Defaults.OTP_SENDER_ID,
        db_path=Path(db_path) if db_path else None,
    )


def get_otp_config(secrets: Secrets) -> OtpConfig:
    return OtpConfig(api_key=secrets.termii_api_key, sender_id=secrets.termii_sender_id)


def get_db_path(secrets: Secrets) -> Path:
    """database.path > 모드별 기본 경로"""
    if secrets.db_path is not None:
        return secrets.db_path
    return Paths.PROD_DB if secrets.mode == AppMode.PRODUCTION else Paths.DEV_DB


class Settings:
    """애플리케이션 설정 싱글턴

    최초 생성 시 한 번만 secrets.yaml을 읽는다.
    이후 Settings()/get_settings()는 같은 인스턴스를 반환 (인자 무시).
    """

    _instance: "Settings | None" = None
    _secrets: Secrets | None = None

    def __new__(cls, secrets_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, secrets_path: Path | None = None) -> None:
        if type(self)._secrets is None:
            type(self)._secrets = load_secrets(secrets_path)

    @property
    def secrets(self) -> Secrets:
        if self._secrets is None:
            raise RuntimeError("Settings가 초기화되지 않았습니다")
        return self._secrets

    @property
    def mode(self) -> AppMode:
        return self.secrets.mode

    @property
    def web_secret_key(self) -> str:
        return self.secrets.web_secret_key

    @property
    def session_days(self) -> int:
        return self.secrets.session_days

    @property
    def otp_config(self) -> OtpConfig:
        return get_otp_config(self.secrets)

    @property
    def db_path(self) -> Path:
        return get_db_path(self.secrets)

    @property
    def secure_cookies(self) -> bool:
        """운영 모드에서만 Secure 쿠키"""
        return self.mode == AppMode.PRODUCTION

    @classmethod
    def reset(cls) -> None:
        """싱글턴 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None


def get_settings(secrets_path: Path | None = None) -> Settings:
    return Settings(secrets_path)
