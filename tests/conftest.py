"""
pytest 공통 fixture 정의

임시 디렉토리, secrets.yaml, 스키마가 초기화된 SQLite DB
"""

import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings
from core.ledger.schema import init_ledger_schema
from core.storage.user_store import User, UserStore


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    return temp_dir / "ledgerlite_test.db"


@pytest.fixture
def temp_secrets_file(temp_dir: Path, db_path: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (development, Termii 미설정)"""
    secrets_content = f"""# 테스트용 secrets.yaml
mode: development

web:
  secret_key: "test_secret_key_xyz"
  session_days: 7

database:
  path: "{db_path.as_posix()}"
"""
    secrets_path = temp_dir / "secrets.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_production(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (production 모드)"""
    secrets_content = """mode: production

web:
  secret_key: "prod_secret_key_xyz"

termii:
  api_key: "termii_live_key_12345"
  sender_id: "LedgerLite"
"""
    secrets_path = temp_dir / "secrets_prod.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 secrets.yaml 파일 생성"""
    secrets_content = """mode: invalid_mode

web:
  secret_key: "secret"
"""
    secrets_path = temp_dir / "secrets_invalid.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 전후)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db(db_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    await init_schema(adapter)
    await init_ledger_schema(adapter)
    try:
        yield adapter
    finally:
        await adapter.close()


@pytest.fixture
def make_user(db: SQLiteAdapter):
    """검증 완료 사용자 생성 헬퍼"""

    async def _make(phone_number: str) -> User:
        user, _ = await UserStore(db).upsert_verified_user(phone_number)
        return user

    return _make


@pytest_asyncio.fixture
async def alice(make_user) -> User:
    return await make_user("2348031234567")


@pytest_asyncio.fixture
async def bob(make_user) -> User:
    return await make_user("2348097654321")
