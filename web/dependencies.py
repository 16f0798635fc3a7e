"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
요청마다 SQLite 연결을 열고, 세션/컨텍스트를 해석한다.
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IOtpGateway
from adapters.mock.otp_gateway import MockOtpGateway
from adapters.termii.otp_client import TermiiOtpClient
from core.config.loader import Settings, get_settings
from core.constants import Cookies
from core.context import ContextService, parse_context
from core.errors import AuthenticationError
from core.storage.user_store import User, UserStore
from core.types import LedgerContext, LedgerScope

logger = logging.getLogger(__name__)


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    조회 API에서 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    분개 기록, 컨텍스트 전환, 로그인 등에서 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


# =========================================================================
# OTP 게이트웨이 (프로세스 단위 공유)
# =========================================================================

_otp_gateway: IOtpGateway | None = None


def set_otp_gateway(gateway: IOtpGateway | None) -> None:
    """OTP 게이트웨이 설정

    앱 시작 시 또는 테스트에서 호출.
    """
    global _otp_gateway
    _otp_gateway = gateway


def get_otp_gateway() -> IOtpGateway:
    """OTP 게이트웨이 반환

    Termii api_key가 설정되어 있으면 TermiiOtpClient,
    없으면 개발용 MockOtpGateway (코드를 로그로 출력).
    """
    global _otp_gateway
    if _otp_gateway is None:
        otp_config = get_settings().otp_config
        if otp_config.uses_termii:
            _otp_gateway = TermiiOtpClient(
                api_key=otp_config.api_key,
                sender_id=otp_config.sender_id,
            )
        else:
            logger.warning("Termii 설정 없음, MockOtpGateway 사용")
            _otp_gateway = MockOtpGateway()
    return _otp_gateway


# =========================================================================
# 세션 / 컨텍스트
# =========================================================================

def get_session_token(request: Request) -> str | None:
    """세션 토큰 추출 (쿠키 우선, 없으면 Bearer 헤더)"""
    token = request.cookies.get(Cookies.SESSION)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_current_user(
    token: str | None = Depends(get_session_token),
    db: SQLiteAdapter = Depends(get_db),
) -> User:
    """로그인 사용자 반환

    Raises:
        AuthenticationError: 세션 없음/만료 (401)
    """
    user = await UserStore(db).get_user_by_session(token)
    if user is None:
        raise AuthenticationError("로그인이 필요합니다")
    return user


def get_context(request: Request) -> LedgerContext:
    """컨텍스트 쿠키 해석 (없거나 손상 시 personal)"""
    return parse_context(request.cookies.get(Cookies.CONTEXT))


async def get_scope(
    user: User = Depends(get_current_user),
    context: LedgerContext = Depends(get_context),
    db: SQLiteAdapter = Depends(get_db),
) -> LedgerScope:
    """현재 요청의 원장 범위

    business 컨텍스트는 요청마다 접근 권한을 다시 확인.

    Raises:
        AccessDeniedError: 회사 접근 권한 없음 (403)
    """
    return await ContextService(db).authorize(user.id, context)
