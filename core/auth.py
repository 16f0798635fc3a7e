"""
전화번호 OTP 인증

OTP 발송/검증, 사용자 등록, 디바이스 토큰 세션 발급.
"""

import logging
import re
from dataclasses import dataclass

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IOtpGateway
from core.constants import Defaults
from core.errors import AuthenticationError, ValidationError
from core.storage.user_store import User, UserStore

logger = logging.getLogger(__name__)

# 나이지리아 휴대폰 번호: (234|0)? + [789][01] + 8자리
NIGERIAN_PHONE_PATTERN = re.compile(r"^(234|0)?([789][01]\d{8})$")
OTP_CODE_PATTERN = re.compile(r"^\d{4,8}$")


def validate_phone_number(phone: str | None) -> bool:
    """숫자 외 문자를 제거한 뒤 나이지리아 번호 형식인지 확인"""
    if not phone:
        return False
    digits = re.sub(r"\D", "", phone)
    return NIGERIAN_PHONE_PATTERN.match(digits) is not None


def to_international_phone(phone: str | None) -> str:
    """국제 형식(234XXXXXXXXXX)으로 변환

    Example:
        >>> to_international_phone("0803 123 4567")
        '2348031234567'

    Raises:
        ValidationError: 나이지리아 번호 형식이 아닌 경우
    """
    digits = re.sub(r"\D", "", phone or "")
    match = NIGERIAN_PHONE_PATTERN.match(digits)
    if match is None:
        raise ValidationError("전화번호 형식이 올바르지 않습니다", field="phoneNumber")
    return f"{Defaults.COUNTRY_CODE.lstrip('+')}{match.group(2)}"


@dataclass
class LoginResult:
    """OTP 검증 결과"""

    user: User
    token: str
    is_new_user: bool


class AuthService:
    """OTP 인증 서비스

    Args:
        db: SQLiteAdapter 인스턴스
        gateway: IOtpGateway 구현체 (Termii 또는 Mock)
        session_days: 세션 유효 기간 (일)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        gateway: IOtpGateway,
        session_days: int = Defaults.SESSION_DAYS,
    ):
        self.users = UserStore(db)
        self.gateway = gateway
        self.session_days = session_days

    async def send_otp(self, phone_number: str) -> tuple[str, str]:
        """OTP 발송

        Returns:
            (pin_id, 국제 형식 전화번호)

        Raises:
            ValidationError: 전화번호 형식 오류
            OtpDeliveryError: 게이트웨이 실패
        """
        phone = to_international_phone(phone_number)
        pin_id = await self.gateway.send_otp(phone)
        await self.users.record_otp(pin_id, phone)

        logger.info(f"OTP 발송: phone=***{phone[-4:]}")
        return pin_id, phone

    async def verify_otp(self, phone_number: str, pin_id: str, code: str) -> LoginResult:
        """OTP 검증 후 로그인

        - 게이트웨이 검증
        - pin이 해당 번호로 발송된 미사용 pin인지 확인
        - 사용자 생성/갱신 및 세션 발급

        Raises:
            ValidationError: 입력 형식 오류
            AuthenticationError: 코드 불일치/만료/재사용
        """
        phone = to_international_phone(phone_number)
        if not pin_id:
            raise ValidationError("pinId는 필수입니다", field="pinId")
        if not code or not OTP_CODE_PATTERN.match(code):
            raise ValidationError("인증 코드 형식이 올바르지 않습니다", field="otp")

        if not await self.gateway.verify_otp(pin_id, code):
            raise AuthenticationError("인증 코드가 올바르지 않거나 만료되었습니다")

        if not await self.users.mark_otp_verified(pin_id, phone):
            raise AuthenticationError("이미 사용되었거나 알 수 없는 인증 요청입니다")

        user, created = await self.users.upsert_verified_user(phone)
        token = await self.users.create_session(user.id, self.session_days)

        logger.info(f"로그인 성공: user={user.id}, new={created}")
        return LoginResult(user=user, token=token, is_new_user=created)

    async def get_user_by_session(self, token: str | None) -> User | None:
        return await self.users.get_user_by_session(token)

    async def require_user(self, token: str | None) -> User:
        """세션 사용자 반환

        Raises:
            AuthenticationError: 세션 없음/만료
        """
        user = await self.users.get_user_by_session(token)
        if user is None:
            raise AuthenticationError("로그인이 필요합니다")
        return user

    async def logout(self, token: str | None) -> bool:
        if not token:
            return False
        return await self.users.delete_session(token)
