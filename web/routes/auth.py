"""
인증 라우트

전화번호 OTP 로그인, 로그아웃, 사용자 정보
"""

from fastapi import APIRouter, Depends, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IOtpGateway
from core.auth import AuthService
from core.config.loader import Settings
from core.constants import Cookies
from core.errors import NotFoundError
from core.storage.company_store import CompanyStore
from core.storage.user_store import User, UserStore
from web.dependencies import (
    get_app_settings,
    get_current_user,
    get_db,
    get_db_write,
    get_otp_gateway,
    get_session_token,
)
from web.models.requests import SendOtpRequest, UpdateProfileRequest, VerifyOtpRequest
from web.models.responses import (
    LoginResponse,
    OtpSentResponse,
    SuccessResponse,
    UserResponse,
)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/auth/send-otp", response_model=OtpSentResponse)
async def send_otp(
    request: SendOtpRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    gateway: IOtpGateway = Depends(get_otp_gateway),
) -> OtpSentResponse:
    """OTP 발송"""
    service = AuthService(db, gateway)
    pin_id, phone = await service.send_otp(request.phone_number)

    return OtpSentResponse(
        message="OTP sent successfully",
        pin_id=pin_id,
        phone_number=phone,
    )


@router.post("/auth/verify-otp", response_model=LoginResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    response: Response,
    db: SQLiteAdapter = Depends(get_db_write),
    gateway: IOtpGateway = Depends(get_otp_gateway),
    settings: Settings = Depends(get_app_settings),
) -> LoginResponse:
    """OTP 검증 후 세션 발급

    세션 토큰은 HttpOnly 쿠키로 설정되고 응답 본문에도 포함.
    """
    service = AuthService(db, gateway, session_days=settings.session_days)
    result = await service.verify_otp(request.phone_number, request.pin_id, request.otp)

    response.set_cookie(
        key=Cookies.SESSION,
        value=result.token,
        max_age=settings.session_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )

    return LoginResponse(
        user=result.user.to_dict(),
        token=result.token,
        is_new_user=result.is_new_user,
    )


@router.post("/auth/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    db: SQLiteAdapter = Depends(get_db_write),
) -> SuccessResponse:
    """로그아웃 (세션 삭제, 쿠키 제거)"""
    if token:
        await UserStore(db).delete_session(token)

    response.delete_cookie(Cookies.SESSION)
    response.delete_cookie(Cookies.CONTEXT)
    return SuccessResponse(message="Logged out successfully")


@router.get("/user", response_model=UserResponse)
async def get_user(
    user: User = Depends(get_current_user),
    db: SQLiteAdapter = Depends(get_db),
) -> UserResponse:
    """현재 사용자 + 기본 회사"""
    company = await CompanyStore(db).get_company(user.company_id)

    return UserResponse(
        user=user.to_dict(),
        company=company.to_dict() if company else None,
    )


@router.put("/user/update", response_model=UserResponse)
async def update_user(
    request: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: SQLiteAdapter = Depends(get_db_write),
) -> UserResponse:
    """프로필 수정 (이름/이메일)"""
    updated = await UserStore(db).update_profile(user.id, request.name, request.email)
    if updated is None:
        raise NotFoundError("사용자를 찾을 수 없습니다", user_id=user.id)

    return UserResponse(user=updated.to_dict())
