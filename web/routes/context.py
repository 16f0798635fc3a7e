"""
컨텍스트 라우트

personal / business 회계 컨텍스트 조회 및 전환
"""

import json

from fastapi import APIRouter, Depends, Response

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.constants import Cookies
from core.context import ContextService
from core.storage.user_store import User
from core.types import LedgerContext
from web.dependencies import get_app_settings, get_context, get_current_user, get_db, get_db_write
from web.models.requests import SwitchContextRequest
from web.models.responses import ContextResponse

router = APIRouter(prefix="/api/context", tags=["Context"])


@router.get("", response_model=ContextResponse)
async def get_current_context(
    user: User = Depends(get_current_user),
    context: LedgerContext = Depends(get_context),
    db: SQLiteAdapter = Depends(get_db),
) -> ContextResponse:
    """현재 컨텍스트 + 사용 가능한 컨텍스트 목록"""
    service = ContextService(db)
    await service.authorize(user.id, context)
    available = await service.list_user_contexts(user.id)

    return ContextResponse(context=context.to_dict(), available=available)


@router.post("", response_model=ContextResponse)
async def switch_context(
    request: SwitchContextRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
) -> ContextResponse:
    """컨텍스트 전환

    권한 확인에 실패하면 쿠키를 변경하지 않음.
    """
    service = ContextService(db)
    context = await service.switch_context(user.id, request.type, request.company_id)

    response.set_cookie(
        key=Cookies.CONTEXT,
        value=json.dumps(context.to_dict()),
        max_age=settings.session_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )

    return ContextResponse(context=context.to_dict())
