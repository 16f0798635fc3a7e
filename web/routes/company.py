"""
회사 라우트

회사 조회, 생성(기본 계정과목표 포함), 수정
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import AccessDeniedError, NotFoundError
from core.storage.company_store import CompanyStore
from core.storage.user_store import User
from core.types import LedgerContext, MemberRole
from web.dependencies import get_context, get_current_user, get_db, get_db_write
from web.models.requests import CompanySetupRequest, CompanyUpdateRequest
from web.models.responses import CompanyResponse

router = APIRouter(prefix="/api/company", tags=["Company"])


def _target_company_id(user: User, context: LedgerContext) -> str | None:
    """business 컨텍스트면 해당 회사, 아니면 사용자의 기본 회사"""
    if not context.is_personal:
        return context.company_id
    return user.company_id


@router.get("", response_model=CompanyResponse)
async def get_company(
    user: User = Depends(get_current_user),
    context: LedgerContext = Depends(get_context),
    db: SQLiteAdapter = Depends(get_db),
) -> CompanyResponse:
    """현재 회사 + 소속 회사 목록"""
    store = CompanyStore(db)

    company = None
    company_id = _target_company_id(user, context)
    if company_id and await store.has_access(user.id, company_id):
        company = await store.get_company(company_id)

    companies = await store.list_user_companies(user.id)
    return CompanyResponse(
        company=company.to_dict() if company else None,
        companies=[c.to_dict() for c in companies],
    )


@router.post("/setup", response_model=CompanyResponse)
async def setup_company(
    request: CompanySetupRequest,
    user: User = Depends(get_current_user),
    db: SQLiteAdapter = Depends(get_db_write),
) -> CompanyResponse:
    """회사 생성

    요청자는 owner가 되고 기본 계정과목표가 함께 생성됨.
    """
    details = request.model_dump(exclude={"name", "currency"})
    company = await CompanyStore(db).create_company(
        owner_id=user.id,
        name=request.name,
        currency=request.currency,
        **details,
    )
    return CompanyResponse(company=company.to_dict())


@router.put("/update", response_model=CompanyResponse)
async def update_company(
    request: CompanyUpdateRequest,
    user: User = Depends(get_current_user),
    context: LedgerContext = Depends(get_context),
    db: SQLiteAdapter = Depends(get_db_write),
) -> CompanyResponse:
    """회사 정보 수정 (owner만 가능)"""
    store = CompanyStore(db)

    company_id = _target_company_id(user, context)
    if not company_id:
        raise NotFoundError("설정된 회사가 없습니다")

    if await store.get_member_role(company_id, user.id) != MemberRole.OWNER:
        raise AccessDeniedError("회사 정보는 소유자만 수정할 수 있습니다", company_id=company_id)

    company = await store.update_company(company_id, **request.model_dump())
    return CompanyResponse(company=company.to_dict())
