"""
고객 라우트

business 컨텍스트의 고객 목록 조회 및 생성
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import ValidationError
from core.storage.customer_store import CustomerStore
from core.types import LedgerScope
from web.dependencies import get_db, get_db_write, get_scope
from web.models.requests import CustomerCreateRequest
from web.models.responses import CustomerListResponse, CustomerResponse

router = APIRouter(prefix="/api/customers", tags=["Customers"])


def _require_business(scope: LedgerScope) -> str:
    if scope.is_personal:
        raise ValidationError("고객 관리는 business 컨텍스트에서만 가능합니다")
    return scope.tenant_id


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    limit: int = Query(Defaults.PAGE_LIMIT, ge=1, le=500, description="조회 개수"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> CustomerListResponse:
    """고객 목록 (최신순)"""
    company_id = _require_business(scope)
    customers = await CustomerStore(db).list_customers(company_id, limit)

    return CustomerListResponse(
        customers=[c.to_dict() for c in customers],
        total=len(customers),
    )


@router.post("", response_model=CustomerResponse)
async def create_customer(
    request: CustomerCreateRequest,
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> CustomerResponse:
    """고객 생성"""
    company_id = _require_business(scope)
    customer = await CustomerStore(db).create_customer(
        company_id,
        name=request.name,
        phone=request.phone,
        email=request.email,
        company_name=request.company,
        address=request.address,
    )
    return CustomerResponse(customer=customer.to_dict())
