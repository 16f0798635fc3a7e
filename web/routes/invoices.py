"""
송장 라우트

POST   /api/invoices       - 송장 발행
GET    /api/invoices       - 송장 목록 + 미수 요약
GET    /api/invoices/{id}  - 송장 상세
PATCH  /api/invoices/{id}  - 상태/메모 변경
DELETE /api/invoices/{id}  - 송장 삭제
"""

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.storage.user_store import User
from core.types import LedgerScope
from web.dependencies import get_current_user, get_db, get_db_write, get_scope
from web.models.requests import InvoiceCreateRequest, InvoiceUpdateRequest
from web.models.responses import InvoiceListResponse, InvoiceResponse
from web.services.invoice_service import InvoiceService

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])

InvoiceStatusFilter = Literal["draft", "sent", "paid", "overdue", "cancelled"]


@router.post("", response_model=InvoiceResponse)
async def create_invoice(
    request: InvoiceCreateRequest,
    user: User = Depends(get_current_user),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> InvoiceResponse:
    """송장 발행 (draft)"""
    invoice = await InvoiceService(db).create_invoice(
        scope,
        user.id,
        customer_name=request.customer_name,
        due_date=request.due_date,
        items=request.item_payloads(),
        invoice_date=request.invoice_date,
        notes=request.notes,
    )
    return InvoiceResponse(
        message=f"Invoice {invoice.invoice_number} created successfully",
        invoice=invoice.to_dict(),
    )


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status: InvoiceStatusFilter | None = Query(None, description="상태 필터"),
    limit: int = Query(Defaults.PAGE_LIMIT, ge=1, le=500, description="조회 개수"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> InvoiceListResponse:
    """송장 목록 (최신순)"""
    result = await InvoiceService(db).list_invoices(scope, status=status, limit=limit)

    return InvoiceListResponse(
        invoices=result["invoices"],
        total=len(result["invoices"]),
        summary=result["summary"],
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str = Path(..., description="송장 ID"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> InvoiceResponse:
    """송장 상세 (품목 포함)"""
    invoice = await InvoiceService(db).get_invoice(scope, invoice_id)
    return InvoiceResponse(invoice=invoice.to_dict())


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    request: InvoiceUpdateRequest,
    invoice_id: str = Path(..., description="송장 ID"),
    user: User = Depends(get_current_user),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> InvoiceResponse:
    """상태/메모 변경 (종료 상태면 409)"""
    invoice = await InvoiceService(db).update_invoice(
        scope, user.id, invoice_id, status=request.status, notes=request.notes
    )
    return InvoiceResponse(
        message=f"Invoice {invoice.invoice_number} updated",
        invoice=invoice.to_dict(),
    )


@router.delete("/{invoice_id}", response_model=InvoiceResponse)
async def delete_invoice(
    invoice_id: str = Path(..., description="송장 ID"),
    user: User = Depends(get_current_user),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> InvoiceResponse:
    """송장 삭제"""
    invoice = await InvoiceService(db).delete_invoice(scope, user.id, invoice_id)
    return InvoiceResponse(
        message=f"Invoice {invoice.invoice_number} deleted",
        invoice=invoice.to_dict(),
    )
