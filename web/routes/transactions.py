"""
사업 거래 라우트

POST /api/transactions - 매출(SALE-) / 비용(EXP-) 기록
GET  /api/transactions - 거래 목록
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.storage.user_store import User
from core.types import LedgerScope
from web.dependencies import get_current_user, get_db, get_db_write, get_scope
from web.models.requests import BusinessTransactionRequest
from web.models.responses import TransactionListResponse, TransactionResponse
from web.services.transaction_service import TransactionService

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse)
async def record_transaction(
    request: BusinessTransactionRequest,
    user: User = Depends(get_current_user),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> TransactionResponse:
    """사업 거래 기록"""
    transaction = await TransactionService(db).record_business_transaction(
        scope,
        user.id,
        amount=request.amount,
        description=request.description,
        date=request.date,
        kind=request.type,
        category=request.category,
        customer=request.customer,
        vendor=request.vendor,
    )

    label = "Sale" if transaction["type"] == "income" else "Expense"
    return TransactionResponse(
        message=f"{label} recorded successfully",
        transaction=transaction,
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    type: Literal["income", "expense"] | None = Query(None, description="거래 유형 필터"),
    limit: int = Query(Defaults.PAGE_LIMIT, ge=1, le=500, description="조회 개수"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> TransactionListResponse:
    """거래 목록 (현재 컨텍스트, 최신순)"""
    transactions = await TransactionService(db).list_transactions(scope, kind=type, limit=limit)

    return TransactionListResponse(
        transactions=transactions,
        total=len(transactions),
    )
