"""
개인 재무 라우트

개인 컨텍스트의 수입/지출 기록, 예산, 요약, 카테고리 카탈로그
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import LedgerScope
from web.dependencies import get_db, get_db_write, get_scope
from web.models.requests import BudgetSaveRequest, PersonalExpenseRequest, PersonalIncomeRequest
from web.models.responses import (
    BudgetResponse,
    CategoriesResponse,
    InitializeResponse,
    SummaryResponse,
    TransactionResponse,
)
from web.services.personal_service import PersonalService

router = APIRouter(prefix="/api/personal", tags=["Personal"])


@router.post("/initialize", response_model=InitializeResponse)
async def initialize_personal_accounts(
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> InitializeResponse:
    """개인 기본 계정 생성 (멱등)"""
    created = await PersonalService(db).initialize(scope)

    return InitializeResponse(
        message="Personal accounts initialized",
        accounts_created=created,
    )


@router.post("/income", response_model=TransactionResponse)
async def record_income(
    request: PersonalIncomeRequest,
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> TransactionResponse:
    """개인 수입 기록 (차변 현금 / 대변 수입 카테고리)"""
    transaction = await PersonalService(db).record_income(
        scope,
        amount=request.amount,
        description=request.description,
        date=request.date,
        category_id=request.category,
        recurring=request.recurring,
        frequency=request.frequency,
    )
    return TransactionResponse(
        message="Personal income recorded successfully",
        transaction=transaction,
    )


@router.post("/expense", response_model=TransactionResponse)
async def record_expense(
    request: PersonalExpenseRequest,
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> TransactionResponse:
    """개인 지출 기록 (차변 지출 카테고리 / 대변 현금 또는 은행)"""
    transaction = await PersonalService(db).record_expense(
        scope,
        amount=request.amount,
        description=request.description,
        date=request.date,
        category_id=request.category,
        payment_method=request.payment_method,
        vendor=request.vendor,
        recurring=request.recurring,
        frequency=request.frequency,
    )
    return TransactionResponse(
        message="Personal expense recorded successfully",
        transaction=transaction,
    )


@router.get("/budget", response_model=BudgetResponse)
async def get_budget(
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> BudgetResponse:
    """현재 예산 조회"""
    budget = await PersonalService(db).get_budget(scope)

    if budget is None:
        return BudgetResponse(budget=None, message="No budget found")
    return BudgetResponse(budget=budget)


@router.post("/budget", response_model=BudgetResponse)
async def save_budget(
    request: BudgetSaveRequest,
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> BudgetResponse:
    """예산 저장 (이전 예산은 void 처리)"""
    budget = await PersonalService(db).save_budget(scope, request.to_payload())

    return BudgetResponse(budget=budget, message="Budget saved successfully")


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> SummaryResponse:
    """수입/지출/저축률 요약"""
    summary = await PersonalService(db).get_summary(scope)

    return SummaryResponse(summary=summary)


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories() -> CategoriesResponse:
    """수입/지출 카테고리와 예산 프리셋"""
    return CategoriesResponse(**PersonalService.get_categories())
