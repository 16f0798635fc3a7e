"""
Ledger API 라우트

복식부기 분개 조회, 무효화, 시산표
"""

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.types import LedgerScope
from web.dependencies import get_db, get_db_write, get_scope
from web.models.responses import BalanceListResponse, EntryListResponse, EntryResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/ledger", tags=["Ledger"])


@router.get("/entries", response_model=EntryListResponse)
async def list_entries(
    status: str | None = Query(None, description="posted / void"),
    reference_prefix: str | None = Query(None, alias="referencePrefix", description="예: PI-, BUDGET-"),
    limit: int = Query(Defaults.PAGE_LIMIT, ge=1, le=500, description="조회 개수"),
    offset: int = Query(0, ge=0, description="시작 위치"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> EntryListResponse:
    """분개 목록 (최신순, lines 포함)"""
    entries = await LedgerService(db).list_entries(
        scope,
        status=status,
        reference_prefix=reference_prefix,
        limit=limit,
        offset=offset,
    )
    return EntryListResponse(
        entries=[e.to_dict() for e in entries],
        total=len(entries),
    )


@router.get("/entries/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: str = Path(..., description="분개 ID"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> EntryResponse:
    """분개 상세"""
    entry = await LedgerService(db).get_entry(scope, entry_id)
    return EntryResponse(entry=entry.to_dict())


@router.post("/entries/{entry_id}/void", response_model=EntryResponse)
async def void_entry(
    entry_id: str = Path(..., description="분개 ID"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db_write),
) -> EntryResponse:
    """분개 무효화 (이미 void면 409)"""
    entry = await LedgerService(db).void_entry(scope, entry_id)
    return EntryResponse(entry=entry.to_dict())


@router.get("/balances", response_model=BalanceListResponse)
async def get_balances(
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> BalanceListResponse:
    """계정별 잔액 (시산표)"""
    result = await LedgerService(db).get_balances(scope)

    return BalanceListResponse(
        balances=result["balances"],
        total_debit=result["totalDebit"],
        total_credit=result["totalCredit"],
    )
