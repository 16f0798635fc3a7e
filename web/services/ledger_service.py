"""
Ledger 조회 서비스

현재 범위(LedgerScope)의 분개 목록/상세/무효화와 시산표.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import NotFoundError, ValidationError
from core.ledger.entry_builder import ZERO, JournalEntry
from core.ledger.store import LedgerStore
from core.ledger.types import EntryStatus
from core.types import LedgerScope

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 조회 서비스

    personal 범위에서는 본인이 작성한 분개만 보이고 무효화할 수 있다.
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.store = LedgerStore(db)

    async def list_entries(
        self,
        scope: LedgerScope,
        status: str | None = None,
        reference_prefix: str | None = None,
        limit: int = Defaults.PAGE_LIMIT,
        offset: int = 0,
    ) -> list[JournalEntry]:
        entry_status = None
        if status is not None:
            try:
                entry_status = EntryStatus(status)
            except ValueError as e:
                raise ValidationError("status가 올바르지 않습니다", field="status", value=status) from e

        return await self.store.list_entries(
            scope.tenant_id,
            creator_id=scope.creator_id,
            status=entry_status,
            reference_prefix=reference_prefix,
            limit=limit,
            offset=offset,
        )

    async def get_entry(self, scope: LedgerScope, entry_id: str) -> JournalEntry:
        """분개 상세

        Raises:
            NotFoundError: 없거나 현재 범위 밖의 분개
        """
        entry = await self.store.get_entry(entry_id, tenant_id=scope.tenant_id)
        if entry is None or (scope.creator_id and entry.created_by != scope.creator_id):
            raise NotFoundError("분개를 찾을 수 없습니다", entry_id=entry_id)
        return entry

    async def void_entry(self, scope: LedgerScope, entry_id: str) -> JournalEntry:
        """분개 무효화 (posted → void)

        Raises:
            NotFoundError: 없거나 현재 범위 밖의 분개
            InvalidStateTransition: 이미 void인 분개
        """
        await self.get_entry(scope, entry_id)
        entry = await self.store.void_entry(entry_id, tenant_id=scope.tenant_id)
        logger.info(f"분개 무효화: {entry_id}", extra={"tenant_id": scope.tenant_id})
        return entry

    async def get_balances(self, scope: LedgerScope) -> dict[str, Any]:
        """시산표 (금액은 문자열)"""
        balances = await self.store.get_account_balances(scope.tenant_id, scope.creator_id)

        total_debit = sum((b["debit"] for b in balances), ZERO)
        total_credit = sum((b["credit"] for b in balances), ZERO)

        return {
            "balances": [
                {
                    "accountId": b["account_id"],
                    "code": b["code"],
                    "name": b["name"],
                    "accountType": b["account_type"].value,
                    "debit": str(b["debit"]),
                    "credit": str(b["credit"]),
                    "balance": str(b["balance"]),
                }
                for b in balances
            ],
            "totalDebit": str(total_debit),
            "totalCredit": str(total_credit),
        }
