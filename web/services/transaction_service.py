"""
사업 거래 서비스

business 컨텍스트의 매출(SALE-)과 비용(EXP-) 기록 및 거래 목록.
"""

import logging
import re
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults, ReferencePrefix
from core.errors import ValidationError
from core.ledger.entry_builder import (
    ZERO,
    JournalEntry,
    build_business_expense_lines,
    build_sale_lines,
    business_narration,
    parse_positive_amount,
)
from core.ledger.store import LedgerStore
from core.ledger.types import (
    DEFAULT_BUSINESS_ACCOUNTS,
    AccountType,
    BusinessAccountCodes,
    EntryStatus,
    TransactionKind,
)
from core.storage.customer_store import CustomerStore
from core.types import LedgerScope
from core.utils.references import make_reference

logger = logging.getLogger(__name__)

# narration 접두/접미 ("Sale to X: ", "Expense to X: ", " [category]")
_SALE_PREFIX = re.compile(r"^Sale to [^:]+:\s*")
_EXPENSE_PREFIX = re.compile(r"^Expense to [^:]+:\s*")
_CATEGORY_SUFFIX = re.compile(r"\s*\[([^\]]+)\]$")


class TransactionService:
    """사업 거래 서비스

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.ledger = LedgerStore(db)
        self.customers = CustomerStore(db)

    async def record_business_transaction(
        self,
        scope: LedgerScope,
        user_id: str,
        amount: Any,
        description: str,
        date: str,
        kind: str = TransactionKind.INCOME.value,
        category: str | None = None,
        customer: str | None = None,
        vendor: str | None = None,
    ) -> dict[str, Any]:
        """매출/비용 기록

        - income: 차변 1110 현금 / 대변 4100 매출, 고객은 이름으로 조회 또는 생성
        - expense: 차변 6000 영업비용 / 대변 1110 현금

        Raises:
            ValidationError: personal 컨텍스트, 필수값 누락, 잘못된 type
        """
        if scope.is_personal:
            raise ValidationError("사업 거래는 business 컨텍스트에서만 기록할 수 있습니다")

        try:
            tx_kind = TransactionKind(kind)
        except ValueError as e:
            raise ValidationError(
                "type은 income 또는 expense여야 합니다", field="type", value=kind
            ) from e

        value = parse_positive_amount(amount)
        if not description or not description.strip():
            raise ValidationError("description은 필수입니다", field="description")
        description = description.strip()
        company_id = scope.tenant_id

        if tx_kind == TransactionKind.INCOME:
            if not customer or not customer.strip():
                raise ValidationError("매출에는 customer가 필요합니다", field="customer")

            async with self.db.transaction(immediate=True):
                record = await self.customers.find_or_create_by_name(company_id, customer.strip())
                cash = await self._ensure_account(company_id, BusinessAccountCodes.CASH)
                revenue = await self._ensure_account(company_id, BusinessAccountCodes.SALES_REVENUE)
                entry = await self.ledger.post_entry(
                    tenant_id=company_id,
                    creator_id=user_id,
                    entry_date=date,
                    reference=make_reference(ReferencePrefix.SALE),
                    narration=business_narration("Sale", record.name, description, category),
                    lines=build_sale_lines(cash.id, revenue.id, value, record.name, description),
                )

            logger.info(f"매출 기록: {entry.reference} {value}", extra={"company_id": company_id})
            return self._transaction_dict(
                entry, value, description, tx_kind,
                customer=record.name,
                category=category,
            )

        if not vendor or not vendor.strip():
            raise ValidationError("비용에는 vendor가 필요합니다", field="vendor")
        vendor = vendor.strip()

        async with self.db.transaction(immediate=True):
            expense = await self._ensure_account(company_id, BusinessAccountCodes.OPERATING_EXPENSES)
            cash = await self._ensure_account(company_id, BusinessAccountCodes.CASH)
            entry = await self.ledger.post_entry(
                tenant_id=company_id,
                creator_id=user_id,
                entry_date=date,
                reference=make_reference(ReferencePrefix.BUSINESS_EXPENSE),
                narration=business_narration("Expense", vendor, description, category),
                lines=build_business_expense_lines(expense.id, cash.id, value, vendor, description),
            )

        logger.info(f"비용 기록: {entry.reference} {value}", extra={"company_id": company_id})
        return self._transaction_dict(
            entry, value, description, tx_kind,
            vendor=vendor,
            category=category or "General",
        )

    async def list_transactions(
        self,
        scope: LedgerScope,
        kind: str | None = None,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> list[dict[str, Any]]:
        """거래 목록 (최신순, posted만)

        수익 계정 항목이 있으면 income, 비용 계정 항목이 있으면 expense.
        예산 같은 항목 없는 메모 분개는 제외.
        """
        if kind is not None and kind not in {k.value for k in TransactionKind}:
            raise ValidationError("type은 income 또는 expense여야 합니다", field="type", value=kind)

        account_types = {
            account.id: account.account_type
            for account in await self.ledger.list_accounts(scope.tenant_id)
        }
        entries = await self.ledger.list_entries(
            scope.tenant_id,
            creator_id=scope.creator_id,
            status=EntryStatus.POSTED,
        )

        transactions = []
        for entry in entries:
            classified = self._classify(entry, account_types)
            if classified is None:
                continue
            tx_kind, value = classified
            if kind is not None and tx_kind.value != kind:
                continue

            transactions.append(
                self._transaction_dict(
                    entry, value, self._clean_description(entry.narration, tx_kind), tx_kind,
                    category=self._extract_category(entry.narration, tx_kind),
                    narration=entry.narration,
                )
            )
            if len(transactions) >= limit:
                break
        return transactions

    # =========================================================================
    # 내부
    # =========================================================================

    async def _ensure_account(self, company_id: str, code: str):
        return await self.ledger.ensure_template_account(company_id, DEFAULT_BUSINESS_ACCOUNTS, code)

    @staticmethod
    def _classify(
        entry: JournalEntry,
        account_types: dict[str, AccountType],
    ) -> tuple[TransactionKind, Decimal] | None:
        revenue = ZERO
        expense = ZERO
        for line in entry.lines:
            account_type = account_types.get(line.account_id)
            if account_type == AccountType.REVENUE:
                revenue += line.credit - line.debit
            elif account_type == AccountType.EXPENSE:
                expense += line.debit - line.credit

        if revenue > ZERO:
            return TransactionKind.INCOME, revenue
        if expense > ZERO:
            return TransactionKind.EXPENSE, expense
        return None

    @staticmethod
    def _clean_description(narration: str | None, kind: TransactionKind) -> str:
        text = narration or ""
        if kind == TransactionKind.INCOME:
            text = _SALE_PREFIX.sub("", text)
        else:
            text = _EXPENSE_PREFIX.sub("", text)
        return _CATEGORY_SUFFIX.sub("", text)

    @staticmethod
    def _extract_category(narration: str | None, kind: TransactionKind) -> str | None:
        match = _CATEGORY_SUFFIX.search(narration or "")
        if match:
            return match.group(1)
        return "General" if kind == TransactionKind.EXPENSE else None

    @staticmethod
    def _transaction_dict(
        entry: JournalEntry,
        amount: Decimal,
        description: str,
        kind: TransactionKind,
        **extra: Any,
    ) -> dict[str, Any]:
        return {
            "id": entry.id,
            "amount": str(amount),
            "description": description,
            "date": entry.entry_date.isoformat(),
            "type": kind.value,
            "reference": entry.reference,
            "status": entry.status.value,
            **extra,
        }
