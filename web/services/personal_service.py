"""
개인 재무 서비스

개인 컨텍스트(PERSONAL_TENANT_ID)의 수입/지출 기록, 예산, 요약.
모든 조회와 기록은 LedgerScope.creator_id로 사용자별 격리.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import ReferencePrefix
from core.errors import ValidationError
from core.ledger.budget import BudgetSnapshot, BudgetStore, decode
from core.ledger.categories import (
    BUDGET_PRESETS,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Category,
    get_all_groups,
    get_category,
)
from core.ledger.entry_builder import (
    ZERO,
    JournalEntry,
    build_personal_expense_lines,
    build_personal_income_lines,
    parse_positive_amount,
    personal_expense_narration,
    personal_income_narration,
)
from core.ledger.store import LedgerStore
from core.ledger.types import (
    PERSONAL_ACCOUNT_TEMPLATES,
    AccountType,
    PaymentMethod,
    PersonalAccountCodes,
    TransactionKind,
)
from core.types import LedgerScope
from core.utils.references import make_reference

logger = logging.getLogger(__name__)

PERCENT_QUANTUM = Decimal("0.1")


def _require_personal(scope: LedgerScope, action: str) -> str:
    """personal 범위 확인 후 creator_id 반환"""
    if not scope.is_personal:
        raise ValidationError(f"{action}은(는) 개인 컨텍스트에서만 가능합니다")
    if not scope.creator_id:
        raise ValidationError("개인 범위에 creator_id가 없습니다")
    return scope.creator_id


def _percent(part: Decimal, whole: Decimal) -> str:
    if whole <= ZERO:
        return "0.0"
    return str((part / whole * 100).quantize(PERCENT_QUANTUM))


class PersonalService:
    """개인 재무 서비스

    Args:
        db: SQLite 어댑터 (기록 API는 쓰기 가능 연결)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.ledger = LedgerStore(db)
        self.budgets = BudgetStore(self.ledger)

    # =========================================================================
    # 기록
    # =========================================================================

    async def record_income(
        self,
        scope: LedgerScope,
        amount: Any,
        description: str,
        date: str,
        category_id: str,
        recurring: bool = False,
        frequency: str | None = None,
    ) -> dict[str, Any]:
        """개인 수입 기록 (PI-)

        차변 P-1001 현금 / 대변 P-4xxx 카테고리 수입.
        계정 생성과 분개 기록은 하나의 트랜잭션.
        """
        creator_id = _require_personal(scope, "개인 수입 기록")
        category = self._get_category(category_id, TransactionKind.INCOME)
        value = parse_positive_amount(amount)
        description = self._require_description(description)

        async with self.db.transaction(immediate=True):
            cash = await self._ensure_payment_account(scope.tenant_id, PaymentMethod.CASH)
            income = await self.ledger.get_or_create_account(
                scope.tenant_id,
                PersonalAccountCodes.income(category.id),
                f"Personal {category.name}",
                AccountType.REVENUE,
                "personal_income",
            )
            entry = await self.ledger.post_entry(
                tenant_id=scope.tenant_id,
                creator_id=creator_id,
                entry_date=date,
                reference=make_reference(ReferencePrefix.PERSONAL_INCOME),
                narration=personal_income_narration(category, description, recurring, frequency),
                lines=build_personal_income_lines(cash.id, income.id, value, category),
            )

        logger.info(f"개인 수입 기록: {entry.reference} {value}", extra={"creator_id": creator_id})
        return self._transaction_dict(
            entry,
            value,
            description,
            category,
            TransactionKind.INCOME,
            recurring=recurring,
            frequency=frequency if recurring else None,
        )

    async def record_expense(
        self,
        scope: LedgerScope,
        amount: Any,
        description: str,
        date: str,
        category_id: str,
        payment_method: str = PaymentMethod.CASH.value,
        vendor: str | None = None,
        recurring: bool = False,
        frequency: str | None = None,
    ) -> dict[str, Any]:
        """개인 지출 기록 (PE-)

        차변 P-5xxx 카테고리 지출 / 대변 P-1001(현금) 또는 P-1002(카드/이체).
        """
        creator_id = _require_personal(scope, "개인 지출 기록")
        category = self._get_category(category_id, TransactionKind.EXPENSE)
        value = parse_positive_amount(amount)
        description = self._require_description(description)

        try:
            method = PaymentMethod(payment_method)
        except ValueError as e:
            raise ValidationError(
                "결제 수단이 올바르지 않습니다", field="paymentMethod", value=payment_method
            ) from e

        async with self.db.transaction(immediate=True):
            payment = await self._ensure_payment_account(scope.tenant_id, method)
            expense = await self.ledger.get_or_create_account(
                scope.tenant_id,
                PersonalAccountCodes.expense(category.id),
                f"Personal {category.name}",
                AccountType.EXPENSE,
                "personal_expense",
            )
            entry = await self.ledger.post_entry(
                tenant_id=scope.tenant_id,
                creator_id=creator_id,
                entry_date=date,
                reference=make_reference(ReferencePrefix.PERSONAL_EXPENSE),
                narration=personal_expense_narration(category, description, vendor),
                lines=build_personal_expense_lines(
                    expense.id, payment.id, value, category, method
                ),
            )

        logger.info(f"개인 지출 기록: {entry.reference} {value}", extra={"creator_id": creator_id})
        return self._transaction_dict(
            entry,
            value,
            description,
            category,
            TransactionKind.EXPENSE,
            categoryGroup=category.group,
            vendor=vendor,
            paymentMethod=method.value,
            recurring=recurring,
            frequency=frequency if recurring else None,
        )

    async def initialize(self, scope: LedgerScope) -> int:
        """개인 기본 계정 보장 (생성된 계정 수 반환)"""
        _require_personal(scope, "개인 계정 초기화")
        return await self.ledger.ensure_personal_scaffold(scope.tenant_id)

    # =========================================================================
    # 예산
    # =========================================================================

    async def get_budget(self, scope: LedgerScope) -> dict[str, Any] | None:
        """현재 예산 (없거나 파싱 불가면 None)"""
        creator_id = _require_personal(scope, "예산 조회")
        entry = await self.budgets.get_active_entry(scope.tenant_id, creator_id)
        if entry is None:
            return None

        snapshot = decode(entry.narration)
        if snapshot is None:
            logger.warning(f"예산 narration 해석 불가: {entry.reference}")
            return None
        return self._budget_dict(entry, snapshot)

    async def save_budget(self, scope: LedgerScope, payload: dict[str, Any]) -> dict[str, Any]:
        """예산 저장 (기존 예산 무효화 후 새 예산 기록)"""
        creator_id = _require_personal(scope, "예산 저장")
        snapshot = BudgetSnapshot.from_request(payload)
        entry = await self.budgets.replace_active_budget(scope.tenant_id, creator_id, snapshot)
        return self._budget_dict(entry, snapshot)

    # =========================================================================
    # 요약 / 카탈로그
    # =========================================================================

    async def get_summary(self, scope: LedgerScope) -> dict[str, Any]:
        """총수입, 총지출, 순저축, 저축률, 예산 사용률"""
        creator_id = _require_personal(scope, "개인 요약 조회")
        balances = await self.ledger.get_account_balances(scope.tenant_id, creator_id)

        total_income = sum(
            (b["balance"] for b in balances if b["account_type"] == AccountType.REVENUE), ZERO
        )
        total_expenses = sum(
            (b["balance"] for b in balances if b["account_type"] == AccountType.EXPENSE), ZERO
        )
        net_savings = total_income - total_expenses

        summary: dict[str, Any] = {
            "totalIncome": str(total_income),
            "totalExpenses": str(total_expenses),
            "netSavings": str(net_savings),
            "savingsRate": _percent(net_savings, total_income),
            "budgetUsed": None,
        }

        budget = await self.budgets.get_active_budget(scope.tenant_id, creator_id)
        if budget is not None:
            summary["budgetUsed"] = _percent(total_expenses, budget.total_income)
        return summary

    @staticmethod
    def get_categories() -> dict[str, Any]:
        return {
            "income": [c.to_dict() for c in INCOME_CATEGORIES],
            "expense": [c.to_dict() for c in EXPENSE_CATEGORIES],
            "groups": get_all_groups(),
            "presets": BUDGET_PRESETS,
        }

    # =========================================================================
    # 내부
    # =========================================================================

    async def _ensure_payment_account(self, tenant_id: str, method: PaymentMethod):
        code = PersonalAccountCodes.payment(method)
        return await self.ledger.ensure_template_account(tenant_id, PERSONAL_ACCOUNT_TEMPLATES, code)

    @staticmethod
    def _get_category(category_id: str, kind: TransactionKind) -> Category:
        category = get_category(category_id, kind)
        if category is None:
            raise ValidationError(
                f"알 수 없는 {kind.value} 카테고리입니다", field="category", value=category_id
            )
        return category

    @staticmethod
    def _require_description(description: str | None) -> str:
        if not description or not description.strip():
            raise ValidationError("description은 필수입니다", field="description")
        return description.strip()

    @staticmethod
    def _transaction_dict(
        entry: JournalEntry,
        amount: Decimal,
        description: str,
        category: Category,
        kind: TransactionKind,
        **extra: Any,
    ) -> dict[str, Any]:
        return {
            "id": entry.id,
            "amount": str(amount),
            "description": description,
            "category": category.name,
            "categoryIcon": category.icon,
            "date": entry.entry_date.isoformat(),
            "type": kind.value,
            "reference": entry.reference,
            "status": entry.status.value,
            **extra,
        }

    @staticmethod
    def _budget_dict(entry: JournalEntry, snapshot: BudgetSnapshot) -> dict[str, Any]:
        return {
            "id": entry.id,
            "reference": entry.reference,
            **snapshot.to_dict(),
            "createdAt": entry.created_at,
        }
