"""PersonalService 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import PERSONAL_TENANT_ID
from core.errors import ValidationError
from core.ledger.store import LedgerStore
from core.types import ContextType, LedgerScope
from web.services.personal_service import PersonalService


def personal_scope(user_id: str) -> LedgerScope:
    return LedgerScope(PERSONAL_TENANT_ID, ContextType.PERSONAL, creator_id=user_id)


BUDGET_PAYLOAD = {
    "totalIncome": "200000",
    "budgetType": "custom",
    "budgets": [
        {"categoryId": "rent", "amount": "80000", "percentage": "40"},
        {"categoryId": "groceries", "amount": "40000", "percentage": "20"},
    ],
}


class TestRecordIncome:

    @pytest.mark.asyncio
    async def test_record_income(self, db: SQLiteAdapter, alice) -> None:
        service = PersonalService(db)

        tx = await service.record_income(
            personal_scope(alice.id), "150000", " March pay ", "2025-03-28", "salary",
            recurring=True, frequency="monthly",
        )

        assert tx["amount"] == "150000"
        assert tx["description"] == "March pay"
        assert tx["category"] == "Salary"
        assert tx["type"] == "income"
        assert tx["reference"].startswith("PI-")
        assert tx["recurring"] is True
        assert tx["frequency"] == "monthly"

        ledger = LedgerStore(db)
        assert await ledger.get_account_balance(PERSONAL_TENANT_ID, "P-1001", alice.id) == Decimal("150000")
        assert await ledger.get_account_balance(PERSONAL_TENANT_ID, "P-4SAL", alice.id) == Decimal("150000")
        entry = await ledger.get_entry(tx["id"])
        assert entry.narration == "💼 Salary: March pay (monthly)"

    @pytest.mark.asyncio
    async def test_unknown_category(self, db: SQLiteAdapter, alice) -> None:
        with pytest.raises(ValidationError):
            await PersonalService(db).record_income(
                personal_scope(alice.id), "100", "x", "2025-03-01", "groceries"
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    async def test_invalid_amount(self, db: SQLiteAdapter, alice, amount) -> None:
        with pytest.raises(ValidationError):
            await PersonalService(db).record_income(
                personal_scope(alice.id), amount, "x", "2025-03-01", "salary"
            )

    @pytest.mark.asyncio
    async def test_business_scope_rejected(self, db: SQLiteAdapter) -> None:
        scope = LedgerScope("company-1", ContextType.BUSINESS)

        with pytest.raises(ValidationError):
            await PersonalService(db).record_income(scope, "100", "x", "2025-03-01", "salary")


class TestRecordExpense:

    @pytest.mark.asyncio
    async def test_card_expense_credits_bank(self, db: SQLiteAdapter, alice) -> None:
        service = PersonalService(db)

        tx = await service.record_expense(
            personal_scope(alice.id), "12500.75", "weekly shop", "2025-03-02", "groceries",
            payment_method="card", vendor="Shoprite",
        )

        assert tx["categoryGroup"] == "Food"
        assert tx["paymentMethod"] == "card"
        assert tx["vendor"] == "Shoprite"
        assert tx["reference"].startswith("PE-")

        ledger = LedgerStore(db)
        assert await ledger.get_account_balance(PERSONAL_TENANT_ID, "P-1002", alice.id) == Decimal("-12500.75")
        assert await ledger.get_account_balance(PERSONAL_TENANT_ID, "P-5GRO", alice.id) == Decimal("12500.75")

    @pytest.mark.asyncio
    async def test_invalid_payment_method(self, db: SQLiteAdapter, alice) -> None:
        with pytest.raises(ValidationError):
            await PersonalService(db).record_expense(
                personal_scope(alice.id), "100", "x", "2025-03-01", "groceries",
                payment_method="crypto",
            )

    @pytest.mark.asyncio
    async def test_missing_description(self, db: SQLiteAdapter, alice) -> None:
        with pytest.raises(ValidationError):
            await PersonalService(db).record_expense(
                personal_scope(alice.id), "100", "  ", "2025-03-01", "groceries"
            )


class TestBudgetAndSummary:

    @pytest.mark.asyncio
    async def test_budget_roundtrip(self, db: SQLiteAdapter, alice) -> None:
        service = PersonalService(db)
        scope = personal_scope(alice.id)

        assert await service.get_budget(scope) is None

        saved = await service.save_budget(scope, BUDGET_PAYLOAD)
        loaded = await service.get_budget(scope)

        assert saved["reference"].startswith("BUDGET-")
        assert loaded["id"] == saved["id"]
        assert loaded["totalIncome"] == "200000"
        assert loaded["period"] == "monthly"
        assert [b["categoryId"] for b in loaded["budgets"]] == ["rent", "groceries"]

    @pytest.mark.asyncio
    async def test_save_budget_validation(self, db: SQLiteAdapter, alice) -> None:
        with pytest.raises(ValidationError):
            await PersonalService(db).save_budget(
                personal_scope(alice.id), {**BUDGET_PAYLOAD, "budgets": []}
            )

    @pytest.mark.asyncio
    async def test_summary(self, db: SQLiteAdapter, alice, bob) -> None:
        service = PersonalService(db)
        scope = personal_scope(alice.id)
        await service.record_income(scope, "200000", "pay", "2025-03-01", "salary")
        await service.record_expense(scope, "50000", "rent", "2025-03-02", "rent")
        await service.record_income(personal_scope(bob.id), "999", "gift", "2025-03-02", "gifts")

        summary = await service.get_summary(scope)

        assert summary["totalIncome"] == "200000"
        assert summary["totalExpenses"] == "50000"
        assert summary["netSavings"] == "150000"
        assert summary["savingsRate"] == "75.0"
        assert summary["budgetUsed"] is None

        await service.save_budget(scope, BUDGET_PAYLOAD)
        summary = await service.get_summary(scope)
        assert summary["budgetUsed"] == "25.0"

    @pytest.mark.asyncio
    async def test_empty_summary(self, db: SQLiteAdapter, alice) -> None:
        summary = await PersonalService(db).get_summary(personal_scope(alice.id))

        assert summary["totalIncome"] == "0"
        assert summary["savingsRate"] == "0.0"

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, db: SQLiteAdapter, alice) -> None:
        service = PersonalService(db)

        first = await service.initialize(personal_scope(alice.id))
        second = await service.initialize(personal_scope(alice.id))

        assert first > 0
        assert second == 0

    def test_categories_catalog(self) -> None:
        catalog = PersonalService.get_categories()

        assert catalog["income"][0]["id"] == "salary"
        assert "Housing" in catalog["groups"]
        assert set(catalog["presets"]) == {"conservative", "moderate", "aggressive"}
