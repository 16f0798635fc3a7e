"""InvoiceService 통합 테스트 (송장 수명주기와 분개 연동)"""

import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import PERSONAL_TENANT_ID
from core.errors import InvalidStateTransition, NotFoundError, ValidationError
from core.ledger.store import LedgerStore
from core.ledger.types import EntryStatus
from core.storage.company_store import CompanyStore
from core.storage.customer_store import CustomerStore
from core.types import ContextType, InvoiceStatus, LedgerScope
from web.services.invoice_service import InvoiceService

ITEMS = [
    {"description": "Rice (50kg)", "quantity": "2", "unitPrice": "40000"},
    {"description": "Delivery", "quantity": "1", "unitPrice": "5000", "vatRate": "0"},
]


@pytest_asyncio.fixture
async def company_scope(db: SQLiteAdapter, alice) -> LedgerScope:
    company = await CompanyStore(db).create_company(alice.id, "Ada Stores")
    return LedgerScope(company.id, ContextType.BUSINESS)


async def issue(db, scope, user_id, customer="Chinedu", items=ITEMS):
    return await InvoiceService(db).create_invoice(
        scope, user_id, customer, "2025-03-31", items, invoice_date="2025-03-01"
    )


async def balances(db, tenant_id) -> dict[str, Decimal]:
    return {
        b["code"]: b["balance"]
        for b in await LedgerStore(db).get_account_balances(tenant_id)
    }


class TestCreateInvoice:

    @pytest.mark.asyncio
    async def test_issue_posts_receivable_entry(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        invoice = await issue(db, company_scope, alice.id)

        assert invoice.invoice_number == "ADA-0001"
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.invoice_date == "2025-03-01"
        assert invoice.due_date == "2025-03-31"
        assert invoice.subtotal == Decimal("85000.00")
        assert invoice.vat_amount == Decimal("6000.00")
        assert invoice.total_amount == Decimal("91000.00")
        assert invoice.customer_name == "Chinedu"

        entry = await LedgerStore(db).get_entry(invoice.entry_id)
        assert entry.reference == "ADA-0001"
        assert entry.is_balanced()

        tenant = company_scope.tenant_id
        result = await balances(db, tenant)
        assert result["1130"] == Decimal("91000.00")
        assert result["2400"] == Decimal("85000.00")
        assert result["2120"] == Decimal("6000.00")
        assert [c.name for c in await CustomerStore(db).list_customers(tenant)] == ["Chinedu"]

    @pytest.mark.asyncio
    async def test_existing_customer_reused(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        await issue(db, company_scope, alice.id)
        second = await issue(db, company_scope, alice.id)

        assert second.invoice_number == "ADA-0002"
        customers = await CustomerStore(db).list_customers(company_scope.tenant_id)
        assert len(customers) == 1

    @pytest.mark.asyncio
    async def test_zero_vat_invoice_has_two_lines(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        invoice = await issue(
            db, company_scope, alice.id,
            items=[{"description": "Consulting", "unitPrice": "1000", "vatRate": "0"}],
        )

        entry = await LedgerStore(db).get_entry(invoice.entry_id)
        assert len(entry.lines) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "customer, due_date, items",
        [
            ("  ", "2025-03-31", ITEMS),
            ("Chinedu", "2025-03-31", []),
            ("Chinedu", "next week", ITEMS),
            ("Chinedu", "2025-02-01", ITEMS),
            ("Chinedu", "2025-03-31", [{"description": "Rice", "unitPrice": "-5"}]),
        ],
    )
    async def test_invalid_requests_write_nothing(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope, customer, due_date, items
    ) -> None:
        with pytest.raises(ValidationError):
            await InvoiceService(db).create_invoice(
                company_scope, alice.id, customer, due_date, items, invoice_date="2025-03-01"
            )

        assert await LedgerStore(db).list_entries(company_scope.tenant_id) == []
        assert await CustomerStore(db).list_customers(company_scope.tenant_id) == []

    @pytest.mark.asyncio
    async def test_personal_context_rejected(self, db: SQLiteAdapter, alice) -> None:
        scope = LedgerScope(PERSONAL_TENANT_ID, ContextType.PERSONAL, creator_id=alice.id)

        with pytest.raises(ValidationError):
            await issue(db, scope, alice.id)

    @pytest.mark.asyncio
    async def test_concurrent_issues_get_distinct_numbers(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        invoices = await asyncio.gather(
            *(issue(db, company_scope, alice.id, customer=f"Customer {i}") for i in range(5))
        )

        numbers = sorted(invoice.invoice_number for invoice in invoices)
        assert numbers == [f"ADA-{i:04d}" for i in range(1, 6)]


class TestInvoiceStatus:

    @pytest.mark.asyncio
    async def test_paid_recognises_revenue(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        service = InvoiceService(db)
        invoice = await issue(db, company_scope, alice.id)

        await service.update_invoice(company_scope, alice.id, invoice.id, status="sent")
        paid = await service.update_invoice(company_scope, alice.id, invoice.id, status="paid")

        assert paid.status == InvoiceStatus.PAID
        assert paid.paid_amount == Decimal("91000.00")
        assert paid.balance_due == Decimal("0")

        result = await balances(db, company_scope.tenant_id)
        assert result["1110"] == Decimal("91000.00")
        assert result["1130"] == Decimal("0")
        assert result["2400"] == Decimal("0")
        assert result["4100"] == Decimal("85000.00")
        assert result["2120"] == Decimal("6000.00")

        payments = await LedgerStore(db).list_entries(
            company_scope.tenant_id, reference_prefix="PAY-"
        )
        assert [e.reference for e in payments] == ["PAY-ADA-0001"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["paid", "cancelled"])
    async def test_terminal_status_is_final(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope, terminal
    ) -> None:
        service = InvoiceService(db)
        invoice = await issue(db, company_scope, alice.id)
        await service.update_invoice(company_scope, alice.id, invoice.id, status=terminal)

        with pytest.raises(InvalidStateTransition):
            await service.update_invoice(company_scope, alice.id, invoice.id, status="sent")

        # 메모 수정은 허용
        updated = await service.update_invoice(company_scope, alice.id, invoice.id, notes="thanks")
        assert updated.notes == "thanks"
        assert updated.status.value == terminal

    @pytest.mark.asyncio
    async def test_paying_twice_posts_once(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        service = InvoiceService(db)
        invoice = await issue(db, company_scope, alice.id)

        results = await asyncio.gather(
            service.update_invoice(company_scope, alice.id, invoice.id, status="paid"),
            service.update_invoice(company_scope, alice.id, invoice.id, status="paid"),
            return_exceptions=True,
        )

        assert not any(isinstance(r, Exception) for r in results)
        payments = await LedgerStore(db).list_entries(
            company_scope.tenant_id, reference_prefix="PAY-"
        )
        assert len(payments) == 1

    @pytest.mark.asyncio
    async def test_cancel_voids_issue_entry(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        invoice = await issue(db, company_scope, alice.id)

        await InvoiceService(db).update_invoice(
            company_scope, alice.id, invoice.id, status="cancelled"
        )

        entry = await LedgerStore(db).get_entry(invoice.entry_id)
        assert entry.status == EntryStatus.VOID
        result = await balances(db, company_scope.tenant_id)
        assert result.get("1130", Decimal("0")) == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [{}, {"status": "refunded"}])
    async def test_invalid_update(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope, kwargs
    ) -> None:
        invoice = await issue(db, company_scope, alice.id)

        with pytest.raises(ValidationError):
            await InvoiceService(db).update_invoice(company_scope, alice.id, invoice.id, **kwargs)


class TestListAndDelete:

    @pytest.mark.asyncio
    async def test_list_with_summary(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        service = InvoiceService(db)
        first = await issue(db, company_scope, alice.id)
        await issue(db, company_scope, alice.id)
        await service.update_invoice(company_scope, alice.id, first.id, status="sent")

        result = await service.list_invoices(company_scope)
        sent_only = await service.list_invoices(company_scope, status="sent")

        assert len(result["invoices"]) == 2
        assert result["summary"] == {
            "totalInvoices": 2,
            "outstandingTotal": "91000.00",
            "outstandingInvoicesCount": 2,
        }
        assert [i["invoiceNumber"] for i in sent_only["invoices"]] == ["ADA-0001"]
        with pytest.raises(ValidationError):
            await service.list_invoices(company_scope, status="archived")

    @pytest.mark.asyncio
    async def test_delete_unpaid_voids_entry(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        service = InvoiceService(db)
        invoice = await issue(db, company_scope, alice.id)

        await service.delete_invoice(company_scope, alice.id, invoice.id)

        assert (await LedgerStore(db).get_entry(invoice.entry_id)).status == EntryStatus.VOID
        with pytest.raises(NotFoundError):
            await service.get_invoice(company_scope, invoice.id)
        with pytest.raises(NotFoundError):
            await service.delete_invoice(company_scope, alice.id, invoice.id)

    @pytest.mark.asyncio
    async def test_delete_paid_posts_reversal(
        self, db: SQLiteAdapter, alice, company_scope: LedgerScope
    ) -> None:
        service = InvoiceService(db)
        invoice = await issue(db, company_scope, alice.id)
        await service.update_invoice(company_scope, alice.id, invoice.id, status="paid")

        await service.delete_invoice(company_scope, alice.id, invoice.id)

        reversals = await LedgerStore(db).list_entries(
            company_scope.tenant_id, reference_prefix="DEL-"
        )
        assert [e.reference for e in reversals] == ["DEL-ADA-0001"]
        result = await balances(db, company_scope.tenant_id)
        for code in ("1110", "1130", "2120", "2400", "4100"):
            assert result[code] == Decimal("0"), code

    @pytest.mark.asyncio
    async def test_other_company_invoice_not_found(
        self, db: SQLiteAdapter, alice, bob, company_scope: LedgerScope
    ) -> None:
        invoice = await issue(db, company_scope, alice.id)
        other = await CompanyStore(db).create_company(bob.id, "Bola Ventures")
        other_scope = LedgerScope(other.id, ContextType.BUSINESS)

        with pytest.raises(NotFoundError):
            await InvoiceService(db).get_invoice(other_scope, invoice.id)
        with pytest.raises(NotFoundError):
            await InvoiceService(db).update_invoice(other_scope, bob.id, invoice.id, status="paid")
