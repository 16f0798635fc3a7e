"""InvoiceStore 통합 테스트 (품목 계산, 번호 생성, 목록/요약, 삭제)"""

from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import NotFoundError, StorageError, ValidationError
from core.storage.company_store import CompanyStore
from core.storage.customer_store import CustomerStore
from core.storage.invoice_store import (
    InvoiceItem,
    InvoiceStore,
    compute_totals,
    invoice_prefix,
)
from core.types import InvoiceStatus


@pytest_asyncio.fixture
async def company(db: SQLiteAdapter, alice):
    return await CompanyStore(db).create_company(alice.id, "Ada Stores")


@pytest_asyncio.fixture
async def customer(db: SQLiteAdapter, company):
    return await CustomerStore(db).create_customer(company.id, "Chinedu")


async def make_invoice(db, company, customer, alice, number=None, unit_price="1000"):
    store = InvoiceStore(db)
    number = number or await store.next_invoice_number(company.id, company.name)
    return await store.create_invoice(
        company.id,
        customer.id,
        alice.id,
        number,
        "2025-03-01",
        "2025-03-31",
        [InvoiceItem("Rice", Decimal("2"), Decimal(unit_price))],
    )


class TestInvoiceItems:

    def test_amount_and_totals(self) -> None:
        items = [
            InvoiceItem("Rice", Decimal("3"), Decimal("15000")),
            InvoiceItem("Delivery", Decimal("1"), Decimal("2500"), vat_rate=Decimal("0")),
        ]

        subtotal, vat_amount, total = compute_totals(items)

        assert items[0].amount == Decimal("45000.00")
        assert subtotal == Decimal("47500.00")
        assert vat_amount == Decimal("3375.00")
        assert total == Decimal("50875.00")

    def test_vat_rounded_to_cents(self) -> None:
        subtotal, vat_amount, total = compute_totals([InvoiceItem("Pen", Decimal("1"), Decimal("0.99"))])

        assert vat_amount == Decimal("0.07")
        assert total == Decimal("1.06")

    def test_from_request_defaults(self) -> None:
        item = InvoiceItem.from_request({"description": " Rice ", "unitPrice": "500"})

        assert item.description == "Rice"
        assert item.quantity == Decimal("1")
        assert item.vat_rate == Decimal("7.5")

    @pytest.mark.parametrize(
        "data",
        [
            {"unitPrice": "500"},
            {"description": "Rice", "unitPrice": "0"},
            {"description": "Rice", "unitPrice": "500", "quantity": "-1"},
            {"description": "Rice", "unitPrice": "500", "vatRate": "150"},
            "Rice",
        ],
    )
    def test_from_request_rejects(self, data) -> None:
        with pytest.raises(ValidationError):
            InvoiceItem.from_request(data)

    @pytest.mark.parametrize(
        "name, prefix",
        [
            ("Ada Stores", "ADA"),
            ("a1 b2 c3 d4", "ABC"),
            ("7-Eleven", "ELE"),
            ("123", "INV"),
            (None, "INV"),
        ],
    )
    def test_prefix(self, name, prefix) -> None:
        assert invoice_prefix(name) == prefix


class TestInvoiceStore:

    @pytest.mark.asyncio
    async def test_numbers_increment_per_company(
        self, db: SQLiteAdapter, alice, bob, company, customer
    ) -> None:
        store = InvoiceStore(db)

        first = await make_invoice(db, company, customer, alice)
        second = await make_invoice(db, company, customer, alice)

        other = await CompanyStore(db).create_company(bob.id, "Ada Foods")

        assert first.invoice_number == "ADA-0001"
        assert second.invoice_number == "ADA-0002"
        assert await store.next_invoice_number(other.id, other.name) == "ADA-0001"

    @pytest.mark.asyncio
    async def test_deleted_number_not_reused(
        self, db: SQLiteAdapter, alice, company, customer
    ) -> None:
        store = InvoiceStore(db)
        first = await make_invoice(db, company, customer, alice)

        await store.mark_deleted(company.id, first.id)

        assert await store.next_invoice_number(company.id, company.name) == "ADA-0002"

    @pytest.mark.asyncio
    async def test_duplicate_number_rejected(
        self, db: SQLiteAdapter, alice, company, customer
    ) -> None:
        await make_invoice(db, company, customer, alice, number="ADA-0001")

        with pytest.raises(StorageError):
            await make_invoice(db, company, customer, alice, number="ADA-0001")

    @pytest.mark.asyncio
    async def test_create_and_get_with_items(
        self, db: SQLiteAdapter, alice, company, customer
    ) -> None:
        created = await make_invoice(db, company, customer, alice)

        invoice = await InvoiceStore(db).get_invoice(company.id, created.id)

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.customer_name == "Chinedu"
        assert invoice.subtotal == Decimal("2000.00")
        assert invoice.vat_amount == Decimal("150.00")
        assert invoice.total_amount == Decimal("2150.00")
        assert invoice.paid_amount == Decimal("0")
        assert [(i.description, i.amount) for i in invoice.items] == [("Rice", Decimal("2000.00"))]
        assert invoice.to_dict()["balanceDue"] == "2150.00"

    @pytest.mark.asyncio
    async def test_create_requires_items(self, db: SQLiteAdapter, alice, company, customer) -> None:
        with pytest.raises(ValidationError):
            await InvoiceStore(db).create_invoice(
                company.id, customer.id, alice.id, "ADA-0001", "2025-03-01", "2025-03-31", []
            )

    @pytest.mark.asyncio
    async def test_other_company_cannot_read(
        self, db: SQLiteAdapter, alice, bob, company, customer
    ) -> None:
        created = await make_invoice(db, company, customer, alice)
        other = await CompanyStore(db).create_company(bob.id, "Bola Ventures")

        assert await InvoiceStore(db).get_invoice(other.id, created.id) is None

    @pytest.mark.asyncio
    async def test_list_filter_and_summary(
        self, db: SQLiteAdapter, alice, company, customer
    ) -> None:
        store = InvoiceStore(db)
        draft = await make_invoice(db, company, customer, alice)
        sent = await make_invoice(db, company, customer, alice, unit_price="5000")
        paid = await make_invoice(db, company, customer, alice)
        await store.update_invoice(company.id, sent.id, status=InvoiceStatus.SENT)
        await store.update_invoice(
            company.id, paid.id, status=InvoiceStatus.PAID, paid_amount=paid.total_amount
        )

        everything = await store.list_invoices(company.id)
        only_sent = await store.list_invoices(company.id, status=InvoiceStatus.SENT)
        summary = await store.get_summary(company.id)

        assert [i.id for i in everything] == [paid.id, sent.id, draft.id]
        assert [i.id for i in only_sent] == [sent.id]
        assert summary["total_invoices"] == 3
        assert summary["outstanding_count"] == 2
        assert summary["outstanding_total"] == Decimal("10750.00")

    @pytest.mark.asyncio
    async def test_update_notes_only(self, db: SQLiteAdapter, alice, company, customer) -> None:
        created = await make_invoice(db, company, customer, alice)

        updated = await InvoiceStore(db).update_invoice(company.id, created.id, notes=" net 30 ")

        assert updated.notes == "net 30"
        assert updated.status == InvoiceStatus.DRAFT

    @pytest.mark.asyncio
    async def test_deleted_invoice_hidden(self, db: SQLiteAdapter, alice, company, customer) -> None:
        store = InvoiceStore(db)
        created = await make_invoice(db, company, customer, alice)

        await store.mark_deleted(company.id, created.id)

        assert await store.get_invoice(company.id, created.id) is None
        assert (await store.get_invoice(company.id, created.id, include_deleted=True)).deleted_at
        assert await store.list_invoices(company.id) == []
        with pytest.raises(NotFoundError):
            await store.mark_deleted(company.id, created.id)
        with pytest.raises(NotFoundError):
            await store.update_invoice(company.id, created.id, notes="x")
