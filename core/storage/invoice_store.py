"""
InvoiceStore - 송장 저장소

invoices, invoice_items 테이블 관리.
번호는 회사명 영문 3자 + 4자리 일련번호 (예: ADA-0001), 회사별로 유일.
삭제는 deleted_at 표시만 하고 번호는 재사용하지 않음.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import NotFoundError, ValidationError
from core.ledger.entry_builder import ZERO, parse_amount, parse_positive_amount
from core.types import InvoiceStatus
from core.utils.timezone import now_iso

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE = Decimal("7.5")
CENT = Decimal("0.01")
DEFAULT_PREFIX = "INV"

_INVOICE_COLUMNS = (
    "id, company_id, customer_id, invoice_number, invoice_date, due_date, status, "
    "subtotal, vat_amount, total_amount, paid_amount, notes, entry_id, created_by, "
    "created_at, updated_at, deleted_at"
)
_INVOICE_COLUMNS_PREFIXED = ", ".join(f"i.{col.strip()}" for col in _INVOICE_COLUMNS.split(","))


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class InvoiceItem:
    """송장 품목"""

    description: str
    quantity: Decimal
    unit_price: Decimal
    vat_rate: Decimal = DEFAULT_VAT_RATE
    id: int | None = None

    @property
    def amount(self) -> Decimal:
        """공급가 (수량 × 단가)"""
        return to_cents(self.quantity * self.unit_price)

    @property
    def vat_amount(self) -> Decimal:
        return self.amount * self.vat_rate / Decimal("100")

    @classmethod
    def from_request(cls, data: Any, index: int = 0) -> "InvoiceItem":
        """요청 dict({description, quantity, unitPrice, vatRate})에서 생성

        Raises:
            ValidationError: 설명 누락, 수량/단가가 양수가 아님, VAT율이 0~100 밖
        """
        if not isinstance(data, dict):
            raise ValidationError("품목 형식이 올바르지 않습니다", item=index)

        description = str(data.get("description") or "").strip()
        if not description:
            raise ValidationError("품목 설명은 필수입니다", item=index, field="description")

        quantity = parse_positive_amount(data.get("quantity", 1), "quantity")
        unit_price = parse_positive_amount(data.get("unitPrice"), "unitPrice")

        vat_rate = data.get("vatRate")
        vat_rate = DEFAULT_VAT_RATE if vat_rate is None else parse_amount(vat_rate, "vatRate")
        if not ZERO <= vat_rate <= Decimal("100"):
            raise ValidationError("vatRate는 0~100 사이여야 합니다", item=index, value=str(vat_rate))

        return cls(description, quantity, unit_price, vat_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": str(self.quantity),
            "unitPrice": str(self.unit_price),
            "vatRate": str(self.vat_rate),
            "amount": str(self.amount),
        }


def compute_totals(items: list[InvoiceItem]) -> tuple[Decimal, Decimal, Decimal]:
    """(공급가 합계, VAT, 총액)

    VAT는 품목별 합산 후 한 번만 반올림.
    """
    subtotal = sum((item.amount for item in items), ZERO)
    vat_amount = to_cents(sum((item.vat_amount for item in items), ZERO))
    return subtotal, vat_amount, subtotal + vat_amount


def invoice_prefix(company_name: str | None) -> str:
    """회사명의 영문자 앞 3자 (대문자), 없으면 INV"""
    letters = re.sub(r"[^A-Za-z]", "", company_name or "")
    return letters[:3].upper() or DEFAULT_PREFIX


@dataclass
class Invoice:
    """송장"""

    id: str
    company_id: str
    customer_id: str
    invoice_number: str
    invoice_date: str
    due_date: str
    status: InvoiceStatus
    subtotal: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    notes: str | None = None
    entry_id: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    customer_name: str | None = None
    items: list[InvoiceItem] = field(default_factory=list)

    @property
    def balance_due(self) -> Decimal:
        if not self.status.is_outstanding:
            return ZERO
        return self.total_amount - self.paid_amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "invoiceDate": self.invoice_date,
            "dueDate": self.due_date,
            "status": self.status.value,
            "subtotal": str(self.subtotal),
            "vatAmount": str(self.vat_amount),
            "totalAmount": str(self.total_amount),
            "paidAmount": str(self.paid_amount),
            "balanceDue": str(self.balance_due),
            "notes": self.notes,
            "entryId": self.entry_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "items": [item.to_dict() for item in self.items],
        }


def _row_to_invoice(row: tuple[Any, ...]) -> Invoice:
    return Invoice(
        id=row[0],
        company_id=row[1],
        customer_id=row[2],
        invoice_number=row[3],
        invoice_date=row[4],
        due_date=row[5],
        status=InvoiceStatus(row[6]),
        subtotal=Decimal(row[7]),
        vat_amount=Decimal(row[8]),
        total_amount=Decimal(row[9]),
        paid_amount=Decimal(row[10]),
        notes=row[11],
        entry_id=row[12],
        created_by=row[13],
        created_at=row[14],
        updated_at=row[15],
        deleted_at=row[16],
        customer_name=row[17] if len(row) > 17 else None,
    )


class InvoiceStore:
    """송장 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def next_invoice_number(self, company_id: str, company_name: str | None) -> str:
        """다음 송장 번호

        삭제된 송장 번호도 건너뛴다. 동시 발행에서 중복되지 않도록
        호출자는 BEGIN IMMEDIATE 트랜잭션 안에서 번호 생성과 INSERT를 함께 수행.
        """
        prefix = f"{invoice_prefix(company_name)}-"
        rows = await self.db.fetchall(
            """
            SELECT invoice_number FROM invoices
            WHERE company_id = ? AND substr(invoice_number, 1, ?) = ?
            """,
            (company_id, len(prefix), prefix),
        )

        last = 0
        for (number,) in rows:
            tail = number[len(prefix):]
            if tail.isdigit():
                last = max(last, int(tail))
        return f"{prefix}{last + 1:04d}"

    async def create_invoice(
        self,
        company_id: str,
        customer_id: str,
        created_by: str,
        invoice_number: str,
        invoice_date: str,
        due_date: str,
        items: list[InvoiceItem],
        notes: str | None = None,
        entry_id: str | None = None,
    ) -> Invoice:
        """송장 + 품목 저장 (status = draft)

        Raises:
            ValidationError: 품목 없음
        """
        if not items:
            raise ValidationError("송장에는 최소 1개의 품목이 필요합니다", field="items")

        subtotal, vat_amount, total = compute_totals(items)
        now = now_iso()
        invoice = Invoice(
            id=str(uuid4()),
            company_id=company_id,
            customer_id=customer_id,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            due_date=due_date,
            status=InvoiceStatus.DRAFT,
            subtotal=subtotal,
            vat_amount=vat_amount,
            total_amount=total,
            notes=notes or None,
            entry_id=entry_id,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

        async with self.db.transaction(immediate=True):
            await self.db.execute(
                f"""
                INSERT INTO invoices ({_INVOICE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice.id,
                    invoice.company_id,
                    invoice.customer_id,
                    invoice.invoice_number,
                    invoice.invoice_date,
                    invoice.due_date,
                    invoice.status.value,
                    str(invoice.subtotal),
                    str(invoice.vat_amount),
                    str(invoice.total_amount),
                    str(invoice.paid_amount),
                    invoice.notes,
                    invoice.entry_id,
                    invoice.created_by,
                    invoice.created_at,
                    invoice.updated_at,
                    None,
                ),
            )

            for i, item in enumerate(items):
                cursor = await self.db.execute(
                    """
                    INSERT INTO invoice_items (
                        invoice_id, description, quantity, unit_price, vat_rate, amount, line_order
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        invoice.id,
                        item.description,
                        str(item.quantity),
                        str(item.unit_price),
                        str(item.vat_rate),
                        str(item.amount),
                        i,
                    ),
                )
                invoice.items.append(
                    InvoiceItem(
                        item.description,
                        item.quantity,
                        item.unit_price,
                        item.vat_rate,
                        id=cursor.lastrowid,
                    )
                )

        logger.info(
            f"송장 생성: {invoice_number} ({total})",
            extra={"company_id": company_id, "invoice_id": invoice.id},
        )
        return invoice

    async def get_invoice(
        self,
        company_id: str,
        invoice_id: str,
        include_deleted: bool = False,
    ) -> Invoice | None:
        """송장 단건 (품목, 고객명 포함)"""
        deleted_filter = "" if include_deleted else "AND i.deleted_at IS NULL"
        row = await self.db.fetchone(
            f"""
            SELECT {_INVOICE_COLUMNS_PREFIXED}, c.name
            FROM invoices i
            LEFT JOIN customers c ON c.id = i.customer_id
            WHERE i.company_id = ? AND i.id = ? {deleted_filter}
            """,
            (company_id, invoice_id),
        )
        if row is None:
            return None

        invoice = _row_to_invoice(row)
        await self._attach_items([invoice])
        return invoice

    async def list_invoices(
        self,
        company_id: str,
        status: InvoiceStatus | None = None,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> list[Invoice]:
        """송장 목록 (최신순, 삭제 제외)"""
        conditions = ["i.company_id = ?", "i.deleted_at IS NULL"]
        params: list[Any] = [company_id]
        if status is not None:
            conditions.append("i.status = ?")
            params.append(InvoiceStatus(status).value)
        params.append(limit)

        rows = await self.db.fetchall(
            f"""
            SELECT {_INVOICE_COLUMNS_PREFIXED}, c.name
            FROM invoices i
            LEFT JOIN customers c ON c.id = i.customer_id
            WHERE {' AND '.join(conditions)}
            ORDER BY i.created_at DESC, i.rowid DESC
            LIMIT ?
            """,
            tuple(params),
        )
        invoices = [_row_to_invoice(row) for row in rows]
        await self._attach_items(invoices)
        return invoices

    async def get_summary(self, company_id: str) -> dict[str, Any]:
        """미수 요약

        - outstanding_total: 발송(sent/overdue)되었지만 미수금인 금액 합계
        - outstanding_count: draft/sent/overdue 송장 수
        """
        rows = await self.db.fetchall(
            """
            SELECT status, total_amount, paid_amount FROM invoices
            WHERE company_id = ? AND deleted_at IS NULL
            """,
            (company_id,),
        )

        outstanding_total = ZERO
        outstanding_count = 0
        for status, total, paid in rows:
            invoice_status = InvoiceStatus(status)
            if invoice_status.is_outstanding:
                outstanding_count += 1
            if invoice_status in (InvoiceStatus.SENT, InvoiceStatus.OVERDUE):
                outstanding_total += Decimal(total) - Decimal(paid)

        return {
            "total_invoices": len(rows),
            "outstanding_total": outstanding_total,
            "outstanding_count": outstanding_count,
        }

    async def update_invoice(
        self,
        company_id: str,
        invoice_id: str,
        status: InvoiceStatus | None = None,
        paid_amount: Decimal | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """지정한 필드만 변경 (상태 전이 규칙은 호출자가 검사)

        Raises:
            NotFoundError: 없거나 삭제된 송장
        """
        assignments = ["updated_at = ?"]
        params: list[Any] = [now_iso()]
        if status is not None:
            assignments.append("status = ?")
            params.append(InvoiceStatus(status).value)
        if paid_amount is not None:
            assignments.append("paid_amount = ?")
            params.append(str(paid_amount))
        if notes is not None:
            assignments.append("notes = ?")
            params.append(notes.strip() or None)
        params.extend([company_id, invoice_id])

        async with self.db.transaction(immediate=True):
            cursor = await self.db.execute(
                f"""
                UPDATE invoices SET {', '.join(assignments)}
                WHERE company_id = ? AND id = ? AND deleted_at IS NULL
                """,
                tuple(params),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("송장을 찾을 수 없습니다", invoice_id=invoice_id)

        invoice = await self.get_invoice(company_id, invoice_id)
        if invoice is None:
            raise NotFoundError("송장을 찾을 수 없습니다", invoice_id=invoice_id)
        return invoice

    async def mark_deleted(self, company_id: str, invoice_id: str) -> None:
        """삭제 표시

        Raises:
            NotFoundError: 없거나 이미 삭제된 송장
        """
        now = now_iso()
        async with self.db.transaction(immediate=True):
            cursor = await self.db.execute(
                """
                UPDATE invoices SET deleted_at = ?, updated_at = ?
                WHERE company_id = ? AND id = ? AND deleted_at IS NULL
                """,
                (now, now, company_id, invoice_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("송장을 찾을 수 없습니다", invoice_id=invoice_id)

        logger.info(f"송장 삭제: {invoice_id}", extra={"company_id": company_id})

    async def _attach_items(self, invoices: list[Invoice]) -> None:
        if not invoices:
            return

        by_id = {invoice.id: invoice for invoice in invoices}
        placeholders = ", ".join("?" for _ in by_id)
        rows = await self.db.fetchall(
            f"""
            SELECT id, invoice_id, description, quantity, unit_price, vat_rate
            FROM invoice_items
            WHERE invoice_id IN ({placeholders})
            ORDER BY invoice_id, line_order
            """,
            tuple(by_id),
        )

        for item_id, invoice_id, description, quantity, unit_price, vat_rate in rows:
            by_id[invoice_id].items.append(
                InvoiceItem(
                    description,
                    Decimal(quantity),
                    Decimal(unit_price),
                    Decimal(vat_rate),
                    id=item_id,
                )
            )
