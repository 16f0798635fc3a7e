"""
송장 서비스

business 컨텍스트의 송장 발행/조회/상태 변경/삭제와 분개 연동.

- 발행: 차변 1130 매출채권 / 대변 2400 선수수익 / 대변 2120 부가세예수금 (reference = 송장번호)
- 수금(paid): PAY-{번호}, 매출채권 → 현금, 선수수익 → 4100 매출
- 취소(cancelled): 발행 분개 무효화
- 삭제: 수금된 송장은 DEL-{번호} 역분개, 미수금 송장은 발행 분개 무효화
"""

import logging
from datetime import datetime
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults, ReferencePrefix
from core.errors import InvalidStateTransition, NotFoundError, ValidationError
from core.ledger.entry_builder import (
    build_invoice_lines,
    build_invoice_payment_lines,
    build_invoice_reversal_lines,
)
from core.ledger.store import LedgerStore
from core.ledger.types import DEFAULT_BUSINESS_ACCOUNTS, BusinessAccountCodes, EntryStatus
from core.storage.company_store import CompanyStore
from core.storage.customer_store import CustomerStore
from core.storage.invoice_store import Invoice, InvoiceItem, InvoiceStore, compute_totals
from core.types import InvoiceStatus, LedgerScope
from core.utils.timezone import now_utc, parse_entry_date, to_wat

logger = logging.getLogger(__name__)


def _parse_date(value: Any, field_name: str) -> datetime:
    try:
        return parse_entry_date(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(
            f"{field_name} 날짜 형식이 올바르지 않습니다", field=field_name, value=str(value)
        ) from e


def _parse_status(value: str) -> InvoiceStatus:
    try:
        return InvoiceStatus(value)
    except ValueError as e:
        raise ValidationError(
            "status가 올바르지 않습니다",
            field="status",
            value=value,
            allowed=[s.value for s in InvoiceStatus],
        ) from e


class InvoiceService:
    """송장 서비스

    상태 확인과 분개 기록은 한 BEGIN IMMEDIATE 트랜잭션 안에서 수행하므로
    같은 송장의 수금/삭제가 동시에 들어와도 분개는 한 번만 기록된다.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.ledger = LedgerStore(db)
        self.invoices = InvoiceStore(db)
        self.customers = CustomerStore(db)
        self.companies = CompanyStore(db)

    async def create_invoice(
        self,
        scope: LedgerScope,
        user_id: str,
        customer_name: str,
        due_date: Any,
        items: list[dict[str, Any]],
        invoice_date: Any = None,
        notes: str | None = None,
    ) -> Invoice:
        """송장 발행 (status = draft)

        고객은 이름으로 조회 또는 생성, 금액은 품목에서 계산 (VAT 기본 7.5%).

        Raises:
            ValidationError: personal 컨텍스트, 필수값 누락, 품목/날짜 오류
            NotFoundError: 회사 없음
        """
        company_id = self._require_business(scope)

        customer_name = (customer_name or "").strip()
        if not customer_name:
            raise ValidationError("customerName은 필수입니다", field="customerName")
        if not items:
            raise ValidationError("송장에는 최소 1개의 품목이 필요합니다", field="items")
        parsed_items = [InvoiceItem.from_request(item, i) for i, item in enumerate(items)]

        issued = now_utc() if invoice_date is None else _parse_date(invoice_date, "invoiceDate")
        due = _parse_date(due_date, "dueDate")
        issued_day = to_wat(issued).date()
        due_day = to_wat(due).date()
        if due_day < issued_day:
            raise ValidationError("dueDate는 invoiceDate 이후여야 합니다", field="dueDate")

        company = await self.companies.get_company(company_id)
        if company is None:
            raise NotFoundError("회사를 찾을 수 없습니다", company_id=company_id)

        subtotal, vat_amount, _ = compute_totals(parsed_items)

        async with self.db.transaction(immediate=True):
            customer = await self.customers.find_or_create_by_name(company_id, customer_name)
            number = await self.invoices.next_invoice_number(company_id, company.name)

            receivable = await self._ensure_account(company_id, BusinessAccountCodes.ACCOUNTS_RECEIVABLE)
            deferred = await self._ensure_account(company_id, BusinessAccountCodes.DEFERRED_REVENUE)
            vat_payable = await self._ensure_account(company_id, BusinessAccountCodes.VAT_PAYABLE)
            entry = await self.ledger.post_entry(
                tenant_id=company_id,
                creator_id=user_id,
                entry_date=issued,
                reference=number,
                narration=f"Invoice {number} to {customer.name}",
                lines=build_invoice_lines(
                    receivable.id, deferred.id, vat_payable.id,
                    subtotal, vat_amount, number, customer.name,
                ),
            )

            invoice = await self.invoices.create_invoice(
                company_id,
                customer.id,
                user_id,
                number,
                issued_day.isoformat(),
                due_day.isoformat(),
                parsed_items,
                notes=notes,
                entry_id=entry.id,
            )
            invoice.customer_name = customer.name

        logger.info(
            f"송장 발행: {number} {invoice.total_amount} → {customer.name}",
            extra={"company_id": company_id},
        )
        return invoice

    async def get_invoice(self, scope: LedgerScope, invoice_id: str) -> Invoice:
        """송장 상세

        Raises:
            NotFoundError: 없거나 삭제된 송장
        """
        company_id = self._require_business(scope)
        invoice = await self.invoices.get_invoice(company_id, invoice_id)
        if invoice is None:
            raise NotFoundError("송장을 찾을 수 없습니다", invoice_id=invoice_id)
        return invoice

    async def list_invoices(
        self,
        scope: LedgerScope,
        status: str | None = None,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> dict[str, Any]:
        """송장 목록 + 미수 요약"""
        company_id = self._require_business(scope)
        invoice_status = _parse_status(status) if status is not None else None

        invoices = await self.invoices.list_invoices(company_id, invoice_status, limit)
        summary = await self.invoices.get_summary(company_id)

        return {
            "invoices": [invoice.to_dict() for invoice in invoices],
            "summary": {
                "totalInvoices": summary["total_invoices"],
                "outstandingTotal": str(summary["outstanding_total"]),
                "outstandingInvoicesCount": summary["outstanding_count"],
            },
        }

    async def update_invoice(
        self,
        scope: LedgerScope,
        user_id: str,
        invoice_id: str,
        status: str | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """상태/메모 변경

        paid, cancelled는 종료 상태라서 다른 상태로 바꿀 수 없음.

        Raises:
            ValidationError: 변경할 필드 없음, 잘못된 status
            NotFoundError: 없거나 삭제된 송장
            InvalidStateTransition: 종료 상태 송장의 상태 변경
        """
        if status is None and notes is None:
            raise ValidationError("status 또는 notes가 필요합니다")
        new_status = _parse_status(status) if status is not None else None

        async with self.db.transaction(immediate=True):
            invoice = await self.get_invoice(scope, invoice_id)
            company_id = invoice.company_id

            if new_status is None or new_status == invoice.status:
                return await self.invoices.update_invoice(company_id, invoice_id, notes=notes)

            if invoice.status.is_terminal:
                raise InvalidStateTransition(
                    f"{invoice.status.value} 상태의 송장은 변경할 수 없습니다",
                    invoice_id=invoice_id,
                    status=invoice.status.value,
                    requested=new_status.value,
                )

            paid_amount = None
            if new_status == InvoiceStatus.PAID:
                await self._post_payment(invoice, user_id)
                paid_amount = invoice.total_amount
            elif new_status == InvoiceStatus.CANCELLED:
                await self._void_issue_entry(invoice)

            updated = await self.invoices.update_invoice(
                company_id, invoice_id,
                status=new_status,
                paid_amount=paid_amount,
                notes=notes,
            )

        logger.info(
            f"송장 상태 변경: {invoice.invoice_number} {invoice.status.value} → {new_status.value}",
            extra={"company_id": company_id},
        )
        return updated

    async def delete_invoice(self, scope: LedgerScope, user_id: str, invoice_id: str) -> Invoice:
        """송장 삭제 (삭제 표시 + 분개 정리)

        Raises:
            NotFoundError: 없거나 이미 삭제된 송장
        """
        async with self.db.transaction(immediate=True):
            invoice = await self.get_invoice(scope, invoice_id)

            if invoice.status == InvoiceStatus.PAID:
                await self._post_reversal(invoice, user_id)
            elif invoice.status != InvoiceStatus.CANCELLED:
                await self._void_issue_entry(invoice)

            await self.invoices.mark_deleted(invoice.company_id, invoice_id)

        logger.info(
            f"송장 삭제: {invoice.invoice_number} ({invoice.status.value})",
            extra={"company_id": invoice.company_id},
        )
        return invoice

    # =========================================================================
    # 내부
    # =========================================================================

    @staticmethod
    def _require_business(scope: LedgerScope) -> str:
        if scope.is_personal:
            raise ValidationError("송장은 business 컨텍스트에서만 관리할 수 있습니다")
        return scope.tenant_id

    async def _ensure_account(self, company_id: str, code: str):
        return await self.ledger.ensure_template_account(company_id, DEFAULT_BUSINESS_ACCOUNTS, code)

    async def _post_payment(self, invoice: Invoice, user_id: str) -> None:
        company_id = invoice.company_id
        cash = await self._ensure_account(company_id, BusinessAccountCodes.CASH)
        receivable = await self._ensure_account(company_id, BusinessAccountCodes.ACCOUNTS_RECEIVABLE)
        deferred = await self._ensure_account(company_id, BusinessAccountCodes.DEFERRED_REVENUE)
        revenue = await self._ensure_account(company_id, BusinessAccountCodes.SALES_REVENUE)

        await self.ledger.post_entry(
            tenant_id=company_id,
            creator_id=user_id,
            entry_date=now_utc(),
            reference=f"{ReferencePrefix.INVOICE_PAYMENT}{invoice.invoice_number}",
            narration=f"Payment received for {invoice.invoice_number}",
            lines=build_invoice_payment_lines(
                cash.id, receivable.id, deferred.id, revenue.id,
                invoice.subtotal, invoice.total_amount, invoice.invoice_number,
            ),
        )

    async def _post_reversal(self, invoice: Invoice, user_id: str) -> None:
        company_id = invoice.company_id
        cash = await self._ensure_account(company_id, BusinessAccountCodes.CASH)
        revenue = await self._ensure_account(company_id, BusinessAccountCodes.SALES_REVENUE)
        vat_payable = await self._ensure_account(company_id, BusinessAccountCodes.VAT_PAYABLE)

        await self.ledger.post_entry(
            tenant_id=company_id,
            creator_id=user_id,
            entry_date=now_utc(),
            reference=f"{ReferencePrefix.INVOICE_REVERSAL}{invoice.invoice_number}",
            narration=f"Reversal of deleted invoice {invoice.invoice_number}",
            lines=build_invoice_reversal_lines(
                cash.id, revenue.id, vat_payable.id,
                invoice.subtotal, invoice.vat_amount, invoice.invoice_number,
            ),
        )

    async def _void_issue_entry(self, invoice: Invoice) -> None:
        if not invoice.entry_id:
            return
        entry = await self.ledger.get_entry(invoice.entry_id, tenant_id=invoice.company_id)
        if entry is not None and entry.status == EntryStatus.POSTED:
            await self.ledger.void_entry(invoice.entry_id, tenant_id=invoice.company_id)
