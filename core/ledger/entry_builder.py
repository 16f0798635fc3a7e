"""
분개 생성기

요청 값을 복식부기 분개 항목으로 변환하고 균형을 검증
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from core.errors import UnbalancedEntryError, ValidationError
from core.ledger.categories import Category
from core.ledger.types import AccountType, EntryStatus, PaymentMethod


ZERO = Decimal("0")


def parse_amount(value: Any, field_name: str = "amount") -> Decimal:
    """금액을 Decimal로 변환 (float는 문자열 경유)

    Raises:
        ValidationError: 숫자가 아니거나 유한하지 않은 경우
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name}이(가) 올바른 금액이 아닙니다", field=field_name)

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            f"{field_name}이(가) 올바른 금액이 아닙니다", field=field_name, value=str(value)
        ) from e

    if not amount.is_finite():
        raise ValidationError(
            f"{field_name}이(가) 올바른 금액이 아닙니다", field=field_name, value=str(value)
        )
    return amount


def parse_positive_amount(value: Any, field_name: str = "amount") -> Decimal:
    """0보다 큰 금액만 허용"""
    amount = parse_amount(value, field_name)
    if amount <= ZERO:
        raise ValidationError(f"{field_name}은(는) 0보다 커야 합니다", field=field_name)
    return amount


@dataclass
class Account:
    """계정과목 (테넌트 소속)"""

    id: str
    tenant_id: str
    code: str
    name: str
    account_type: AccountType
    category: str | None = None
    is_active: bool = True
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "code": self.code,
            "name": self.name,
            "type": self.account_type.value,
            "category": self.category,
            "isActive": self.is_active,
        }


@dataclass
class JournalLine:
    """분개 항목

    한 항목은 차변 또는 대변 중 정확히 한쪽만 0보다 크다.
    예: 현금 5000 입금
        - 현금 line: debit=5000, credit=0
        - 수익 line: debit=0, credit=5000
    """

    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    # 저장 후 채워지는 값
    id: int | None = None
    entry_id: str | None = None

    @classmethod
    def debit_line(
        cls,
        account_id: str,
        amount: Decimal,
        description: str | None = None,
    ) -> JournalLine:
        return cls(account_id=account_id, debit=amount, description=description)

    @classmethod
    def credit_line(
        cls,
        account_id: str,
        amount: Decimal,
        description: str | None = None,
    ) -> JournalLine:
        return cls(account_id=account_id, credit=amount, description=description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "description": self.description,
        }


@dataclass
class JournalEntry:
    """분개

    하나의 거래에 대한 복식부기 기록.
    차변 합계 = 대변 합계 (균형)
    """

    id: str
    tenant_id: str
    entry_date: datetime
    reference: str | None
    narration: str | None
    created_by: str
    status: EntryStatus = EntryStatus.POSTED
    created_at: str | None = None
    lines: list[JournalLine] = field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    def is_balanced(self) -> bool:
        """Decimal 정확 비교 (허용 오차 없음)"""
        return self.total_debit == self.total_credit

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "entryDate": self.entry_date.isoformat(),
            "reference": self.reference,
            "narration": self.narration,
            "createdBy": self.created_by,
            "status": self.status.value,
            "createdAt": self.created_at,
            "lines": [line.to_dict() for line in self.lines],
        }


def validate_lines(lines: list[JournalLine]) -> None:
    """분개 항목 검증

    - 최소 2개 항목
    - 항목마다 차변/대변 중 정확히 한쪽만 양수
    - 차변 합계 == 대변 합계 (Decimal 정확 비교)

    Raises:
        ValidationError: 항목 구성 오류
        UnbalancedEntryError: 차변 합계 != 대변 합계
    """
    if len(lines) < 2:
        raise ValidationError("분개에는 최소 2개의 항목이 필요합니다", line_count=len(lines))

    for i, line in enumerate(lines):
        if not line.account_id:
            raise ValidationError("항목의 account_id가 비어 있습니다", line=i)
        if not isinstance(line.debit, Decimal) or not isinstance(line.credit, Decimal):
            raise ValidationError("항목 금액은 Decimal이어야 합니다", line=i)
        if line.debit < ZERO or line.credit < ZERO:
            raise ValidationError("항목 금액은 음수일 수 없습니다", line=i)
        if (line.debit > ZERO) == (line.credit > ZERO):
            raise ValidationError(
                "항목은 차변 또는 대변 중 한쪽만 가져야 합니다",
                line=i,
                debit=str(line.debit),
                credit=str(line.credit),
            )

    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    if total_debit != total_credit:
        raise UnbalancedEntryError(
            "차변 합계와 대변 합계가 일치하지 않습니다",
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )


# =============================================================================
# 개인 재무 분개
# =============================================================================


def personal_income_narration(
    category: Category,
    description: str,
    recurring: bool = False,
    frequency: str | None = None,
) -> str:
    """예: "💼 Salary: March pay (monthly)" """
    narration = f"{category.icon} {category.name}: {description}"
    if recurring and frequency:
        narration += f" ({frequency})"
    return narration


def personal_expense_narration(
    category: Category,
    description: str,
    vendor: str | None = None,
) -> str:
    """예: "🛒 Groceries: weekly shop at Shoprite" """
    narration = f"{category.icon} {category.name}: {description}"
    if vendor:
        narration += f" at {vendor}"
    return narration


def build_personal_income_lines(
    cash_account_id: str,
    income_account_id: str,
    amount: Decimal,
    category: Category,
) -> list[JournalLine]:
    """차변 현금 / 대변 수입 카테고리"""
    return [
        JournalLine.debit_line(cash_account_id, amount, "Personal income received"),
        JournalLine.credit_line(income_account_id, amount, category.name),
    ]


def build_personal_expense_lines(
    expense_account_id: str,
    payment_account_id: str,
    amount: Decimal,
    category: Category,
    payment_method: PaymentMethod,
) -> list[JournalLine]:
    """차변 지출 카테고리 / 대변 현금 또는 은행"""
    return [
        JournalLine.debit_line(expense_account_id, amount, category.name),
        JournalLine.credit_line(
            payment_account_id, amount, f"Payment via {payment_method.value}"
        ),
    ]


# =============================================================================
# 사업 거래 분개
# =============================================================================


def business_narration(
    verb: str,
    counterparty: str,
    description: str,
    category: str | None = None,
) -> str:
    """예: "Sale to Ada Stores: 3 bags of rice [food]" """
    narration = f"{verb} to {counterparty}: {description}"
    if category:
        narration += f" [{category}]"
    return narration


def build_sale_lines(
    cash_account_id: str,
    revenue_account_id: str,
    amount: Decimal,
    customer: str,
    description: str,
) -> list[JournalLine]:
    """매출: 차변 현금 / 대변 매출"""
    return [
        JournalLine.debit_line(cash_account_id, amount, f"Cash received from {customer}"),
        JournalLine.credit_line(revenue_account_id, amount, f"Sales revenue: {description}"),
    ]


def build_business_expense_lines(
    expense_account_id: str,
    cash_account_id: str,
    amount: Decimal,
    vendor: str,
    description: str,
) -> list[JournalLine]:
    """비용: 차변 영업비용 / 대변 현금"""
    return [
        JournalLine.debit_line(expense_account_id, amount, f"Expense: {description}"),
        JournalLine.credit_line(cash_account_id, amount, f"Cash paid to {vendor}"),
    ]


# =============================================================================
# 송장 분개
# =============================================================================


def build_invoice_lines(
    receivable_account_id: str,
    deferred_account_id: str,
    vat_account_id: str,
    subtotal: Decimal,
    vat_amount: Decimal,
    invoice_number: str,
    customer: str,
) -> list[JournalLine]:
    """송장 발행: 차변 매출채권(합계) / 대변 선수수익(공급가) / 대변 부가세예수금(VAT)

    VAT가 0이면 부가세 항목은 생략.
    """
    lines = [
        JournalLine.debit_line(
            receivable_account_id, subtotal + vat_amount, f"Invoice {invoice_number} to {customer}"
        ),
        JournalLine.credit_line(deferred_account_id, subtotal, f"Deferred revenue: {invoice_number}"),
    ]
    if vat_amount > ZERO:
        lines.append(JournalLine.credit_line(vat_account_id, vat_amount, f"VAT on {invoice_number}"))
    return lines


def build_invoice_payment_lines(
    cash_account_id: str,
    receivable_account_id: str,
    deferred_account_id: str,
    revenue_account_id: str,
    subtotal: Decimal,
    total: Decimal,
    invoice_number: str,
) -> list[JournalLine]:
    """송장 수금: 매출채권 → 현금, 선수수익 → 매출 인식"""
    return [
        JournalLine.debit_line(cash_account_id, total, f"Payment received: {invoice_number}"),
        JournalLine.credit_line(receivable_account_id, total, f"Invoice {invoice_number} settled"),
        JournalLine.debit_line(deferred_account_id, subtotal, f"Deferred revenue: {invoice_number}"),
        JournalLine.credit_line(revenue_account_id, subtotal, f"Sales revenue: {invoice_number}"),
    ]


def build_invoice_reversal_lines(
    cash_account_id: str,
    revenue_account_id: str,
    vat_account_id: str,
    subtotal: Decimal,
    vat_amount: Decimal,
    invoice_number: str,
) -> list[JournalLine]:
    """수금된 송장 삭제: 매출과 부가세를 되돌리고 현금 감소"""
    lines = [
        JournalLine.debit_line(revenue_account_id, subtotal, f"Reverse sales: {invoice_number}"),
        JournalLine.credit_line(cash_account_id, subtotal + vat_amount, f"Refund: {invoice_number}"),
    ]
    if vat_amount > ZERO:
        lines.append(JournalLine.debit_line(vat_account_id, vat_amount, f"Reverse VAT: {invoice_number}"))
    return lines
