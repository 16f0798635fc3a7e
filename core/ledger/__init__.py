"""
복식부기 (Double-Entry Bookkeeping) 시스템

테넌트 범위의 계정과목, 균형 분개, 예산 스냅샷 관리.

사용 예시:
```python
from core.ledger import LedgerStore, JournalLine

ledger_store = LedgerStore(db)

cash = await ledger_store.get_or_create_account(
    tenant_id, "P-1001", "Personal Cash", AccountType.ASSET, "cash"
)
salary = await ledger_store.get_or_create_account(
    tenant_id, "P-4SAL", "Personal Salary", AccountType.REVENUE, "personal_income"
)

entry = await ledger_store.post_entry(
    tenant_id, user_id, "2026-03-01", "PI-1772323200000", "💼 Salary: March",
    [
        JournalLine.debit_line(cash.id, Decimal("5000")),
        JournalLine.credit_line(salary.id, Decimal("5000")),
    ],
)

# 시산표 조회
balances = await ledger_store.get_account_balances(tenant_id, creator_id=user_id)
```
"""

from core.ledger.budget import (
    BudgetAllocation,
    BudgetPeriod,
    BudgetSnapshot,
    BudgetStore,
    BudgetType,
    decode,
    encode,
)
from core.ledger.entry_builder import Account, JournalEntry, JournalLine, validate_lines
from core.ledger.store import LedgerStore
from core.ledger.types import (
    DEFAULT_BUSINESS_ACCOUNTS,
    PERSONAL_ACCOUNT_TEMPLATES,
    AccountTemplate,
    AccountType,
    BusinessAccountCodes,
    EntryStatus,
    PaymentMethod,
    PersonalAccountCodes,
    TransactionKind,
)

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "BudgetStore",
    "Account",
    "JournalEntry",
    "JournalLine",
    "BudgetSnapshot",
    "BudgetAllocation",
    "AccountTemplate",
    # 함수
    "validate_lines",
    "encode",
    "decode",
    # Enum
    "AccountType",
    "EntryStatus",
    "TransactionKind",
    "PaymentMethod",
    "BudgetType",
    "BudgetPeriod",
    # 상수
    "PERSONAL_ACCOUNT_TEMPLATES",
    "DEFAULT_BUSINESS_ACCOUNTS",
    "PersonalAccountCodes",
    "BusinessAccountCodes",
]
