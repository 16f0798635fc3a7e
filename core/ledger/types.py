"""
복식부기 타입 정의

계정 유형, 분개 상태, 기본 계정과목표 등 Ledger 시스템에서 사용하는 정의
"""

from dataclasses import dataclass
from enum import Enum


class AccountType(str, Enum):
    """계정 유형

    복식부기의 5대 계정 유형.
    str을 상속하여 JSON 직렬화 가능.
    """

    ASSET = "asset"  # 자산 (현금, 은행)
    LIABILITY = "liability"  # 부채 (신용카드, 대출)
    EQUITY = "equity"  # 자본 (순자산)
    REVENUE = "revenue"  # 수익 (급여, 매출)
    EXPENSE = "expense"  # 비용


class EntryStatus(str, Enum):
    """분개 상태

    posted → void 전이만 허용 (void는 종단 상태).
    """

    POSTED = "posted"
    VOID = "void"


class TransactionKind(str, Enum):
    """수입/지출 구분"""

    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    """개인 지출 결제 수단"""

    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


@dataclass(frozen=True)
class AccountTemplate:
    """계정 생성 템플릿 (code, name, type, category)"""

    code: str
    name: str
    account_type: AccountType
    category: str | None = None


class PersonalAccountCodes:
    """개인 계정 코드 규칙

    수입 계정: "P-4" + 카테고리 ID 앞 3글자 (대문자)
    지출 계정: "P-5" + 카테고리 ID 앞 3글자 (대문자)
    """

    CASH: str = "P-1001"
    BANK: str = "P-1002"

    INCOME_PREFIX: str = "P-4"
    EXPENSE_PREFIX: str = "P-5"

    @classmethod
    def income(cls, category_id: str) -> str:
        """예: salary → P-4SAL"""
        return f"{cls.INCOME_PREFIX}{category_id[:3].upper()}"

    @classmethod
    def expense(cls, category_id: str) -> str:
        """예: groceries → P-5GRO"""
        return f"{cls.EXPENSE_PREFIX}{category_id[:3].upper()}"

    @classmethod
    def payment(cls, method: PaymentMethod) -> str:
        """현금이면 P-1001, 카드/이체는 P-1002"""
        if method == PaymentMethod.CASH:
            return cls.CASH
        return cls.BANK


class BusinessAccountCodes:
    """사업 거래 기록에 사용하는 계정 코드"""

    CASH: str = "1110"
    ACCOUNTS_RECEIVABLE: str = "1130"
    VAT_PAYABLE: str = "2120"
    DEFERRED_REVENUE: str = "2400"  # 발행했지만 아직 수금 전인 송장
    SALES_REVENUE: str = "4100"
    OPERATING_EXPENSES: str = "6000"


# 개인 컨텍스트 진입 시 보장되는 계정 (PERSONAL_TENANT_ID 범위)
PERSONAL_ACCOUNT_TEMPLATES: list[AccountTemplate] = [
    # 자산
    AccountTemplate("P-1001", "Personal Cash", AccountType.ASSET, "cash"),
    AccountTemplate("P-1002", "Personal Bank Account", AccountType.ASSET, "bank"),
    AccountTemplate("P-1003", "Personal Savings", AccountType.ASSET, "bank"),
    AccountTemplate("P-1004", "Personal Investments", AccountType.ASSET, "investments"),
    # 부채
    AccountTemplate("P-2001", "Personal Credit Card", AccountType.LIABILITY, "credit_card"),
    AccountTemplate("P-2002", "Personal Loans", AccountType.LIABILITY, "loans"),
    # 수익
    AccountTemplate("P-4001", "Personal Salary Income", AccountType.REVENUE, "personal_income"),
    AccountTemplate("P-4002", "Personal Other Income", AccountType.REVENUE, "personal_income"),
    # 비용
    AccountTemplate("P-5001", "Personal Living Expenses", AccountType.EXPENSE, "personal_expense"),
    AccountTemplate("P-5002", "Personal Transportation", AccountType.EXPENSE, "personal_expense"),
    AccountTemplate("P-5003", "Personal Food & Dining", AccountType.EXPENSE, "personal_expense"),
    AccountTemplate("P-5004", "Personal Healthcare", AccountType.EXPENSE, "personal_expense"),
    AccountTemplate("P-5005", "Personal Entertainment", AccountType.EXPENSE, "personal_expense"),
    AccountTemplate("P-5006", "Personal Other Expenses", AccountType.EXPENSE, "personal_expense"),
    # 자본
    AccountTemplate("P-3001", "Personal Net Worth", AccountType.EQUITY, "equity"),
]


# 회사 생성 시 기본 계정과목표
DEFAULT_BUSINESS_ACCOUNTS: list[AccountTemplate] = [
    # 자산
    AccountTemplate("1110", "Cash", AccountType.ASSET, "cash"),
    AccountTemplate("1120", "Bank Accounts", AccountType.ASSET, "bank"),
    AccountTemplate("1130", "Accounts Receivable", AccountType.ASSET, "receivable"),
    AccountTemplate("1140", "Inventory", AccountType.ASSET),
    AccountTemplate("1150", "VAT Receivable", AccountType.ASSET, "vat_receivable"),
    AccountTemplate("1210", "Equipment", AccountType.ASSET),
    # 부채
    AccountTemplate("2110", "Accounts Payable", AccountType.LIABILITY),
    AccountTemplate("2120", "VAT Payable", AccountType.LIABILITY, "vat_payable"),
    AccountTemplate("2130", "Salaries Payable", AccountType.LIABILITY),
    AccountTemplate("2210", "Bank Loans", AccountType.LIABILITY),
    AccountTemplate("2400", "Deferred Revenue", AccountType.LIABILITY, "deferred_revenue"),
    # 자본
    AccountTemplate("3100", "Owner's Capital", AccountType.EQUITY),
    AccountTemplate("3300", "Retained Earnings", AccountType.EQUITY),
    # 수익
    AccountTemplate("4100", "Sales Revenue", AccountType.REVENUE, "sales"),
    AccountTemplate("4120", "Service Revenue", AccountType.REVENUE, "sales"),
    AccountTemplate("4200", "Other Income", AccountType.REVENUE),
    # 비용
    AccountTemplate("5000", "Cost of Goods Sold", AccountType.EXPENSE, "cogs"),
    AccountTemplate("6000", "Operating Expenses", AccountType.EXPENSE, "expense"),
    AccountTemplate("6110", "Salaries & Wages", AccountType.EXPENSE, "expense"),
    AccountTemplate("6120", "Rent Expense", AccountType.EXPENSE, "expense"),
    AccountTemplate("6130", "Utilities", AccountType.EXPENSE, "expense"),
    AccountTemplate("6150", "Office Supplies", AccountType.EXPENSE, "expense"),
    AccountTemplate("6180", "Bank Charges", AccountType.EXPENSE, "expense"),
    AccountTemplate("6400", "Other Expenses", AccountType.EXPENSE, "expense"),
]


def find_template(
    templates: list[AccountTemplate],
    code: str,
) -> AccountTemplate | None:
    """코드로 템플릿 조회"""
    for template in templates:
        if template.code == code:
            return template
    return None
