"""
개인 재무 카테고리 카탈로그

수입 10종 / 지출 31종 카테고리와 예산 프리셋(비율 %) 정의
"""

from dataclasses import asdict, dataclass
from typing import Any

from core.ledger.types import TransactionKind


@dataclass(frozen=True)
class Category:
    """수입/지출 카테고리"""

    id: str
    name: str
    icon: str
    color: str
    group: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.group is None:
            data.pop("group")
        return data


INCOME_CATEGORIES: list[Category] = [
    Category("salary", "Salary", "💼", "green"),
    Category("freelance", "Freelance/Contract", "💻", "blue"),
    Category("business_income", "Business Income", "🏢", "purple"),
    Category("investments", "Investments", "📈", "indigo"),
    Category("rental", "Rental Income", "🏠", "yellow"),
    Category("dividends", "Dividends", "💰", "green"),
    Category("interest", "Interest", "🏦", "blue"),
    Category("gifts", "Gifts/Donations", "🎁", "pink"),
    Category("refunds", "Refunds/Reimbursements", "🔄", "gray"),
    Category("other_income", "Other Income", "📊", "gray"),
]

EXPENSE_CATEGORIES: list[Category] = [
    # Housing
    Category("rent", "Rent", "🏠", "red", "Housing"),
    Category("mortgage", "Mortgage", "🏡", "red", "Housing"),
    Category("utilities", "Utilities", "💡", "orange", "Housing"),
    Category("maintenance", "Home Maintenance", "🔧", "orange", "Housing"),
    # Transportation
    Category("fuel", "Fuel/Gas", "⛽", "purple", "Transportation"),
    Category("public_transport", "Public Transport", "🚌", "purple", "Transportation"),
    Category("car_maintenance", "Car Maintenance", "🚗", "purple", "Transportation"),
    Category("parking", "Parking/Tolls", "🅿️", "purple", "Transportation"),
    # Food
    Category("groceries", "Groceries", "🛒", "green", "Food"),
    Category("restaurants", "Restaurants/Dining", "🍽️", "green", "Food"),
    Category("coffee", "Coffee/Snacks", "☕", "green", "Food"),
    # Personal
    Category("healthcare", "Healthcare", "🏥", "blue", "Personal"),
    Category("pharmacy", "Pharmacy", "💊", "blue", "Personal"),
    Category("personal_care", "Personal Care", "💅", "pink", "Personal"),
    Category("clothing", "Clothing", "👔", "pink", "Personal"),
    # Lifestyle
    Category("entertainment", "Entertainment", "🎬", "indigo", "Lifestyle"),
    Category("subscriptions", "Subscriptions", "📱", "indigo", "Lifestyle"),
    Category("hobbies", "Hobbies", "🎨", "indigo", "Lifestyle"),
    Category("fitness", "Fitness/Gym", "💪", "indigo", "Lifestyle"),
    # Business Operations
    Category("salary_payment", "Salary Payment", "💰", "purple", "Business Operations"),
    Category("contractor_payment", "Contractor Payment", "🤝", "purple", "Business Operations"),
    Category("office_supplies", "Office Supplies", "📎", "purple", "Business Operations"),
    Category("business_services", "Business Services", "🔧", "purple", "Business Operations"),
    # Financial
    Category("insurance", "Insurance", "🛡️", "gray", "Financial"),
    Category("loans", "Loan Payments", "🏦", "gray", "Financial"),
    Category("savings", "Savings", "💰", "gray", "Financial"),
    Category("investments_expense", "Investment", "📊", "gray", "Financial"),
    # Others
    Category("education", "Education", "📚", "yellow", "Others"),
    Category("gifts_given", "Gifts Given", "🎁", "yellow", "Others"),
    Category("charity", "Charity/Donations", "❤️", "yellow", "Others"),
    Category("other_expense", "Other Expenses", "📌", "gray", "Others"),
]

# 예산 프리셋 (소득 대비 %)
BUDGET_PRESETS: dict[str, dict[str, int]] = {
    "conservative": {
        "housing": 30,
        "transportation": 15,
        "food": 12,
        "utilities": 5,
        "insurance": 5,
        "personal": 5,
        "entertainment": 5,
        "savings": 20,
        "other": 3,
    },
    "moderate": {
        "housing": 35,
        "transportation": 20,
        "food": 15,
        "utilities": 5,
        "insurance": 5,
        "personal": 7,
        "entertainment": 8,
        "savings": 10,
        "other": 5,
    },
    "aggressive": {
        "housing": 25,
        "transportation": 10,
        "food": 10,
        "utilities": 5,
        "insurance": 5,
        "personal": 5,
        "entertainment": 5,
        "savings": 30,
        "other": 5,
    },
}

_INCOME_BY_ID = {c.id: c for c in INCOME_CATEGORIES}
_EXPENSE_BY_ID = {c.id: c for c in EXPENSE_CATEGORIES}


def get_category(
    category_id: str,
    kind: TransactionKind = TransactionKind.EXPENSE,
) -> Category | None:
    """카테고리 ID로 조회 (없으면 None)"""
    if kind == TransactionKind.INCOME:
        return _INCOME_BY_ID.get(category_id)
    return _EXPENSE_BY_ID.get(category_id)


def get_categories_by_group(group: str) -> list[Category]:
    return [c for c in EXPENSE_CATEGORIES if c.group == group]


def get_all_groups() -> list[str]:
    """지출 카테고리 그룹 (정의 순서 유지)"""
    groups: list[str] = []
    for category in EXPENSE_CATEGORIES:
        if category.group and category.group not in groups:
            groups.append(category.group)
    return groups
