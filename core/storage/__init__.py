"""
스토리지 모듈

사용자/세션, 회사(테넌트), 고객 저장소 제공
"""

from core.storage.company_store import Company, CompanyStore
from core.storage.customer_store import Customer, CustomerStore
from core.storage.user_store import User, UserStore

__all__ = [
    "Company",
    "CompanyStore",
    "Customer",
    "CustomerStore",
    "User",
    "UserStore",
]
