"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (운영 / 개발)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class ContextType(str, Enum):
    """회계 컨텍스트 종류"""

    PERSONAL = "personal"
    BUSINESS = "business"


class MemberRole(str, Enum):
    """회사 구성원 역할"""

    OWNER = "owner"
    STAFF = "staff"


class InvoiceStatus(str, Enum):
    """송장 상태

    draft/sent/overdue 사이는 자유롭게 이동.
    paid, cancelled는 종료 상태.
    """

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)

    @property
    def is_outstanding(self) -> bool:
        """수금 대기 중인 상태"""
        return self in (InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.OVERDUE)


@dataclass(frozen=True)
class LedgerContext:
    """회계 컨텍스트 (Personal | Business(company_id))

    예약 테넌트 ID 대신 태그로 분기한다.
    personal이면 company_id는 항상 None.

    사용 예시:
    ```python
    ctx = LedgerContext.personal()
    ctx = LedgerContext.business("8d1c...")
    ```
    """

    type: ContextType
    company_id: str | None = None

    def __post_init__(self) -> None:
        if self.type == ContextType.PERSONAL and self.company_id is not None:
            raise ValueError("personal 컨텍스트는 company_id를 가질 수 없습니다")
        if self.type == ContextType.BUSINESS and not self.company_id:
            raise ValueError("business 컨텍스트에는 company_id가 필요합니다")

    @classmethod
    def personal(cls) -> "LedgerContext":
        return cls(type=ContextType.PERSONAL)

    @classmethod
    def business(cls, company_id: str) -> "LedgerContext":
        return cls(type=ContextType.BUSINESS, company_id=company_id)

    @property
    def is_personal(self) -> bool:
        return self.type == ContextType.PERSONAL

    def to_dict(self) -> dict[str, str | None]:
        """쿠키/응답 직렬화용 (camelCase 유지)"""
        return {"type": self.type.value, "companyId": self.company_id}


@dataclass(frozen=True)
class LedgerScope:
    """원장 조회/기록 범위

    tenant_id만으로는 개인 데이터가 격리되지 않으므로
    personal 범위는 creator_id가 필수.
    """

    tenant_id: str
    context_type: ContextType
    creator_id: str | None = None

    def __post_init__(self) -> None:
        if self.context_type == ContextType.PERSONAL and not self.creator_id:
            raise ValueError("personal 범위에는 creator_id가 필요합니다")

    @property
    def is_personal(self) -> bool:
        return self.context_type == ContextType.PERSONAL
