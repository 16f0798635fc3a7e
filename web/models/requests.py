"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
JSON 필드는 camelCase (예: phoneNumber, companyId), 내부 속성은 snake_case.
금액 범위(양수 등)는 서비스 계층에서 Decimal로 검증.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase JSON ↔ snake_case 속성"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =========================================================================
# 인증
# =========================================================================

class SendOtpRequest(CamelModel):
    """OTP 발송 요청"""

    phone_number: str = Field(..., description="나이지리아 전화번호 (080..., 234..., +234...)")


class VerifyOtpRequest(CamelModel):
    """OTP 검증 요청"""

    phone_number: str = Field(..., description="OTP를 받은 전화번호")
    pin_id: str = Field(..., description="send-otp 응답의 pinId")
    otp: str = Field(..., description="인증 코드")


class UpdateProfileRequest(CamelModel):
    """프로필 수정 요청"""

    name: str | None = Field(default=None, description="이름")
    email: str | None = Field(default=None, description="이메일")


# =========================================================================
# 컨텍스트 / 회사 / 고객
# =========================================================================

class SwitchContextRequest(CamelModel):
    """컨텍스트 전환 요청"""

    type: str = Field(..., description="personal 또는 business")
    company_id: str | None = Field(default=None, description="business일 때 회사 ID")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"type": "personal"},
                {"type": "business", "companyId": "8d1c0b6e-3f43-4a5e-9d2b-0c1f5e7a9b21"},
            ]
        },
    )


class CompanySetupRequest(CamelModel):
    """회사 생성 요청"""

    name: str = Field(..., description="회사명")
    business_type: str | None = Field(default=None, description="사업 형태")
    industry: str | None = Field(default=None, description="업종")
    address: str | None = Field(default=None, description="주소")
    phone: str | None = Field(default=None, description="연락처")
    email: str | None = Field(default=None, description="이메일")
    tin: str | None = Field(default=None, description="납세자 번호")
    currency: str = Field(default="NGN", description="통화 코드")


class CompanyUpdateRequest(CamelModel):
    """회사 정보 수정 요청 (지정한 필드만 변경)"""

    name: str | None = None
    business_type: str | None = None
    industry: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    tin: str | None = None
    currency: str | None = None


class CustomerCreateRequest(CamelModel):
    """고객 생성 요청"""

    name: str = Field(..., description="고객명")
    phone: str | None = None
    email: str | None = None
    company: str | None = Field(default=None, description="고객의 소속 회사명")
    address: str | None = None


# =========================================================================
# 개인 재무
# =========================================================================

class PersonalIncomeRequest(CamelModel):
    """개인 수입 기록 요청"""

    amount: Decimal = Field(..., description="금액 (양수)")
    description: str = Field(..., min_length=1, description="설명")
    date: str = Field(..., description="거래일 (ISO 8601)")
    category: str = Field(..., description="수입 카테고리 ID (예: salary)")
    recurring: bool = Field(default=False, description="정기 수입 여부")
    frequency: str | None = Field(default=None, description="정기 주기 (monthly 등)")


class PersonalExpenseRequest(CamelModel):
    """개인 지출 기록 요청"""

    amount: Decimal = Field(..., description="금액 (양수)")
    description: str = Field(..., min_length=1, description="설명")
    date: str = Field(..., description="거래일 (ISO 8601)")
    category: str = Field(..., description="지출 카테고리 ID (예: groceries)")
    vendor: str | None = Field(default=None, description="지출처")
    payment_method: str = Field(default="cash", description="cash / card / bank_transfer")
    recurring: bool = False
    frequency: str | None = None


class BudgetSaveRequest(CamelModel):
    """예산 저장 요청

    budgets 항목은 {categoryId, amount, percentage} 형태.
    세부 검증은 BudgetSnapshot.from_request에서 수행.
    """

    total_income: Decimal = Field(..., description="월 총수입")
    budget_type: str = Field(..., description="conservative / moderate / aggressive / custom")
    period: str = Field(default="monthly", description="예산 주기")
    budgets: list[dict[str, Any]] = Field(..., description="카테고리별 배분")

    def to_payload(self) -> dict[str, Any]:
        """BudgetSnapshot.from_request 입력 형식"""
        return {
            "totalIncome": self.total_income,
            "budgetType": self.budget_type,
            "period": self.period,
            "budgets": self.budgets,
        }


# =========================================================================
# 사업 거래
# =========================================================================

class BusinessTransactionRequest(CamelModel):
    """사업 거래 기록 요청

    type=income이면 customer 필수, type=expense이면 vendor 필수.
    """

    amount: Decimal = Field(..., description="금액 (양수)")
    description: str = Field(..., min_length=1, description="설명")
    date: str = Field(..., description="거래일 (ISO 8601)")
    type: str = Field(default="income", description="income / expense")
    category: str | None = Field(default=None, description="분류 태그")
    customer: str | None = Field(default=None, description="매출 고객명")
    vendor: str | None = Field(default=None, description="비용 지급처")


# =========================================================================
# 송장
# =========================================================================

class InvoiceItemRequest(CamelModel):
    """송장 품목"""

    description: str = Field(..., min_length=1, description="품목 설명")
    quantity: Decimal = Field(default=Decimal("1"), description="수량 (양수)")
    unit_price: Decimal = Field(..., description="단가 (양수)")
    vat_rate: Decimal | None = Field(default=None, description="VAT율 (%), 기본 7.5")


class InvoiceCreateRequest(CamelModel):
    """송장 발행 요청

    금액(공급가/VAT/총액)은 품목에서 서버가 계산.
    """

    customer_name: str = Field(..., min_length=1, description="고객명 (없으면 생성)")
    invoice_date: str | None = Field(default=None, description="발행일 (기본: 오늘)")
    due_date: str = Field(..., description="지급 기한")
    items: list[InvoiceItemRequest] = Field(..., min_length=1, description="품목")
    notes: str | None = None

    def item_payloads(self) -> list[dict[str, Any]]:
        """InvoiceItem.from_request 입력 형식 (camelCase)"""
        return [item.model_dump(by_alias=True) for item in self.items]


class InvoiceUpdateRequest(CamelModel):
    """송장 상태/메모 변경 요청"""

    status: str | None = Field(default=None, description="draft / sent / paid / overdue / cancelled")
    notes: str | None = None
