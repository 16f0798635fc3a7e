"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
모든 응답은 success 필드를 가지며 JSON 키는 camelCase.
도메인 객체는 각 to_dict() 결과(이미 camelCase)를 그대로 담는다.
"""

from typing import Any

from pydantic import Field

from web.models.requests import CamelModel


class HealthResponse(CamelModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str = Field(..., description="API 버전")


class ErrorBody(CamelModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(CamelModel):
    """오류 응답 (모든 LedgerError 공통)"""

    success: bool = False
    error: ErrorBody


class SuccessResponse(CamelModel):
    """단순 성공 응답"""

    success: bool = True
    message: str


# =========================================================================
# 인증 / 사용자
# =========================================================================

class OtpSentResponse(CamelModel):
    success: bool = True
    message: str
    pin_id: str = Field(..., description="verify-otp에 전달할 pin ID")
    phone_number: str = Field(..., description="국제 형식 전화번호 (234...)")


class LoginResponse(CamelModel):
    """OTP 검증 성공 응답

    token은 쿠키와 함께 Bearer 용도로도 반환.
    """

    success: bool = True
    user: dict[str, Any]
    token: str
    is_new_user: bool


class UserResponse(CamelModel):
    success: bool = True
    user: dict[str, Any]
    company: dict[str, Any] | None = None


# =========================================================================
# 컨텍스트 / 회사 / 고객
# =========================================================================

class ContextResponse(CamelModel):
    """현재 컨텍스트 + 전환 가능한 컨텍스트 목록"""

    success: bool = True
    context: dict[str, Any]
    available: dict[str, Any] | None = None


class CompanyResponse(CamelModel):
    success: bool = True
    company: dict[str, Any] | None = None
    companies: list[dict[str, Any]] = Field(default_factory=list)


class CustomerResponse(CamelModel):
    success: bool = True
    customer: dict[str, Any]


class CustomerListResponse(CamelModel):
    success: bool = True
    customers: list[dict[str, Any]]
    total: int


# =========================================================================
# 거래 / 예산 / 요약
# =========================================================================

class TransactionResponse(CamelModel):
    """거래 기록 응답"""

    success: bool = True
    message: str
    transaction: dict[str, Any]


class TransactionListResponse(CamelModel):
    success: bool = True
    transactions: list[dict[str, Any]]
    total: int


class BudgetResponse(CamelModel):
    """예산 응답 (없거나 파싱 불가면 budget=None)"""

    success: bool = True
    budget: dict[str, Any] | None = None
    message: str | None = None


class SummaryResponse(CamelModel):
    success: bool = True
    summary: dict[str, Any]


class CategoriesResponse(CamelModel):
    """카테고리 카탈로그 응답"""

    success: bool = True
    income: list[dict[str, Any]]
    expense: list[dict[str, Any]]
    groups: list[str]
    presets: dict[str, dict[str, int]]


class InitializeResponse(CamelModel):
    success: bool = True
    message: str
    accounts_created: int


# =========================================================================
# 원장 조회
# =========================================================================

class EntryResponse(CamelModel):
    success: bool = True
    entry: dict[str, Any]


class EntryListResponse(CamelModel):
    success: bool = True
    entries: list[dict[str, Any]]
    total: int


class BalanceListResponse(CamelModel):
    """시산표 응답 (금액은 문자열)"""

    success: bool = True
    balances: list[dict[str, Any]]
    total_debit: str
    total_credit: str


# =========================================================================
# 송장 / 매출 분석
# =========================================================================

class InvoiceResponse(CamelModel):
    success: bool = True
    message: str | None = None
    invoice: dict[str, Any]


class InvoiceListResponse(CamelModel):
    """송장 목록 응답 (summary: totalInvoices, outstandingTotal, outstandingInvoicesCount)"""

    success: bool = True
    invoices: list[dict[str, Any]]
    total: int
    summary: dict[str, Any]


class RevenueReportResponse(CamelModel):
    success: bool = True
    report: dict[str, Any]
