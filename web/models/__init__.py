"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    BudgetSaveRequest,
    BusinessTransactionRequest,
    CamelModel,
    CompanySetupRequest,
    CompanyUpdateRequest,
    CustomerCreateRequest,
    PersonalExpenseRequest,
    PersonalIncomeRequest,
    SendOtpRequest,
    SwitchContextRequest,
    UpdateProfileRequest,
    VerifyOtpRequest,
)
from web.models.responses import (
    BalanceListResponse,
    BudgetResponse,
    CategoriesResponse,
    CompanyResponse,
    ContextResponse,
    CustomerListResponse,
    CustomerResponse,
    EntryListResponse,
    EntryResponse,
    ErrorResponse,
    HealthResponse,
    InitializeResponse,
    LoginResponse,
    OtpSentResponse,
    SuccessResponse,
    SummaryResponse,
    TransactionListResponse,
    TransactionResponse,
    UserResponse,
)

__all__ = [
    # Requests
    "CamelModel",
    "SendOtpRequest",
    "VerifyOtpRequest",
    "UpdateProfileRequest",
    "SwitchContextRequest",
    "CompanySetupRequest",
    "CompanyUpdateRequest",
    "CustomerCreateRequest",
    "PersonalIncomeRequest",
    "PersonalExpenseRequest",
    "BudgetSaveRequest",
    "BusinessTransactionRequest",
    # Responses
    "HealthResponse",
    "ErrorResponse",
    "SuccessResponse",
    "OtpSentResponse",
    "LoginResponse",
    "UserResponse",
    "ContextResponse",
    "CompanyResponse",
    "CustomerResponse",
    "CustomerListResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "BudgetResponse",
    "SummaryResponse",
    "CategoriesResponse",
    "InitializeResponse",
    "EntryResponse",
    "EntryListResponse",
    "BalanceListResponse",
]
