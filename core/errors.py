"""
에러 타입

원장/컨텍스트 처리 중 발생하는 예외 계층.
각 예외는 기계적으로 구분 가능한 code와 HTTP 상태를 가짐.

| 예외                    | code                      | HTTP |
|-------------------------|---------------------------|------|
| ValidationError         | VALIDATION_ERROR          | 400  |
| UnbalancedEntryError    | UNBALANCED_ENTRY          | 400  |
| AuthenticationError     | AUTHENTICATION_REQUIRED   | 401  |
| AccessDeniedError       | ACCESS_DENIED             | 403  |
| NotFoundError           | NOT_FOUND                 | 404  |
| StateError              | INVALID_STATE             | 409  |
| InvalidStateTransition  | INVALID_STATE_TRANSITION  | 409  |
| StorageError            | STORAGE_ERROR             | 500  |
| OtpDeliveryError        | OTP_DELIVERY_FAILED       | 502  |
"""

from typing import Any


class LedgerError(Exception):
    """LedgerLite 공통 예외"""

    code: str = "INTERNAL_ERROR"
    http_status: int = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """입력 검증 실패 (필수 필드 누락, 잘못된 카테고리 등)"""

    code = "VALIDATION_ERROR"
    http_status = 400


class UnbalancedEntryError(ValidationError):
    """차변 합계 != 대변 합계"""

    code = "UNBALANCED_ENTRY"


class AuthenticationError(LedgerError):
    """세션 없음 또는 만료"""

    code = "AUTHENTICATION_REQUIRED"
    http_status = 401


class AccessDeniedError(LedgerError):
    """접근 권한 없는 회사/분개"""

    code = "ACCESS_DENIED"
    http_status = 403


class NotFoundError(LedgerError):
    """계정/분개/회사 없음"""

    code = "NOT_FOUND"
    http_status = 404


class StateError(LedgerError):
    """허용되지 않는 상태"""

    code = "INVALID_STATE"
    http_status = 409


class InvalidStateTransition(StateError):
    """허용되지 않는 상태 전이 (void → void 등)"""

    code = "INVALID_STATE_TRANSITION"


class StorageError(LedgerError):
    """DB 트랜잭션 실패"""

    code = "STORAGE_ERROR"
    http_status = 500


class OtpDeliveryError(LedgerError):
    """OTP 게이트웨이 호출 실패"""

    code = "OTP_DELIVERY_FAILED"
    http_status = 502
