"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgerlite/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

# 개인 재무용 예약 테넌트 ID (실제 회사가 아님, 모든 사용자가 공유)
# 기존 저장 데이터와의 호환을 위해 값 변경 금지
PERSONAL_TENANT_ID: str = "00000000-0000-0000-0000-000000000000"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    CURRENCY: str = "NGN"
    COUNTRY_CODE: str = "+234"

    SESSION_DAYS: int = 30
    OTP_SENDER_ID: str = "N-Alert"

    PAGE_LIMIT: int = 50


class CurrencySymbols:
    """통화 코드 → 기호"""

    SYMBOLS: dict[str, str] = {
        "NGN": "₦",
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
    }

    @classmethod
    def for_currency(cls, currency: str) -> str:
        """알 수 없는 통화는 NGN 기호로 대체"""
        return cls.SYMBOLS.get(currency.upper(), cls.SYMBOLS[Defaults.CURRENCY])


class ReferencePrefix:
    """분개 reference 태그 접두사

    저장된 데이터와 읽기 호환을 유지해야 하므로 값 변경 금지.
    """

    BUDGET: str = "BUDGET-"  # 예산 스냅샷 (narration에 JSON)
    PERSONAL_INCOME: str = "PI-"  # 개인 수입
    PERSONAL_EXPENSE: str = "PE-"  # 개인 지출
    SALE: str = "SALE-"  # 사업 매출
    BUSINESS_EXPENSE: str = "EXP-"  # 사업 비용
    INVOICE_PAYMENT: str = "PAY-"  # 송장 수금 (PAY-{송장번호})
    INVOICE_REVERSAL: str = "DEL-"  # 수금된 송장 삭제 (DEL-{송장번호})


class Cookies:
    """쿠키 이름"""

    SESSION: str = "ledgerlite_session"
    CONTEXT: str = "ledgerlite_context"


class TermiiEndpoints:
    """Termii OTP API 엔드포인트 (고정값)"""

    BASE_URL: str = "https://api.ng.termii.com"
    OTP_SEND: str = "/api/sms/otp/send"
    OTP_VERIFY: str = "/api/sms/otp/verify"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "ledgerlite.db"
    DEV_DB: Path = DATA_DIR / "ledgerlite_dev.db"
