"""
Mock OTP 게이트웨이

개발/테스트용 OTP 게이트웨이.
IOtpGateway Protocol 준수.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from core.errors import OtpDeliveryError

logger = logging.getLogger(__name__)


@dataclass
class OtpRecord:
    """발송 기록"""
    
    pin_id: str
    phone_number: str
    code: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    verified: bool = False


class MockOtpGateway:
    """Mock OTP 게이트웨이
    
    IOtpGateway Protocol 구현.
    생성한 코드를 기록하고 로그로 출력 (SMS 미발송).
    
    사용 예시:
    ```python
    gateway = MockOtpGateway()
    
    pin_id = await gateway.send_otp("2348012345678")
    code = gateway.last_code("2348012345678")
    assert await gateway.verify_otp(pin_id, code)
    ```
    """
    
    def __init__(self, should_fail: bool = False, fixed_code: str | None = None):
        """
        Args:
            should_fail: True면 모든 발송 실패 (에러 시나리오 테스트용)
            fixed_code: 지정 시 항상 이 코드 사용
        """
        self.should_fail = should_fail
        self.fixed_code = fixed_code
        self.records: dict[str, OtpRecord] = {}
    
    async def send_otp(self, phone_number: str) -> str:
        """OTP 생성 및 기록"""
        if self.should_fail:
            raise OtpDeliveryError("Mock OTP 발송 실패")
        
        code = self.fixed_code or f"{secrets.randbelow(10**6):06d}"
        pin_id = str(uuid4())
        self.records[pin_id] = OtpRecord(pin_id=pin_id, phone_number=phone_number, code=code)
        
        logger.info(f"[DEV OTP] to={phone_number} code={code} pin_id={pin_id}")
        return pin_id
    
    async def verify_otp(self, pin_id: str, code: str) -> bool:
        """기록된 코드와 비교 (1회용)"""
        record = self.records.get(pin_id)
        if record is None or record.verified:
            return False
        if not secrets.compare_digest(record.code, code):
            return False
        
        record.verified = True
        return True
    
    def last_code(self, phone_number: str) -> str | None:
        """가장 최근 발송 코드 (테스트용)"""
        for record in reversed(list(self.records.values())):
            if record.phone_number == phone_number:
                return record.code
        return None
    
    async def close(self) -> None:
        return None
