"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IOtpGateway(Protocol):
    """OTP 발송/검증 게이트웨이 인터페이스
    
    코드 생성은 게이트웨이가 담당하고, 애플리케이션은 pin_id만 보관.
    전화번호는 국제 형식(234XXXXXXXXXX)으로 전달.
    """
    
    async def send_otp(self, phone_number: str) -> str:
        """OTP 발송
        
        Args:
            phone_number: 국제 형식 전화번호
            
        Returns:
            pin_id (검증 시 사용)
            
        Raises:
            OtpDeliveryError: 발송 실패
        """
        ...
    
    async def verify_otp(self, pin_id: str, code: str) -> bool:
        """OTP 검증
        
        Returns:
            True: 코드 일치
            False: 불일치 또는 만료
            
        Raises:
            OtpDeliveryError: 게이트웨이 호출 실패
        """
        ...
    
    async def close(self) -> None:
        """리소스 정리"""
        ...
