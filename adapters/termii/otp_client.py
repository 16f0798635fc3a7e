"""
Termii OTP 클라이언트

Termii SMS OTP API를 통해 인증 코드를 발송/검증.
IOtpGateway Protocol 준수.
"""

import logging
from typing import Any

import httpx

from core.constants import TermiiEndpoints
from core.errors import OtpDeliveryError

logger = logging.getLogger(__name__)


# OTP 발송 설정
PIN_LENGTH = 6
PIN_ATTEMPTS = 3
PIN_TTL_MINUTES = 5
PIN_PLACEHOLDER = "< 123456 >"
MESSAGE_TEXT = f"Your LedgerLite verification code is {PIN_PLACEHOLDER}"


class TermiiOtpClient:
    """Termii OTP 클라이언트
    
    IOtpGateway Protocol 구현.
    코드는 Termii가 생성하고 pinId로 검증.
    
    사용 예시:
    ```python
    async with TermiiOtpClient(api_key="TL...") as client:
        pin_id = await client.send_otp("2348012345678")
        ok = await client.verify_otp(pin_id, "123456")
    ```
    """
    
    def __init__(
        self,
        api_key: str,
        sender_id: str = "N-Alert",
        base_url: str = TermiiEndpoints.BASE_URL,
        timeout: float = 10.0,
    ):
        """
        Args:
            api_key: Termii API 키
            sender_id: 발신자 ID
            base_url: API 기본 URL
            timeout: HTTP 요청 타임아웃 (초)
        """
        if not api_key:
            raise ValueError("api_key는 필수입니다")
        
        self.api_key = api_key
        self.sender_id = sender_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        
        # httpx 비동기 클라이언트 (재사용)
        self._client: httpx.AsyncClient | None = None
    
    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client
    
    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
    
    async def send_otp(self, phone_number: str) -> str:
        """OTP 발송
        
        Args:
            phone_number: 국제 형식 전화번호 (234...)
            
        Returns:
            Termii pinId
            
        Raises:
            OtpDeliveryError: 발송 실패 또는 pinId 누락
        """
        payload = {
            "api_key": self.api_key,
            "message_type": "NUMERIC",
            "to": phone_number,
            "from": self.sender_id,
            "channel": "dnd",
            "pin_attempts": PIN_ATTEMPTS,
            "pin_time_to_live": PIN_TTL_MINUTES,
            "pin_length": PIN_LENGTH,
            "pin_placeholder": PIN_PLACEHOLDER,
            "message_text": MESSAGE_TEXT,
            "pin_type": "NUMERIC",
        }
        
        result = await self._post(TermiiEndpoints.OTP_SEND, payload)
        
        pin_id = result.get("pinId") or result.get("pin_id")
        if not pin_id:
            logger.error("Termii OTP 응답에 pinId 없음: %s", result)
            raise OtpDeliveryError("OTP 발송 응답이 올바르지 않습니다")
        
        logger.info("Termii OTP 발송 성공: pin_id=%s", pin_id)
        return str(pin_id)
    
    async def verify_otp(self, pin_id: str, code: str) -> bool:
        """OTP 검증
        
        Returns:
            True: verified
            False: 코드 불일치/만료
        """
        payload = {
            "api_key": self.api_key,
            "pin_id": pin_id,
            "pin": code,
        }
        
        try:
            result = await self._post(TermiiEndpoints.OTP_VERIFY, payload)
        except OtpDeliveryError as e:
            # 4xx는 잘못된/만료된 코드
            if e.details.get("status_code", 500) < 500:
                return False
            raise
        
        verified = (
            result.get("verified") is True
            or result.get("verified") == "True"
            or result.get("verification_status") == "VERIFIED"
        )
        if not verified:
            logger.info("Termii OTP 검증 실패: pin_id=%s", pin_id)
        return verified
    
    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Termii API POST 요청
        
        Raises:
            OtpDeliveryError: HTTP 오류, 타임아웃, 비정상 응답
        """
        url = f"{self.base_url}{path}"
        
        try:
            client = await self._get_client()
            response = await client.post(url, json=payload)
        except httpx.TimeoutException as e:
            logger.error("Termii 요청 타임아웃: %s", path)
            raise OtpDeliveryError("OTP 게이트웨이 응답 시간 초과") from e
        except httpx.HTTPError as e:
            logger.error("Termii 요청 HTTP 에러: %s", e)
            raise OtpDeliveryError("OTP 게이트웨이 연결 실패") from e
        
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, dict):
            body = {"message": str(body)}
        
        if response.status_code >= 400:
            logger.warning(
                "Termii 요청 실패: status=%s, body=%s",
                response.status_code,
                body,
            )
            raise OtpDeliveryError(
                body.get("message") or "OTP 게이트웨이 요청 실패",
                status_code=response.status_code,
            )
        
        return body
    
    # -------------------------------------------------------------------------
    # Context Manager 지원
    # -------------------------------------------------------------------------
    
    async def __aenter__(self) -> "TermiiOtpClient":
        """async with 진입"""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """async with 종료 시 클라이언트 정리"""
        await self.close()
