"""
Termii 어댑터

Termii SMS OTP API 연동.
"""

from adapters.termii.otp_client import TermiiOtpClient

__all__ = [
    "TermiiOtpClient",
]
