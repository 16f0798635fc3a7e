"""
core/auth.py 전화번호 검증/변환 테스트
"""

import pytest

from core.auth import to_international_phone, validate_phone_number
from core.errors import ValidationError


class TestValidatePhoneNumber:

    @pytest.mark.parametrize(
        "phone",
        ["08031234567", "2348031234567", "+234 803 123 4567", "0703-123-4567", "8101234567"],
    )
    def test_valid(self, phone: str) -> None:
        assert validate_phone_number(phone) is True

    @pytest.mark.parametrize(
        "phone",
        [None, "", "12345", "08231234567", "0803123456", "44201234567890"],
    )
    def test_invalid(self, phone) -> None:
        assert validate_phone_number(phone) is False


class TestToInternationalPhone:

    @pytest.mark.parametrize(
        "phone",
        ["08031234567", "2348031234567", "+234 803 123 4567", "8031234567"],
    )
    def test_normalizes(self, phone: str) -> None:
        assert to_international_phone(phone) == "2348031234567"

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            to_international_phone("12345")

        assert exc_info.value.details["field"] == "phoneNumber"
