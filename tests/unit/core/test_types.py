"""
core/types.py 테스트

LedgerContext / LedgerScope 불변식
"""

import pytest

from core.types import AppMode, ContextType, LedgerContext, LedgerScope, MemberRole


class TestEnums:
    def test_str_values(self) -> None:
        assert AppMode.PRODUCTION.value == "production"
        assert ContextType("business") == ContextType.BUSINESS
        assert MemberRole.OWNER == "owner"


class TestLedgerContext:
    def test_personal(self) -> None:
        ctx = LedgerContext.personal()

        assert ctx.is_personal
        assert ctx.company_id is None
        assert ctx.to_dict() == {"type": "personal", "companyId": None}

    def test_business(self) -> None:
        ctx = LedgerContext.business("c-1")

        assert not ctx.is_personal
        assert ctx.to_dict() == {"type": "business", "companyId": "c-1"}

    def test_personal_rejects_company_id(self) -> None:
        with pytest.raises(ValueError):
            LedgerContext(type=ContextType.PERSONAL, company_id="c-1")

    def test_business_requires_company_id(self) -> None:
        with pytest.raises(ValueError):
            LedgerContext(type=ContextType.BUSINESS)

    def test_frozen(self) -> None:
        ctx = LedgerContext.personal()

        with pytest.raises(AttributeError):
            ctx.company_id = "x"  # type: ignore


class TestLedgerScope:
    def test_personal_requires_creator(self) -> None:
        with pytest.raises(ValueError):
            LedgerScope("tenant", ContextType.PERSONAL)

    def test_business_without_creator(self) -> None:
        scope = LedgerScope("c-1", ContextType.BUSINESS)

        assert not scope.is_personal
        assert scope.creator_id is None
