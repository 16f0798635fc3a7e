"""
core/context.py 순수 함수 테스트

컨텍스트 → 테넌트/범위 매핑, 쿠키 값 복원
"""

import json

import pytest

from core.constants import PERSONAL_TENANT_ID
from core.context import build_context, parse_context, resolve_context, resolve_scope
from core.errors import ValidationError
from core.types import ContextType, LedgerContext


class TestResolve:
    def test_personal_maps_to_reserved_tenant(self) -> None:
        assert resolve_context(LedgerContext.personal()) == PERSONAL_TENANT_ID

    def test_business_maps_to_company(self) -> None:
        assert resolve_context(LedgerContext.business("c-1")) == "c-1"

    def test_personal_scope_has_creator(self) -> None:
        scope = resolve_scope(LedgerContext.personal(), "u-1")

        assert scope.tenant_id == PERSONAL_TENANT_ID
        assert scope.context_type == ContextType.PERSONAL
        assert scope.creator_id == "u-1"

    def test_business_scope_has_no_creator_filter(self) -> None:
        scope = resolve_scope(LedgerContext.business("c-1"), "u-1")

        assert scope.tenant_id == "c-1"
        assert scope.creator_id is None


class TestParseContext:
    def test_missing_defaults_to_personal(self) -> None:
        assert parse_context(None).is_personal
        assert parse_context("").is_personal

    def test_json_business(self) -> None:
        raw = json.dumps({"type": "business", "companyId": "c-1"})

        assert parse_context(raw) == LedgerContext.business("c-1")

    def test_dict_input(self) -> None:
        assert parse_context({"type": "personal"}) == LedgerContext.personal()

    @pytest.mark.parametrize(
        "raw",
        ["not json", "[1, 2]", '{"type": "business"}', '{"type": "galaxy"}'],
    )
    def test_corrupt_defaults_to_personal(self, raw: str) -> None:
        assert parse_context(raw).is_personal

    def test_deeply_nested_cookie_defaults_to_personal(self) -> None:
        raw = "[" * 5000 + "]" * 5000

        assert parse_context(raw).is_personal


class TestBuildContext:
    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            build_context("galaxy")

    def test_business_without_company(self) -> None:
        with pytest.raises(ValidationError):
            build_context("business", None)

    def test_personal_ignores_company(self) -> None:
        assert build_context("personal", "c-1") == LedgerContext.personal()
