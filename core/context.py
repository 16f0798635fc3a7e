"""
회계 컨텍스트 해석

개인/사업 컨텍스트를 테넌트 ID와 조회 범위(LedgerScope)로 변환.

- personal: 모든 사용자가 예약 테넌트(PERSONAL_TENANT_ID)를 공유하므로
  조회 범위에 creator_id가 반드시 포함됨
- business: 선택한 회사 ID. 접근 권한 확인은 ContextService가 먼저 수행
"""

import json
import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import PERSONAL_TENANT_ID
from core.errors import AccessDeniedError, ValidationError
from core.ledger.store import LedgerStore
from core.storage.company_store import CompanyStore
from core.types import ContextType, LedgerContext, LedgerScope

logger = logging.getLogger(__name__)


def resolve_context(context: LedgerContext) -> str:
    """컨텍스트 → 테넌트 ID (순수 매핑, 권한 확인 없음)

    Example:
        >>> resolve_context(LedgerContext.personal())
        '00000000-0000-0000-0000-000000000000'
    """
    if context.is_personal:
        return PERSONAL_TENANT_ID
    if not context.company_id:
        raise ValidationError("business 컨텍스트에는 company_id가 필요합니다")
    return context.company_id


def resolve_scope(context: LedgerContext, user_id: str) -> LedgerScope:
    """컨텍스트 + 사용자 → 조회/기록 범위

    personal 범위는 creator_id로 사용자별 격리.
    business 범위는 회사 전체 (creator 필터 없음).
    """
    tenant_id = resolve_context(context)
    if context.is_personal:
        return LedgerScope(tenant_id, ContextType.PERSONAL, creator_id=user_id)
    return LedgerScope(tenant_id, ContextType.BUSINESS)


def parse_context(raw: str | dict[str, Any] | None) -> LedgerContext:
    """쿠키/요청 값에서 컨텍스트 복원

    값이 없거나 손상된 경우 personal로 간주.
    """
    if not raw:
        return LedgerContext.personal()

    data: Any = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            return LedgerContext.personal()

    if not isinstance(data, dict):
        return LedgerContext.personal()

    try:
        return build_context(data.get("type"), data.get("companyId"))
    except ValidationError:
        return LedgerContext.personal()


def build_context(context_type: Any, company_id: str | None = None) -> LedgerContext:
    """type 문자열과 company_id로 컨텍스트 생성

    Raises:
        ValidationError: 알 수 없는 type 또는 business에 company_id 누락
    """
    try:
        ctx_type = ContextType(context_type)
    except ValueError as e:
        raise ValidationError("유효하지 않은 컨텍스트 유형입니다", type=context_type) from e

    if ctx_type == ContextType.PERSONAL:
        return LedgerContext.personal()

    if not company_id:
        raise ValidationError("business 컨텍스트에는 companyId가 필요합니다")
    return LedgerContext.business(company_id)


class ContextService:
    """컨텍스트 전환 및 권한 확인

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.companies = CompanyStore(db)
        self.ledger = LedgerStore(db)

    async def authorize(self, user_id: str, context: LedgerContext) -> LedgerScope:
        """현재 컨텍스트의 권한 확인 후 범위 반환

        원장 작업 전에 반드시 호출되어야 함.

        Raises:
            AccessDeniedError: 접근 권한이 없는 회사
        """
        if not context.is_personal:
            if not await self.companies.has_access(user_id, context.company_id):
                logger.warning(
                    f"회사 접근 거부: user={user_id}, company={context.company_id}"
                )
                raise AccessDeniedError(
                    "이 회사에 접근할 권한이 없습니다",
                    company_id=context.company_id,
                )
        return resolve_scope(context, user_id)

    async def switch_context(
        self,
        user_id: str,
        context_type: Any,
        company_id: str | None = None,
    ) -> LedgerContext:
        """컨텍스트 전환

        순서:
        1. 입력 검증
        2. business: 접근 권한 확인 (실패 시 아무것도 변경하지 않음)
        3. personal: 개인 기본 계정 보장 (완료 후 반환)

        Raises:
            ValidationError: 잘못된 type/companyId
            AccessDeniedError: 접근 권한 없음
        """
        context = build_context(context_type, company_id)

        await self.authorize(user_id, context)

        if context.is_personal:
            await self.ledger.ensure_personal_scaffold(PERSONAL_TENANT_ID)

        logger.info(f"컨텍스트 전환: user={user_id}, context={context.to_dict()}")
        return context

    async def list_user_contexts(self, user_id: str) -> dict[str, Any]:
        """사용 가능한 컨텍스트 목록

        personal은 항상 사용 가능, business는 소유/소속 회사 (예약 ID 제외).
        """
        companies = await self.companies.list_user_companies(user_id)

        businesses = []
        for company in companies:
            role = await self.companies.get_member_role(company.id, user_id)
            businesses.append({
                "id": company.id,
                "name": company.name,
                "role": role.value if role else None,
            })

        return {
            "hasPersonal": True,
            "businesses": businesses,
            "totalContexts": len(businesses) + 1,
        }
