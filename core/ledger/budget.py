"""
예산 스냅샷 코덱

예산은 별도 테이블 없이 BUDGET- 태그 분개의 narration에 JSON으로 저장.
(tenant, creator)마다 posted 예산 분개는 최대 1개.

payload 예시:
```json
{
  "schemaVersion": 1,
  "totalIncome": "500000",
  "budgetType": "moderate",
  "period": "monthly",
  "budgets": [{"categoryId": "housing", "amount": "175000", "percentage": "35"}]
}
```
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

from core.constants import ReferencePrefix
from core.errors import ValidationError
from core.ledger.entry_builder import JournalEntry, parse_amount
from core.ledger.types import EntryStatus
from core.utils.references import make_reference
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

BUDGET_SCHEMA_VERSION = 1


class BudgetType(str, Enum):
    CUSTOM = "custom"
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class BudgetAllocation:
    """카테고리별 예산 배분"""

    category_id: str
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class BudgetSnapshot:
    """예산 스냅샷

    totalIncome, budgetType, period, budgets[] 네 필드만 가짐.
    """

    total_income: Decimal
    budget_type: BudgetType
    period: BudgetPeriod
    budgets: tuple[BudgetAllocation, ...] = field(default_factory=tuple)

    @classmethod
    def from_request(cls, data: dict[str, Any]) -> BudgetSnapshot:
        """요청 dict(camelCase)에서 생성

        Raises:
            ValidationError: 필수 필드 누락 또는 형식 오류
        """
        if not isinstance(data, dict):
            raise ValidationError("예산 형식이 올바르지 않습니다", value_type=type(data).__name__)
        snapshot = _parse_snapshot(data, strict=True)
        if snapshot is None:
            raise ValidationError("예산 형식이 올바르지 않습니다")
        return snapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalIncome": str(self.total_income),
            "budgetType": self.budget_type.value,
            "period": self.period.value,
            "budgets": [
                {
                    "categoryId": item.category_id,
                    "amount": str(item.amount),
                    "percentage": str(item.percentage),
                }
                for item in self.budgets
            ],
        }


def encode(budget: BudgetSnapshot) -> str:
    """예산 스냅샷을 narration 문자열로 직렬화"""
    payload = {"schemaVersion": BUDGET_SCHEMA_VERSION, **budget.to_dict()}
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def decode(text: str | None) -> BudgetSnapshot | None:
    """narration을 예산 스냅샷으로 역직렬화

    형식이 잘못된 경우 예외 대신 None 반환
    (파싱 불가 예산 = 예산 없음).
    schemaVersion이 없는 기존 payload와 숫자 금액도 허용.
    """
    if not text:
        return None

    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError):
        logger.warning("예산 narration 파싱 실패 (JSON 아님)")
        return None

    if not isinstance(data, dict):
        return None

    version = data.get("schemaVersion", BUDGET_SCHEMA_VERSION)
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if version > BUDGET_SCHEMA_VERSION:
        logger.warning(f"지원하지 않는 예산 schemaVersion: {version}")
        return None

    return _parse_snapshot(data, strict=False)


def _parse_snapshot(data: dict[str, Any], strict: bool) -> BudgetSnapshot | None:
    """strict=True면 ValidationError, False면 None 반환"""

    def fail(message: str, **details: Any) -> None:
        if strict:
            raise ValidationError(message, **details)
        return None

    if strict and data.get("period") is None:
        data = {**data, "period": BudgetPeriod.MONTHLY.value}

    missing = [
        name for name in ("totalIncome", "budgetType", "period", "budgets")
        if data.get(name) is None
    ]
    if missing:
        return fail("예산 필수 필드가 없습니다", missing=missing)

    try:
        budget_type = BudgetType(data["budgetType"])
    except ValueError:
        return fail("budgetType이 올바르지 않습니다", value=data["budgetType"])

    try:
        period = BudgetPeriod(data["period"])
    except ValueError:
        return fail("period가 올바르지 않습니다", value=data["period"])

    raw_items = data["budgets"]
    if not isinstance(raw_items, list):
        return fail("budgets는 목록이어야 합니다")

    try:
        total_income = parse_amount(data["totalIncome"], "totalIncome")
        items = []
        for raw in raw_items:
            if not isinstance(raw, dict) or not raw.get("categoryId"):
                return fail("budgets 항목에 categoryId가 없습니다")
            items.append(
                BudgetAllocation(
                    category_id=str(raw["categoryId"]),
                    amount=parse_amount(raw.get("amount"), "amount"),
                    percentage=parse_amount(raw.get("percentage", 0), "percentage"),
                )
            )
    except (ValidationError, InvalidOperation):
        if strict:
            raise
        return None

    if strict and total_income <= 0:
        raise ValidationError("totalIncome은 0보다 커야 합니다")
    if strict and not items:
        raise ValidationError("budgets에 최소 1개 카테고리가 필요합니다")

    return BudgetSnapshot(
        total_income=total_income,
        budget_type=budget_type,
        period=period,
        budgets=tuple(items),
    )


class BudgetStore:
    """예산 저장소

    LedgerStore 위에서 BUDGET- 메모 분개로 예산을 관리.

    Args:
        ledger_store: LedgerStore 인스턴스
    """

    def __init__(self, ledger_store: LedgerStore):
        self.ledger = ledger_store

    async def replace_active_budget(
        self,
        tenant_id: str,
        creator_id: str,
        budget: BudgetSnapshot,
        at: datetime | None = None,
    ) -> JournalEntry:
        """기존 예산 무효화 후 새 예산 기록 (단일 트랜잭션)

        중간에 실패하면 기존 예산이 그대로 유지됨.

        Returns:
            새로 기록된 BUDGET- 분개
        """
        ts = at if at is not None else now_utc()

        async with self.ledger.db.transaction(immediate=True):
            voided = await self.ledger.void_entries_by_reference(
                tenant_id, creator_id, ReferencePrefix.BUDGET
            )
            entry = await self.ledger.post_memo_entry(
                tenant_id=tenant_id,
                creator_id=creator_id,
                entry_date=ts,
                reference=make_reference(ReferencePrefix.BUDGET, ts),
                narration=encode(budget),
            )

        logger.info(
            f"예산 교체: {entry.reference} (이전 {voided}건 무효화)",
            extra={"tenant_id": tenant_id, "creator_id": creator_id},
        )
        return entry

    async def get_active_entry(
        self,
        tenant_id: str,
        creator_id: str,
    ) -> JournalEntry | None:
        """가장 최근 posted 예산 분개"""
        entries = await self.ledger.list_entries_by_owner(
            tenant_id,
            creator_id,
            status=EntryStatus.POSTED,
            reference_prefix=ReferencePrefix.BUDGET,
            limit=1,
        )
        return entries[0] if entries else None

    async def get_active_budget(
        self,
        tenant_id: str,
        creator_id: str,
    ) -> BudgetSnapshot | None:
        """현재 예산 (없거나 파싱 불가면 None)"""
        entry = await self.get_active_entry(tenant_id, creator_id)
        if entry is None:
            return None
        return decode(entry.narration)
