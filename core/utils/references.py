"""
분개 reference 유틸리티

reference 태그 생성 및 파싱 기능 제공
규칙: {PREFIX}{epoch millis}  (예: BUDGET-1760870400000, PI-1760870400000)
"""

from datetime import datetime

from core.constants import ReferencePrefix
from core.utils.timezone import now_utc, to_timestamp_ms


def make_reference(prefix: str, at: datetime | None = None) -> str:
    """reference 태그 생성

    Args:
        prefix: ReferencePrefix 값 (하이픈 포함)
        at: 기준 시각 (None이면 현재 UTC)

    Returns:
        {prefix}{epoch millis}

    Example:
        >>> make_reference("PI-", utc_from_timestamp_ms(1760870400000))
        'PI-1760870400000'
    """
    if not prefix or not prefix.endswith("-"):
        raise ValueError(f"reference prefix는 '-'로 끝나야 합니다: {prefix!r}")

    ts = at if at is not None else now_utc()
    return f"{prefix}{to_timestamp_ms(ts)}"


def parse_reference(reference: str | None) -> tuple[str, int] | None:
    """reference에서 (prefix, epoch millis) 추출

    Returns:
        (prefix, millis) 또는 None (형식 불일치 시)

    Example:
        >>> parse_reference("BUDGET-1760870400000")
        ('BUDGET-', 1760870400000)
        >>> parse_reference("INV-2026-00001")
        None
    """
    if not reference or "-" not in reference:
        return None

    head, _, tail = reference.partition("-")
    if not head or not tail.isdigit():
        return None

    return f"{head}-", int(tail)


def is_budget_reference(reference: str | None) -> bool:
    """예산 스냅샷 분개 여부"""
    return bool(reference) and reference.startswith(ReferencePrefix.BUDGET)
