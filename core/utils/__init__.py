"""
유틸리티 패키지

reference 태그 생성, 타임존 처리 등 공통 유틸리티
"""

from core.utils.references import (
    is_budget_reference,
    make_reference,
    parse_reference,
)
from core.utils.timezone import (
    WAT,
    to_wat,
    now_utc,
    now_iso,
    utc_from_timestamp_ms,
    to_timestamp_ms,
    parse_entry_date,
)

__all__ = [
    "is_budget_reference",
    "make_reference",
    "parse_reference",
    "WAT",
    "to_wat",
    "now_utc",
    "now_iso",
    "utc_from_timestamp_ms",
    "to_timestamp_ms",
    "parse_entry_date",
]
