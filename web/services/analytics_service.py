"""
매출 분석 서비스

기간별 매출 합계, 직전 동일 길이 기간 대비 성장률, 평균 거래 금액, 차트 데이터.
기간 경계와 차트 버킷은 WAT 날짜 기준.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import ValidationError
from core.ledger.entry_builder import ZERO
from core.ledger.store import LedgerStore
from core.types import LedgerScope
from core.utils.timezone import WAT, now_utc, to_wat

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "quarter", "year", "ytd", "all")
CUSTOM_PERIOD = "custom"

# period=all 의 시작일
ALL_TIME_START = date(2020, 1, 1)

# 이 일수 이하면 일별, 초과하면 월별 차트
DAILY_CHART_MAX_DAYS = 31

CENT = Decimal("0.01")


def _wat_midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=WAT)


def _parse_day(value: str, field_name: str) -> date:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as e:
        raise ValidationError(
            f"{field_name} 형식이 올바르지 않습니다 (YYYY-MM-DD)", field=field_name, value=value
        ) from e


def period_range(period: str, now: datetime) -> tuple[datetime, datetime]:
    """기간 이름 → [start, end) (WAT 자정 경계, end는 오늘 다음날 0시)

    week는 일요일 시작.

    Raises:
        ValidationError: 알 수 없는 기간
    """
    today = to_wat(now).date()
    end = _wat_midnight(today + timedelta(days=1))

    if period == "today":
        start_day = today
    elif period == "week":
        start_day = today - timedelta(days=(today.weekday() + 1) % 7)
    elif period == "month":
        start_day = today.replace(day=1)
    elif period == "quarter":
        start_day = today.replace(month=(today.month - 1) // 3 * 3 + 1, day=1)
    elif period in ("year", "ytd"):
        start_day = today.replace(month=1, day=1)
    elif period == "all":
        start_day = ALL_TIME_START
    else:
        raise ValidationError(
            "period가 올바르지 않습니다", field="period", value=period, allowed=list(PERIODS)
        )

    return _wat_midnight(start_day), end


def custom_range(start_date: str, end_date: str) -> tuple[datetime, datetime]:
    """startDate~endDate (양끝 포함) → [start, end)"""
    first = _parse_day(start_date, "startDate")
    last = _parse_day(end_date, "endDate")
    if last < first:
        raise ValidationError("endDate는 startDate 이후여야 합니다", field="endDate")
    return _wat_midnight(first), _wat_midnight(last + timedelta(days=1))


def growth_rate(current: Decimal, previous: Decimal) -> float:
    """직전 기간 대비 증감률 (%), 소수 첫째 자리

    직전 기간 매출이 0이면 현재 매출이 있을 때 100, 없으면 0.
    """
    if previous == ZERO:
        return 100.0 if current > ZERO else 0.0
    return float(((current - previous) / previous * 100).quantize(Decimal("0.1")))


def chart_buckets(start: datetime, end: datetime) -> tuple[str, dict[str, Decimal]]:
    """빈 차트 버킷 (label → 0)

    Returns:
        ("daily" | "monthly", 순서가 유지되는 버킷 dict)
    """
    first = to_wat(start).date()
    last = to_wat(end).date() - timedelta(days=1)

    buckets: dict[str, Decimal] = {}
    if (last - first).days + 1 <= DAILY_CHART_MAX_DAYS:
        day = first
        while day <= last:
            buckets[day.isoformat()] = ZERO
            day += timedelta(days=1)
        return "daily", buckets

    year, month = first.year, first.month
    while (year, month) <= (last.year, last.month):
        buckets[f"{year:04d}-{month:02d}"] = ZERO
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return "monthly", buckets


def bucket_label(entry_date: datetime, granularity: str) -> str:
    day = to_wat(entry_date).date()
    if granularity == "daily":
        return day.isoformat()
    return day.strftime("%Y-%m")


class AnalyticsService:
    """매출 분석 서비스

    personal 범위는 본인이 작성한 분개의 수익 계정만 집계.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.ledger = LedgerStore(db)

    async def revenue_report(
        self,
        scope: LedgerScope,
        period: str = "month",
        start_date: str | None = None,
        end_date: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """매출 리포트

        startDate와 endDate가 모두 있으면 period 대신 사용자 지정 기간.

        Raises:
            ValidationError: 잘못된 period, 날짜 한쪽만 지정, 날짜 형식 오류
        """
        if (start_date is None) != (end_date is None):
            raise ValidationError("startDate와 endDate는 함께 지정해야 합니다")

        if start_date is not None and end_date is not None:
            start, end = custom_range(start_date, end_date)
            label = CUSTOM_PERIOD
        else:
            start, end = period_range(period, now or now_utc())
            label = period

        span = end - start
        current = await self.ledger.get_revenue_report(
            scope.tenant_id, start, end, creator_id=scope.creator_id
        )
        previous = await self.ledger.get_revenue_report(
            scope.tenant_id, start - span, start, creator_id=scope.creator_id
        )

        total = current["total"]
        sales = [item for item in current["entries"] if item["amount"] > ZERO]
        average = (total / len(sales)).quantize(CENT) if sales else ZERO

        granularity, buckets = chart_buckets(start, end)
        for item in current["entries"]:
            key = bucket_label(item["entry_date"], granularity)
            if key in buckets:
                buckets[key] += item["amount"]

        logger.debug(
            f"매출 리포트: {label} {start.date()}~{end.date()} total={total}",
            extra={"tenant_id": scope.tenant_id},
        )
        return {
            "totalRevenue": str(total),
            "previousRevenue": str(previous["total"]),
            "growth": growth_rate(total, previous["total"]),
            "averageOrder": str(average),
            "totalTransactions": len(sales),
            "period": label,
            "dateRange": {
                "start": start.date().isoformat(),
                "end": (end - timedelta(days=1)).date().isoformat(),
            },
            "granularity": granularity,
            "chartData": [
                {"label": key, "revenue": str(value)} for key, value in buckets.items()
            ],
        }
