"""
타임존 유틸리티

내부 저장: UTC | 외부 표시: WAT(Africa/Lagos, UTC+1) 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timedelta, timezone

# WAT 타임존 (UTC+1, 서머타임 없음)
WAT = timezone(timedelta(hours=1))


def to_wat(dt: datetime) -> datetime:
    """UTC datetime을 WAT로 변환

    Args:
        dt: datetime 객체 (UTC 권장, naive면 UTC로 간주)

    Returns:
        WAT 타임존의 datetime
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 간주
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(WAT)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def utc_from_timestamp_ms(ts_ms: int) -> datetime:
    """밀리초 타임스탬프를 UTC datetime으로 변환

    Example:
        >>> utc_from_timestamp_ms(1708444800000)
        datetime(2024, 2, 20, 16, 0, 0, tzinfo=timezone.utc)
    """
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def to_timestamp_ms(dt: datetime) -> int:
    """datetime을 밀리초 타임스탬프로 변환

    Args:
        dt: datetime 객체 (타임존 포함 권장)

    Returns:
        Unix 타임스탬프 (밀리초)
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def parse_entry_date(value: str | date | datetime) -> datetime:
    """요청의 날짜 값을 UTC datetime으로 정규화

    "2026-03-01", "2026-03-01T10:00:00Z", date, datetime 모두 허용.

    Raises:
        ValueError: 날짜 형식이 아닌 경우
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def now_iso() -> str:
    """저장용 현재 UTC 시각 문자열 (마이크로초 포함, 문자열 정렬 = 시간 정렬)"""
    return now_utc().isoformat(timespec="microseconds")
