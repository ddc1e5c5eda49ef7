# app/utils/timezone.py

"""
서비스센터 현지 시간대(기본 Asia/Ho_Chi_Minh)와 UTC 사이의 변환을 담당하는 유틸리티 모듈입니다.

- DB에 저장되는 모든 시각(instant)은 UTC입니다.
- 일자 경계(하루의 시작/끝)는 현지 시간 기준으로 계산합니다.
- 변환은 입력(스키마)과 영속성(crud) 경계에서만 수행하고, 내부 비교는 UTC로 통일합니다.
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Iterator, Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc

# 종료일이 없는(무기한) 배정을 비교할 때 사용하는 상한값
OPEN_ENDED_SENTINEL = datetime(2099, 12, 31, 23, 59, 59, tzinfo=UTC)


@lru_cache
def get_local_timezone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now_utc() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    DB에서 읽은 시각을 UTC aware datetime으로 정규화합니다.
    tzinfo가 없는 값(SQLite 등)은 이미 UTC로 저장된 것으로 간주합니다.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    API 입력 시각을 UTC로 변환합니다.
    tzinfo가 없는 값은 서비스센터 현지 시각으로 해석합니다.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=get_local_timezone())
    return value.astimezone(UTC)


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(value).astimezone(get_local_timezone())


def local_day_bounds_utc(day: date) -> Tuple[datetime, datetime]:
    """현지 날짜 하루의 시작과 끝을 UTC 시각으로 반환합니다."""
    tz = get_local_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def parse_time(value: str) -> time:
    """
    'HH:mm:ss' 또는 'HH:mm' 형식의 문자열을 time 객체로 변환합니다.
    형식이 잘못되면 ValueError를 발생시킵니다.
    """
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f'Invalid time format: "{value}". Expected format: HH:mm:ss')


def iter_dates(start: date, end: date) -> Iterator[date]:
    """start부터 end까지(양 끝 포함) 하루씩 순회합니다."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekday_sunday_first(day: date) -> int:
    """요일을 0=일요일 ... 6=토요일 체계로 반환합니다."""
    return (day.weekday() + 1) % 7


def format_local_date(value: Optional[datetime]) -> Optional[str]:
    """UTC 시각을 현지 날짜 문자열(YYYY-MM-DD)로 변환합니다. 메시지 표시용."""
    local = to_local(value)
    return local.date().isoformat() if local else None
