# app/domains/sch/validators.py

"""
시프트 정의와 반복 배정에 사용되는 순수 검증/계산 함수 모듈입니다.
DB 에 접근하지 않으므로 스키마와 서비스 양쪽에서 재사용합니다.
"""

from datetime import date, time
from typing import List, Optional, Sequence, Union

from app.utils.timezone import iter_dates, parse_time, weekday_sunday_first

MIN_SHIFT_HOURS = 1
MAX_SHIFT_HOURS = 16
MAX_SLOT = 50
OVERNIGHT_EARLIEST_START = time(17, 0)
OVERNIGHT_LATEST_END = time(12, 0)

_SECONDS_PER_DAY = 24 * 60 * 60


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def validate_shift_time(start: Union[str, time], end: Union[str, time]) -> Optional[str]:
    """
    시프트 시작/종료 시각을 검증합니다. 유효하면 None, 아니면 사유 문자열을 반환합니다.

    종료가 시작보다 이르면 자정을 넘기는 야간 근무로 보고 24시간을 더해 근무 시간을 계산합니다.
    야간 근무는 17:00 이후 시작, 12:00 이전 종료여야 하며, 근무 시간은 1~16시간이어야 합니다.
    """
    try:
        start_time = parse_time(start) if isinstance(start, str) else start
        end_time = parse_time(end) if isinstance(end, str) else end
    except ValueError as e:
        return str(e)

    start_seconds = _seconds(start_time)
    end_seconds = _seconds(end_time)

    if start_seconds == end_seconds:
        return "Start time and end time cannot be the same"

    overnight = end_seconds < start_seconds
    if overnight and (start_time < OVERNIGHT_EARLIEST_START or end_time > OVERNIGHT_LATEST_END):
        return "Overnight shifts must start in the evening (from 17:00) and end in the morning (by 12:00)"

    duration = end_seconds - start_seconds
    if overnight:
        duration += _SECONDS_PER_DAY

    if duration < MIN_SHIFT_HOURS * 3600:
        return f"Shift duration must be at least {MIN_SHIFT_HOURS} hour"
    if duration > MAX_SHIFT_HOURS * 3600:
        return f"Shift duration cannot exceed {MAX_SHIFT_HOURS} hours"
    return None


def validate_repeat_days(days: Sequence[int]) -> Optional[str]:
    if len(days) == 0:
        return "At least one repeat day is required"
    if len(days) > 7:
        return "Maximum 7 repeat days allowed"
    if any(not isinstance(day, int) or day < 0 or day > 6 for day in days):
        return "Each repeat day must be an integer between 0 and 6"
    if len(set(days)) != len(days):
        return "Repeat days must not contain duplicates"
    return None


def expand_recurrence_dates(start: date, end: date, repeat_days: Sequence[int]) -> List[date]:
    """
    start ~ end (양 끝 포함) 사이에서 요일(0=일요일)이 repeat_days 에 속하는 날짜 목록을 반환합니다.
    """
    wanted = set(repeat_days)
    return [day for day in iter_dates(start, end) if weekday_sunday_first(day) in wanted]
