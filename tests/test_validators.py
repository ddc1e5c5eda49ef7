# tests/test_validators.py

"""
시프트 시간 규칙, 반복 요일/날짜 계산, 시간대 변환 유틸리티에 대한 단위 테스트입니다.
DB 나 HTTP 클라이언트 없이 순수 함수만 검증합니다.
"""

from datetime import date, datetime, time, timezone

import pytest

from app.domains.sch.validators import (
    expand_recurrence_dates,
    validate_repeat_days,
    validate_shift_time,
)
from app.utils.timezone import (
    ensure_utc,
    local_day_bounds_utc,
    local_to_utc,
    parse_time,
    to_local,
    weekday_sunday_first,
)

OVERNIGHT_MESSAGE = "Overnight shifts must start in the evening (from 17:00) and end in the morning (by 12:00)"


# =============================================================================
# 1. 시프트 시간 검증
# =============================================================================
@pytest.mark.parametrize(
    "start, end",
    [
        ("08:00:00", "17:00:00"),
        ("22:00:00", "06:00:00"),
        ("17:00", "01:00"),
        ("20:00:00", "12:00:00"),
        (time(9, 0), time(10, 0)),
    ],
)
def test_validate_shift_time_valid(start, end):
    assert validate_shift_time(start, end) is None


def test_validate_shift_time_same_times():
    assert validate_shift_time("09:00:00", "09:00:00") == "Start time and end time cannot be the same"


def test_validate_shift_time_overnight_must_start_in_evening():
    """10:00 → 08:00 은 근무 시간(22시간)보다 야간 규칙 위반이 먼저 보고됩니다."""
    assert validate_shift_time("10:00:00", "08:00:00") == OVERNIGHT_MESSAGE
    assert validate_shift_time("18:00:00", "13:00:00") == OVERNIGHT_MESSAGE


def test_validate_shift_time_duration_bounds():
    assert validate_shift_time("09:00:00", "09:30:00") == "Shift duration must be at least 1 hour"
    assert validate_shift_time("06:00:00", "23:00:00") == "Shift duration cannot exceed 16 hours"
    assert validate_shift_time("06:00:00", "22:00:00") is None


def test_validate_shift_time_malformed():
    message = validate_shift_time("25:99", "10:00:00")
    assert message is not None
    assert "Invalid time format" in message


# =============================================================================
# 2. 반복 요일 / 반복 날짜 계산
# =============================================================================
def test_validate_repeat_days():
    assert validate_repeat_days([1, 3, 5]) is None
    assert validate_repeat_days([]) == "At least one repeat day is required"
    assert validate_repeat_days([0, 1, 2, 3, 4, 5, 6, 0]) == "Maximum 7 repeat days allowed"
    assert validate_repeat_days([7]) == "Each repeat day must be an integer between 0 and 6"
    assert validate_repeat_days([1, 1]) == "Repeat days must not contain duplicates"


def test_expand_recurrence_dates_monday_wednesday():
    """2025-01-06 ~ 2025-01-19, 월/수 반복 → 1월 6, 8, 13, 15일"""
    days = expand_recurrence_dates(date(2025, 1, 6), date(2025, 1, 19), [1, 3])
    assert days == [date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 13), date(2025, 1, 15)]


def test_expand_recurrence_dates_inclusive_bounds_and_empty():
    # 2025-01-05 는 일요일(0)
    assert expand_recurrence_dates(date(2025, 1, 5), date(2025, 1, 5), [0]) == [date(2025, 1, 5)]
    assert expand_recurrence_dates(date(2025, 1, 6), date(2025, 1, 7), [6]) == []


def test_weekday_sunday_first():
    assert weekday_sunday_first(date(2025, 1, 5)) == 0
    assert weekday_sunday_first(date(2025, 1, 6)) == 1
    assert weekday_sunday_first(date(2025, 1, 11)) == 6


# =============================================================================
# 3. 시간대 변환 (Asia/Ho_Chi_Minh, UTC+7)
# =============================================================================
def test_local_to_utc_interprets_naive_as_local():
    converted = local_to_utc(datetime(2025, 1, 6, 8, 0))
    assert converted == datetime(2025, 1, 6, 1, 0, tzinfo=timezone.utc)
    assert local_to_utc(None) is None


def test_ensure_utc_treats_naive_as_utc():
    assert ensure_utc(datetime(2025, 1, 6, 1, 0)) == datetime(2025, 1, 6, 1, 0, tzinfo=timezone.utc)


def test_to_local_round_trip_hour():
    local = to_local(datetime(2025, 1, 6, 1, 0, tzinfo=timezone.utc))
    assert (local.hour, local.utcoffset().total_seconds()) == (8, 7 * 3600)


def test_local_day_bounds_utc():
    start, end = local_day_bounds_utc(date(2025, 1, 6))
    assert start == datetime(2025, 1, 5, 17, 0, tzinfo=timezone.utc)
    assert end.date() == date(2025, 1, 6) and end.hour == 16


def test_parse_time_formats():
    assert parse_time("07:30") == time(7, 30)
    assert parse_time("07:30:15") == time(7, 30, 15)
    with pytest.raises(ValueError):
        parse_time("7.30")
