# app/domains/sch/schemas.py

"""
'sch' 도메인 (시프트 및 근무 일정)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

import datetime as dt
import uuid
from typing import List, Optional
from sqlmodel import SQLModel, Field
from pydantic import field_serializer, field_validator

from app.domains.ctr.schemas import ServiceCenterSummary
from app.domains.usr.schemas import EmployeeSummary
from . import models as sch_models
from .validators import MAX_SLOT, validate_repeat_days


def _check_repeat_days(value: Optional[List[int]]) -> Optional[List[int]]:
    if value is None:
        return value
    message = validate_repeat_days(value)
    if message:
        raise ValueError(message)
    return sorted(value)


def _check_unique_ids(value: List[uuid.UUID]) -> List[uuid.UUID]:
    if len(set(value)) != len(value):
        raise ValueError("Employee IDs must not contain duplicates")
    return value


# =============================================================================
# 1. 시프트 (Shift) 스키마
# =============================================================================
class ShiftBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_time: dt.time = Field(..., description="근무 시작 시각 HH:mm:ss (현지)")
    end_time: dt.time = Field(..., description="근무 종료 시각 HH:mm:ss (현지)")
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    repeat_days: Optional[List[int]] = Field(None, description="반복 요일 (0=일요일 ... 6=토요일)")
    maximum_slot: int = Field(..., ge=1, le=MAX_SLOT, description="날짜별 최대 배정 인원")


class ShiftCreate(ShiftBase):
    center_id: uuid.UUID

    @field_validator("repeat_days")
    @classmethod
    def check_repeat_days(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        return _check_repeat_days(value)


class ShiftUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    repeat_days: Optional[List[int]] = None
    maximum_slot: Optional[int] = Field(None, ge=1, le=MAX_SLOT)
    status: Optional[sch_models.ShiftStatus] = None
    center_id: Optional[uuid.UUID] = None

    @field_validator("repeat_days")
    @classmethod
    def check_repeat_days(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        return _check_repeat_days(value)


class ShiftSummary(SQLModel):
    id: uuid.UUID
    name: str
    start_time: dt.time
    end_time: dt.time
    center: Optional[ServiceCenterSummary] = None

    @field_serializer("start_time", "end_time")
    def format_time(self, value: dt.time) -> str:
        return value.strftime("%H:%M:%S")


class ShiftRead(ShiftBase):
    id: uuid.UUID
    status: sch_models.ShiftStatus
    center_id: uuid.UUID
    center: Optional[ServiceCenterSummary] = None

    @field_serializer("start_time", "end_time")
    def format_time(self, value: dt.time) -> str:
        return value.strftime("%H:%M:%S")


# =============================================================================
# 2. 근무 일정 (WorkSchedule) 스키마
# =============================================================================
class WorkScheduleCreate(SQLModel):
    """단일 날짜에 한 명 이상의 직원을 시프트에 배정합니다."""
    shift_id: uuid.UUID
    employee_ids: List[uuid.UUID] = Field(..., min_length=1)
    date: dt.date = Field(..., description="근무 날짜 YYYY-MM-DD (현지)")

    @field_validator("employee_ids")
    @classmethod
    def check_employee_ids(cls, value: List[uuid.UUID]) -> List[uuid.UUID]:
        return _check_unique_ids(value)


class WorkScheduleCyclicCreate(SQLModel):
    """시프트의 반복 패턴(start_date ~ end_date, repeat_days)으로 근무 일정을 일괄 생성합니다."""
    shift_id: uuid.UUID
    employee_ids: List[uuid.UUID] = Field(..., min_length=1)

    @field_validator("employee_ids")
    @classmethod
    def check_employee_ids(cls, value: List[uuid.UUID]) -> List[uuid.UUID]:
        return _check_unique_ids(value)


class WorkScheduleReplace(SQLModel):
    """(시프트, 날짜)의 배정 인원을 주어진 목록으로 교체합니다. 빈 목록은 전체 해제입니다."""
    employee_ids: List[uuid.UUID] = Field(default_factory=list)

    @field_validator("employee_ids")
    @classmethod
    def check_employee_ids(cls, value: List[uuid.UUID]) -> List[uuid.UUID]:
        return _check_unique_ids(value)


class WorkScheduleRead(SQLModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    shift_id: uuid.UUID
    date: dt.date
    employee: Optional[EmployeeSummary] = None
    shift: Optional[ShiftSummary] = None


class WorkScheduleDeleted(SQLModel):
    message: str
    id: uuid.UUID
