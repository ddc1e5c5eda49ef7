# app/domains/sch/models.py

"""
'sch' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- shifts          : 서비스센터별 근무 시프트 정의 (시간대, 정원, 반복 패턴)
- work_schedules  : 특정 날짜에 직원을 시프트에 배정한 근무 일정

시프트의 start_time/end_time 은 센터 현지 시각(벽시계 시간)이며,
근무 일정의 date 는 현지 달력 날짜입니다.
"""

import datetime as dt
import uuid
from enum import Enum
from typing import List, Optional
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.domains.ctr.models import ServiceCenter
from app.domains.usr.models import Employee


class ShiftStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


# =============================================================================
# 1. shifts 테이블 모델
# =============================================================================
class ShiftBase(SQLModel):
    """
    shifts 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    start_date, end_date, repeat_days 가 모두 있으면 반복 배정(cyclic)에 사용할 수 있습니다.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="시프트 고유 ID")
    name: str = Field(max_length=100, description="시프트명")
    start_time: dt.time = Field(description="근무 시작 시각 (현지)")
    end_time: dt.time = Field(description="근무 종료 시각 (현지, 야간 근무는 시작보다 이를 수 있음)")
    start_date: Optional[dt.date] = Field(default=None, description="반복 시작일")
    end_date: Optional[dt.date] = Field(default=None, description="반복 종료일")
    repeat_days: Optional[List[int]] = Field(
        default=None,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql")),
        description="반복 요일 목록 (0=일요일 ... 6=토요일)"
    )
    maximum_slot: int = Field(description="날짜별 최대 배정 인원")
    status: ShiftStatus = Field(default=ShiftStatus.ACTIVE, description="시프트 상태")
    center_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("service_centers.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        description="서비스센터 ID (FK)"
    )

    created_at: Optional[dt.datetime] = Field(
        default_factory=lambda: dt.datetime.now(dt.UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[dt.datetime] = Field(
        default_factory=lambda: dt.datetime.now(dt.UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class Shift(ShiftBase, table=True):
    """
    shifts 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "shifts"

    center: Optional[ServiceCenter] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})


# =============================================================================
# 2. work_schedules 테이블 모델
# =============================================================================
class WorkScheduleBase(SQLModel):
    """
    work_schedules 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    (employee_id, shift_id, date) 조합은 유일합니다.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="근무 일정 고유 ID")
    employee_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("employees.account_id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        description="직원 ID (FK)"
    )
    shift_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("shifts.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        description="시프트 ID (FK)"
    )
    date: dt.date = Field(description="근무 날짜 (현지)")

    created_at: Optional[dt.datetime] = Field(
        default_factory=lambda: dt.datetime.now(dt.UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[dt.datetime] = Field(
        default_factory=lambda: dt.datetime.now(dt.UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class WorkSchedule(WorkScheduleBase, table=True):
    """
    work_schedules 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "work_schedules"
    __table_args__ = (
        UniqueConstraint("employee_id", "shift_id", "date", name="uq_work_schedules_employee_shift_date"),
        Index("ix_work_schedules_shift_date", "shift_id", "date"),
    )

    employee: Optional[Employee] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    shift: Optional[Shift] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
