# app/domains/ctr/models.py

"""
'ctr' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- service_centers : 서비스센터 (시프트와 근무지 배정을 소유)
- work_centers    : 직원-서비스센터 배정 (기간제 또는 무기한)

배정 기간(start_date, end_date)은 UTC 시각으로 저장됩니다.
동일한 (직원, 센터) 쌍에 대해 배정 기간은 서로 겹치지 않아야 합니다.
"""

import uuid
from enum import Enum
from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import ForeignKey, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.domains.usr.models import Employee


class CenterStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


# =============================================================================
# 1. service_centers 테이블 모델
# =============================================================================
class ServiceCenterBase(SQLModel):
    """
    service_centers 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="서비스센터 고유 ID")
    name: str = Field(max_length=100, sa_column_kwargs={"unique": True}, description="서비스센터명")
    address: str = Field(max_length=255, description="주소")
    phone: Optional[str] = Field(default=None, max_length=20, description="대표 전화번호")
    status: CenterStatus = Field(default=CenterStatus.OPEN, description="운영 상태")

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class ServiceCenter(ServiceCenterBase, table=True):
    """
    service_centers 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "service_centers"


# =============================================================================
# 2. work_centers 테이블 모델 (직원-센터 배정)
# =============================================================================
class WorkCenterBase(SQLModel):
    """
    work_centers 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    end_date 가 NULL 이면 무기한 배정입니다.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="배정 고유 ID")
    employee_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("employees.account_id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        description="직원 ID (FK)"
    )
    center_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("service_centers.id", onupdate="CASCADE", ondelete="RESTRICT"),
            nullable=False,
        ),
        description="서비스센터 ID (FK)"
    )
    start_date: datetime = Field(
        sa_column=Column(TIMESTAMP(timezone=True), nullable=False),
        description="배정 시작 일시 (UTC)"
    )
    end_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(TIMESTAMP(timezone=True), nullable=True),
        description="배정 종료 일시 (UTC, NULL=무기한)"
    )

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


class WorkCenter(WorkCenterBase, table=True):
    """
    work_centers 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "work_centers"
    __table_args__ = (
        Index("ix_work_centers_employee_center", "employee_id", "center_id"),
    )

    employee: Optional[Employee] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    center: Optional[ServiceCenter] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
