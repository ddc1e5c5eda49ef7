# app/domains/ctr/schemas.py

"""
'ctr' 도메인 (서비스센터 및 근무지 배정)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.

배정 기간은 입력 시 UTC 로 변환되고(tz 정보가 없으면 현지 시각으로 해석),
응답 시 서비스센터 현지 시각으로 직렬화됩니다.
"""

import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import field_serializer, field_validator

from app.domains.usr.schemas import EmployeeSummary
from app.utils.timezone import local_to_utc, to_local
from . import models as ctr_models


# =============================================================================
# 1. 서비스센터 (ServiceCenter) 스키마
# =============================================================================
class ServiceCenterBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


class ServiceCenterCreate(ServiceCenterBase):
    status: ctr_models.CenterStatus = ctr_models.CenterStatus.OPEN


class ServiceCenterUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    status: Optional[ctr_models.CenterStatus] = None


class ServiceCenterSummary(SQLModel):
    id: uuid.UUID
    name: str
    status: ctr_models.CenterStatus


class ServiceCenterRead(ServiceCenterBase):
    id: uuid.UUID
    status: ctr_models.CenterStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. 근무지 배정 (WorkCenter) 스키마
# =============================================================================
class WorkCenterCreate(SQLModel):
    employee_id: uuid.UUID
    center_id: uuid.UUID
    start_date: datetime = Field(..., description="배정 시작 일시 (tz 없으면 현지 시각)")
    end_date: Optional[datetime] = Field(None, description="배정 종료 일시 (생략 시 무기한)")

    @field_validator("start_date", "end_date")
    @classmethod
    def convert_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return local_to_utc(value)


class WorkCenterUpdate(SQLModel):
    """end_date 에 null 을 명시하면 무기한 배정으로 변경됩니다."""
    employee_id: Optional[uuid.UUID] = None
    center_id: Optional[uuid.UUID] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def convert_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return local_to_utc(value)


class WorkCenterRead(SQLModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    center_id: uuid.UUID
    start_date: datetime
    end_date: Optional[datetime] = None
    employee: Optional[EmployeeSummary] = None
    center: Optional[ServiceCenterSummary] = None

    @field_serializer("start_date", "end_date")
    def serialize_local(self, value: Optional[datetime]) -> Optional[str]:
        local = to_local(value)
        return local.isoformat() if local else None
