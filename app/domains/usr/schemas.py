# app/domains/usr/schemas.py

"""
'usr' 도메인 (계정 및 직원 관리)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

import uuid
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from pydantic import BaseModel, EmailStr

from . import models as usr_models


# =============================================================================
# 1. 인증 (Token) 스키마
# =============================================================================
class Token(BaseModel):
    access_token: str
    token_type: str


# =============================================================================
# 2. 계정 (Account) 스키마
# =============================================================================
class AccountRead(SQLModel):
    """계정 조회용 스키마. 비밀번호 해시값은 제외됩니다."""
    id: uuid.UUID
    email: str
    role: usr_models.UserRole
    is_active: bool
    created_at: Optional[datetime] = None


# =============================================================================
# 3. 직원 (Employee) 스키마
# =============================================================================
class EmployeeBase(SQLModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class EmployeeCreate(EmployeeBase):
    """직원 계정 생성을 위한 스키마 (계정 + 프로필)"""
    email: EmailStr = Field(..., max_length=100)
    password: str = Field(..., min_length=8)
    role: usr_models.UserRole = Field(default=usr_models.UserRole.TECHNICIAN, description="계정 역할")


class EmployeeUpdate(SQLModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    role: Optional[usr_models.UserRole] = None
    is_active: Optional[bool] = None


class EmployeeSummary(SQLModel):
    """다른 도메인 응답에 포함되는 직원 요약 정보"""
    account_id: uuid.UUID
    first_name: str
    last_name: str


class EmployeeRead(EmployeeBase):
    account_id: uuid.UUID
    account: AccountRead
