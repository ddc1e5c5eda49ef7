# app/domains/usr/models.py

"""
'usr' 도메인의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

이 모듈은 계정(accounts)과 직원 프로필(employees) 테이블에 대한 SQLModel 클래스를 포함합니다.
직원은 계정 ID를 그대로 기본 키로 사용하며, 근무 배정 대상 여부는 계정의 역할로 결정됩니다.
"""

import uuid
from enum import Enum
from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 사용자 역할(RBAC) Enum
# =============================================================================
class UserRole(str, Enum):
    """
    계정 역할을 정의하는 Enum 클래스입니다.
    STAFF, TECHNICIAN 역할의 직원만 근무 배정 대상이 됩니다.
    """
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    TECHNICIAN = "TECHNICIAN"
    CUSTOMER = "CUSTOMER"


# 근무 배정(WorkCenter, WorkSchedule)이 가능한 역할
SCHEDULABLE_ROLES = (UserRole.STAFF, UserRole.TECHNICIAN)


# =============================================================================
# 1. accounts 테이블 모델
# =============================================================================
class AccountBase(SQLModel):
    """
    accounts 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="계정 고유 ID")
    email: str = Field(max_length=100, sa_column_kwargs={"unique": True}, description="로그인 이메일")
    password_hash: str = Field(max_length=255, description="해싱된 비밀번호")
    role: UserRole = Field(default=UserRole.CUSTOMER, description="계정 역할 (권한)")
    is_active: bool = Field(default=True, description="계정 활성 여부")

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


class Account(AccountBase, table=True):
    """
    accounts 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "accounts"

    employee: Optional["Employee"] = Relationship(
        back_populates="account",
        sa_relationship_kwargs={"uselist": False, "lazy": "selectin"}
    )


# =============================================================================
# 2. employees 테이블 모델
# =============================================================================
class EmployeeBase(SQLModel):
    """
    employees 테이블의 기본 속성을 정의하는 SQLModel Base 클래스입니다.
    """
    account_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("accounts.id", onupdate="CASCADE", ondelete="CASCADE"),
            primary_key=True,
        ),
        description="계정 ID (PK, FK)"
    )
    first_name: str = Field(max_length=50, description="이름")
    last_name: str = Field(max_length=50, description="성")

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


class Employee(EmployeeBase, table=True):
    """
    employees 테이블에 매핑되는 SQLModel ORM 클래스입니다.
    """
    __tablename__ = "employees"

    account: "Account" = Relationship(
        back_populates="employee",
        sa_relationship_kwargs={"lazy": "selectin"}
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
