# app/domains/usr/routers.py

"""
'usr' 도메인 (인증 및 직원 관리)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

import uuid
from typing import List, Optional
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.core import dependencies as deps
from app.core.exceptions import NotFoundError
from app.core.policy import AccessScope, Action, require

from . import crud as usr_crud
from . import models as usr_models
from . import schemas as usr_schemas


router = APIRouter(
    tags=["Account & Employee Management (계정 및 직원 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 인증 (Authentication) 엔드포인트
# =============================================================================

@router.post("/auth/token", response_model=usr_schemas.Token, summary="Access Token 획득")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
):
    """OAuth2 password flow. username 필드에 이메일을 전달합니다."""
    account = await usr_crud.account.authenticate(
        db, email=form_data.username, password=form_data.password
    )
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not account.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = deps.create_access_token(
        data={"sub": str(account.id), "role": account.role.value},
        expires_delta=access_token_expires,
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/auth/me", response_model=usr_schemas.AccountRead, summary="현재 계정 정보 조회")
async def read_users_me(current_user: usr_models.Account = Depends(deps.get_current_active_user)):
    return current_user


# =============================================================================
# 2. 직원 (Employee) 관리 엔드포인트
# =============================================================================
@router.post("/employees", response_model=usr_schemas.EmployeeRead, status_code=status.HTTP_201_CREATED, summary="새 직원 계정 생성")
async def create_employee(
    employee_in: usr_schemas.EmployeeCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.EMPLOYEE_WRITE)),
):
    return await usr_crud.employee.create(db, obj_in=employee_in)


@router.get("/employees", response_model=List[usr_schemas.EmployeeRead], summary="직원 목록 조회")
async def read_employees(
    role: Optional[usr_models.UserRole] = Query(None, description="역할 필터"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.EMPLOYEE_READ)),
):
    return await usr_crud.employee.get_multi_by_role(db, role=role, skip=skip, limit=limit)


@router.get("/employees/{account_id}", response_model=usr_schemas.EmployeeRead, summary="특정 직원 조회")
async def read_employee(
    account_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.EMPLOYEE_READ)),
):
    db_employee = await usr_crud.employee.get_with_account(db, account_id=account_id)
    if not db_employee:
        raise NotFoundError(f"Employee with ID {account_id} not found")
    return db_employee


@router.patch("/employees/{account_id}", response_model=usr_schemas.EmployeeRead, summary="직원 정보 수정")
async def update_employee(
    account_id: uuid.UUID,
    employee_in: usr_schemas.EmployeeUpdate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.EMPLOYEE_WRITE)),
):
    db_employee = await usr_crud.employee.get_with_account(db, account_id=account_id)
    if not db_employee:
        raise NotFoundError(f"Employee with ID {account_id} not found")
    return await usr_crud.employee.update(db, db_obj=db_employee, obj_in=employee_in)
