# app/domains/ctr/routers.py

"""
'ctr' 도메인 (서비스센터 및 직원-센터 배정)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.policy import AccessScope, Action, require

from . import crud as ctr_crud
from . import models as ctr_models
from . import schemas as ctr_schemas
from . import services as ctr_services


router = APIRouter(
    tags=["Service Center Management (서비스센터 및 배정 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 서비스센터 (ServiceCenter) 엔드포인트
# =============================================================================
@router.post("/centers", response_model=ctr_schemas.ServiceCenterRead, status_code=status.HTTP_201_CREATED, summary="새 서비스센터 생성")
async def create_center(
    center_in: ctr_schemas.ServiceCenterCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.CENTER_WRITE)),
):
    return await ctr_crud.service_center.create(db, obj_in=center_in)


@router.get("/centers", response_model=List[ctr_schemas.ServiceCenterRead], summary="서비스센터 목록 조회")
async def read_centers(
    status_filter: Optional[ctr_models.CenterStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.CENTER_READ)),
):
    return await ctr_crud.service_center.get_multi(db, skip=skip, limit=limit, status=status_filter)


@router.get("/centers/{center_id}", response_model=ctr_schemas.ServiceCenterRead, summary="특정 서비스센터 조회")
async def read_center(
    center_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.CENTER_READ)),
):
    center = await ctr_crud.service_center.get(db, center_id)
    if not center:
        raise NotFoundError(f"Service center with ID {center_id} not found")
    return center


@router.patch("/centers/{center_id}", response_model=ctr_schemas.ServiceCenterRead, summary="서비스센터 정보 수정")
async def update_center(
    center_id: uuid.UUID,
    center_in: ctr_schemas.ServiceCenterUpdate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.CENTER_WRITE)),
):
    center = await ctr_crud.service_center.get(db, center_id)
    if not center:
        raise NotFoundError(f"Service center with ID {center_id} not found")
    return await ctr_crud.service_center.update(db, db_obj=center, obj_in=center_in)


@router.delete("/centers/{center_id}", response_model=ctr_schemas.ServiceCenterRead, summary="서비스센터 폐쇄 (논리 삭제)")
async def close_center(
    center_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.CENTER_WRITE)),
):
    center = await ctr_crud.service_center.get(db, center_id)
    if not center:
        raise NotFoundError(f"Service center with ID {center_id} not found")
    return await ctr_crud.service_center.close(db, db_obj=center)


# =============================================================================
# 2. 직원-센터 배정 (WorkCenter) 엔드포인트
# =============================================================================
@router.post("/work-centers", response_model=ctr_schemas.WorkCenterRead, status_code=status.HTTP_201_CREATED, summary="직원을 서비스센터에 배정")
async def assign_employee_to_center(
    work_center_in: ctr_schemas.WorkCenterCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.WORK_CENTER_WRITE)),
):
    return await ctr_services.assign_employee_to_center(db, obj_in=work_center_in)


@router.get("/work-centers", response_model=List[ctr_schemas.WorkCenterRead], summary="배정 목록 조회")
async def read_work_centers(
    employee_id: Optional[uuid.UUID] = Query(None),
    center_id: Optional[uuid.UUID] = Query(None),
    active_on: Optional[date] = Query(None, description="해당 현지 날짜에 유효한 배정만 조회"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.WORK_CENTER_READ)),
):
    """
    배정 목록을 조회합니다.
    - ADMIN 은 모든 배정을 조회합니다.
    - STAFF 와 TECHNICIAN 은 본인 배정만 조회합니다.
    """
    return await ctr_crud.work_center.get_scoped_multi(
        db, scope=scope, employee_id=employee_id, center_id=center_id,
        active_on=active_on, skip=skip, limit=limit,
    )


async def _get_visible_work_center(db: AsyncSession, work_center_id: uuid.UUID, scope: AccessScope) -> ctr_models.WorkCenter:
    db_obj = await ctr_crud.work_center.get_with_relations(db, id=work_center_id)
    if not db_obj:
        raise NotFoundError(f"Work center assignment with ID {work_center_id} not found")
    if not scope.can_view_employee_record(db_obj.employee_id):
        raise ForbiddenError("Not enough permissions to view this work center assignment")
    return db_obj


@router.get("/work-centers/{work_center_id}", response_model=ctr_schemas.WorkCenterRead, summary="특정 배정 조회")
async def read_work_center(
    work_center_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.WORK_CENTER_READ)),
):
    return await _get_visible_work_center(db, work_center_id, scope)


@router.patch("/work-centers/{work_center_id}", response_model=ctr_schemas.WorkCenterRead, summary="배정 변경")
async def update_work_center(
    work_center_id: uuid.UUID,
    work_center_in: ctr_schemas.WorkCenterUpdate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.WORK_CENTER_WRITE)),
):
    db_obj = await _get_visible_work_center(db, work_center_id, scope)
    return await ctr_services.update_center_assignment(db, db_obj=db_obj, obj_in=work_center_in)


@router.delete("/work-centers/{work_center_id}", response_model=ctr_schemas.WorkCenterRead, summary="배정 종료 (논리 삭제)")
async def end_work_center(
    work_center_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.WORK_CENTER_WRITE)),
):
    """배정은 물리 삭제하지 않고 end_date 를 현재 시각으로 설정합니다."""
    db_obj = await _get_visible_work_center(db, work_center_id, scope)
    return await ctr_services.end_center_assignment(db, db_obj=db_obj)
