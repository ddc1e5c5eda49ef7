# app/domains/sch/routers.py

"""
'sch' 도메인 (시프트 및 근무 일정)과 관련된 API 엔드포인트를 정의하는 모듈입니다.
"""

import datetime as dt
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.policy import AccessScope, Action, require

from . import crud as sch_crud
from . import models as sch_models
from . import schemas as sch_schemas
from . import services as sch_services


router = APIRouter(
    tags=["Scheduling Management (시프트 및 근무 일정 관리)"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. 시프트 (Shift) 엔드포인트
# =============================================================================
@router.post("/shifts", response_model=sch_schemas.ShiftRead, status_code=status.HTTP_201_CREATED, summary="새 시프트 생성")
async def create_shift(
    shift_in: sch_schemas.ShiftCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SHIFT_WRITE)),
):
    return await sch_services.create_shift(db, obj_in=shift_in)


@router.get("/shifts", response_model=List[sch_schemas.ShiftRead], summary="시프트 목록 조회")
async def read_shifts(
    center_id: Optional[uuid.UUID] = Query(None),
    status_filter: Optional[sch_models.ShiftStatus] = Query(None, alias="status"),
    name: Optional[str] = Query(None, description="시프트명 부분 일치 검색"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SHIFT_READ)),
):
    """
    시프트 목록을 조회합니다.
    ADMIN 이 아니면 현재 배정된 서비스센터의 시프트만 조회됩니다.
    """
    return await sch_crud.shift.get_scoped_multi(
        db, scope=scope, center_id=center_id, status=status_filter, name=name, skip=skip, limit=limit
    )


async def _get_shift(db: AsyncSession, shift_id: uuid.UUID) -> sch_models.Shift:
    shift = await sch_crud.shift.get_with_center(db, id=shift_id)
    if not shift:
        raise NotFoundError(f"Shift with ID {shift_id} not found")
    return shift


@router.get("/shifts/{shift_id}", response_model=sch_schemas.ShiftRead, summary="특정 시프트 조회")
async def read_shift(
    shift_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SHIFT_READ)),
):
    shift = await _get_shift(db, shift_id)
    if not scope.can_view_center(shift.center_id):
        raise ForbiddenError("Not enough permissions to view this shift")
    return shift


@router.patch("/shifts/{shift_id}", response_model=sch_schemas.ShiftRead, summary="시프트 수정")
async def update_shift(
    shift_id: uuid.UUID,
    shift_in: sch_schemas.ShiftUpdate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SHIFT_WRITE)),
):
    shift = await _get_shift(db, shift_id)
    return await sch_services.update_shift(db, db_obj=shift, obj_in=shift_in)


@router.delete("/shifts/{shift_id}", response_model=sch_schemas.ShiftRead, summary="시프트 비활성화 (논리 삭제)")
async def delete_shift(
    shift_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SHIFT_WRITE)),
):
    """근무 일정이 남아 있는 시프트는 비활성화할 수 없습니다."""
    shift = await _get_shift(db, shift_id)
    return await sch_services.deactivate_shift(db, db_obj=shift)


# =============================================================================
# 2. 근무 일정 (WorkSchedule) 엔드포인트
# =============================================================================
@router.post(
    "/work-schedules",
    response_model=List[sch_schemas.WorkScheduleRead],
    status_code=status.HTTP_201_CREATED,
    summary="단일 날짜 근무 배정",
)
async def create_work_schedules(
    schedule_in: sch_schemas.WorkScheduleCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_WRITE)),
):
    return await sch_services.create_assignment(
        db, shift_id=schedule_in.shift_id, employee_ids=schedule_in.employee_ids, day=schedule_in.date
    )


@router.post(
    "/work-schedules/cyclic",
    response_model=List[sch_schemas.WorkScheduleRead],
    status_code=status.HTTP_201_CREATED,
    summary="반복 패턴으로 근무 일괄 배정",
)
async def create_cyclic_work_schedules(
    schedule_in: sch_schemas.WorkScheduleCyclicCreate,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_WRITE)),
):
    """
    시프트의 start_date ~ end_date 중 repeat_days 에 해당하는 모든 날짜에 직원들을 배정합니다.
    한 날짜라도 실패하면 전체가 취소됩니다.
    """
    return await sch_services.expand_recurring_assignment(
        db, shift_id=schedule_in.shift_id, employee_ids=schedule_in.employee_ids
    )


@router.get("/work-schedules", response_model=List[sch_schemas.WorkScheduleRead], summary="근무 일정 목록 조회")
async def read_work_schedules(
    shift_id: Optional[uuid.UUID] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    center_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[dt.date] = Query(None),
    date_to: Optional[dt.date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_READ)),
):
    """
    근무 일정 목록을 조회합니다.
    - ADMIN 은 모든 일정을 조회합니다.
    - STAFF 는 본인 일정과 현재 배정된 센터의 일정을 조회합니다.
    - TECHNICIAN 은 본인 일정만 조회합니다.
    """
    return await sch_crud.work_schedule.get_scoped_multi(
        db, scope=scope, shift_id=shift_id, employee_id=employee_id, center_id=center_id,
        date_from=date_from, date_to=date_to, skip=skip, limit=limit,
    )


@router.put(
    "/work-schedules/shifts/{shift_id}/dates/{date}",
    response_model=List[sch_schemas.WorkScheduleRead],
    summary="시프트/날짜의 배정 인원 교체",
)
async def replace_work_schedules(
    shift_id: uuid.UUID,
    date: dt.date,
    schedule_in: sch_schemas.WorkScheduleReplace,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_WRITE)),
):
    return await sch_services.replace_assignments_for_shift_date(
        db, shift_id=shift_id, day=date, employee_ids=schedule_in.employee_ids
    )


@router.get("/work-schedules/{schedule_id}", response_model=sch_schemas.WorkScheduleRead, summary="특정 근무 일정 조회")
async def read_work_schedule(
    schedule_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_READ)),
):
    entry = await sch_crud.work_schedule.get_with_relations(db, id=schedule_id)
    if not entry:
        raise NotFoundError(f"Work schedule with ID {schedule_id} not found")
    if not scope.can_view_employee_record(entry.employee_id, entry.shift.center_id):
        raise ForbiddenError("Not enough permissions to view this work schedule")
    return entry


@router.delete("/work-schedules/{schedule_id}", response_model=sch_schemas.WorkScheduleDeleted, summary="근무 일정 삭제")
async def delete_work_schedule(
    schedule_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    scope: AccessScope = Depends(require(Action.SCHEDULE_WRITE)),
):
    deleted_id = await sch_services.delete_assignment(db, entry_id=schedule_id)
    return sch_schemas.WorkScheduleDeleted(message="Work schedule deleted successfully", id=deleted_id)
