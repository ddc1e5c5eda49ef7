# app/domains/ctr/services.py

"""
직원-서비스센터 배정(WorkCenter)의 비즈니스 규칙을 처리하는 서비스 모듈입니다.

- 배정 생성 / 변경 시 동일 (직원, 센터) 쌍의 기간 중복 검사
- 배정 종료 (물리 삭제 없이 end_date = 현재 시각)

기간 중복 검사와 저장은 같은 트랜잭션 안에서 직원 행을 잠근(SELECT ... FOR UPDATE) 뒤 수행하므로,
같은 직원에 대한 동시 요청은 PostgreSQL 에서 순차적으로 처리됩니다.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from app.domains.usr import crud as usr_crud
from app.domains.usr import models as usr_models
from app.utils.timezone import ensure_utc, format_local_date, now_utc
from . import crud as ctr_crud
from . import models as ctr_models
from . import schemas as ctr_schemas

logger = logging.getLogger(__name__)


def _validate_range(start_date: datetime, end_date: Optional[datetime]) -> None:
    if end_date is not None and end_date <= start_date:
        raise ValidationError(errors={"end_date": "End date must be after start date"})


async def _get_locked_employee(db: AsyncSession, employee_id: uuid.UUID) -> usr_models.Employee:
    """배정 대상 직원 행을 잠그고, 역할 자격을 검증합니다."""
    locked = await usr_crud.employee.get_for_update(db, employee_id)
    if locked is None:
        raise NotFoundError("Employee not found", errors={"employee_id": f"Employee with ID {employee_id} not found"})
    employees = await usr_crud.employee.get_schedulable(db, ids=[employee_id], field="employee_id", indexed=False)
    return employees[employee_id]


async def _get_open_center(db: AsyncSession, center_id: uuid.UUID) -> ctr_models.ServiceCenter:
    center = await ctr_crud.service_center.get(db, center_id)
    if center is None:
        raise NotFoundError("Service center not found", errors={"center_id": f"Service center with ID {center_id} not found"})
    if center.status != ctr_models.CenterStatus.OPEN:
        raise ValidationError(errors={"center_id": f'Service center "{center.name}" is {center.status.value}'})
    return center


async def check_work_center_overlap(
    db: AsyncSession,
    *,
    employee: usr_models.Employee,
    center: ctr_models.ServiceCenter,
    start_date: datetime,
    end_date: Optional[datetime],
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """
    동일한 (직원, 센터) 쌍에 기간이 겹치는 배정이 있으면 ConflictError 를 발생시킵니다.
    """
    conflict = await ctr_crud.work_center.find_overlapping(
        db,
        employee_id=employee.account_id,
        center_id=center.id,
        start_date=start_date,
        end_date=end_date,
        exclude_id=exclude_id,
    )
    if conflict is None:
        return

    period_end = format_local_date(conflict.end_date) or "permanent"
    raise ConflictError(
        "Overlapping work center assignment",
        errors={
            "employee_id": (
                f"Employee {employee.full_name} already has an active assignment at {center.name} "
                f"from {format_local_date(conflict.start_date)} to {period_end}"
            )
        },
    )


async def assign_employee_to_center(
    db: AsyncSession, *, obj_in: ctr_schemas.WorkCenterCreate
) -> ctr_models.WorkCenter:
    """
    직원을 서비스센터에 배정합니다.
    직원 자격, 센터 상태, 기간 유효성, 기간 중복을 모두 검증한 뒤 저장합니다.
    """
    _validate_range(obj_in.start_date, obj_in.end_date)
    employee = await _get_locked_employee(db, obj_in.employee_id)
    center = await _get_open_center(db, obj_in.center_id)

    await check_work_center_overlap(
        db, employee=employee, center=center, start_date=obj_in.start_date, end_date=obj_in.end_date
    )

    db_obj = ctr_models.WorkCenter(
        employee_id=obj_in.employee_id,
        center_id=obj_in.center_id,
        start_date=obj_in.start_date,
        end_date=obj_in.end_date,
    )
    db.add(db_obj)
    await db.commit()
    logger.info(
        "Employee %s assigned to center %s from %s to %s",
        employee.account_id, center.id, obj_in.start_date, obj_in.end_date or "open-ended",
    )
    return await ctr_crud.work_center.get_with_relations(db, id=db_obj.id)


async def update_center_assignment(
    db: AsyncSession, *, db_obj: ctr_models.WorkCenter, obj_in: ctr_schemas.WorkCenterUpdate
) -> ctr_models.WorkCenter:
    """
    기존 배정을 변경합니다. 직원, 센터, 기간 중 하나라도 바뀌면
    병합된 값으로 기간 중복 검사를 다시 수행합니다 (자기 자신은 제외).
    """
    update_data = obj_in.model_dump(exclude_unset=True)
    for key in ("employee_id", "center_id", "start_date"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(errors={key: f"{key} cannot be null"})

    employee_id = update_data.get("employee_id", db_obj.employee_id)
    center_id = update_data.get("center_id", db_obj.center_id)
    start_date = ensure_utc(update_data.get("start_date", db_obj.start_date))
    end_date = ensure_utc(update_data["end_date"] if "end_date" in update_data else db_obj.end_date)

    _validate_range(start_date, end_date)

    if update_data:
        employee = await _get_locked_employee(db, employee_id)
        if center_id != db_obj.center_id:
            center = await _get_open_center(db, center_id)
        else:
            center = await ctr_crud.service_center.get(db, center_id)
        await check_work_center_overlap(
            db, employee=employee, center=center,
            start_date=start_date, end_date=end_date, exclude_id=db_obj.id,
        )

    db_obj.employee_id = employee_id
    db_obj.center_id = center_id
    db_obj.start_date = start_date
    db_obj.end_date = end_date
    db.add(db_obj)
    await db.commit()
    logger.info("Work center assignment %s updated", db_obj.id)
    return await ctr_crud.work_center.get_with_relations(db, id=db_obj.id)


async def end_center_assignment(db: AsyncSession, *, db_obj: ctr_models.WorkCenter) -> ctr_models.WorkCenter:
    """
    배정을 논리적으로 종료합니다 (end_date = 현재 시각).
    이미 종료된 배정이면 BadRequestError 를 발생시킵니다.
    """
    now = now_utc()
    current_end = ensure_utc(db_obj.end_date)
    if current_end is not None and current_end <= now:
        raise BadRequestError(
            "Work center assignment has already ended",
            errors={"end_date": f"Assignment already ended on {format_local_date(current_end)}"},
        )

    db_obj.end_date = now
    db.add(db_obj)
    await db.commit()
    logger.info("Work center assignment %s ended at %s", db_obj.id, now.isoformat())
    return await ctr_crud.work_center.get_with_relations(db, id=db_obj.id)
