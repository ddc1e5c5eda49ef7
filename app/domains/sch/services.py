# app/domains/sch/services.py

"""
시프트와 근무 일정(WorkSchedule)의 비즈니스 규칙을 처리하는 서비스 모듈입니다.

- 시프트 생성 / 변경 / 비활성화 (시간 규칙, 센터 내 이름 유일성)
- 단일 날짜 배정, 반복 패턴 일괄 배정, (시프트, 날짜) 배정 인원 교체, 배정 삭제

모든 배정 변경은 시프트 행을 먼저 잠근(SELECT ... FOR UPDATE) 뒤 정원/중복 검사와 저장을
하나의 트랜잭션에서 수행합니다. (employee_id, shift_id, date) 유니크 제약이 중복 규칙을 보강하며,
커밋 시점의 IntegrityError 는 ConflictError 로 변환됩니다.
"""

import datetime as dt
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import (
    BadRequestError,
    CapacityError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.domains.ctr import crud as ctr_crud
from app.domains.ctr import models as ctr_models
from app.domains.usr import crud as usr_crud
from app.domains.usr import models as usr_models
from app.utils.timezone import ensure_utc, local_day_bounds_utc
from . import crud as sch_crud
from . import models as sch_models
from . import schemas as sch_schemas
from .validators import expand_recurrence_dates, validate_shift_time

logger = logging.getLogger(__name__)


# =============================================================================
# 1. 공통 검증 헬퍼
# =============================================================================
async def _get_active_shift(db: AsyncSession, shift_id: uuid.UUID) -> sch_models.Shift:
    """시프트 행을 잠그고 ACTIVE 상태인지 확인합니다."""
    shift = await sch_crud.shift.get_for_update(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found", errors={"shift_id": f"Shift with ID {shift_id} not found"})
    if shift.status != sch_models.ShiftStatus.ACTIVE:
        raise ValidationError(errors={"shift_id": f'Shift "{shift.name}" is not active'})
    return shift


def _check_capacity(shift: sch_models.Shift, day: dt.date, current: int, attempted: int) -> None:
    if current + attempted <= shift.maximum_slot:
        return
    available = max(shift.maximum_slot - current, 0)
    raise CapacityError(
        "Shift capacity exceeded",
        errors={
            "employee_ids": (
                f'Shift "{shift.name}" on {day.isoformat()} allows at most {shift.maximum_slot} employees: '
                f"{current} already assigned, {attempted} requested, only {available} available"
            )
        },
    )


def _raise_duplicates(existing: Iterable[sch_models.WorkSchedule]) -> None:
    conflicts: Dict[str, List[str]] = {}
    for entry in existing:
        name = entry.employee.full_name if entry.employee else str(entry.employee_id)
        conflicts.setdefault(entry.date.isoformat(), []).append(name)
    if not conflicts:
        return
    raise ConflictError(
        "Employees already assigned to this shift",
        errors={
            f"date.{day}": f"Already assigned on {day}: {', '.join(names)}"
            for day, names in sorted(conflicts.items())
        },
    )


def _is_active_on(assignment: ctr_models.WorkCenter, day: dt.date) -> bool:
    """배정 기간(UTC)이 현지 날짜 하루와 겹치는지 판단합니다. 시작 전에 종료된 배정은 무효입니다."""
    day_start, day_end = local_day_bounds_utc(day)
    start = ensure_utc(assignment.start_date)
    end = ensure_utc(assignment.end_date)
    if end is not None and end < start:
        return False
    return start <= day_end and (end is None or end >= day_start)


async def _check_center_assignment(
    db: AsyncSession,
    *,
    shift: sch_models.Shift,
    employees: Dict[uuid.UUID, usr_models.Employee],
    days: List[dt.date],
) -> None:
    """
    각 직원이 모든 근무 날짜에 시프트의 서비스센터에 배정되어 있는지 확인합니다.
    배정되지 않은 (직원, 날짜) 조합이 있으면 ValidationError 를 발생시킵니다.
    """
    if not employees or not days:
        return
    assignments = await ctr_crud.work_center.get_for_employees_in_range(
        db, employee_ids=employees.keys(), center_id=shift.center_id, first_day=min(days), last_day=max(days)
    )
    by_employee: Dict[uuid.UUID, List[ctr_models.WorkCenter]] = {}
    for assignment in assignments:
        by_employee.setdefault(assignment.employee_id, []).append(assignment)

    center_name = shift.center.name if shift.center else str(shift.center_id)
    for employee_id, employee in employees.items():
        held = by_employee.get(employee_id, [])
        for day in sorted(days):
            if not any(_is_active_on(assignment, day) for assignment in held):
                raise ValidationError(
                    errors={
                        "work_center": (
                            f'Employee {employee.full_name} is not assigned to service center "{center_name}" '
                            f"on {day.isoformat()}. Please assign the employee to this service center first."
                        )
                    }
                )


async def _insert(db: AsyncSession, entries: List[sch_models.WorkSchedule]) -> List[sch_models.WorkSchedule]:
    """근무 일정을 한 번의 커밋으로 저장하고, 연관 데이터를 포함하여 다시 조회합니다."""
    db.add_all(entries)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Employees already assigned to this shift",
            errors={"employee_ids": "One or more employees were assigned to this shift concurrently"},
        )
    return await sch_crud.work_schedule.get_many_with_relations(db, ids=[entry.id for entry in entries])


# =============================================================================
# 2. 근무 일정 (WorkSchedule) 서비스
# =============================================================================
async def create_assignment(
    db: AsyncSession, *, shift_id: uuid.UUID, employee_ids: List[uuid.UUID], day: dt.date
) -> List[sch_models.WorkSchedule]:
    """
    단일 날짜에 한 명 이상의 직원을 시프트에 배정합니다.

    검사 순서: 시프트 상태 → 직원 자격 → 정원 → 중복 배정 → 서비스센터 배정 여부
    """
    shift = await _get_active_shift(db, shift_id)
    employees = await usr_crud.employee.get_schedulable(db, ids=employee_ids)

    current = await sch_crud.work_schedule.count(db, shift_id=shift_id, date=day)
    _check_capacity(shift, day, current, len(employee_ids))

    existing = await sch_crud.work_schedule.get_existing(db, shift_id=shift_id, employee_ids=employee_ids, days=[day])
    _raise_duplicates(existing)

    await _check_center_assignment(db, shift=shift, employees=employees, days=[day])

    entries = [
        sch_models.WorkSchedule(employee_id=employee_id, shift_id=shift_id, date=day)
        for employee_id in employee_ids
    ]
    created = await _insert(db, entries)
    logger.info("Assigned %d employee(s) to shift %s on %s", len(created), shift_id, day.isoformat())
    return created


async def expand_recurring_assignment(
    db: AsyncSession, *, shift_id: uuid.UUID, employee_ids: List[uuid.UUID]
) -> List[sch_models.WorkSchedule]:
    """
    시프트의 반복 패턴(start_date ~ end_date 중 repeat_days 요일)에 맞춰 근무 일정을 일괄 생성합니다.
    한 날짜라도 정원/중복/센터 배정 검사에 실패하면 아무것도 저장하지 않습니다.
    """
    shift = await _get_active_shift(db, shift_id)
    missing = {
        key: f"Shift has no {key} configured"
        for key in ("start_date", "end_date", "repeat_days")
        if not getattr(shift, key)
    }
    if missing:
        raise BadRequestError("Shift has no recurrence pattern", errors=missing)
    if shift.center is None or shift.center.status != ctr_models.CenterStatus.OPEN:
        raise BadRequestError(
            "Service center is not open",
            errors={"center_id": f"Service center of shift \"{shift.name}\" is not open"},
        )

    employees = await usr_crud.employee.get_schedulable(db, ids=employee_ids)

    days = expand_recurrence_dates(shift.start_date, shift.end_date, shift.repeat_days)
    if not days:
        raise BadRequestError(
            "No valid dates",
            errors={"repeat_days": "No valid repeat days within the specified date range"},
        )

    counts = await sch_crud.work_schedule.count_by_date(db, shift_id=shift_id, days=days)
    for day in days:
        _check_capacity(shift, day, counts.get(day, 0), len(employee_ids))

    existing = await sch_crud.work_schedule.get_existing(db, shift_id=shift_id, employee_ids=employee_ids, days=days)
    _raise_duplicates(existing)

    await _check_center_assignment(db, shift=shift, employees=employees, days=days)

    entries = [
        sch_models.WorkSchedule(employee_id=employee_id, shift_id=shift_id, date=day)
        for day in days
        for employee_id in employee_ids
    ]
    created = await _insert(db, entries)
    logger.info(
        "Expanded shift %s for %d employee(s) over %d date(s): %d entries",
        shift_id, len(employee_ids), len(days), len(created),
    )
    return created


async def replace_assignments_for_shift_date(
    db: AsyncSession, *, shift_id: uuid.UUID, day: dt.date, employee_ids: List[uuid.UUID]
) -> List[sch_models.WorkSchedule]:
    """
    (시프트, 날짜)의 배정 인원을 주어진 목록으로 교체합니다.
    기존 목록과 같으면 변경 없이 현재 배정을 반환하고, 다르면 제거/추가를 한 트랜잭션으로 반영합니다.
    """
    shift = await sch_crud.shift.get_for_update(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found", errors={"shift_id": f"Shift with ID {shift_id} not found"})

    current = await sch_crud.work_schedule.get_for_shift_date(db, shift_id=shift_id, day=day)
    current_ids = {entry.employee_id for entry in current}
    wanted_ids = set(employee_ids)
    if current_ids == wanted_ids:
        return current

    to_remove = [entry for entry in current if entry.employee_id not in wanted_ids]
    to_add = [employee_id for employee_id in employee_ids if employee_id not in current_ids]

    if to_add:
        if shift.status != sch_models.ShiftStatus.ACTIVE:
            raise ValidationError(errors={"shift_id": f'Shift "{shift.name}" is not active'})
        if len(wanted_ids) > shift.maximum_slot:
            _check_capacity(shift, day, 0, len(wanted_ids))
        employees = await usr_crud.employee.get_schedulable(db, ids=to_add)
        await _check_center_assignment(db, shift=shift, employees=employees, days=[day])

    for entry in to_remove:
        await db.delete(entry)
    entries = [sch_models.WorkSchedule(employee_id=employee_id, shift_id=shift_id, date=day) for employee_id in to_add]
    db.add_all(entries)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Employees already assigned to this shift",
            errors={"employee_ids": "Assignments for this shift and date were changed concurrently"},
        )
    logger.info(
        "Replaced assignments of shift %s on %s: %d removed, %d added",
        shift_id, day.isoformat(), len(to_remove), len(to_add),
    )
    return await sch_crud.work_schedule.get_for_shift_date(db, shift_id=shift_id, day=day)


async def delete_assignment(db: AsyncSession, *, entry_id: uuid.UUID) -> uuid.UUID:
    """근무 일정을 물리 삭제합니다."""
    deleted = await sch_crud.work_schedule.delete(db, id=entry_id)
    if deleted is None:
        raise NotFoundError("Work schedule not found", errors={"id": f"Work schedule with ID {entry_id} not found"})
    logger.info("Work schedule %s deleted", entry_id)
    return entry_id


# =============================================================================
# 3. 시프트 (Shift) 서비스
# =============================================================================
def _validate_shift_values(
    start_time: dt.time, end_time: dt.time, start_date: Optional[dt.date], end_date: Optional[dt.date]
) -> None:
    message = validate_shift_time(start_time, end_time)
    if message:
        raise ValidationError(errors={"end_time": message})
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError(errors={"end_date": "End date must be on or after start date"})


async def _get_open_center(db: AsyncSession, center_id: uuid.UUID) -> ctr_models.ServiceCenter:
    center = await ctr_crud.service_center.get(db, center_id)
    if center is None:
        raise NotFoundError("Service center not found", errors={"center_id": f"Service center with ID {center_id} not found"})
    if center.status != ctr_models.CenterStatus.OPEN:
        raise ValidationError(errors={"center_id": f'Service center "{center.name}" is {center.status.value}'})
    return center


async def _check_shift_name(
    db: AsyncSession, *, name: str, center: ctr_models.ServiceCenter, exclude_id: Optional[uuid.UUID] = None
) -> None:
    if await sch_crud.shift.get_active_by_name(db, name=name, center_id=center.id, exclude_id=exclude_id):
        raise ConflictError(
            "Shift name already exists",
            errors={"name": f'Shift "{name}" already exists in service center "{center.name}"'},
        )


async def create_shift(db: AsyncSession, *, obj_in: sch_schemas.ShiftCreate) -> sch_models.Shift:
    _validate_shift_values(obj_in.start_time, obj_in.end_time, obj_in.start_date, obj_in.end_date)
    center = await _get_open_center(db, obj_in.center_id)
    await _check_shift_name(db, name=obj_in.name, center=center)

    db_obj = sch_models.Shift.model_validate(obj_in)
    db.add(db_obj)
    await db.commit()
    logger.info("Shift %s (%s) created in center %s", db_obj.id, db_obj.name, center.id)
    return await sch_crud.shift.get_with_center(db, id=db_obj.id)


async def _check_slot_reduction(db: AsyncSession, *, shift: sch_models.Shift, maximum_slot: int) -> None:
    """정원을 줄일 때 이미 그보다 많은 인원이 배정된 날짜가 있으면 거부합니다."""
    await sch_crud.shift.get_for_update(db, id=shift.id)
    busiest = await sch_crud.work_schedule.get_busiest_date(db, shift_id=shift.id)
    if busiest is None or busiest[1] <= maximum_slot:
        return
    day, assigned = busiest
    raise CapacityError(
        "Shift capacity exceeded",
        errors={
            "maximum_slot": (
                f'Shift "{shift.name}" already has {assigned} employees assigned on {day.isoformat()}; '
                f"maximum slot cannot be lowered to {maximum_slot}"
            )
        },
    )


async def update_shift(
    db: AsyncSession, *, db_obj: sch_models.Shift, obj_in: sch_schemas.ShiftUpdate
) -> sch_models.Shift:
    """
    시프트를 변경합니다. 시간/기간은 기존 값과 병합한 뒤 다시 검증하고,
    센터나 이름이 바뀌거나 다시 활성화되면 센터 내 이름 유일성을 재확인합니다.
    """
    update_data = obj_in.model_dump(exclude_unset=True)
    for key in ("name", "start_time", "end_time", "maximum_slot", "status", "center_id"):
        if key in update_data and update_data[key] is None:
            raise ValidationError(errors={key: f"{key} cannot be null"})

    merged = {
        key: update_data.get(key, getattr(db_obj, key))
        for key in ("name", "start_time", "end_time", "start_date", "end_date", "status", "center_id")
    }
    _validate_shift_values(merged["start_time"], merged["end_time"], merged["start_date"], merged["end_date"])

    center_changed = merged["center_id"] != db_obj.center_id
    if center_changed:
        center = await _get_open_center(db, merged["center_id"])
    else:
        center = await ctr_crud.service_center.get(db, merged["center_id"])

    becomes_active = (
        merged["status"] == sch_models.ShiftStatus.ACTIVE
        and (center_changed or merged["name"] != db_obj.name or db_obj.status != sch_models.ShiftStatus.ACTIVE)
    )
    if becomes_active:
        await _check_shift_name(db, name=merged["name"], center=center, exclude_id=db_obj.id)

    if "maximum_slot" in update_data:
        await _check_slot_reduction(db, shift=db_obj, maximum_slot=update_data["maximum_slot"])

    for key, value in update_data.items():
        setattr(db_obj, key, value)
    db.add(db_obj)
    await db.commit()
    logger.info("Shift %s updated: %s", db_obj.id, ", ".join(sorted(update_data)) or "no changes")
    return await sch_crud.shift.get_with_center(db, id=db_obj.id)


async def deactivate_shift(db: AsyncSession, *, db_obj: sch_models.Shift) -> sch_models.Shift:
    """시프트를 INACTIVE 로 전환합니다. 근무 일정이 남아 있으면 거부합니다."""
    if await sch_crud.work_schedule.has_any_for_shift(db, shift_id=db_obj.id):
        raise BadRequestError(
            "Cannot delete shift with assigned work schedules",
            errors={"id": f'Shift "{db_obj.name}" still has work schedules. Remove them first.'},
        )
    if db_obj.status == sch_models.ShiftStatus.INACTIVE:
        raise BadRequestError("Shift is already inactive", errors={"status": db_obj.status.value})

    db_obj.status = sch_models.ShiftStatus.INACTIVE
    db.add(db_obj)
    await db.commit()
    logger.info("Shift %s deactivated", db_obj.id)
    return await sch_crud.shift.get_with_center(db, id=db_obj.id)
