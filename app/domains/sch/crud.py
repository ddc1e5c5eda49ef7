# app/domains/sch/crud.py

"""
'sch' 도메인의 CRUD 작업을 담당하는 모듈입니다.
시프트 조회와 근무 일정의 날짜별 집계/중복 조회 쿼리를 포함합니다.
"""

import datetime as dt
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.policy import AccessScope
from . import models as sch_models
from . import schemas as sch_schemas


# =============================================================================
# 1. shifts 테이블 CRUD
# =============================================================================
class CRUDShift(CRUDBase[sch_models.Shift, sch_schemas.ShiftCreate, sch_schemas.ShiftUpdate]):
    def __init__(self):
        super().__init__(model=sch_models.Shift)

    async def get_active_by_name(
        self, db: AsyncSession, *, name: str, center_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[sch_models.Shift]:
        """센터 내에서 같은 이름을 가진 ACTIVE 시프트를 조회합니다."""
        Shift = sch_models.Shift
        statement = select(Shift).where(
            Shift.center_id == center_id,
            Shift.name == name,
            Shift.status == sch_models.ShiftStatus.ACTIVE,
        )
        if exclude_id is not None:
            statement = statement.where(Shift.id != exclude_id)
        result = await db.execute(statement)
        return result.scalars().first()

    async def get_with_center(self, db: AsyncSession, *, id: uuid.UUID) -> Optional[sch_models.Shift]:
        statement = (
            select(sch_models.Shift)
            .where(sch_models.Shift.id == id)
            .options(selectinload(sch_models.Shift.center))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_scoped_multi(
        self,
        db: AsyncSession,
        *,
        scope: AccessScope,
        center_id: Optional[uuid.UUID] = None,
        status: Optional[sch_models.ShiftStatus] = None,
        name: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[sch_models.Shift]:
        Shift = sch_models.Shift
        statement = select(Shift)
        if center_id is not None:
            statement = statement.where(Shift.center_id == center_id)
        if status is not None:
            statement = statement.where(Shift.status == status)
        if name:
            statement = statement.where(Shift.name.ilike(f"%{name}%"))
        center_filter = scope.center_filter(Shift.center_id)
        if center_filter is not None:
            statement = statement.where(center_filter)

        statement = statement.order_by(Shift.start_time, Shift.name).offset(skip).limit(limit)
        result = await db.execute(statement)
        return result.scalars().all()


shift = CRUDShift()


# =============================================================================
# 2. work_schedules 테이블 CRUD
# =============================================================================
class CRUDWorkSchedule(CRUDBase[sch_models.WorkSchedule, sch_schemas.WorkScheduleCreate, sch_schemas.WorkScheduleReplace]):
    def __init__(self):
        super().__init__(model=sch_models.WorkSchedule)

    def _with_relations(self, statement):
        WorkSchedule = sch_models.WorkSchedule
        return statement.options(
            selectinload(WorkSchedule.employee),
            selectinload(WorkSchedule.shift).selectinload(sch_models.Shift.center),
        ).execution_options(populate_existing=True)

    async def get_with_relations(self, db: AsyncSession, *, id: uuid.UUID) -> Optional[sch_models.WorkSchedule]:
        statement = self._with_relations(select(sch_models.WorkSchedule).where(sch_models.WorkSchedule.id == id))
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_many_with_relations(self, db: AsyncSession, *, ids: Iterable[uuid.UUID]) -> List[sch_models.WorkSchedule]:
        WorkSchedule = sch_models.WorkSchedule
        id_list = list(ids)
        if not id_list:
            return []
        statement = self._with_relations(
            select(WorkSchedule)
            .where(WorkSchedule.id.in_(id_list))
            .order_by(WorkSchedule.date, WorkSchedule.employee_id)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def get_for_shift_date(
        self, db: AsyncSession, *, shift_id: uuid.UUID, day: dt.date
    ) -> List[sch_models.WorkSchedule]:
        WorkSchedule = sch_models.WorkSchedule
        statement = self._with_relations(
            select(WorkSchedule)
            .where(WorkSchedule.shift_id == shift_id, WorkSchedule.date == day)
            .order_by(WorkSchedule.created_at)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def count_by_date(
        self, db: AsyncSession, *, shift_id: uuid.UUID, days: Iterable[dt.date]
    ) -> Dict[dt.date, int]:
        """주어진 날짜들에 대해 시프트의 날짜별 배정 인원 수를 집계합니다."""
        WorkSchedule = sch_models.WorkSchedule
        day_list = list(days)
        if not day_list:
            return {}
        statement = (
            select(WorkSchedule.date, func.count(WorkSchedule.id))
            .where(WorkSchedule.shift_id == shift_id, WorkSchedule.date.in_(day_list))
            .group_by(WorkSchedule.date)
        )
        result = await db.execute(statement)
        return {day: count for day, count in result.all()}

    async def get_busiest_date(
        self, db: AsyncSession, *, shift_id: uuid.UUID
    ) -> Optional[Tuple[dt.date, int]]:
        """배정 인원이 가장 많은 날짜와 그 인원 수를 반환합니다. 일정이 없으면 None."""
        WorkSchedule = sch_models.WorkSchedule
        entry_count = func.count(WorkSchedule.id)
        statement = (
            select(WorkSchedule.date, entry_count)
            .where(WorkSchedule.shift_id == shift_id)
            .group_by(WorkSchedule.date)
            .order_by(entry_count.desc(), WorkSchedule.date)
            .limit(1)
        )
        result = await db.execute(statement)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_existing(
        self,
        db: AsyncSession,
        *,
        shift_id: uuid.UUID,
        employee_ids: Iterable[uuid.UUID],
        days: Iterable[dt.date],
    ) -> List[sch_models.WorkSchedule]:
        """(직원, 시프트, 날짜) 조합이 이미 존재하는 근무 일정을 조회합니다."""
        WorkSchedule = sch_models.WorkSchedule
        statement = self._with_relations(
            select(WorkSchedule)
            .where(
                WorkSchedule.shift_id == shift_id,
                WorkSchedule.employee_id.in_(list(employee_ids)),
                WorkSchedule.date.in_(list(days)),
            )
            .order_by(WorkSchedule.date)
        )
        result = await db.execute(statement)
        return result.scalars().all()

    async def has_any_for_shift(self, db: AsyncSession, *, shift_id: uuid.UUID) -> bool:
        return await self.count(db, shift_id=shift_id) > 0

    async def get_scoped_multi(
        self,
        db: AsyncSession,
        *,
        scope: AccessScope,
        shift_id: Optional[uuid.UUID] = None,
        employee_id: Optional[uuid.UUID] = None,
        center_id: Optional[uuid.UUID] = None,
        date_from: Optional[dt.date] = None,
        date_to: Optional[dt.date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[sch_models.WorkSchedule]:
        """
        필터와 호출자 조회 범위를 적용하여 근무 일정 목록을 조회합니다.
        센터 조건은 시프트를 조인하여 적용합니다.
        """
        WorkSchedule = sch_models.WorkSchedule
        Shift = sch_models.Shift
        statement = select(WorkSchedule).join(Shift, Shift.id == WorkSchedule.shift_id)
        if shift_id is not None:
            statement = statement.where(WorkSchedule.shift_id == shift_id)
        if employee_id is not None:
            statement = statement.where(WorkSchedule.employee_id == employee_id)
        if center_id is not None:
            statement = statement.where(Shift.center_id == center_id)
        if date_from is not None:
            statement = statement.where(WorkSchedule.date >= date_from)
        if date_to is not None:
            statement = statement.where(WorkSchedule.date <= date_to)
        row_filter = scope.row_filter(WorkSchedule.employee_id, Shift.center_id)
        if row_filter is not None:
            statement = statement.where(row_filter)

        statement = self._with_relations(
            statement.order_by(WorkSchedule.date, Shift.start_time).offset(skip).limit(limit)
        )
        result = await db.execute(statement)
        return result.scalars().all()


work_schedule = CRUDWorkSchedule()
