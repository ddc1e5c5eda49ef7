# app/domains/ctr/crud.py

"""
'ctr' 도메인의 CRUD 작업을 담당하는 모듈입니다.
서비스센터 관리와 근무지 배정 조회(기간 중복, 특정 일자 유효 배정 등) 쿼리를 포함합니다.
"""

import uuid
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.exceptions import ConflictError
from app.core.policy import AccessScope
from app.utils.timezone import OPEN_ENDED_SENTINEL, local_day_bounds_utc
from . import models as ctr_models
from . import schemas as ctr_schemas


# =============================================================================
# 1. service_centers 테이블 CRUD
# =============================================================================
class CRUDServiceCenter(CRUDBase[ctr_models.ServiceCenter, ctr_schemas.ServiceCenterCreate, ctr_schemas.ServiceCenterUpdate]):
    def __init__(self):
        super().__init__(model=ctr_models.ServiceCenter)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[ctr_models.ServiceCenter]:
        return await self.get_by_attribute(db, attribute="name", value=name)

    async def create(self, db: AsyncSession, *, obj_in: ctr_schemas.ServiceCenterCreate) -> ctr_models.ServiceCenter:
        if await self.get_by_name(db, name=obj_in.name):
            raise ConflictError("Service center name already exists", errors={"name": f'"{obj_in.name}" is already in use'})
        return await super().create(db, obj_in=obj_in)

    async def update(
        self, db: AsyncSession, *, db_obj: ctr_models.ServiceCenter, obj_in: ctr_schemas.ServiceCenterUpdate
    ) -> ctr_models.ServiceCenter:
        if obj_in.name and obj_in.name != db_obj.name and await self.get_by_name(db, name=obj_in.name):
            raise ConflictError("Service center name already exists", errors={"name": f'"{obj_in.name}" is already in use'})
        return await super().update(db, db_obj=db_obj, obj_in=obj_in)

    async def close(self, db: AsyncSession, *, db_obj: ctr_models.ServiceCenter) -> ctr_models.ServiceCenter:
        """서비스센터는 물리 삭제하지 않고 CLOSED 상태로 전환합니다."""
        db_obj.status = ctr_models.CenterStatus.CLOSED
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj


service_center = CRUDServiceCenter()


# =============================================================================
# 2. work_centers 테이블 CRUD
# =============================================================================
class CRUDWorkCenter(CRUDBase[ctr_models.WorkCenter, ctr_schemas.WorkCenterCreate, ctr_schemas.WorkCenterUpdate]):
    def __init__(self):
        super().__init__(model=ctr_models.WorkCenter)

    def _with_relations(self, statement):
        return statement.options(
            selectinload(ctr_models.WorkCenter.employee),
            selectinload(ctr_models.WorkCenter.center),
        ).execution_options(populate_existing=True)

    async def get_with_relations(self, db: AsyncSession, *, id: uuid.UUID) -> Optional[ctr_models.WorkCenter]:
        statement = self._with_relations(select(ctr_models.WorkCenter).where(ctr_models.WorkCenter.id == id))
        result = await db.execute(statement)
        return result.scalars().one_or_none()

    async def get_scoped_multi(
        self,
        db: AsyncSession,
        *,
        scope: AccessScope,
        employee_id: Optional[uuid.UUID] = None,
        center_id: Optional[uuid.UUID] = None,
        active_on: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ctr_models.WorkCenter]:
        """
        필터와 호출자 조회 범위를 적용하여 배정 목록을 조회합니다.
        active_on 은 현지 날짜 기준으로 해당 일자에 유효한 배정만 남깁니다.
        """
        WorkCenter = ctr_models.WorkCenter
        statement = select(WorkCenter)
        if employee_id is not None:
            statement = statement.where(WorkCenter.employee_id == employee_id)
        if center_id is not None:
            statement = statement.where(WorkCenter.center_id == center_id)
        if active_on is not None:
            day_start, day_end = local_day_bounds_utc(active_on)
            statement = statement.where(
                WorkCenter.start_date <= day_end,
                or_(WorkCenter.end_date.is_(None), WorkCenter.end_date >= day_start),
            )
        row_filter = scope.row_filter(WorkCenter.employee_id)
        if row_filter is not None:
            statement = statement.where(row_filter)

        statement = self._with_relations(statement.order_by(WorkCenter.start_date.desc()).offset(skip).limit(limit))
        result = await db.execute(statement)
        return result.scalars().all()

    async def find_overlapping(
        self,
        db: AsyncSession,
        *,
        employee_id: uuid.UUID,
        center_id: uuid.UUID,
        start_date: datetime,
        end_date: Optional[datetime],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[ctr_models.WorkCenter]:
        """
        동일한 (직원, 센터) 쌍에서 제안된 기간과 겹치는 기존 배정을 찾습니다.

        기존 배정 [s, e] 와 제안 기간 [ps, pe] 는 양 끝을 포함하여 비교합니다.
        - s <= pe (pe 가 없으면 2099-12-31 상한값)
        - e IS NULL 또는 e >= ps
        시작 전에 종료된(e < s) 배정은 무효로 보고 제외합니다.
        """
        WorkCenter = ctr_models.WorkCenter
        effective_end = end_date or OPEN_ENDED_SENTINEL
        statement = select(WorkCenter).where(
            WorkCenter.employee_id == employee_id,
            WorkCenter.center_id == center_id,
            WorkCenter.start_date <= effective_end,
            or_(
                WorkCenter.end_date.is_(None),
                (WorkCenter.end_date >= start_date) & (WorkCenter.end_date >= WorkCenter.start_date),
            ),
        )
        if exclude_id is not None:
            statement = statement.where(WorkCenter.id != exclude_id)
        result = await db.execute(statement.order_by(WorkCenter.start_date).limit(1))
        return result.scalars().first()

    async def get_for_employees_in_range(
        self,
        db: AsyncSession,
        *,
        employee_ids: Iterable[uuid.UUID],
        center_id: uuid.UUID,
        first_day: date,
        last_day: date,
    ) -> List[ctr_models.WorkCenter]:
        """
        현지 날짜 구간 [first_day, last_day] 와 겹치는 해당 센터의 배정들을 조회합니다.
        날짜별 유효 여부는 호출 측에서 판단합니다.
        """
        WorkCenter = ctr_models.WorkCenter
        range_start, _ = local_day_bounds_utc(first_day)
        _, range_end = local_day_bounds_utc(last_day)
        statement = select(WorkCenter).where(
            WorkCenter.employee_id.in_(list(employee_ids)),
            WorkCenter.center_id == center_id,
            WorkCenter.start_date <= range_end,
            or_(WorkCenter.end_date.is_(None), WorkCenter.end_date >= range_start),
        )
        result = await db.execute(statement)
        return result.scalars().all()


work_center = CRUDWorkCenter()
