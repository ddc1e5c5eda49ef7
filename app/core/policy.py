# app/core/policy.py

"""
역할(Role) × 행위(Action) 권한 정책을 한 곳에서 정의하는 모듈입니다.

각 엔드포인트는 `Depends(require(Action.XXX))` 를 통해 진입 시 한 번만 권한을 확인하고,
허용된 경우 행 단위 조회 범위(AccessScope)를 돌려받습니다.

- ADMIN      : 모든 행위 허용, 조회 범위 제한 없음
- STAFF      : 조회만 허용. 본인 데이터 + 현재 배정된 서비스센터의 시프트와 근무 일정
- TECHNICIAN : 조회만 허용. 본인 데이터만 (시프트는 배정된 센터의 것)
- CUSTOMER   : 서비스센터 목록 조회만 허용
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional

from fastapi import Depends
from sqlmodel import or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core.exceptions import ForbiddenError
from app.core.security import get_current_active_user
from app.domains.usr.models import Account, UserRole, SCHEDULABLE_ROLES
from app.domains.ctr.models import WorkCenter
from app.utils.timezone import now_utc


class Action(str, Enum):
    EMPLOYEE_READ = "employee:read"
    EMPLOYEE_WRITE = "employee:write"
    CENTER_READ = "center:read"
    CENTER_WRITE = "center:write"
    WORK_CENTER_READ = "work_center:read"
    WORK_CENTER_WRITE = "work_center:write"
    SHIFT_READ = "shift:read"
    SHIFT_WRITE = "shift:write"
    SCHEDULE_READ = "schedule:read"
    SCHEDULE_WRITE = "schedule:write"


_READ_ONLY = frozenset({
    Action.CENTER_READ,
    Action.WORK_CENTER_READ,
    Action.SHIFT_READ,
    Action.SCHEDULE_READ,
})

CAPABILITIES: Dict[UserRole, FrozenSet[Action]] = {
    UserRole.ADMIN: frozenset(Action),
    UserRole.STAFF: _READ_ONLY,
    UserRole.TECHNICIAN: _READ_ONLY,
    UserRole.CUSTOMER: frozenset({Action.CENTER_READ}),
}


def is_allowed(role: UserRole, action: Action) -> bool:
    return action in CAPABILITIES.get(role, frozenset())


@dataclass(frozen=True)
class AccessScope:
    """
    권한 확인을 통과한 호출자의 행 단위 조회 범위입니다.
    center_ids 는 호출자가 현재 배정되어 있는 서비스센터 ID 집합입니다.
    """
    account_id: uuid.UUID
    role: UserRole
    center_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)

    @property
    def is_unrestricted(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def includes_center_data(self) -> bool:
        # STAFF 는 배정된 센터의 다른 직원 일정까지 조회할 수 있습니다.
        return self.role == UserRole.STAFF

    def can_view_employee_record(self, employee_id: uuid.UUID, center_id: Optional[uuid.UUID] = None) -> bool:
        if self.is_unrestricted or employee_id == self.account_id:
            return True
        return self.includes_center_data and center_id is not None and center_id in self.center_ids

    def can_view_center(self, center_id: uuid.UUID) -> bool:
        return self.is_unrestricted or center_id in self.center_ids

    def row_filter(self, employee_column, center_column=None):
        """
        직원 소유 데이터(배정, 근무 일정)에 적용할 WHERE 조건을 반환합니다.
        center_column 을 넘기면 STAFF 는 해당 센터의 행까지 조회합니다. (근무 일정 전용)
        제한이 없으면 None 을 반환합니다.
        """
        if self.is_unrestricted:
            return None
        conditions = [employee_column == self.account_id]
        if self.includes_center_data and center_column is not None and self.center_ids:
            conditions.append(center_column.in_(list(self.center_ids)))
        return or_(*conditions)

    def center_filter(self, center_column):
        """센터 소유 데이터(시프트)에 적용할 WHERE 조건을 반환합니다."""
        if self.is_unrestricted:
            return None
        return center_column.in_(list(self.center_ids))


async def get_assigned_center_ids(db: AsyncSession, *, employee_id: uuid.UUID) -> FrozenSet[uuid.UUID]:
    """직원이 현재 시점에 배정되어 있는 서비스센터 ID 집합을 조회합니다."""
    now = now_utc()
    statement = (
        select(WorkCenter.center_id)
        .where(
            WorkCenter.employee_id == employee_id,
            WorkCenter.start_date <= now,
            or_(WorkCenter.end_date.is_(None), WorkCenter.end_date >= now),
        )
        .distinct()
    )
    result = await db.execute(statement)
    return frozenset(result.scalars().all())


def require(action: Action):
    """
    주어진 행위에 대한 권한을 확인하고 AccessScope 를 반환하는 의존성을 생성합니다.
    """
    async def _check(
        current_user: Account = Depends(get_current_active_user),
        db: AsyncSession = Depends(get_session),
    ) -> AccessScope:
        if not is_allowed(current_user.role, action):
            raise ForbiddenError(
                f"Role {current_user.role.value} is not allowed to perform {action.value}",
                errors={"role": current_user.role.value},
            )
        center_ids: FrozenSet[uuid.UUID] = frozenset()
        if current_user.role in SCHEDULABLE_ROLES:
            center_ids = await get_assigned_center_ids(db, employee_id=current_user.id)
        return AccessScope(account_id=current_user.id, role=current_user.role, center_ids=center_ids)

    return _check
