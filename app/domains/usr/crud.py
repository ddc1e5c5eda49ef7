# app/domains/usr/crud.py

"""
'usr' 도메인의 CRUD 작업을 담당하는 모듈입니다.
계정 인증과 직원(근무 배정 대상) 조회/검증 로직을 포함합니다.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash, verify_password
from . import models as usr_models
from . import schemas as usr_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. accounts 테이블 CRUD
# =============================================================================
class CRUDAccount(CRUDBase[usr_models.Account, usr_schemas.EmployeeCreate, usr_schemas.EmployeeUpdate]):
    def __init__(self):
        super().__init__(model=usr_models.Account)

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[usr_models.Account]:
        """이메일로 계정을 조회합니다."""
        return await self.get_by_attribute(db, attribute="email", value=email.lower())

    async def authenticate(self, db: AsyncSession, *, email: str, password: str) -> Optional[usr_models.Account]:
        """이메일과 비밀번호를 사용하여 계정을 인증합니다."""
        account = await self.get_by_email(db, email=email)
        if not account:
            return None
        if not verify_password(password, account.password_hash):
            return None
        return account


account = CRUDAccount()


# =============================================================================
# 2. employees 테이블 CRUD
# =============================================================================
class CRUDEmployee(CRUDBase[usr_models.Employee, usr_schemas.EmployeeCreate, usr_schemas.EmployeeUpdate]):
    def __init__(self):
        super().__init__(model=usr_models.Employee)

    async def get_multi_by_role(
        self, db: AsyncSession, *, role: Optional[usr_models.UserRole] = None, skip: int = 0, limit: int = 100
    ) -> List[usr_models.Employee]:
        statement = select(usr_models.Employee).join(usr_models.Account)
        if role is not None:
            statement = statement.where(usr_models.Account.role == role)
        statement = statement.order_by(usr_models.Employee.last_name, usr_models.Employee.first_name)
        result = await db.execute(statement.offset(skip).limit(limit))
        return result.scalars().all()

    async def get_many(self, db: AsyncSession, *, ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, usr_models.Employee]:
        """여러 직원을 한 번에 조회하여 {account_id: Employee} 로 반환합니다."""
        id_list = list(ids)
        if not id_list:
            return {}
        statement = select(usr_models.Employee).where(usr_models.Employee.account_id.in_(id_list))
        result = await db.execute(statement)
        return {emp.account_id: emp for emp in result.scalars().all()}

    async def get_schedulable(
        self, db: AsyncSession, *, ids: List[uuid.UUID], field: str = "employee_ids", indexed: bool = True
    ) -> Dict[uuid.UUID, usr_models.Employee]:
        """
        근무 배정 대상 직원들을 조회하고 검증합니다.

        - 존재하지 않는 직원이 있으면 NotFoundError
        - 역할이 STAFF/TECHNICIAN 이 아니거나 비활성 계정이면 ValidationError
        오류는 모두 모아서 한 번에 {필드: 사유} 형태로 보고합니다.
        """
        employees = await self.get_many(db, ids=ids)

        def _key(index: int) -> str:
            return f"{field}.{index}" if indexed else field

        missing = {
            _key(index): f"Employee with ID {employee_id} not found"
            for index, employee_id in enumerate(ids)
            if employee_id not in employees
        }
        if missing:
            raise NotFoundError("Employee not found", errors=missing)

        errors: Dict[str, str] = {}
        for index, employee_id in enumerate(ids):
            emp = employees[employee_id]
            if emp.account.role not in usr_models.SCHEDULABLE_ROLES:
                errors[_key(index)] = (
                    "Only STAFF and TECHNICIAN employees can be assigned. "
                    f"This employee has role {emp.account.role.value}"
                )
            elif not emp.account.is_active:
                errors[_key(index)] = f"Employee {emp.full_name} has an inactive account"
        if errors:
            raise ValidationError(errors=errors)
        return employees

    async def create(self, db: AsyncSession, *, obj_in: usr_schemas.EmployeeCreate) -> usr_models.Employee:
        """계정과 직원 프로필을 하나의 트랜잭션으로 생성합니다."""
        email = obj_in.email.lower()
        if await account.get_by_email(db, email=email):
            raise ConflictError("Email already registered", errors={"email": f"{email} is already in use"})

        db_account = usr_models.Account(
            email=email,
            password_hash=get_password_hash(obj_in.password),
            role=obj_in.role,
        )
        db_employee = usr_models.Employee(
            account_id=db_account.id,
            first_name=obj_in.first_name,
            last_name=obj_in.last_name,
        )
        db.add(db_account)
        db.add(db_employee)
        await db.commit()
        logger.info("Employee account created: %s (%s)", db_account.id, obj_in.role.value)
        return await self.get_with_account(db, account_id=db_account.id)

    async def update(
        self, db: AsyncSession, *, db_obj: usr_models.Employee, obj_in: usr_schemas.EmployeeUpdate
    ) -> usr_models.Employee:
        """프로필 필드는 직원에, 역할/활성 여부는 계정에 반영합니다."""
        update_data = obj_in.model_dump(exclude_unset=True)
        for key in ("first_name", "last_name"):
            if update_data.get(key) is not None:
                setattr(db_obj, key, update_data[key])
        for key in ("role", "is_active"):
            if key in update_data and update_data[key] is not None:
                setattr(db_obj.account, key, update_data[key])
        db.add(db_obj)
        db.add(db_obj.account)
        await db.commit()
        return await self.get_with_account(db, account_id=db_obj.account_id)

    async def get_with_account(self, db: AsyncSession, *, account_id: uuid.UUID) -> Optional[usr_models.Employee]:
        statement = (
            select(usr_models.Employee)
            .where(usr_models.Employee.account_id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        return result.scalars().one_or_none()


employee = CRUDEmployee()
