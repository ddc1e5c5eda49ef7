# app/domains/models/__init__.py

"""
이 파일은 모든 도메인의 SQLModel 모델들을 한 곳에서 중앙 관리하여,
다른 모듈(테스트, Alembic 등)에서 쉽게 임포트할 수 있도록 하는 역할을 합니다.
SQLModel.metadata가 모든 테이블을 인식하도록 보장합니다.
"""

# usr (Account, Employee)
from app.domains.usr.models import Account, Employee, UserRole

# ctr (ServiceCenter, WorkCenter)
from app.domains.ctr.models import ServiceCenter, WorkCenter, CenterStatus

# sch (Shift, WorkSchedule)
from app.domains.sch.models import Shift, WorkSchedule, ShiftStatus


#  `from app.domains.models import *` 구문으로 임포트될 모델 목록 정의
__all__ = [
    # usr
    "Account", "Employee", "UserRole",
    # ctr
    "ServiceCenter", "WorkCenter", "CenterStatus",
    # sch
    "Shift", "WorkSchedule", "ShiftStatus",
]
