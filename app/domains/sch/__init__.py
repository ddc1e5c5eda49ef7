# app/domains/sch/__init__.py

"""
FastAPI 애플리케이션의 'sch' 도메인 패키지입니다.

시프트(Shift) 정의와 날짜별 근무 일정(WorkSchedule)을 관리합니다.

주요 서브모듈:
- `models.py`: shifts, work_schedules 테이블 모델.
- `schemas.py`: 요청/응답 스키마.
- `validators.py`: 시프트 시간 규칙, 반복 요일 검증, 반복 날짜 계산.
- `crud.py`: 시프트/근무 일정 조회 및 날짜별 집계.
- `services.py`: 정원/중복/센터 배정 검사를 포함한 배정 로직.
- `routers.py`: API 엔드포인트.
"""

__title__ = "AutoCare Scheduling Domain"
__version__ = "0.1.0"
__all__ = []
