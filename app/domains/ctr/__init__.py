# app/domains/ctr/__init__.py

"""
FastAPI 애플리케이션의 'ctr' 도메인 패키지입니다.

서비스센터(ServiceCenter)와 직원-센터 배정(WorkCenter)을 관리합니다.
동일한 (직원, 센터) 쌍의 배정 기간은 서로 겹칠 수 없습니다.

주요 서브모듈:
- `models.py`: service_centers, work_centers 테이블 모델.
- `schemas.py`: 요청/응답 스키마 (배정 기간의 현지 시각 ⇄ UTC 변환 포함).
- `crud.py`: 서비스센터 CRUD, 배정 기간 중복/유효 배정 조회.
- `services.py`: 배정 생성/변경/종료 비즈니스 규칙.
- `routers.py`: API 엔드포인트.
"""

__title__ = "AutoCare Service Center Domain"
__version__ = "0.1.0"
__all__ = []
