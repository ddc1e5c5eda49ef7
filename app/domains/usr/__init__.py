# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

'usr' 도메인은 로그인 계정(Account), 직원 프로필(Employee), 그리고 인증과 관련된
핵심 데이터를 관리합니다. 근무 배정 대상은 STAFF/TECHNICIAN 역할의 직원뿐입니다.

주요 서브모듈:
- `models.py`: accounts, employees 테이블에 매핑되는 SQLModel 정의.
- `schemas.py`: 요청/응답 스키마 (토큰, 계정, 직원).
- `crud.py`: 계정 인증, 직원 생성/수정, 배정 가능 직원 검증.
- `routers.py`: 로그인 및 직원 관리 API 엔드포인트.
"""

__title__ = "AutoCare User Domain"
__version__ = "0.1.0"
__all__ = []
