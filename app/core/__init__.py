# app/core/__init__.py

"""
FastAPI 애플리케이션의 핵심 구성 요소 패키지입니다.

- `config.py`: 애플리케이션 설정 및 환경 변수 관리 (Pydantic Settings).
- `database.py`: 데이터베이스 연결, 세션 관리 (SQLModel 및 AsyncSQLAlchemy).
- `security.py`: 인증, 비밀번호 해싱, JWT 발급/검증.
- `policy.py`: 역할 × 행위 권한 정책과 행 단위 조회 범위.
- `exceptions.py`: 공통 예외 분류 체계와 FastAPI 예외 핸들러.
- `dependencies.py`: FastAPI 의존성 주입에서 사용하는 공통 의존성 함수들.
- `tasks.py`: ARQ 백그라운드 작업.
"""

__title__ = "AutoCare Core"
__version__ = "0.1.0"
__all__ = []
