# app/core/database.py

"""
애플리케이션의 데이터베이스 연결 및 세션 관리를 담당하는 모듈입니다.

- SQLModel의 비동기 엔진을 설정합니다.
- 비동기 세션 생성을 위한 유틸리티 함수를 제공합니다.
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# =============================================================================
# 모든 도메인 모델 임포트
# =============================================================================
# 모든 SQLModel 클래스가 SQLModel.metadata에 등록되어야
# 관계 설정과 Alembic autogenerate 가 올바르게 동작합니다.
from app.domains.usr import models      # noqa
from app.domains.ctr import models      # noqa
from app.domains.sch import models      # noqa

logger = logging.getLogger(__name__)

_database_url = settings.DATABASE_URL.get_secret_value()

# SQLite(로컬 개발/테스트)는 커넥션 풀 크기 옵션을 지원하지 않습니다.
_engine_kwargs = {}
if not make_url(_database_url).get_backend_name().startswith("sqlite"):
    _engine_kwargs.update(
        pool_recycle=3600,  # 1시간마다 연결 재활용
        pool_size=10,
        max_overflow=20,
    )

engine: AsyncEngine = create_async_engine(
    _database_url,
    echo=settings.DEBUG_MODE,  # 디버그 모드일 때만 SQL 쿼리 출력
    future=True,
    **_engine_kwargs,
)

# 비동기 세션을 생성하는 '세션 공장'을 정의합니다.
AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata


# =============================================================================
# 비동기 데이터베이스 세션 의존성 주입
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입을 위한 비동기 데이터베이스 세션 제너레이터입니다.
    요청마다 새로운 세션을 생성하고, 요청 처리 후 세션을 자동으로 닫습니다.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    ARQ Task, CLI 스크립트 등 요청 밖에서 사용할
    독립적인 비동기 DB 세션을 제공하는 컨텍스트 관리자입니다.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.exception("세션 작업 중 오류가 발생하여 롤백합니다.")
            await session.rollback()
            raise
        finally:
            await session.close()
