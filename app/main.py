# app/main.py

"""
FastAPI 애플리케이션의 진입점입니다.

- 도메인 라우터(usr, ctr, sch)를 /api/v1 하위에 등록합니다.
- 공통 예외 핸들러(입력 검증, DB 오류)를 등록합니다.
- ARQ Redis 커넥션 풀과 워커 설정(일일 DB 헬스 체크)을 정의합니다.
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from arq import cron
from arq.connections import create_pool, RedisSettings
from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app import API_PREFIX
from app.core.config import settings
from app.core.database import engine, get_session
from app.core.exceptions import request_validation_exception_handler, sqlalchemy_exception_handler

# 태스크 모듈 임포트
from app.core import tasks as core_tasks

# 도메인 라우터 임포트
from app.domains.usr.routers import router as usr_router
from app.domains.ctr.routers import router as ctr_router
from app.domains.sch.routers import router as sch_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ARQ 워커 설정 클래스
# 실행: arq app.main.ArqWorkerSettings
class ArqWorkerSettings:
    redis_settings = RedisSettings(host=settings.REDIS_HOST, port=settings.REDIS_PORT)
    functions = [core_tasks.health_check_database_task]
    cron_jobs = [
        cron(
            core_tasks.health_check_database_task,
            name="daily_db_health_check",
            hour={0},
            minute={0},
            timeout=300,
            keep_result=600,
        ),
    ]


# -- 애플리케이션 수명 주기 이벤트 핸들러 --
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI 애플리케이션의 수명 주기 이벤트(데이터베이스, ARQ Redis)를 함께 처리합니다.
    """
    logger.info("%s 시작 중 (env=%s)", settings.APP_NAME, settings.APP_ENV)
    try:
        app.state.redis = await create_pool(ArqWorkerSettings.redis_settings)
        logger.info("ARQ Redis 커넥션 풀 생성 완료.")
    except Exception:
        logger.exception("애플리케이션 시작 중 오류 발생")
        raise

    yield  # 애플리케이션 실행

    logger.info("%s 종료 중...", settings.APP_NAME)
    try:
        if app.state.redis:
            await app.state.redis.close()
            logger.info("ARQ Redis 연결 풀 종료 완료.")
        await engine.dispose()
        logger.info("데이터베이스 연결 풀 종료 완료.")
    except Exception:
        logger.exception("애플리케이션 종료 중 오류 발생")


# -- FastAPI 애플리케이션 인스턴스 생성 --
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# -- 공통 예외 핸들러 --
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

# -- CORS 미들웨어 설정 --
# 운영 환경에서는 CORS_ORIGINS 를 실제 프론트엔드 도메인으로 제한해야 합니다.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- 도메인 라우터 포함 --
app.include_router(usr_router, prefix=f"{API_PREFIX}/usr", tags=["Account & Employee Management (계정 및 직원 관리)"])
app.include_router(ctr_router, prefix=f"{API_PREFIX}/ctr", tags=["Service Center Management (서비스센터 및 배정 관리)"])
app.include_router(sch_router, prefix=f"{API_PREFIX}/sch", tags=["Scheduling Management (시프트 및 근무 일정 관리)"])


# -- 루트 엔드포인트 --
@app.get("/", summary="API Root", response_description="Welcome message and documentation link.")
async def read_root():
    """
    API의 루트 엔드포인트입니다.
    API의 시작점을 알리고 문서 링크를 제공합니다.
    """
    return {"message": "Welcome to AutoCare Scheduling API. Visit /docs for interactive API documentation."}


# -- 헬스 체크 엔드포인트 --
@app.get("/health-check", summary="Health Check", response_description="Status of the application and database connection.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    애플리케이션의 헬스 체크 엔드포인트입니다.
    데이터베이스 연결을 테스트하여 서비스의 정상 작동 여부를 확인합니다.
    """
    try:
        result = await session.exec(select(1))
        if result.first():
            return {"status": "ok", "database_connection": "successful"}
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database health check failed: No result from test query"
        )
    except SQLAlchemyError as e:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Database connection error during health check: {e}"
        )
