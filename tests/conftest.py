# tests/conftest.py

import os
from typing import AsyncGenerator, Callable, Awaitable, Optional
from contextlib import asynccontextmanager
from datetime import datetime, time, timedelta

# 애플리케이션 설정(Settings)은 임포트 시점에 환경 변수를 읽으므로 app 임포트 전에 지정합니다.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing")
os.environ.setdefault("REDIS_HOST", "localhost")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# app.main을 임포트하여 FastAPI 앱 인스턴스에 접근합니다.
from app.main import app as main_app
from app.core import dependencies as deps
from app.core.database import get_session
from app.core.security import get_password_hash

# --- 모든 모델 임포트 ---
#  SQLModel.metadata.create_all()이 모든 테이블을 인식하려면,
#  모든 모델 클래스가 한 번 이상 임포트되어야 합니다.
from app.domains.models import *    # noqa: F401, F403

from app.domains.usr import models as usr_models
from app.domains.ctr import models as ctr_models
from app.domains.sch import models as sch_models
from app.utils.timezone import local_to_utc, now_utc


# --- 테스트용 데이터베이스 설정 ---
# 기본은 SQLite 인메모리 DB이며, TEST_DATABASE_URL 로 PostgreSQL 을 지정할 수 있습니다.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _create_test_engine():
    if make_url(TEST_DATABASE_URL).get_backend_name().startswith("sqlite"):
        # 인메모리 SQLite 는 하나의 연결을 공유해야 테이블이 유지됩니다.
        return create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        TEST_DATABASE_URL,
        echo=False,             # 테스트 시 SQL 쿼리 출력하지 않음
        future=True,
        poolclass=NullPool,     # 각 연결이 독립적으로 사용되고 바로 닫히도록 함
    )


# --- 데이터베이스 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """
    테스트 함수마다 모든 테이블을 생성하고, 종료 시 삭제합니다.
    """
    engine = _create_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine  # 테스트 실행

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    각 테스트 함수마다 트랜잭션을 시작하고, 테스트 완료 후 롤백하여
    테스트 간의 격리를 보장하는 비동기 데이터베이스 세션을 제공합니다.
    """
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = TestingSessionLocal(bind=connection)

    try:
        yield session
    finally:
        await session.close()
        await transaction.rollback()
        await connection.close()


# --- 계정/직원 팩토리 ---
# 역할: accounts, employees 테이블에 테스트용 계정과 직원 프로필을 생성하고 Account 객체를 반환합니다.
# 목적: 다른 데이터의 외래 키(employee_id = account.id)로 사용하거나, 로그인 클라이언트를 만들 때 사용합니다.
@pytest_asyncio.fixture(scope="function")
def account_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.Account]]:
    """
    역할과 속성을 지정하여 테스트 계정(+ 직원 프로필)을 생성하는 팩토리 함수를 반환합니다.
    """
    async def _create_account(
        email: str,
        password: str,
        role: usr_models.UserRole,
        is_active: bool = True,
        first_name: str = "Test",
        last_name: Optional[str] = None,
    ) -> usr_models.Account:
        account = usr_models.Account(
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            is_active=is_active,
        )
        employee = usr_models.Employee(
            account_id=account.id,
            first_name=first_name,
            last_name=last_name or email.split("@")[0],
        )
        db_session.add(account)
        db_session.add(employee)
        await db_session.commit()
        await db_session.refresh(account)
        return account
    return _create_account


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(account_factory: Callable) -> usr_models.Account:
    """관리자(ADMIN) 계정을 생성합니다."""
    return await account_factory("admin@autocare.example.com", "adminpass123", role=usr_models.UserRole.ADMIN, first_name="Admin")


@pytest_asyncio.fixture(scope="function")
async def test_staff_user(account_factory: Callable) -> usr_models.Account:
    """STAFF 계정을 생성합니다."""
    return await account_factory("staff@autocare.example.com", "staffpass123", role=usr_models.UserRole.STAFF, first_name="Lan")


@pytest_asyncio.fixture(scope="function")
async def test_technician_user(account_factory: Callable) -> usr_models.Account:
    """TECHNICIAN 계정을 생성합니다."""
    return await account_factory("tech@autocare.example.com", "techpass123", role=usr_models.UserRole.TECHNICIAN, first_name="Minh")


@pytest_asyncio.fixture(scope="function")
async def test_other_technician(account_factory: Callable) -> usr_models.Account:
    """두 번째 TECHNICIAN 계정을 생성합니다."""
    return await account_factory("tech2@autocare.example.com", "techpass123", role=usr_models.UserRole.TECHNICIAN, first_name="Hoa")


@pytest_asyncio.fixture(scope="function")
async def test_customer_user(account_factory: Callable) -> usr_models.Account:
    """CUSTOMER 계정을 생성합니다. (근무 배정 대상이 아님)"""
    return await account_factory("customer@autocare.example.com", "custpass123", role=usr_models.UserRole.CUSTOMER, first_name="Khach")


# --- 도메인별 공통 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def test_center(db_session: AsyncSession) -> ctr_models.ServiceCenter:
    """테스트용 서비스센터(OPEN)를 생성합니다."""
    center = ctr_models.ServiceCenter(name="AutoCare District 1", address="12 Le Loi, District 1, HCMC")
    db_session.add(center)
    await db_session.commit()
    await db_session.refresh(center)
    return center


@pytest_asyncio.fixture(scope="function")
async def test_other_center(db_session: AsyncSession) -> ctr_models.ServiceCenter:
    """두 번째 서비스센터(OPEN)를 생성합니다."""
    center = ctr_models.ServiceCenter(name="AutoCare Thu Duc", address="8 Vo Van Ngan, Thu Duc, HCMC")
    db_session.add(center)
    await db_session.commit()
    await db_session.refresh(center)
    return center


@pytest_asyncio.fixture(scope="function")
def work_center_factory(db_session: AsyncSession) -> Callable[..., Awaitable[ctr_models.WorkCenter]]:
    """
    직원-센터 배정을 직접 생성하는 팩토리입니다.
    start/end 를 생략하면 1년 전부터 무기한 배정됩니다.
    """
    async def _create_work_center(
        employee_id, center_id, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ctr_models.WorkCenter:
        work_center = ctr_models.WorkCenter(
            employee_id=employee_id,
            center_id=center_id,
            start_date=local_to_utc(start) if start else now_utc() - timedelta(days=365),
            end_date=local_to_utc(end) if end else None,
        )
        db_session.add(work_center)
        await db_session.commit()
        return work_center
    return _create_work_center


@pytest_asyncio.fixture(scope="function")
def shift_factory(db_session: AsyncSession) -> Callable[..., Awaitable[sch_models.Shift]]:
    """시프트를 직접 생성하는 팩토리입니다."""
    async def _create_shift(center_id, **kwargs) -> sch_models.Shift:
        values = {
            "name": "Morning",
            "start_time": time(8, 0),
            "end_time": time(17, 0),
            "maximum_slot": 3,
            **kwargs,
        }
        shift = sch_models.Shift(center_id=center_id, **values)
        db_session.add(shift)
        await db_session.commit()
        return shift
    return _create_shift


# --- 역할별 인증 클라이언트 픽스처 ---
# 역할: 주어진 계정으로 /api/v1/usr/auth/token 로그인을 마친 AsyncClient 를 반환합니다.
@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(db_session: AsyncSession):
    """
    특정 계정으로 로그인된 AsyncClient를 생성하는 팩토리 함수를 반환합니다.

    현재 사용자 의존성은 오버라이드하지 않고 발급받은 Bearer 토큰으로 식별하므로,
    한 테스트 안에서 여러 역할의 클라이언트를 동시에 사용할 수 있습니다.
    """
    @asynccontextmanager
    async def _create_client_context(user: usr_models.Account, password: str) -> AsyncGenerator[AsyncClient, None]:
        def override_get_session():
            yield db_session

        original_overrides = main_app.dependency_overrides.copy()

        try:
            main_app.dependency_overrides.update({
                get_session: override_get_session,
                deps.get_db_session: override_get_session,
            })

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                login_data = {"username": user.email, "password": password}
                res = await client.post("/api/v1/usr/auth/token", data=login_data)

                if res.status_code != 200:
                    pytest.fail(f"Login failed for {user.email}: {res.text}")

                token = res.json()["access_token"]
                client.headers["Authorization"] = f"Bearer {token}"
                yield client

        finally:
            main_app.dependency_overrides.clear()
            main_app.dependency_overrides.update(original_overrides)

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(authorized_client_factory, test_admin_user: usr_models.Account) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_admin_user, "adminpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def staff_client(authorized_client_factory, test_staff_user: usr_models.Account) -> AsyncGenerator[AsyncClient, None]:
    """STAFF 로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_staff_user, "staffpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def technician_client(authorized_client_factory, test_technician_user: usr_models.Account) -> AsyncGenerator[AsyncClient, None]:
    """TECHNICIAN 으로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_technician_user, "techpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def customer_client(authorized_client_factory, test_customer_user: usr_models.Account) -> AsyncGenerator[AsyncClient, None]:
    """CUSTOMER 로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_customer_user, "custpass123") as client:
        yield client


# --- 비동기 테스트 클라이언트 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성하고,
    테스트용 비동기 DB 세션을 주입합니다.
    """
    def override_get_session_and_dependency():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()

    try:
        main_app.dependency_overrides[get_session] = override_get_session_and_dependency
        main_app.dependency_overrides[deps.get_db_session] = override_get_session_and_dependency

        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client

    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)
