import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_JSON", "false")

import uuid
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token
from app.db.session import Base, get_db
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FEE_PERMISSIONS = {
    "fees": {"read": True, "update": True},
    "cohorts": {"read": True, "create": True},
}


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test, shared by the test and the app through get_db."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def user_id() -> uuid.UUID:
    return uuid.uuid4()


def make_headers(user_id: uuid.UUID, tenant_id: uuid.UUID, role: str = "FEE_MANAGER", permissions=None) -> Dict[str, str]:
    token = create_access_token(
        subject={
            "sub": str(user_id),
            "tenant_id": str(tenant_id),
            "role": role,
            "permissions": FEE_PERMISSIONS if permissions is None else permissions,
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(user_id: uuid.UUID, tenant_id: uuid.UUID) -> Dict[str, str]:
    return make_headers(user_id, tenant_id)


@pytest.fixture()
async def cohort_id(client: AsyncClient, auth_headers: Dict[str, str]) -> str:
    response = await client.post(
        "/api/v1/cohorts",
        json={"name": "CP2 2025", "start_date": "2025-01-31"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture()
def readonly_headers(user_id: uuid.UUID, tenant_id: uuid.UUID) -> Dict[str, str]:
    return make_headers(user_id, tenant_id, permissions={"fees": {"read": True}})


@pytest.fixture()
def fee_payload():
    """Factory for a valid cohort fee structure body: 4 semesters of 3 instalments."""

    def _build(**overrides) -> dict:
        payload = {
            "admission_fee": 50000,
            "total_program_fee": 500000,
            "number_of_semesters": 4,
            "instalments_per_semester": 3,
            "one_shot_discount_percentage": 0,
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture()
def other_tenant_headers() -> Dict[str, str]:
    return make_headers(uuid.uuid4(), uuid.uuid4())
