import os

# Configuration is read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["SMS_PROVIDER"] = "console"
os.environ["LOG_FORMAT"] = "text"

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coursedesk.main import app
from coursedesk.core.database import Base, get_session
from coursedesk.core.security import jwt_manager, ROLE_ADMIN, ROLE_WEBSITE
from coursedesk.auth.crud.users import create_default_users


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_users(session_factory):
    async with session_factory() as session:
        await create_default_users(session)


@pytest.fixture
def admin_headers():
    token = jwt_manager.create_access_token(ROLE_ADMIN, role=ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def website_headers():
    token = jwt_manager.create_access_token(ROLE_WEBSITE, role=ROLE_WEBSITE)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_course(client, admin_headers):
    counter = {"n": 0}

    async def _make_course(**overrides):
        counter["n"] += 1
        payload = {
            "name": f"Course {counter['n']}",
            "code": f"C{counter['n']}",
            "duration": 6,
            "full_fee": "15000",
            "installment_fee": "16000",
            "installment1": "8000",
            "installment2": "8000",
        }
        payload.update(overrides)
        response = await client.post("/api/courses/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_course


@pytest.fixture
def make_inquiry(client, website_headers):
    async def _make_inquiry(course_id: int, **overrides):
        payload = {
            "student_name": "Asha Patil",
            "course_id": course_id,
            "contact_no": "9876543210",
            "father_contact_no": "9123456780",
            "address": "12 MG Road, Pune",
            "batch_id": "batch2",
        }
        payload.update(overrides)
        response = await client.post("/api/inquiries/", json=payload, headers=website_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_inquiry


@pytest.fixture
def make_enrollment(client, admin_headers):
    async def _make_enrollment(inquiry_id: int, **overrides):
        payload = {
            "inquiry_id": inquiry_id,
            "father_name": "Ramesh Patil",
            "father_contact_no": "9123456780",
            "student_education": "HSC",
            "student_email": "asha@example.com",
            "student_address": "12 MG Road, Pune",
            "start_date": date.today().isoformat(),
            "fee_plan": "full",
        }
        payload.update(overrides)
        response = await client.post("/api/enrollments/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_enrollment


@pytest.fixture
def make_payment(client, admin_headers):
    async def _make_payment(enrollment_id: int, amount: str, **overrides):
        payload = {
            "enrollment_id": enrollment_id,
            "amount": amount,
            "payment_mode": "cash",
        }
        payload.update(overrides)
        response = await client.post("/api/payments/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_payment
