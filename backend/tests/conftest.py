"""Shared fixtures for the API tests.

Uses an in-process SQLite database. PostgreSQL-specific column types
(JSONB, UUID) are compiled as SQLite-compatible types via SQLAlchemy
@compiles hooks registered before any model imports. Settings are read from
the environment at import time, so the overrides below come first too.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REQUIRE_EMAIL_CONFIRMATION"] = "false"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="xabzedin-uploads-")
os.environ["LOCALE"] = "en"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_USER"] = ""

# Register PG→SQLite type compilers BEFORE any model imports
from sqlalchemy.dialects.postgresql import JSONB, UUID  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "TEXT"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


import uuid  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from xabzedin.database import Base, get_db  # noqa: E402
from xabzedin.main import app  # noqa: E402
from xabzedin.models.job import Job  # noqa: E402
from xabzedin.services.referrals import issue_referral_codes  # noqa: E402
from xabzedin.tasks.celery_app import celery  # noqa: E402

# ---------------------------------------------------------------------------
# Test DB setup (async SQLite)
# ---------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _override_get_db():
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db

# Queued tasks run inline
celery.conf.task_always_eager = True

PASSWORD = "secret123"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session():
    async with TestSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def referral_code(db_session: AsyncSession) -> str:
    """A bootstrap code with no owner, as issued from the CLI."""
    codes = await issue_referral_codes(db_session, 1)
    await db_session.commit()
    return codes[0].code


@dataclass
class Account:
    id: uuid.UUID
    email: str
    headers: dict
    company_id: uuid.UUID | None = None


@pytest_asyncio.fixture
async def make_account(client: AsyncClient, db_session: AsyncSession):
    """Sign up through the API with a fresh bootstrap code, sign in and
    optionally pick a role."""

    async def _make(email: str, role: str | None = None, full_name: str = "Test User") -> Account:
        codes = await issue_referral_codes(db_session, 1)
        await db_session.commit()

        resp = await client.post(
            "/api/auth/sign-up",
            json={"email": email, "password": PASSWORD, "full_name": full_name, "referral_code": codes[0].code},
        )
        assert resp.status_code == 201, resp.text

        resp = await client.post("/api/auth/sign-in", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        account = Account(
            id=uuid.UUID(body["session"]["user"]["id"]),
            email=email,
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )

        if role:
            resp = await client.put("/api/profiles/me/role", json={"role": role}, headers=account.headers)
            assert resp.status_code == 200, resp.text
        return account

    return _make


@pytest_asyncio.fixture
async def seeker(make_account) -> Account:
    return await make_account("seeker@xabzedin.org", role="seeker", full_name="Aslan Seeker")


@pytest_asyncio.fixture
async def employer(make_account, client: AsyncClient) -> Account:
    """An employer that already owns a company."""
    account = await make_account("employer@xabzedin.org", role="employer", full_name="Zarema Employer")
    resp = await client.post("/api/companies", json={"name": "Nalmes Ltd", "sector": "Software"}, headers=account.headers)
    assert resp.status_code == 201, resp.text
    account.company_id = uuid.UUID(resp.json()["id"])
    return account


@pytest_asyncio.fixture
async def make_job(db_session: AsyncSession):
    """Insert a job row directly, bypassing the API, so tests can control
    timestamps and lifecycle flags."""

    async def _make(company_id: uuid.UUID, title: str, **kwargs) -> Job:
        now = datetime.now(timezone.utc)
        created_at = kwargs.get("created_at", now)
        job = Job(
            id=uuid.uuid4(),
            company_id=company_id,
            title=title,
            description=kwargs.get("description", "A job."),
            type=kwargs.get("type", "onsite"),
            location=kwargs.get("location", "Nalchik"),
            expires_at=kwargs.get("expires_at", now + timedelta(days=30)),
            is_active=kwargs.get("is_active", True),
            is_archived=kwargs.get("is_archived", False),
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(job)
        await db_session.commit()
        await db_session.refresh(job)
        return job

    return _make


@pytest.fixture
def session_factory():
    """Stands in for ``SessionLocal`` in code that opens its own sessions."""
    return TestSessionLocal
