"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- A document store engine (in-memory SQLite unless DATABASE_TEST_URL is set)
- Database sessions and seeding helpers
- HTTP client for API testing
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fhirserver.database import Base, get_db
from fhirserver.identifiers import generate_id
from fhirserver.main import app
from fhirserver.repositories.document import DocumentRepository

TEST_HOSTNAME = "fhir-test-host"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after.
    Uses DATABASE_TEST_URL env var if set, otherwise a private in-memory
    SQLite database shared through a single connection.
    """
    db_url = os.environ.get("DATABASE_TEST_URL", "sqlite+aiosqlite://")
    engine_kwargs = {"poolclass": StaticPool} if db_url.startswith("sqlite") else {}
    engine = create_async_engine(db_url, echo=False, **engine_kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    """Test database session, rolled back on completion."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def seed(session_maker):
    """Insert records into a collection and commit them.

    Returns an async function taking the collection name and a list of
    bodies; each body gets a fresh id. The stored records are returned.
    """

    async def _seed(collection: str, bodies: list[dict]) -> list[dict]:
        records = []
        async with session_maker() as session:
            repo = DocumentRepository(session, collection)
            for body in bodies:
                record = {**body, "id": generate_id()}
                await repo.insert(record)
                records.append(record)
            await session.commit()
        return records

    return _seed


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker, monkeypatch):
    """Async test client for the FastAPI app with the test database.

    Overrides the app's get_db dependency so API tests share the database
    used by the seeding fixtures, and pins the host name used in Location
    headers.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr("socket.gethostname", lambda: TEST_HOSTNAME)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.pop(get_db, None)


# =============================================================================
# Common FHIR test data
# =============================================================================


@pytest.fixture
def enrollment_request() -> dict:
    return {"resourceType": "EnrollmentRequest", "status": "active"}


@pytest.fixture
def related_person() -> dict:
    return {
        "resourceType": "RelatedPerson",
        "active": True,
        "patient": {"reference": "Patient/example"},
        "name": [{"family": "Chalmers", "given": ["Peter"]}],
    }


@pytest.fixture
def operation_outcome() -> dict:
    return {
        "resourceType": "OperationOutcome",
        "issue": [
            {"severity": "error", "code": "required", "diagnostics": "Missing subject"}
        ],
    }
