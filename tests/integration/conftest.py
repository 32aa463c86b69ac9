"""Integration test fixtures for database and HTTP client operations.

Each test gets its own file-backed SQLite database (through aiosqlite) so
separate connections really contend for the same rows.
Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

import src.sitegen.models  # noqa: F401 - registers tables on the metadata
from src.sitegen.api.dependencies import get_db_engine, get_llm_provider, get_workflow_dispatcher
from src.sitegen.core.security import create_access_token
from src.sitegen.main import app
from src.sitegen.models import Project, Tenant
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.services.artifacts import LocalArtifactStore
from src.sitegen.services.execution_store import ExecutionStore
from tests.factories import generate_uuid7
from tests.helpers import RecordingDispatcher, ScriptedProvider, create_project, create_tenant


@pytest.fixture(scope="function")
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with every table in place."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sitegen.db'}", poolclass=NullPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    IMPORTANT: The AsyncSession context manager only closes the session on exit;
    it does NOT auto-commit. Tests must explicitly call `await session.commit()`
    to persist changes to the database.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def tenant(db_session: AsyncSession) -> Tenant:
    """Active tenant every tenant-scoped fixture belongs to."""
    created = await create_tenant(db_session)
    await db_session.commit()
    return created


@pytest.fixture
async def other_tenant(db_session: AsyncSession) -> Tenant:
    """Second tenant for isolation checks."""
    created = await create_tenant(db_session)
    await db_session.commit()
    return created


@pytest.fixture
async def project(db_session: AsyncSession, tenant: Tenant) -> Project:
    """DRAFT roofing project with two services in its brief."""
    created = await create_project(db_session, tenant)
    await db_session.commit()
    return created


@pytest.fixture
def store(engine: AsyncEngine, tenant: Tenant) -> ExecutionStore:
    return ExecutionStore(tenant.id, engine)


@pytest.fixture
def artifacts(tmp_path: Path) -> LocalArtifactStore:
    return LocalArtifactStore(tmp_path / "artifacts")


@pytest.fixture
def runner(
    store: ExecutionStore,
    provider: ScriptedProvider,
    artifacts: LocalArtifactStore,
    no_sleep,
) -> AgentRunner:
    """Agent runner on the scripted provider with backoff sleeps skipped."""
    return AgentRunner(store, provider, artifacts=artifacts, sleep=no_sleep)


@pytest.fixture
def auth_headers(tenant: Tenant) -> dict[str, str]:
    """Bearer token for a member of ``tenant``."""
    token = create_access_token(generate_uuid7(), tenant.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(
    engine: AsyncEngine,
    provider: ScriptedProvider,
    dispatcher: RecordingDispatcher,
) -> AsyncGenerator[AsyncClient]:
    """HTTP client on the app, wired to the test database and doubles."""
    app.dependency_overrides[get_db_engine] = lambda: engine
    app.dependency_overrides[get_llm_provider] = lambda: provider
    app.dependency_overrides[get_workflow_dispatcher] = lambda: dispatcher
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
