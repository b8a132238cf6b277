"""Integration test fixtures for database and HTTP client operations.

Tests run against a SQLite file (aiosqlite). Tables are recreated for every
test and the application's engine singleton is pointed at the test engine, so
code paths that open their own sessions (the channel's message store, the
WebSocket gateway) see the same data as the test.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from src.app.core import redis as redis_core
from src.app.core.config import get_settings
from src.app.core.db import dispose_engine
from src.app.core.db import engine as engine_module
from src.app.core.health import reset_health_cache
from src.app.main import create_app
from src.app.models import Application, Project, User
from tests.factories import ApplicationFactory, ProjectFactory, UserFactory


@pytest.fixture(autouse=True)
def _reset_redis_between_tests() -> None:
    """No Redis in integration tests: rate limiting and health use fallbacks."""
    redis_core.set_redis(None)


@pytest.fixture(autouse=True)
def _reset_health_cache() -> None:
    reset_health_cache()


@pytest.fixture(scope="function")
async def engine(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncEngine]:
    """Create the test engine with fresh tables and install it as the app engine."""
    await dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(
        settings.database_url,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    monkeypatch.setattr(engine_module, "_engine", test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The AsyncSession context manager only closes the session on exit; it does
    NOT auto-commit. Tests must call `await session.commit()` to persist.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


async def _persist(session: AsyncSession, *entities: object) -> None:
    for entity in entities:
        session.add(entity)
    await session.commit()


@pytest.fixture
async def client_user(db_session: AsyncSession) -> User:
    user = UserFactory.client()
    await _persist(db_session, user)
    return user


@pytest.fixture
async def freelancer(db_session: AsyncSession) -> User:
    user = UserFactory.freelancer(full_name="Freelancer One")
    await _persist(db_session, user)
    return user


@pytest.fixture
async def other_freelancer(db_session: AsyncSession) -> User:
    user = UserFactory.freelancer(full_name="Freelancer Two")
    await _persist(db_session, user)
    return user


@pytest.fixture
async def admin(db_session: AsyncSession) -> User:
    user = UserFactory.admin()
    await _persist(db_session, user)
    return user


@pytest.fixture
async def outsider(db_session: AsyncSession) -> User:
    """A client with no relation to any project under test."""
    user = UserFactory.client(full_name="Outsider")
    await _persist(db_session, user)
    return user


@pytest.fixture
async def open_project(db_session: AsyncSession, client_user: User) -> Project:
    project = ProjectFactory.build(client_id=client_user.id)
    await _persist(db_session, project)
    return project


@pytest.fixture
async def applications(
    db_session: AsyncSession,
    open_project: Project,
    freelancer: User,
    other_freelancer: User,
) -> tuple[Application, Application]:
    """One Pending application from each freelancer on the open project."""
    first = ApplicationFactory.build(project_id=open_project.id, freelancer_id=freelancer.id)
    second = ApplicationFactory.build(
        project_id=open_project.id, freelancer_id=other_freelancer.id
    )
    await _persist(db_session, first, second)
    return first, second


@pytest.fixture
async def active_project(
    db_session: AsyncSession, client_user: User, freelancer: User
) -> Project:
    project = ProjectFactory.active(client_id=client_user.id, freelancer_id=freelancer.id)
    await _persist(db_session, project)
    return project


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing API endpoints."""
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
