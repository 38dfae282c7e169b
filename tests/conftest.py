from __future__ import annotations

import os
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from vacationdesk.db import get_session
from vacationdesk.main import app
from vacationdesk.models import ManagerEmployee, Role, SQLModel, User

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Emit BEGIN ourselves instead of the sqlite driver so SAVEPOINT works."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh database per test: in-memory SQLite unless TEST_DATABASE_URL says otherwise."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        _engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(_engine)
    else:
        _engine = create_async_engine(TEST_DATABASE_URL)

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session on the test database. Services commit through it as in production."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory inserting a committed user, optionally reporting to ``manager``."""

    async def _make_user(
        *,
        role: Role = Role.EMPLOYEE,
        employment_date: date | None = date(2024, 1, 15),
        name: str = "Test User",
        manager: User | None = None,
        country_id: uuid.UUID | None = None,
    ) -> User:
        user = User(
            name=name,
            email=f"{uuid.uuid4().hex[:12]}@example.com",
            role=role.value,
            employment_date=employment_date,
            country_id=country_id,
        )
        db_session.add(user)
        await db_session.flush()
        if manager is not None:
            db_session.add(ManagerEmployee(manager_id=manager.id, employee_id=user.id))
        await db_session.commit()
        return user

    return _make_user
