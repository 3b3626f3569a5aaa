import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gymbuddy import models  # noqa: F401
from gymbuddy.api.v1.deps import get_store
from gymbuddy.database import Base, get_db
from gymbuddy.main import app
from gymbuddy.services.context import SessionContext
from gymbuddy.store import InMemoryDirectoryStore, SqlDirectoryStore

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class ManualClock:
    """Store clock for tests: ticks 1ms per reading unless frozen."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 5, 7, 0, tzinfo=timezone.utc)
        self.frozen = False

    def __call__(self) -> datetime:
        if not self.frozen:
            self.now += timedelta(milliseconds=1)
        return self.now

    def freeze(self) -> None:
        self.frozen = True


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest_asyncio.fixture
async def store(clock: ManualClock) -> AsyncGenerator[InMemoryDirectoryStore, None]:
    directory = InMemoryDirectoryStore(clock=clock)
    yield directory
    await directory.close()


@pytest_asyncio.fixture
async def session_factory(store: InMemoryDirectoryStore) -> AsyncGenerator[Callable[..., SessionContext], None]:
    """Open SessionContexts on the test store; all are closed at teardown."""
    opened: list[SessionContext] = []

    def factory(uid: str, **kwargs) -> SessionContext:
        ctx = SessionContext(store, uid, **kwargs)
        opened.append(ctx)
        return ctx

    yield factory

    for ctx in opened:
        ctx.close()


@pytest.fixture
def alice(session_factory) -> SessionContext:
    return session_factory("alice")


@pytest.fixture
def bob(session_factory) -> SessionContext:
    return session_factory("bob")


@pytest.fixture
def carol(session_factory) -> SessionContext:
    return session_factory("carol")


@pytest_asyncio.fixture
async def session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(
    session_maker: async_sessionmaker[AsyncSession],
    clock: ManualClock,
) -> AsyncGenerator[SqlDirectoryStore, None]:
    directory = SqlDirectoryStore(session_maker, clock=clock)
    yield directory
    await directory.close()


@pytest_asyncio.fixture
async def db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    store: InMemoryDirectoryStore,
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> dict:
    user_data = {
        "email": "test@example.com",
        "password": "testpassword123",
    }
    response = await client.post("/api/v1/auth/register", json=user_data)
    return {**user_data, "response": response.json()}


@pytest_asyncio.fixture
async def auth_token(client: AsyncClient, registered_user: dict) -> str:
    response = await client.post(
        "/api/v1/auth/login",
        data={
            "username": registered_user["email"],
            "password": registered_user["password"],
        },
    )
    return response.json()["access_token"]
