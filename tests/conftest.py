from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from helpdesk.db import Base
from helpdesk.db.models import RoleEnum, User
from helpdesk.db.session import get_session
from helpdesk.main import app
from helpdesk.services.policy import Actor

# bcrypt is slow; only the auth tests need a real hash
FAKE_HASH = "not-a-real-hash"

UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session for tests that seed or inspect the store directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def make_user(db: AsyncSession) -> UserFactory:
    counter = {"n": 0}

    async def _make(
        roles: Iterable[RoleEnum] = (),
        *,
        email: str | None = None,
        first_name: str = "Test",
        last_name: str | None = None,
        department: str | None = None,
        password_hash: str = FAKE_HASH,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name or f"User{n}",
            department=department,
            is_active=True,
        )
        user.set_roles(roles)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make


@pytest.fixture()
async def user(make_user: UserFactory) -> User:
    return await make_user(email="alice@example.com", first_name="Alice", last_name="Martin")


@pytest.fixture()
async def other_user(make_user: UserFactory) -> User:
    return await make_user(email="bob@example.com", first_name="Bob", last_name="Durand")


@pytest.fixture()
async def technician(make_user: UserFactory) -> User:
    return await make_user(
        [RoleEnum.technician],
        email="tech@example.com",
        first_name="Tina",
        last_name="Bernard",
        department="IT",
    )


@pytest.fixture()
async def admin(make_user: UserFactory) -> User:
    return await make_user(
        [RoleEnum.admin],
        email="admin@example.com",
        first_name="Adam",
        last_name="Admin",
        department="IT",
    )


@pytest.fixture()
def user_actor(user: User) -> Actor:
    return Actor.from_user(user)


@pytest.fixture()
def other_actor(other_user: User) -> Actor:
    return Actor.from_user(other_user)


@pytest.fixture()
def tech_actor(technician: User) -> Actor:
    return Actor.from_user(technician)


@pytest.fixture()
def admin_actor(admin: User) -> Actor:
    return Actor.from_user(admin)


@pytest.fixture()
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the app bound to the in-memory store."""

    async def override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_session, None)

