"""Shared pytest fixtures: an in-memory database per test and an API client bound to it."""

import os
from decimal import Decimal
from typing import Any, Callable, Iterable

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "development"
os.environ["SEED_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import create_tables, get_async_db, install_sqlite_functions
from app.main import app
from app.models import Movie, Role, RoleName, User
from app.utils.security import create_access_token, get_password_hash
from app.tests.sample_data import CATALOG


@pytest_asyncio.fixture
async def engine():
    """A fresh in-memory SQLite database shared by every session in the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    install_sqlite_functions(engine)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def add_movies(db) -> Callable:
    """Return a coroutine that stores movie rows and returns them in insertion order."""

    async def _add(rows: Iterable[dict[str, Any]]) -> list[Movie]:
        movies = [Movie(**{"price": Decimal("1.00"), **row}) for row in rows]
        db.add_all(movies)
        await db.commit()
        return movies

    return _add


@pytest_asyncio.fixture
async def catalog(add_movies) -> list[Movie]:
    return await add_movies(CATALOG)


async def _create_user(db: AsyncSession, email: str, role_name: str) -> User:
    role = Role(name=role_name)
    user = User(
        email=email,
        hashed_password=get_password_hash("Passw0rd!"),
        is_active=True,
        email_verified=True,
        roles=[role],
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db) -> User:
    return await _create_user(db, "admin@example.com", RoleName.ADMIN.value)


@pytest_asyncio.fixture
async def regular_user(db) -> User:
    return await _create_user(db, "viewer@example.com", RoleName.USER.value)


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(subject=user.id, roles=user.role_names)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def user_headers(regular_user) -> dict[str, str]:
    return bearer(regular_user)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client whose requests use the test database."""

    async def _override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = _override_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
