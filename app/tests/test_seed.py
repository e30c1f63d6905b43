"""Tests for startup seeding."""

import pytest
from sqlalchemy import func, select

from app.config import settings
from app.crud.movie import movie as movie_crud
from app.crud.user import get_user_by_email
from app.db.seed import SAMPLE_MOVIES, seed_database
from app.models import Role, User
from app.utils.security import verify_password


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_seed_creates_roles_admin_and_sample_movies(db) -> None:
    await seed_database(db)

    roles = (await db.execute(select(Role.name).order_by(Role.name))).scalars().all()
    assert roles == ["Admin", "User"]

    admin = await get_user_by_email(db, settings.ADMIN_EMAIL)
    assert admin is not None
    assert admin.email_verified is True
    assert admin.role_names == {"Admin"}
    assert verify_password(settings.ADMIN_PASSWORD, admin.hashed_password)

    titles = {m.title for m in await movie_crud.get_multi(db)}
    assert titles == {row["title"] for row in SAMPLE_MOVIES}


@pytest.mark.asyncio
async def test_seed_is_idempotent(db) -> None:
    await seed_database(db)
    await seed_database(db)

    assert await _count(db, User) == 1
    assert await _count(db, Role) == 2
    assert await movie_crud.count(db) == 4


@pytest.mark.asyncio
async def test_seed_leaves_existing_catalog_alone(db, add_movies) -> None:
    await add_movies([{"title": "Rio Lobo", "genre": "Western", "rating": "G"}])

    await seed_database(db)

    assert [m.title for m in await movie_crud.get_multi(db)] == ["Rio Lobo"]
    assert await get_user_by_email(db, settings.ADMIN_EMAIL) is not None
