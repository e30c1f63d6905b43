# app/db/seed.py
"""Seed roles, the admin account and sample movies. Safe to run repeatedly."""
from datetime import date
from decimal import Decimal
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..crud.movie import movie as movie_crud
from ..crud.user import get_role_by_name, get_user_by_email
from ..models import Movie, Role, RoleName, User
from ..utils.security import get_password_hash

logger = logging.getLogger(__name__)

ROLES = [RoleName.ADMIN.value, RoleName.USER.value]

# Movie seed data
SAMPLE_MOVIES = [
    {
        "title": "When Harry Met Sally",
        "release_date": date(1989, 2, 12),
        "genre": "Romantic Comedy",
        "rating": "R",
        "price": Decimal("7.99"),
    },
    {
        "title": "Ghostbusters",
        "release_date": date(1984, 3, 13),
        "genre": "Comedy",
        "rating": "PG",
        "price": Decimal("8.99"),
    },
    {
        "title": "Ghostbusters 2",
        "release_date": date(1986, 2, 23),
        "genre": "Comedy",
        "rating": "PG",
        "price": Decimal("9.99"),
    },
    {
        "title": "Rio Bravo",
        "release_date": date(1959, 4, 15),
        "genre": "Western",
        "rating": "G",
        "price": Decimal("3.99"),
    },
]


async def seed_roles(db: AsyncSession) -> dict:
    """Ensure every role exists; returns roles by name"""
    roles = {}
    for name in ROLES:
        role = await get_role_by_name(db, name)
        if role is None:
            role = Role(name=name)
            db.add(role)
            await db.flush()
            logger.info(f"Added role: {name}")
        roles[name] = role
    return roles


async def seed_admin(db: AsyncSession, admin_role: Role) -> User:
    """Ensure the admin account exists and holds the Admin role"""
    email = settings.ADMIN_EMAIL.lower().strip()
    user = await get_user_by_email(db, email)

    if user is None:
        user = User(
            email=email,
            hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
            is_active=True,
            email_verified=True,
            roles=[admin_role],
        )
        db.add(user)
        await db.flush()
        logger.info(f"Admin user created: {email}")
    elif not user.has_role(admin_role.name):
        user.roles.append(admin_role)
        logger.info(f"Admin role granted to existing user: {email}")
    else:
        logger.info("Admin user already exists")

    return user


async def seed_movies(db: AsyncSession) -> int:
    """Insert the sample movies only into an empty catalog; returns rows added"""
    if await movie_crud.count(db) > 0:
        logger.info("Movies already seeded, skipping...")
        return 0

    db.add_all([Movie(**data) for data in SAMPLE_MOVIES])
    await db.flush()
    logger.info(f"Added {len(SAMPLE_MOVIES)} sample movies")
    return len(SAMPLE_MOVIES)


async def seed_database(db: AsyncSession) -> None:
    """Run every seed step inside one transaction"""
    logger.info("Seeding database...")
    try:
        roles = await seed_roles(db)
        await seed_admin(db, roles[RoleName.ADMIN.value])
        await seed_movies(db)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"❌ Error seeding data: {e}")
        raise
    logger.info("✅ Database seeded successfully!")


async def main() -> None:
    from ..database import AsyncSessionLocal, create_tables, close_db

    await create_tables()
    async with AsyncSessionLocal() as db:
        await seed_database(db)
    await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
