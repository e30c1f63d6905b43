from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator
import logging

from .config import settings, to_async_url

logger = logging.getLogger(__name__)

# ============================================================
# Async Database Engine
# ============================================================

def parse_database_url(url: str) -> tuple[str, dict]:
    """
    Convert the configured URL to its async driver and collect
    driver-specific connect arguments.
    Returns: (async_url, connect_args)
    """
    async_url = to_async_url(url)

    connect_args = {}
    if async_url.startswith('sqlite+aiosqlite'):
        connect_args['check_same_thread'] = False
    elif 'sslmode=require' in url:
        connect_args['ssl'] = 'require'

    return async_url, connect_args


def _unicode_upper(value):
    return value.upper() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_conn, connection_record):
    # SQLite's built-in upper() only folds ASCII letters
    dbapi_conn.create_function("upper", 1, _unicode_upper, deterministic=True)


def install_sqlite_functions(engine) -> None:
    """Replace SQLite's upper() with a Unicode-aware one on every new connection."""
    event.listen(engine.sync_engine, "connect", _register_sqlite_functions)


def build_engine(url: str, echo: bool = False):
    """Create the async engine; pool sizing only applies to server databases."""
    async_url, connect_args = parse_database_url(url)

    engine_kwargs = {
        "echo": echo,
        "future": True,
        "connect_args": connect_args,
    }
    if not async_url.startswith('sqlite'):
        engine_kwargs.update(
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=5,
            pool_timeout=30,
            pool_recycle=1800,
        )

    engine = create_async_engine(async_url, **engine_kwargs)
    if async_url.startswith('sqlite'):
        install_sqlite_functions(engine)
    return engine


async_engine = build_engine(settings.database_url, echo=settings.DB_ECHO)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autoflush=False,
)

# ============================================================
# Base Model
# ============================================================

Base = declarative_base()

# ============================================================
# Database Session Dependency
# ============================================================

async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session dependency for FastAPI endpoints.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_async_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()

    One session per request; it is closed after the response is sent.
    """
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


# ============================================================
# Database Health Check
# ============================================================

async def check_db_health() -> bool:
    """
    Check if database is accessible and responsive.
    Returns True if healthy, False otherwise.
    """
    session = AsyncSessionLocal()
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    finally:
        await session.close()


# ============================================================
# Connection Event Listeners
# ============================================================

@event.listens_for(async_engine.sync_engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log database connections"""
    logger.debug("Database connection established")


# ============================================================
# Startup/Shutdown Handlers
# ============================================================

async def create_tables(engine=None) -> None:
    """Create all registered tables that do not exist yet."""
    # Registers every model with Base.metadata
    from . import models  # noqa: F401

    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    try:
        logger.info("🔄 Preparing database schema...")
        await create_tables()

        is_healthy = await check_db_health()
        if is_healthy:
            logger.info("✅ Database health check passed")
        else:
            logger.error("❌ Database health check failed")

    except Exception as e:
        logger.error(f"❌ Database init failed: {e}", exc_info=True)
        raise


async def close_db():
    """
    Close database connections on shutdown.
    """
    try:
        logger.info("🔄 Closing database connections...")
        await async_engine.dispose()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.error(f"❌ Error closing database: {e}")


__all__ = [
    'Base',
    'async_engine',
    'AsyncSessionLocal',
    'build_engine',
    'install_sqlite_functions',
    'get_async_db',
    'check_db_health',
    'create_tables',
    'init_db',
    'close_db',
]
