# okr_committees/db/session.py
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from okr_committees.core.config import get_settings
from okr_committees.db.base import Base

# Import ORM models so that Base.metadata is aware of them before create_all.
from okr_committees.models import meeting as _meeting_models  # noqa: F401

settings = get_settings()

IS_TEST = settings.APP_ENV.lower() == "test"

engine = create_async_engine(
    settings.DB_URL,
    echo=settings.DB_ECHO,
    future=True,
    # TestClient runs the app on its own event loop; never share connections across loops.
    poolclass=NullPool if IS_TEST else None,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async SQLAlchemy session.

    The session is automatically closed when the request is completed.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def init_db_for_startup() -> None:
    """
    Initialize DB schema for application startup.

    Safe to call from FastAPI startup in any environment: existing tables
    are left untouched.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """
    TEST-ONLY: reset the database schema.

    Drops all tables and recreates them using the current models.
    Do NOT call this from production code. Only from tests/fixtures.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
