"""Async SQLAlchemy engine and session factory construction.

The ledger never owns a global pool: the entry point builds the engine and
session factory here, hands the factory to ``ChallengeLedger`` and disposes
of the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from trilo.config import Settings
from trilo.db.base import Base


def create_db_engine(settings: Settings) -> AsyncEngine:
    """Create the pooled async engine for the configured database."""
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=settings.db_echo)
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.db_echo,
        connect_args={"statement_cache_size": 0},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory injected into the ledger."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create all ledger tables. Development and test use only."""
    import trilo.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine | None) -> None:
    """Dispose of the engine's connection pool."""
    if engine is not None:
        await engine.dispose()
