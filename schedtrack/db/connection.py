"""Database engine and session construction for SchedTrack.

Engines are created from a StoreConfig and owned by whoever created them
(normally the store handle built at startup).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from schedtrack.config import StoreConfig
from schedtrack.db.models import Base


def create_engine(config: StoreConfig) -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        config: Store configuration (URL, echo flag)

    Returns:
        AsyncEngine: SQLAlchemy async engine
    """
    engine_kwargs: dict = {"echo": config.echo}

    # SQLite doesn't support connection pooling parameters
    if "sqlite" not in config.url.lower():
        engine_kwargs.update({
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        })

    return create_async_engine(config.url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
    )


async def init_db(engine: AsyncEngine, drop: bool = False) -> None:
    """Create all tables (optionally dropping them first).

    Raises:
        SQLAlchemyError: If table creation fails
    """
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
