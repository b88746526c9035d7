"""Database connection and session management (async SQLAlchemy)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config.settings import get_settings
from ..domain.errors import DatabaseError
from ..models.database import Base

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Engine for `database_url`, created on first use."""
    global _engine, _session_maker
    if _engine is None:
        _engine = create_async_engine(get_settings().database_url, echo=False, future=True)
        _session_maker = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine


def session_factory() -> AsyncSession:
    """Create a new AsyncSession (caller must close)."""
    get_engine()
    if _session_maker is None:
        raise DatabaseError("database session factory not initialized")
    return _session_maker()


async def init_db() -> None:
    """Create tables if missing."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
