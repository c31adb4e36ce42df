import logging
import os
from typing import AsyncIterator

from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

# ------------------------------------------------------------
# Load environment variables
# ------------------------------------------------------------
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./hiremind.db")
DB_ECHO = (os.getenv("DB_ECHO", "")).lower() in ("1", "true", "yes", "on")

_log = logging.getLogger(__name__)


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Build an async engine for `url`.
    SQLite connections are opened per session (NullPool) so a session never
    reuses an aiosqlite connection created on another event loop.
    """
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, poolclass=NullPool)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


# ------------------------------------------------------------
# Engine + async session factory
# ------------------------------------------------------------
engine = make_engine(DATABASE_URL, echo=DB_ECHO)

SessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


# ------------------------------------------------------------
# Base class for ORM models
# ------------------------------------------------------------
class Base(DeclarativeBase):
    """Base for all ORM models."""
    pass


# ------------------------------------------------------------
# FastAPI DB dependency
# ------------------------------------------------------------
async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Provides an async SQLAlchemy session for FastAPI.
    Services commit explicitly; anything left open is rolled back on close.
    """
    async with SessionLocal() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None) -> None:
    """
    Create all tables. Safe to run repeatedly (CREATE IF NOT EXISTS).
    """
    from . import models  # noqa: F401  (register model classes)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def test_connection() -> int:
    """Verify DB connectivity; used by the startup hook."""
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT 1"))
        value = result.scalar_one()
    _log.info("DB connection OK (%s)", engine.url.render_as_string(hide_password=True))
    return value
