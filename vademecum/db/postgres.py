"""
Vademecum Database Connection Management

PostgreSQL async connection pool with SQLAlchemy 2.0.
Includes session handling, schema bootstrap and health checks.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from vademecum.config import DEFAULT_DATABASE_URL

logger = logging.getLogger(__name__)

# ============================================
# Configuration Constants
# ============================================

# Connection pool settings
POOL_SIZE = 5
MAX_OVERFLOW = 10
POOL_RECYCLE = 1800  # 30 minutes
POOL_PRE_PING = True


# ============================================
# Engine & Session Factory
# ============================================


def create_db_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async database engine with connection pooling.

    Args:
        database_url: Database URL. Falls back to DATABASE_URL from the environment.

    Returns:
        AsyncEngine configured with connection pool.
    """
    url = database_url or os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)

    return create_async_engine(
        url,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=POOL_PRE_PING,
        echo=os.environ.get("DB_ECHO", "false").lower() == "true",
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session maker bound to the given engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ============================================
# Session Context Manager
# ============================================


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.

    Automatically commits on success, rolls back on exception.

    Example:
        async with session_scope(session_maker) as session:
            result = await session.execute(query)
    """
    session = session_maker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


# ============================================
# Schema & Health
# ============================================


async def init_schema(engine: AsyncEngine) -> None:
    """
    Create the pgvector extension and tables if missing.

    Production deployments run the Alembic migration instead; this is for
    local development and integration tests.
    """
    from vademecum.db.models import Base

    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def check_database_health(engine: AsyncEngine) -> dict:
    """
    Check database connectivity and health.

    Returns:
        Dict with status and connection details.
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1 AS health_check"))
            if result.scalar() == 1:
                return {
                    "status": "healthy",
                    "database": "connected",
                    "pool_size": POOL_SIZE,
                }
    except Exception as e:
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(e),
        }

    return {
        "status": "unknown",
        "database": "check_failed",
    }


async def check_pgvector_extension(engine: AsyncEngine) -> bool:
    """
    Verify pgvector extension is installed.

    Returns:
        True if pgvector extension is available.
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(
                text("SELECT extname FROM pg_extension WHERE extname = 'vector'")
            )
            return result.scalar() == "vector"
    except Exception as e:
        logger.warning("pgvector extension check failed: %s", e)
        return False
