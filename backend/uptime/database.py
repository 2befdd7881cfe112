"""Database engine setup.

The event log lives in SQLite by default. Set DATABASE_URL to point it at
another file:
    sqlite+aiosqlite:///path/to/uptime.db
"""
import logging
import os

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine configured for concurrent access."""
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_async_engine(database_url, echo=False, pool_pre_ping=True)

    # Ensure data directory exists for file-backed SQLite
    if url.database and url.database != ":memory:":
        directory = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(directory, exist_ok=True)

    engine = create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        connect_args={"timeout": 30},  # Wait up to 30 seconds for locks
    )

    # Enable WAL mode and busy timeout on each SQLite connection
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Configure SQLite for concurrent reads during writes."""
        cursor = dbapi_connection.cursor()
        # WAL mode allows concurrent reads during writes
        cursor.execute("PRAGMA journal_mode=WAL")
        # Wait up to 30 seconds for locks before failing
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    logger.info(f"Using SQLite database at {url.database}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine):
    """Create tables and indexes that do not exist yet."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
