import logging
import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT = 15


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite stores datetimes without offset)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _ensure_sqlite_dir(database_url: str) -> None:
    marker = ":///"
    if not database_url.startswith("sqlite") or marker not in database_url:
        return
    path = database_url.split(marker, 1)[1]
    if path and path != ":memory:":
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine and apply SQLite pragmas on every new connection."""
    _ensure_sqlite_dir(database_url)
    engine = create_async_engine(
        database_url,
        echo=echo,
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT} if database_url.startswith("sqlite") else {},
    )

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT * 1000}")
            cursor.close()

    logger.info("Database engine created for %s", database_url)
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    # Import models so they are registered on Base.metadata
    from db import history, item, receipt  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_maker() as session:
        yield session
