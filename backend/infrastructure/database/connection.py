"""Database connection and session management."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.errors import StorageError

logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    return url.endswith(":memory:") or url.rstrip("/").endswith("sqlite+aiosqlite:")


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    """Take transaction control away from the sqlite3 driver.

    The driver does not BEGIN before DDL, so migration steps would otherwise
    autocommit statement by statement. Every SQLAlchemy transaction starts
    with BEGIN IMMEDIATE, giving a single exclusive writer. Connections
    carrying the ``sqlite_begin`` execution option use that mode instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin", "IMMEDIATE")
        conn.exec_driver_sql(f"BEGIN {mode}")


class Database:
    """Store handle, constructed once at startup and passed to each component."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo}
        if _is_memory_url(url):
            # One shared connection, otherwise each checkout sees an empty database
            engine_kwargs.update(
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        self.engine = create_async_engine(url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _install_sqlite_transaction_hooks(self.engine)

        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        # Reads take a deferred transaction and never hold the writer lock
        self.read_engine = self.engine.execution_options(sqlite_begin="DEFERRED")
        self.read_session_maker = async_sessionmaker(
            self.read_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        path = settings.database_path
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
        return cls(settings.database_url, echo=settings.database_echo)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Read session.

        Closing the session rolls back its connection without expiring the
        objects it loaded, so they stay readable after the block.
        """
        async with self.read_session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session inside one exclusive transaction.

        Commits on success; any exception rolls back every change made
        through the session. Engine failures surface as StorageError.
        """
        async with self.session_maker() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as e:
                logger.error("Transaction rolled back: %s", e)
                raise StorageError(f"Storage failure: {e}") from e

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
