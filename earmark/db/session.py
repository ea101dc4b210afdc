"""Database handle with an explicit open/close lifecycle."""

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from earmark.db.base import Base

logger = logging.getLogger(__name__)


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    # Cascading mark deletes rely on foreign key enforcement; WAL lets
    # streaming reads proceed while a scan is writing
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.close()


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Created once at startup, stored on ``app.state.database`` and disposed on
    shutdown. Each request gets its own session from ``session_maker``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)
        event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragmas)
        self.session_maker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def for_path(cls, db_path: str, echo: bool = False) -> "Database":
        """Open a SQLite database file, creating its directory if needed."""
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite+aiosqlite:///{db_path}", echo=echo)

    async def create_all(self) -> None:
        """Create any missing tables."""
        # Register models on the metadata before creating tables
        import earmark.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database schema initialized: {self.url}")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
