"""Async database manager for Scanara-Engine (single-DB).

File-backed SQLite runs in WAL mode with a busy timeout: audit runs and
snapshot captures on the same project commit from separate sessions, and a
writer waits for the lock instead of failing with "database is locked".
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scanara_engine.common.config import ScanaraSettings, get_settings
from scanara_engine.common.models import Base

import scanara_engine.projects.models  # noqa: F401
import scanara_engine.snapshots.models  # noqa: F401
import scanara_engine.audits.models  # noqa: F401
import scanara_engine.github.models  # noqa: F401


def sqlite_file(url: str | URL) -> Path | None:
    """Path of a file-backed SQLite database, or None for anything else."""
    url = make_url(url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def sync_url(url: str | URL) -> str:
    """The same database addressed through the backend's default sync driver."""
    url = make_url(url)
    return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


def ensure_sqlite_dir(url: str | URL) -> None:
    path = sqlite_file(url)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)


def _enable_wal(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class DatabaseManager:
    """Manages a single async database engine."""

    def __init__(self, settings: ScanaraSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = make_url(self._settings.db_url)
        kwargs = {}
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"timeout": self._settings.db_busy_timeout}
        ensure_sqlite_dir(url)
        self.engine = create_async_engine(url, echo=False, **kwargs)
        if sqlite_file(url) is not None:
            event.listen(self.engine.sync_engine, "connect", _enable_wal)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session committed on clean exit and rolled back on any error."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
