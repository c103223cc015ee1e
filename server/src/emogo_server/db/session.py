"""Async database handle and session dependency (SQLAlchemy 2.0)."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from emogo_server.db.base import Base


class Database:
    """Explicitly constructed database handle.

    Created in the application lifespan, stored on ``app.state`` and
    disposed at shutdown; request handlers receive sessions from it
    through the ``get_db`` dependency.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    async def connect(self, create_tables: bool = False) -> None:
        """Create the engine and optionally the schema."""
        self._engine = create_async_engine(
            self.url,
            echo=self.echo,
            pool_pre_ping=True,  # Verify connections before using
        )
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Objects stay readable for API responses
            autoflush=False,
        )
        if create_tables:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    async def disconnect(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()

    async def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency injection for async database sessions.

    The record service commits per record, so the session is only rolled
    back here if a request fails midway.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
