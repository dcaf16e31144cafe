"""Database connection management for async SQLAlchemy."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import config
from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages async database connections and sessions."""

    def __init__(self, url: str | None = None) -> None:
        self._url = url
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return self._url or config.database.url

    async def initialize(self) -> None:
        """Initialize the database engine and session maker."""
        if self._engine is not None:
            return

        engine_kwargs: dict = {"echo": config.debug}
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=config.database.pool_size,
                max_overflow=config.database.max_overflow,
                pool_timeout=config.database.pool_timeout,
            )
        self._engine = create_async_engine(self.url, **engine_kwargs)

        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database initialized (%s)", self._engine.url.render_as_string(hide_password=True))

    async def create_tables(self, *, drop: bool = False) -> None:
        """Create the schema, optionally dropping it first."""
        if self._engine is None:
            await self.initialize()
        async with self._engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session context manager."""
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        if self._engine is None:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False


# Global database manager instance
db_manager = DatabaseManager()
