from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.core.database")

Base = declarative_base()


# Convert database URL to use asyncpg driver
def _get_async_db_url(sync_url: str) -> str:
    """Convert sync database URL to async URL with asyncpg driver."""
    if sync_url.startswith("postgresql://"):
        return sync_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgres://"):
        return sync_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg2://"):
        return sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg://"):
        return sync_url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("sqlite://"):
        return sync_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    else:
        # Assume it's already async or needs no conversion
        return sync_url


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(self, url: str, echo: bool = False):
        self.url = _get_async_db_url(url)
        self.engine: AsyncEngine = create_async_engine(self.url, echo=echo, future=True)
        self.sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def connect(self) -> None:
        """Check connectivity and create missing tables. Raises if the store is unreachable."""
        # Import models so their tables are registered on Base.metadata
        from assistant_backend import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connected", extra={"dialect": self.engine.dialect.name})

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection pool disposed")

    def session(self) -> AsyncSession:
        return self.sessionmaker()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
