"""Database configuration and session management.

Provides the async SQLAlchemy engine and session factory behind an
explicitly constructed ``Database`` handle owned by the application.
"""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

# Base class for models
Base = declarative_base()


class Database:
    """Owns the engine and session factory for one store.

    Example usage:
        database = Database("sqlite+aiosqlite:///./catalogue.db")
        await database.create_all()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """Initialize engine and session factory.

        Args:
            url: SQLAlchemy async database URL.
            echo: Whether to log emitted SQL.
        """
        self.url = url
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs["pool_pre_ping"] = True
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def session(self) -> AsyncSession:
        """Open a new session (use as an async context manager)."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables known to the model metadata."""
        # Register every mapped table on the metadata before creating.
        import storefront.catalog.models  # noqa: F401
        import storefront.infrastructure.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run a trivial query to check connectivity."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for a request.

    Yields:
        AsyncSession for database operations.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
