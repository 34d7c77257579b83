from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.pool import NullPool
from auralis.core.config import settings
from auralis.core.errors import StorageError


class Database:
    """Encapsulates all database-related logic.

    An empty URL leaves the manager unconfigured: no engine is created and
    callers are expected to degrade gracefully (local/dev runs without
    credentials).
    """

    def __init__(self, db_url: Optional[str] = None):
        self.url = settings.DATABASE_URL if db_url is None else db_url
        self.engine: Optional[AsyncEngine] = None
        self.SessionLocal: Optional[async_sessionmaker[AsyncSession]] = None
        if self.url.strip():
            set_engine(create_engine(self.url), self)

    @property
    def configured(self) -> bool:
        return self.SessionLocal is not None

    @staticmethod
    def _format_database_url(url: str) -> str:
        """Replace standard postgresql driver with the async driver."""
        return url.replace("postgresql://", "postgresql+asyncpg://").replace("postgres://", "postgresql+asyncpg://")

    @staticmethod
    def _needs_null_pool(db_url: str) -> bool:
        """Determine whether we must disable SQLAlchemy pooling for the given URL."""
        if settings.SQLALCHEMY_DISABLE_POOL:
            return True
        return ":6543/" in db_url  # transaction poolers (PgBouncer)

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Provides a transactional scope around a series of operations."""
        if self.SessionLocal is None:
            raise StorageError(details="DATABASE_URL is not configured")
        session = self.SessionLocal()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create all tables (tests and local development; production uses alembic)."""
        from auralis.models import Base

        if self.engine is None:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        """Dispose the engine and close all connections."""
        if self.engine:
            await self.engine.dispose()


def create_engine(db_url: str | None = None) -> AsyncEngine:
    """Create a new AsyncEngine using the provided URL (defaults to settings.DATABASE_URL)."""
    target_url = Database._format_database_url(db_url or settings.DATABASE_URL)

    engine_kwargs = {"pool_pre_ping": True}
    if "+asyncpg" in target_url:
        engine_kwargs["connect_args"] = {"statement_cache_size": 0, "prepared_statement_cache_size": 0}
    if Database._needs_null_pool(target_url):
        engine_kwargs["poolclass"] = NullPool

    return create_async_engine(target_url, **engine_kwargs)


def set_engine(engine: AsyncEngine, database: Optional[Database] = None) -> None:
    """Install an engine and session maker on the given (default: global) manager."""
    target = database or db_manager
    target.engine = engine
    target.SessionLocal = get_session_maker(engine)


def get_session_maker(engine: Optional[AsyncEngine] = None) -> async_sessionmaker[AsyncSession]:
    """Return an async sessionmaker bound to the provided engine, or the global one if omitted."""
    target = engine or db_manager.engine
    return async_sessionmaker(
        target,
        autocommit=False,
        autoflush=False,
        class_=AsyncSession,
        expire_on_commit=False,
    )


db_manager = Database()


async def dispose_engine() -> None:
    """Dispose the currently installed engine."""
    await db_manager.dispose()
