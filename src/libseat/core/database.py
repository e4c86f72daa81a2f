"""
Database configuration and async session management
"""
from sqlalchemy import DateTime
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from libseat.core.clock import to_civil
from libseat.core.config import settings


class CivilDateTime(TypeDecorator):
    """
    Timezone-aware DateTime normalised to the civil timezone.

    Values are converted before binding and after loading, so SQLite (which
    stores naive wall-clock strings) and PostgreSQL (timestamptz) compare
    and return the same instants.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_civil(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return to_civil(value)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases"""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": 30},
        )
    return create_async_engine(
        database_url,
        echo=echo,  # Log SQL queries in debug mode
        pool_pre_ping=True,  # Verify connections before using
        pool_size=20,
        max_overflow=40,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,
    )


engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG)

AsyncSessionLocal = create_session_factory(engine)

# Create declarative base for models
Base = declarative_base()


async def init_db(bind: AsyncEngine = engine):
    """
    Initialize database tables.
    Only for development - use migrations in production.
    """
    async with bind.begin() as conn:
        # Import all models to register them with Base
        from libseat.models import Zone, Seat, Reservation  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)

