"""
Database configuration with connection pooling and async support
"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, StaticPool

from globalacademy.config import Settings
from globalacademy.models import Base


def create_engine_for(config: Settings) -> AsyncEngine:
    """Create an async engine with pooling suited to the target database"""
    url = config.database_url
    engine_kwargs = {
        "echo": config.database_echo,
        "pool_pre_ping": True,
    }

    if url.startswith("sqlite"):
        # Single shared connection so an in-memory database survives between sessions
        engine_kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })
    elif config.is_production:
        engine_kwargs.update({
            "pool_size": config.database_pool_size,
            "max_overflow": config.database_pool_size * 2,
        })
    else:
        # Use NullPool in dev to avoid stale connections
        engine_kwargs.update({
            "poolclass": NullPool,
        })

    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables (safe, idempotent)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
