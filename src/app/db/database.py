import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from core.config import configs

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Create async engine
engine = create_async_engine(configs.DATABASE_URL, echo=False, future=True)

# Create async session factory
AsyncSessionLocal = make_session_factory(engine)


async def init_models(target: AsyncEngine = engine) -> None:
    """Creates every table registered on ``Base``."""
    import app.models.album  # noqa: F401
    import app.models.preference  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for getting async database sessions."""
    logger.debug("Creating new database session.")
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            logger.debug("Closing database session.")
            await session.close()
