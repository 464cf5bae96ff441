"""
Async engine and sessions for the PokeVault database.

The API gets sessions through get_session; the catalog sync job opens its own
with async_session_factory.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokevault.config import settings
from pokevault.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request for the collection and catalog routes.

    The session commits once the route returns and rolls back on a database
    error, so every change a route makes through SqlCollectionStore lands
    together.

    Usage in a route:
        session: Annotated[AsyncSession, Depends(get_session)]
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create the catalog and collection tables if they are missing.

    Runs from the application lifespan on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
