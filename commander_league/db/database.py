"""
League database engine and sessions.

One async engine per process, built from ``settings.database_url`` at import
time. API handlers get a request-scoped session through ``get_session``; the
deck version store and the prune job commit their own work on sessions from
``async_session_factory``.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commander_league.config import settings
from commander_league.models.db import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Rows stay readable after commit; async sessions cannot lazy-refresh them
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for league endpoints.

    Commits when the handler returns and rolls back on a database error. A
    LeagueError raised by the handler skips the commit, so the session closes
    with its pending writes discarded.

        @router.get("/{season_id}")
        async def get_season(
            season_id: str,
            session: Annotated[AsyncSession, Depends(get_session)],
        ): ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing league tables. Called once from the app lifespan."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
