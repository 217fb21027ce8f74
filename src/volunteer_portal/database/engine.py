"""Engine construction, schema bootstrap and per-request sessions.

The module-level ``engine`` is built from ``settings.database_url``; the
schema helpers accept another engine so tests can run against an
in-memory SQLite database.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from volunteer_portal.config import settings
from volunteer_portal.models.volunteer import Base


def make_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create an async engine for *url* (defaults to the configured database).

    Server databases get ``pool_pre_ping`` so connections dropped by the
    server are replaced instead of failing the first request that uses them.
    """
    url = url or settings.database_url
    options: dict = {"echo": settings.debug if echo is None else echo}
    if make_url(url).get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


engine = make_engine()

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the volunteer tables on *bind* if they are missing."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind: AsyncEngine | None = None) -> None:
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def dispose_db() -> None:
    """Close pooled connections of the application engine."""
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
