"""Database engine, session factory, and declarative base.

All identity tables (users, candidates, documents) live in one schema,
so there is a single DeclarativeBase and a single session dependency.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from candidate_onboarding.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (used in local dev and tests) does not accept pool sizing
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
