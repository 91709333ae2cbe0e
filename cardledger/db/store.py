"""
Store client.

A ``CardStore`` owns the async engine and session factory for one database.
It is built once at startup from settings and handed to whatever needs the
store (routes via ``get_store``, the reconciler via its constructor).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cardledger.config import Settings
from cardledger.models.db import Base

logger = logging.getLogger(__name__)


class CardStore:
    """Async SQLAlchemy access to the card_values table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False) -> "CardStore":
        engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One unit of work: commits on success, rolls back on database errors.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise

    async def init_schema(self) -> None:
        """Create tables defined in the ORM models."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        """
        Drop all tables.

        WARNING: Destroys all data. Use only for testing.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        """True if the database answers a trivial query."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Store ping failed: %s", e)
            return False

    async def close(self) -> None:
        await self.engine.dispose()


def create_store(settings: Settings) -> CardStore | None:
    """
    Build the store client from configuration.

    Returns None when no database URL is configured; callers treat that as
    "no persistence" rather than an error.
    """
    if not settings.database_url:
        logger.warning("No DATABASE_URL configured - cards will not be persisted")
        return None
    return CardStore.from_url(settings.database_url, echo=settings.debug)


async def get_store(request: Request) -> CardStore | None:
    """
    Dependency that provides the application's store client, or None.

    Usage in FastAPI:
        @router.get("/cards")
        async def list_cards(store: CardStore | None = Depends(get_store)):
            ...
    """
    store: CardStore | None = getattr(request.app.state, "store", None)
    return store
