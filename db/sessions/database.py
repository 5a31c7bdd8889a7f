# db/sessions/database.py

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from core.logging_config import get_logger
from db.models import Base

logger = get_logger(__name__)

# Global engine and session factory, created by init_db()
_engine: Optional[AsyncEngine] = None
_async_session_local: Optional[async_sessionmaker[AsyncSession]] = None


def get_async_session_local() -> async_sessionmaker[AsyncSession]:
    if _async_session_local is None:
        raise RuntimeError("Database session is not initialized. Call init_db() first.")
    return _async_session_local


async def init_db() -> None:
    global _engine, _async_session_local

    _engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
    )

    _async_session_local = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables ensured")


async def shutdown_db() -> None:
    global _engine, _async_session_local
    if _engine:
        await _engine.dispose()
    _engine = None
    _async_session_local = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session_factory = get_async_session_local()
    async with session_factory() as session:
        yield session
