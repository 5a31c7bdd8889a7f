from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import get_signing_keys, settings
from core.logging_config import get_logger
from db.sessions.database import get_async_session_local, init_db, shutdown_db
from services.user_service import ensure_admin_user

logger = get_logger("core.lifespan")


async def seed_admin_user() -> None:
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin seeding")
        return

    session_factory = get_async_session_local()
    async with session_factory() as db:
        await ensure_admin_user(
            db,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            name=settings.ADMIN_NAME,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        logger.info("Starting up FastAPI application...")

        # Fail fast on an unusable key directory rather than on the first login
        get_signing_keys()
        logger.info("JWT signing keys loaded")

        await init_db()
        logger.info("Database initialized")

        await seed_admin_user()

        yield

    except Exception as e:
        logger.exception(f"Startup failed: {e}")
        raise
    finally:
        await shutdown_db()
        logger.info("FastAPI application shutdown.")
