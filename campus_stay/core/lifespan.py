import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from campus_stay.core.throttling import rate_limiter_manager

from .get_db import Database
from .settings import settings

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")
    database: Database = app.state.database

    try:
        await database.connect()
        logger.info("Database connected.")
        if settings.AUTO_CREATE_TABLES:
            await database.create_all()
            logger.info("Database tables ensured.")
    except Exception:
        logger.exception("Database connection failed")
        raise

    try:
        await rate_limiter_manager.connect()
    except Exception:
        logger.exception("Rate limiter connection failed")

    try:
        await app.state.notification_publisher.connect()
    except Exception:
        logger.exception("Notification broker connection failed")

    logger.info("Application startup complete.")

    yield

    try:
        await rate_limiter_manager.close()
    except Exception:
        logger.exception("Failed to close rate limiter")

    await database.dispose()
    logger.info("Application shutdown complete.")
