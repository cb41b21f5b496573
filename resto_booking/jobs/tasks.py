"""Background job tasks"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from resto_booking.jobs.celery_app import celery_app
from resto_booking.config import settings
from resto_booking.services.maintenance import complete_past, purge_canceled

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@asynccontextmanager
async def task_session():
    """Session on an engine owned by the current event loop"""
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)() as db:
            yield db
    finally:
        await engine.dispose()


@celery_app.task(name="purge_canceled_reservations")
def purge_canceled_reservations():
    """Delete canceled reservations older than the retention window"""
    logger.info("Purging canceled reservations", retention_days=settings.canceled_retention_days)

    async def _purge():
        async with task_session() as db:
            return await purge_canceled(db, settings.canceled_retention_days)

    return run_async(_purge())


@celery_app.task(name="complete_past_reservations")
def complete_past_reservations():
    """Mark finished confirmed reservations as completed"""
    if not settings.auto_complete_enabled:
        logger.info("Automatic completion disabled")
        return 0

    async def _complete():
        async with task_session() as db:
            return await complete_past(db)

    return run_async(_complete())
