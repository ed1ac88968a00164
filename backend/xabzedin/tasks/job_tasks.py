import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from xabzedin.config import settings
from xabzedin.services.jobs import archive_expired_jobs
from xabzedin.tasks.celery_app import celery

logger = logging.getLogger(__name__)


def _get_async_session() -> tuple:
    engine = create_async_engine(settings.database_url, pool_size=5, max_overflow=2)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _run_archive() -> int:
    engine, session_factory = _get_async_session()
    try:
        async with session_factory() as db:
            archived = await archive_expired_jobs(db)
            await db.commit()
            return archived
    finally:
        await engine.dispose()


@celery.task(name="xabzedin.tasks.job_tasks.archive_expired_jobs_task")
def archive_expired_jobs_task() -> int:
    """Periodic task retiring listings whose expiry date has passed."""
    archived = asyncio.run(_run_archive())
    logger.info("Expired job sweep finished: %d archived", archived)
    return archived
