import logging
import math
from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from xabzedin.errors import ValidationFailed
from xabzedin.models.job import Job, JobStatus

logger = logging.getLogger(__name__)

ALLOWED_DURATIONS = (7, 14, 30, 60, 90)
SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite hands them back without tzinfo)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_expires_at(duration_days: int, now: datetime | None = None) -> datetime:
    if duration_days not in ALLOWED_DURATIONS:
        raise ValidationFailed("invalid_duration")
    return (now or utcnow()) + timedelta(days=duration_days)


def days_remaining(expires_at: datetime | None, now: datetime | None = None) -> int | None:
    """Whole days left until expiry, rounded up; negative once expired."""
    if expires_at is None:
        return None
    delta = ensure_utc(expires_at) - (now or utcnow())
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def is_expired(job: Job, now: datetime | None = None) -> bool:
    return job.expires_at is not None and ensure_utc(job.expires_at) < (now or utcnow())


def job_status(job: Job, now: datetime | None = None) -> JobStatus:
    if job.is_archived:
        return JobStatus.ARCHIVED
    if is_expired(job, now):
        return JobStatus.EXPIRED
    if not job.is_active:
        return JobStatus.INACTIVE
    return JobStatus.ACTIVE


def is_visible(job: Job, now: datetime | None = None) -> bool:
    return job_status(job, now) == JobStatus.ACTIVE


def visible_jobs_query(now: datetime | None = None) -> Select:
    """Jobs a seeker may see: active, not archived, not past their expiry."""
    now = now or utcnow()
    return (
        select(Job)
        .options(selectinload(Job.company))
        .where(
            Job.is_active == True,  # noqa: E712
            Job.is_archived == False,  # noqa: E712
            or_(Job.expires_at.is_(None), Job.expires_at > now),
        )
    )


def apply_job_filters(query: Select, search: str | None = None, job_type: str | None = None) -> Select:
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))
    if job_type:
        query = query.where(Job.type == job_type)
    return query


def republish(job: Job, duration_days: int, now: datetime | None = None) -> Job:
    now = now or utcnow()
    expires_at = compute_expires_at(duration_days, now)
    job.is_active = True
    job.is_archived = False
    job.expires_at = expires_at
    job.updated_at = now
    return job


async def archive_expired_jobs(db: AsyncSession, now: datetime | None = None) -> int:
    """Deactivate and archive every job whose expiry has passed."""
    now = now or utcnow()
    result = await db.execute(
        update(Job)
        .where(
            Job.expires_at.is_not(None),
            Job.expires_at < now,
            Job.is_archived == False,  # noqa: E712
        )
        .values(is_active=False, is_archived=True, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    archived = result.rowcount or 0
    if archived:
        logger.info("Archived %d expired jobs", archived)
    return archived
