from celery import Celery
from celery.schedules import crontab

from xabzedin.config import settings

celery = Celery(
    "xabzedin",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "xabzedin.tasks.email_tasks",
        "xabzedin.tasks.job_tasks",
    ],
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=120,
    task_time_limit=300,
    result_expires=3600,
)

# Beat schedule: retire expired listings at the top of every hour
celery.conf.beat_schedule = {
    "archive-expired-jobs": {
        "task": "xabzedin.tasks.job_tasks.archive_expired_jobs_task",
        "schedule": crontab(minute=0),
    },
}
