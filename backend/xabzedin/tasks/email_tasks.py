import logging

from xabzedin.services.notifier import send_email
from xabzedin.tasks.celery_app import celery

logger = logging.getLogger(__name__)


@celery.task(name="xabzedin.tasks.email_tasks.send_email_task", bind=True, max_retries=3)
def send_email_task(self, to: str, subject: str, html: str):
    """Deliver a transactional email outside the request cycle."""
    try:
        send_email(to, subject, html)
    except Exception as exc:
        logger.exception("Email task failed for %s", to)
        raise self.retry(exc=exc, countdown=60)
