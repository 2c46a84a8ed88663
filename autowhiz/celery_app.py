from celery import Celery

from autowhiz.core.config import settings

# The analysis worker lives in a separate deployment; this app only publishes tasks to it.
celery_app = Celery(
    "autowhiz",
    broker=settings.CELERY_BROKER_URL or None,
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_default_queue="analysis",
)
