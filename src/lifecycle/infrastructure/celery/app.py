from celery import Celery

from src.setup.celery_config import get_celery_settings

_settings = get_celery_settings()

celery_app = Celery("task-lifecycle", broker=_settings.REDIS_URL)

celery_app.conf.update(
    task_ignore_result=True,
    # Acknowledge after the handler ran so a crashed worker causes redelivery.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_queue=_settings.STATUS_QUEUE,
    imports=("src.lifecycle.worker.tasks.status_update",),
)
