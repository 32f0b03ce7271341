from __future__ import annotations

import asyncio

from src.lifecycle.domain.events.status_change import STATUS_UPDATE_TOPIC, StatusChangeNotification
from src.lifecycle.domain.repositories import NotificationChannelRepository
from src.lifecycle.infrastructure.celery.app import celery_app


class CeleryNotificationChannel(NotificationChannelRepository):
    """
    Publishes status notifications as Celery jobs on the status queue.
    """

    def __init__(self, celery_app_instance=celery_app, queue: str | None = None):
        self._celery_app = celery_app_instance
        self._queue = queue

    async def enqueue(self, notification: StatusChangeNotification) -> None:
        """
        Send a ``task-status-update`` job; broker errors propagate to the caller.
        """
        await asyncio.to_thread(
            self._celery_app.send_task,
            STATUS_UPDATE_TOPIC,
            args=[notification.model_dump(mode="json")],
            queue=self._queue,
            task_id=notification.notification_id,
        )
