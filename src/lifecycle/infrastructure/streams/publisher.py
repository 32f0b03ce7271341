from __future__ import annotations

from src.lifecycle.domain.events.status_change import StatusChangeNotification
from src.lifecycle.domain.repositories import NotificationChannelRepository
from src.lifecycle.infrastructure.streams.client import StreamsClient
from src.lifecycle.infrastructure.streams.serializers import encode_notification


class StreamsNotificationChannel(NotificationChannelRepository):
    """Appends status notifications to a single Redis stream.

    Stream order is append order, so successive changes of one task are read
    back in the order they were enqueued.
    """

    def __init__(
        self,
        client: StreamsClient,
        stream: str,
        *,
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._approximate = approximate

    async def enqueue(self, notification: StatusChangeNotification) -> None:
        await self._client.redis.xadd(
            self._stream,
            encode_notification(notification),
            maxlen=self._maxlen,
            approximate=self._approximate,
        )
