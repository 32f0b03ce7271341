from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from src.lifecycle.application.handlers import StatusChangeHandler
from src.lifecycle.domain.events.status_change import EventType
from src.lifecycle.infrastructure.streams.client import StreamsClient
from src.lifecycle.infrastructure.streams.consumer import (
    GROUP_PROCESSORS,
    STREAM_STATUS_UPDATES,
    StreamsConsumer,
    consumer_name,
)
from src.lifecycle.infrastructure.streams.publisher import StreamsNotificationChannel
from src.lifecycle.infrastructure.streams.router import EventRouter


class StreamSettings(BaseSettings):
    """Configuration for Redis Streams consumer/publisher wiring."""
    REDIS_URL: str = "redis://redis:6379/0"
    STREAM_NAME: str = STREAM_STATUS_UPDATES
    GROUP_NAME: str = GROUP_PROCESSORS
    CONSUMER_NAME: str | None = None
    STREAM_MAXLEN: int | None = None
    BLOCK_MS: int = 5000
    COUNT: int = 10
    RECLAIM_PENDING: bool = True
    RECLAIM_IDLE_MS: int = 60000

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_event_router(handler: StatusChangeHandler | None = None) -> EventRouter:
    """Build an event router wired to the status change handler."""
    router = EventRouter()
    handler = handler or StatusChangeHandler()
    router.register(EventType.TASK_STATUS_UPDATE, handler.handle)
    return router


def build_stream_consumer(settings: StreamSettings | None = None) -> StreamsConsumer:
    """Create a streams consumer bound to the status change router."""
    if settings is None:
        settings = StreamSettings()
    client = StreamsClient(settings.REDIS_URL)
    router = build_event_router()
    # Consumer name is generated when not provided so multiple workers can join the group.
    name = settings.CONSUMER_NAME or consumer_name()
    return StreamsConsumer(
        client,
        stream=settings.STREAM_NAME,
        group=settings.GROUP_NAME,
        consumer_name=name,
        router=router,
        block_ms=settings.BLOCK_MS,
        count=settings.COUNT,
        reclaim_pending=settings.RECLAIM_PENDING,
        reclaim_idle_ms=settings.RECLAIM_IDLE_MS,
    )


def build_stream_channel(settings: StreamSettings | None = None) -> StreamsNotificationChannel:
    """Create the API-side notification channel appending to the status stream."""
    if settings is None:
        settings = StreamSettings()
    client = StreamsClient(settings.REDIS_URL)
    return StreamsNotificationChannel(client, settings.STREAM_NAME, maxlen=settings.STREAM_MAXLEN)
