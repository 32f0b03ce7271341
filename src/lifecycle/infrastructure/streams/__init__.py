from src.lifecycle.infrastructure.streams.client import StreamsClient
from src.lifecycle.infrastructure.streams.consumer import StreamsConsumer
from src.lifecycle.infrastructure.streams.publisher import StreamsNotificationChannel
from src.lifecycle.infrastructure.streams.router import EventRouter

__all__ = [
    "StreamsClient",
    "StreamsNotificationChannel",
    "StreamsConsumer",
    "EventRouter",
]
