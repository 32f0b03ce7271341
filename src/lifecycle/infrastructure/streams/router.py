from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from src.lifecycle.domain.events.status_change import EventType, StatusChangeNotification

logger = logging.getLogger(__name__)

EventHandler = Callable[[StatusChangeNotification], Awaitable[None]]


class EventRouter:
    """Maps notification types to the coroutine that consumes them.

    The worker registers ``StatusChangeHandler.handle`` for status updates.
    Notifications of an unregistered type are logged and left to be acknowledged.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, EventHandler] = {}

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        self._handlers[event_type] = handler

    def get_handler(self, event_type: EventType) -> EventHandler | None:
        return self._handlers.get(event_type)

    async def dispatch(self, notification: StatusChangeNotification) -> None:
        handler = self.get_handler(notification.type)
        if handler is None:
            logger.warning(
                "No handler registered for event type",
                extra={"type": notification.type},
            )
            return
        await handler(notification)
