from __future__ import annotations

import asyncio
import logging
import os
import socket
from typing import Any

from redis.exceptions import RedisError

from src.lifecycle.domain.events.status_change import STATUS_UPDATE_TOPIC
from src.lifecycle.infrastructure.streams.client import StreamsClient
from src.lifecycle.infrastructure.streams.router import EventRouter
from src.lifecycle.infrastructure.streams.serializers import decode_notification

logger = logging.getLogger(__name__)

STREAM_STATUS_UPDATES = STATUS_UPDATE_TOPIC
GROUP_PROCESSORS = "task-processing"


def consumer_name() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


class StreamsConsumer:
    """Reads status notifications from a Redis consumer group.

    Messages are acknowledged only after the routed handler returns. Failed
    messages stay pending and are picked up again by the reclaim pass, which
    gives at-least-once delivery. Undecodable messages are acknowledged and dropped.
    """

    def __init__(
        self,
        client: StreamsClient,
        *,
        stream: str,
        group: str,
        consumer_name: str,
        router: EventRouter,
        block_ms: int = 5000,
        count: int = 10,
        reclaim_pending: bool = False,
        reclaim_idle_ms: int = 60000,
        retry_delay_s: float = 1.0,
    ) -> None:
        self._client = client
        self._stream = stream
        self._group = group
        self._consumer_name = consumer_name
        self._router = router
        self._block_ms = block_ms
        self._count = count
        self._reclaim_pending = reclaim_pending
        self._reclaim_idle_ms = reclaim_idle_ms
        self._retry_delay_s = retry_delay_s
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        await self._client.ensure_consumer_group(stream=self._stream, group=self._group)
        self._stopping.clear()
        self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        self._stopping.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._client.close()

    async def join(self) -> None:
        if self._task is not None:
            await self._task

    async def run_forever(self) -> None:
        logger.info(
            "Streams consumer started",
            extra={"stream": self._stream, "group": self._group, "consumer": self._consumer_name},
        )
        while not self._stopping.is_set():
            try:
                if self._reclaim_pending:
                    await self.reclaim_pending()
                await self.run_once()
            except RedisError:
                logger.exception(
                    "Redis read failed, retrying",
                    extra={"stream": self._stream, "retry_in_s": self._retry_delay_s},
                )
                await asyncio.sleep(self._retry_delay_s)

    async def run_once(self) -> int:
        """Read one batch of new messages and process it. Returns the number handled."""
        response = await self._client.redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer_name,
            streams={self._stream: ">"},
            count=self._count,
            block=self._block_ms,
        )
        handled = 0
        for _stream, messages in response or []:
            for message_id, fields in messages:
                if await self._process(message_id, fields):
                    handled += 1
        return handled

    async def reclaim_pending(self) -> int:
        """Take over messages left pending by crashed or failing consumers."""
        response = await self._client.redis.xautoclaim(
            name=self._stream,
            groupname=self._group,
            consumername=self._consumer_name,
            min_idle_time=self._reclaim_idle_ms,
            start_id="0-0",
            count=self._count,
        )
        messages = response[1] if response and len(response) > 1 else []
        handled = 0
        for message_id, fields in messages:
            if fields is None:
                continue
            if await self._process(message_id, fields):
                handled += 1
        return handled

    async def _process(self, message_id: str, fields: dict[str, Any]) -> bool:
        try:
            notification = decode_notification(fields)
        except ValueError:
            logger.warning(
                "Dropping malformed stream message",
                exc_info=True,
                extra={"message_id": message_id, "stream": self._stream},
            )
            await self._ack(message_id)
            return False

        try:
            await self._router.dispatch(notification)
        except Exception:
            # Left unacknowledged so the reclaim pass redelivers it.
            logger.exception(
                "Failed to handle stream message",
                extra={"message_id": message_id, "task_id": notification.task_id},
            )
            return False

        await self._ack(message_id)
        return True

    async def _ack(self, message_id: str) -> None:
        await self._client.redis.xack(self._stream, self._group, message_id)
