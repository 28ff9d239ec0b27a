# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""In-memory backend: capture outgoing messages on a bounded queue.

Meant for tests. The client pushes every sent :class:`EmailObject` onto an
``asyncio.Queue``; the test keeps the same queue and reads messages back in
the order they were sent.

Example:
    Capturing messages in a test::

        queue: asyncio.Queue[EmailObject] = asyncio.Queue(maxsize=2)
        client = MemoryClient.with_queue(MemoryConfig(), queue)

        await client.send(email)
        assert queue.get_nowait() == email
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Literal

from pydantic import ConfigDict, Field

from ..errors import QueueFull
from ..logger import get_logger
from ..models import AddressLike, EmailObject, ValueModel
from .base import BaseEmailClient

DEFAULT_CAPACITY = 5

logger = get_logger("memory")


class MemoryConfig(ValueModel):
    """Settings for :class:`MemoryClient`.

    Attributes:
        sender: Sender reported by the client. Messages are queued unchanged.
        queue: Queue to write into. A new one is created per client when unset.
        capacity: Size of the queue created when ``queue`` is unset.
        put_timeout: Seconds a send may wait for room before raising
            :class:`QueueFull`. ``None`` waits indefinitely.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["memory"] = "memory"
    sender: Annotated[
        AddressLike | None,
        Field(default=None, description="Sender reported by the client"),
    ]
    queue: Annotated[
        asyncio.Queue | None,
        Field(default=None, exclude=True, description="Shared queue of sent emails"),
    ]
    capacity: Annotated[
        int,
        Field(default=DEFAULT_CAPACITY, ge=1, description="Capacity of the internal queue"),
    ]
    put_timeout: Annotated[
        float | None,
        Field(default=None, gt=0, description="Max seconds to wait for room in the queue"),
    ]


class MemoryClient(BaseEmailClient):
    """Client writing every message to an ``asyncio.Queue``.

    Several clients may share one queue; the queue serialises writers running
    on the same event loop.
    """

    backend = "memory"

    def __init__(self, config: MemoryConfig | None = None, queue: asyncio.Queue | None = None):
        self.config = config or MemoryConfig()
        super().__init__(self.config.sender)
        if queue is None:
            queue = self.config.queue
        if queue is None:
            queue = asyncio.Queue(maxsize=self.config.capacity)
        self._queue: asyncio.Queue[EmailObject] = queue

    @classmethod
    def with_queue(cls, config: MemoryConfig, queue: asyncio.Queue) -> MemoryClient:
        """Build a client writing into ``queue`` instead of its own."""
        return cls(config, queue=queue)

    @property
    def queue(self) -> asyncio.Queue[EmailObject]:
        """The queue receiving sent messages."""
        return self._queue

    async def send(self, email: EmailObject) -> None:
        """Queue ``email``, waiting while the queue is full.

        Raises:
            QueueFull: If ``put_timeout`` is set and no room appeared in time.
        """
        timeout = self.config.put_timeout
        if timeout is None:
            await self._queue.put(email)
        else:
            try:
                await asyncio.wait_for(self._queue.put(email), timeout=timeout)
            except asyncio.TimeoutError as exc:
                logger.warning("Memory queue still full after %.2fs", timeout)
                raise QueueFull(
                    f"Memory queue is full (capacity {self._queue.maxsize}) after waiting {timeout}s",
                    backend=self.backend,
                ) from exc
        logger.debug("Queued email %r (queue size %d)", email.subject, self._queue.qsize())

    def send_nowait(self, email: EmailObject) -> None:
        """Queue ``email`` without waiting.

        Raises:
            QueueFull: If the queue has no room.
        """
        try:
            self._queue.put_nowait(email)
        except asyncio.QueueFull as exc:
            raise QueueFull(
                f"Memory queue is full (capacity {self._queue.maxsize})",
                backend=self.backend,
            ) from exc
        logger.debug("Queued email %r (queue size %d)", email.subject, self._queue.qsize())


__all__ = ["DEFAULT_CAPACITY", "MemoryClient", "MemoryConfig"]
