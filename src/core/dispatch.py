"""Ordered, rate-limited delivery of outbound notifications.

One queue instance lives for the whole process. Jobs are delivered strictly
in enqueue order with at most one delivery in flight, and the drain loop
pauses ``spacing`` seconds after every attempt so the sink never sees more
than ``1 / spacing`` requests per second. Failed deliveries are not retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, Tuple

from core.models import NotificationJob

LOGGER = logging.getLogger(__name__)

DEFAULT_SPACING = 0.2

Deliver = Callable[[NotificationJob], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


class NotificationDispatchQueue:
    """FIFO queue with a single on-demand drain task."""

    def __init__(
        self,
        deliver: Deliver,
        spacing: float = DEFAULT_SPACING,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._deliver = deliver
        self._spacing = spacing
        self._sleep = sleep
        self._pending: Deque[Tuple[NotificationJob, asyncio.Future]] = deque()
        self._drain_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def busy(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def enqueue(self, job: NotificationJob) -> asyncio.Future:
        """Queue a job and return a future for its delivery attempt.

        The future resolves to None on success and carries the delivery
        error on failure. Must be called from within the running loop.
        """

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append((job, future))
        if not self.busy:
            self._drain_task = loop.create_task(self._drain_loop())
        return future

    async def join(self) -> None:
        """Wait until every queued job had its delivery attempt."""

        while self.busy:
            await asyncio.shield(self._drain_task)

    async def _drain_loop(self) -> None:
        # The emptiness check and task completion happen without a suspension
        # point in between, so enqueue() never sees a finishing task as busy.
        while self._pending:
            job, future = self._pending.popleft()
            LOGGER.debug("Delivering notification, %s more queued", len(self))
            try:
                await self._deliver(job)
            except Exception as exc:
                LOGGER.warning("Notification delivery to %s failed: %s", job.destination, exc)
                if not future.done():
                    future.set_exception(exc)
                if job.on_failed is not None:
                    self._run_callback(job.on_failed, exc)
            else:
                if not future.done():
                    future.set_result(None)
                if job.on_delivered is not None:
                    self._run_callback(job.on_delivered)
            await self._sleep(self._spacing)

    @staticmethod
    def _run_callback(callback: Callable[..., object], *args: object) -> None:
        try:
            callback(*args)
        except Exception:
            LOGGER.exception("Notification callback %r raised", callback)
