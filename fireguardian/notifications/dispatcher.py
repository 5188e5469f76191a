from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from fireguardian.metrics import MetricsRegistry, register_default_metrics
from fireguardian.metrics.definitions import NOTIFICATION_FAILURES, NOTIFICATION_JOBS

from .orchestrator import NotificationJob

logger = logging.getLogger(__name__)


class NotificationHandler(Protocol):
    async def handle(self, job: NotificationJob) -> None: ...


class NotificationDispatcher:
    """Run notification jobs in the background without blocking the caller.

    ``submit`` returns immediately. Failures inside a job are logged and counted,
    never propagated. Pending jobs are tracked so shutdown can wait for them.
    """

    def __init__(self, handler: NotificationHandler, *, metrics: MetricsRegistry | None = None) -> None:
        self._handler = handler
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False
        self.metrics = register_default_metrics(metrics)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, job: NotificationJob) -> asyncio.Task[None] | None:
        if self._closed:
            logger.warning("Dispatcher closed; dropping %s job for ticket %s", job.event.value, job.ticket_id)
            return None
        task = asyncio.get_running_loop().create_task(
            self._run(job), name=f"notify-{job.event.value}-{job.ticket_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.metrics.counter(NOTIFICATION_JOBS).inc(labels={"event": job.event.value})
        return task

    async def _run(self, job: NotificationJob) -> None:
        try:
            await self._handler.handle(job)
        except Exception:
            logger.exception("Notification job %s for ticket %s failed", job.event.value, job.ticket_id)
            self.metrics.counter(NOTIFICATION_FAILURES).inc(labels={"stage": "job"})

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._closed = True
        await self.drain()
