from __future__ import annotations

import asyncio

import pytest

from fireguardian.metrics.definitions import NOTIFICATION_FAILURES, NOTIFICATION_JOBS
from fireguardian.notifications.dispatcher import NotificationDispatcher
from fireguardian.notifications.orchestrator import NotificationEvent, NotificationJob


class SlowHandler:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.release = asyncio.Event()
        self.handled: list[NotificationJob] = []

    async def handle(self, job):
        await self.release.wait()
        if self.fail:
            raise RuntimeError("boom")
        self.handled.append(job)


JOB = NotificationJob(NotificationEvent.CREATED, ticket_id=42, vendor_id=7)


@pytest.mark.asyncio
async def test_submit_returns_before_job_completes(metrics):
    handler = SlowHandler()
    dispatcher = NotificationDispatcher(handler, metrics=metrics)

    task = dispatcher.submit(JOB)

    assert task is not None
    assert not task.done()
    assert dispatcher.pending == 1
    handler.release.set()
    await dispatcher.drain()
    assert handler.handled == [JOB]
    assert dispatcher.pending == 0
    assert metrics.counter(NOTIFICATION_JOBS).value({"event": "created"}) == 1


@pytest.mark.asyncio
async def test_job_failure_is_logged_not_raised(metrics, caplog):
    handler = SlowHandler(fail=True)
    dispatcher = NotificationDispatcher(handler, metrics=metrics)

    dispatcher.submit(JOB)
    handler.release.set()
    await dispatcher.drain()

    assert "Notification job created for ticket 42 failed" in caplog.text
    assert metrics.counter(NOTIFICATION_FAILURES).value({"stage": "job"}) == 1


@pytest.mark.asyncio
async def test_closed_dispatcher_drops_new_jobs(metrics):
    handler = SlowHandler()
    handler.release.set()
    dispatcher = NotificationDispatcher(handler, metrics=metrics)

    await dispatcher.close()

    assert dispatcher.submit(JOB) is None
    assert handler.handled == []
