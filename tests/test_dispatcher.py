"""Single-writer work queue."""
import asyncio

import pytest
from fastapi import HTTPException

from matka.tasks.dispatcher import DispatcherStopped, SettlementDispatcher


@pytest.fixture
async def worker():
    d = SettlementDispatcher()
    yield d
    await d.stop()


class TestSettlementDispatcher:

    async def test_returns_job_result(self, worker):
        async def job():
            return 42

        assert await worker.submit(job, label="answer") == 42
        assert worker.running

    async def test_exception_reaches_caller(self, worker):
        async def job():
            raise HTTPException(400, "nope")

        with pytest.raises(HTTPException):
            await worker.submit(job)

    async def test_failure_does_not_stop_worker(self, worker):
        async def boom():
            raise RuntimeError("boom")

        async def ok():
            return "ok"

        with pytest.raises(RuntimeError):
            await worker.submit(boom)
        assert await worker.submit(ok) == "ok"

    async def test_items_never_interleave(self, worker):
        trace = []

        def make(name):
            async def job():
                trace.append(f"{name}:start")
                await asyncio.sleep(0.01)
                trace.append(f"{name}:end")
                return name
            return job

        results = await asyncio.gather(*(worker.submit(make(n)) for n in ("a", "b", "c")))

        assert results == ["a", "b", "c"]
        assert trace == ["a:start", "a:end", "b:start", "b:end", "c:start", "c:end"]

    async def test_stop_then_submit_restarts(self, worker):
        async def job():
            return 1

        await worker.submit(job)
        await worker.stop()
        assert not worker.running
        assert await worker.submit(job) == 1

    async def test_stop_releases_waiting_callers(self, worker):
        started = asyncio.Event()

        async def blocking():
            started.set()
            await asyncio.Event().wait()

        async def queued():
            return "never"

        running = asyncio.create_task(worker.submit(blocking, label="blocking"))
        await started.wait()
        waiting = asyncio.create_task(worker.submit(queued, label="queued"))
        await asyncio.sleep(0)

        await worker.stop()

        with pytest.raises(asyncio.CancelledError):
            await running
        with pytest.raises(DispatcherStopped):
            await waiting
