# matka/tasks/dispatcher.py
"""
Single-writer queue for declarations and settlement passes.

Every "write result + settle scope" unit is submitted as one work item and run
by a single worker task, so two declarations for the same (game, date) can
never interleave. Callers await the item and get its return value (or its
exception) back, which keeps the HTTP declaration synchronous.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


class DispatcherStopped(RuntimeError):
    pass


class SettlementDispatcher:
    def __init__(self) -> None:
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        if self.running and self._loop is loop:
            return
        # queue and worker belong to the loop that is running now
        self._loop = loop
        self._queue = asyncio.Queue()
        self._task = loop.create_task(self._worker(self._queue), name="settlement-worker")
        logger.info("Settlement worker started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        queue, self._queue, self._loop = self._queue, None, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Settlement worker stopped")

        # items that never reached the worker fail instead of leaving their callers waiting
        dropped = 0
        while queue is not None and not queue.empty():
            _, label, fut = queue.get_nowait()
            queue.task_done()
            if not fut.done():
                fut.set_exception(DispatcherStopped(f"settlement worker stopped before {label or 'work item'} ran"))
                dropped += 1
        if dropped:
            logger.warning("settlement worker stopped with %s queued items", dropped)

    async def submit(self, job: Job, label: str = "") -> Any:
        """Enqueue ``job`` and wait for it to run on the worker."""
        self.start()
        fut = self._loop.create_future()
        await self._queue.put((job, label, fut))
        return await fut

    async def _worker(self, queue: asyncio.Queue) -> None:
        while True:
            job, label, fut = await queue.get()
            try:
                if fut.cancelled():
                    continue
                try:
                    result = await job()
                except asyncio.CancelledError:
                    fut.cancel()
                    raise
                except HTTPException as e:
                    logger.info("work item %s rejected: %s", label, e.detail)
                    if not fut.cancelled():
                        fut.set_exception(e)
                except Exception as e:
                    logger.exception("work item failed %s: %s", label, e)
                    if not fut.cancelled():
                        fut.set_exception(e)
                else:
                    if not fut.cancelled():
                        fut.set_result(result)
            finally:
                queue.task_done()


dispatcher = SettlementDispatcher()
