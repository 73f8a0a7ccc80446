"""In-process implementation of TaskQueuePort.

Generation jobs and batches run as ``asyncio`` tasks on the server's own event
loop; no external broker is involved. Outcomes live on the job records, so the
queue keeps only the tasks that are still running.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

TaskFn = Callable[..., Coroutine[Any, Any, Any]]


class InProcessTaskQueue:
    """Implements :class:`TaskQueuePort` with :func:`asyncio.create_task`.

    Task functions are registered by name; :meth:`enqueue` schedules one on the
    running loop and returns its task id.
    """

    def __init__(self) -> None:
        self._registry: dict[str, TaskFn] = {}
        self._running: dict[str, asyncio.Task[Any]] = {}

    def register(self, task_name: str, fn: TaskFn) -> None:
        self._registry[task_name] = fn
        logger.debug("Registered in-process task: %s", task_name)

    # -- TaskQueuePort implementation ------------------------------------------

    def enqueue(self, task_name: str, args: dict) -> str:
        fn = self._registry.get(task_name)
        if fn is None:
            raise ValueError(
                f"Task '{task_name}' is not registered. Available: {sorted(self._registry)}"
            )

        task_id = str(uuid.uuid4())

        async def _run() -> None:
            try:
                await fn(**args)
            except asyncio.CancelledError:
                logger.info("Task %s (%s) was cancelled", task_id, task_name)
                raise
            except Exception:
                logger.exception("Task %s (%s) failed", task_id, task_name)

        loop = asyncio.get_running_loop()
        task = loop.create_task(_run(), name=f"{task_name}-{task_id}")
        task.add_done_callback(lambda _: self._running.pop(task_id, None))
        self._running[task_id] = task
        logger.info("Enqueued in-process task %s -> %s", task_name, task_id)
        return task_id

    @property
    def pending(self) -> int:
        return len(self._running)

    async def drain(self) -> None:
        """Wait until every scheduled task has finished."""
        while self._running:
            await asyncio.gather(*list(self._running.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel whatever is still running, e.g. on application shutdown."""
        tasks = list(self._running.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d in-process task(s) on shutdown", len(tasks))
