from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from .types import TaskOutcome, TaskState, TaskTimeoutError

logger = logging.getLogger(__name__)

Task = Callable[[], Awaitable[Any]]


class _Slot:
    """Bookkeeping for one submitted task."""

    def __init__(self, index: int, task: Task, future: asyncio.Future[TaskOutcome]):
        self.index = index
        self.task = task
        self.future = future
        self.state = TaskState.QUEUED
        self.timer: asyncio.TimerHandle | None = None


class TaskPool:
    """Run submitted tasks with at most ``max_concurrent_tasks`` in flight.

    Tasks over the ceiling wait in a FIFO queue. Every running task races a
    ``max_task_duration`` timer; when the timer wins the task's outcome is
    ``TIMED_OUT`` and its slot goes to the next queued task, but the task
    itself is left running. Whatever it eventually returns is discarded.

    Each submitted task settles exactly once, as a :class:`TaskOutcome`.
    Errors raised by tasks are carried in the outcome, never raised here.
    """

    def __init__(self, max_concurrent_tasks: int, max_task_duration: float):
        if max_concurrent_tasks < 1:
            raise ValueError("max_concurrent_tasks must be >= 1")
        if max_task_duration <= 0:
            raise ValueError("max_task_duration must be > 0")

        self._max_concurrent = max_concurrent_tasks
        self._max_duration = max_task_duration
        self._active = 0
        self._queue: deque[_Slot] = deque()
        self._submitted: list[asyncio.Future[TaskOutcome]] = []
        self._running: set[asyncio.Future[Any]] = set()

    def submit(self, task: Task) -> asyncio.Future[TaskOutcome]:
        loop = asyncio.get_running_loop()
        slot = _Slot(len(self._submitted), task, loop.create_future())
        self._submitted.append(slot.future)

        if self._active < self._max_concurrent:
            self._start(slot)
        else:
            logger.debug("task #%d queued behind %d", slot.index, len(self._queue))
            self._queue.append(slot)

        return slot.future

    async def join(self) -> list[TaskOutcome]:
        """Wait for every task submitted so far, queued ones included."""
        return list(await asyncio.gather(*self._submitted))

    def _start(self, slot: _Slot) -> None:
        self._active += 1
        slot.state = TaskState.RUNNING
        logger.debug("task #%d running (%d active)", slot.index, self._active)

        loop = asyncio.get_running_loop()
        try:
            running = asyncio.ensure_future(slot.task())
        except Exception as exc:
            loop.call_soon(self._settle, slot, TaskState.FAILED, None, exc)
            return

        self._running.add(running)
        slot.timer = loop.call_later(self._max_duration, self._on_timeout, slot)
        running.add_done_callback(lambda fut: self._on_done(slot, fut))

    def _on_done(self, slot: _Slot, running: asyncio.Future[Any]) -> None:
        self._running.discard(running)
        if slot.state is not TaskState.RUNNING:
            # Timed out earlier; retrieve the late result so it is not reported as lost.
            if running.cancelled():
                logger.debug("timed out task #%d was cancelled", slot.index)
            elif running.exception() is not None:
                logger.debug("timed out task #%d failed late: %r", slot.index, running.exception())
            else:
                logger.debug("timed out task #%d finished late", slot.index)
            return

        if running.cancelled():
            self._settle(slot, TaskState.FAILED, error=asyncio.CancelledError())
        elif running.exception() is not None:
            self._settle(slot, TaskState.FAILED, error=running.exception())
        else:
            self._settle(slot, TaskState.COMPLETED, value=running.result())

    def _on_timeout(self, slot: _Slot) -> None:
        if slot.state is not TaskState.RUNNING:
            return
        logger.warning("task #%d timed out after %ss", slot.index, self._max_duration)
        self._settle(
            slot,
            TaskState.TIMED_OUT,
            error=TaskTimeoutError(slot.index, self._max_duration),
        )

    def _settle(
        self,
        slot: _Slot,
        state: TaskState,
        value: Any = None,
        error: BaseException | None = None,
    ) -> None:
        slot.state = state
        if slot.timer is not None:
            slot.timer.cancel()
            slot.timer = None

        self._active -= 1
        if not slot.future.done():
            slot.future.set_result(TaskOutcome(slot.index, state, value, error))

        if self._queue and self._active < self._max_concurrent:
            self._start(self._queue.popleft())
