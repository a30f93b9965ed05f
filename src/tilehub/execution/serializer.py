"""Request serializer: one outbound call at a time, spaced by a minimum delay.

Manifesto:
Provider quotas are shared by every tile. Instead of a worker pool, all
outbound provider and model calls funnel through a single FIFO queue with
one worker task, so at most one call is ever in flight and consecutive
dispatches start at least ``min_delay`` seconds apart.

ARCHITECTURE
────────────
::

    submit(fn, *args) ──► asyncio.Queue ──► worker task
         ▲                                    │  wait until last_start + min_delay
         │                                    │  last_start = now
         └──── future (result / exception) ◄──┘  await fn(*args)

    - FIFO, one in flight, spacing measured between dispatch starts
    - a failing call rejects only its own caller's future
    - the worker exits when the queue drains and restarts on the next submit
    - callers that stop waiting do not cancel queued work

Related modules:
    circuit_breaker.py - sits outside the serializer, so an open circuit
                         never takes a queue slot

Example::

    serializer = RequestSerializer(min_delay=1.0)
    response = await serializer.submit(client.fetch, "ai note taking")
    serializer.status()
    # {'queue_length': 0, 'is_processing': False, 'min_delay': 1.0, ...}

Tags:
    tilehub, execution, rate-limit, queue, asyncio

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from tilehub.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Job:
    fn: Callable[..., Any]
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    future: asyncio.Future = field(repr=False)


class RequestSerializer:
    """Single-consumer FIFO queue enforcing mutual exclusion and spacing.

    Args:
        min_delay: Minimum seconds between the starts of two dispatches.
        name: Label used in logs.
        clock: Monotonic clock (injectable for tests).
        sleep: Async sleep (injectable for tests).
    """

    def __init__(
        self,
        min_delay: float = 1.0,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if min_delay < 0:
            raise ValueError(f"min_delay must be >= 0, got {min_delay}")
        self.name = name
        self._min_delay = float(min_delay)
        self._clock = clock
        self._sleep = sleep
        self._queue: asyncio.Queue[_Job] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._worker: asyncio.Task | None = None
        self._last_start: float | None = None
        self._in_flight = False
        self._dispatched = 0

    @property
    def min_delay(self) -> float:
        return self._min_delay

    def set_min_delay(self, seconds: float) -> None:
        """Change the spacing; applies from the next dispatch."""
        if seconds < 0:
            raise ValueError(f"min_delay must be >= 0, got {seconds}")
        self._min_delay = float(seconds)

    def status(self) -> dict[str, Any]:
        """Queue length, whether the worker is active, and the spacing."""
        return {
            "queue_length": self._queue.qsize() if self._queue is not None else 0,
            "is_processing": self._worker is not None and not self._worker.done(),
            "min_delay": self._min_delay,
            "in_flight": self._in_flight,
            "dispatched": self._dispatched,
        }

    async def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Queue ``fn(*args, **kwargs)`` and wait for its result.

        ``fn`` may be a coroutine function or a plain callable. Its exception
        is re-raised to this caller only.
        """
        loop = asyncio.get_running_loop()
        if self._queue is None or self._loop is not loop:
            # first use, or reused from a new event loop
            self._queue = asyncio.Queue()
            self._loop = loop
            self._worker = None

        future = loop.create_future()
        self._queue.put_nowait(_Job(fn=fn, args=args, kwargs=kwargs, future=future))
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run(), name=f"serializer:{self.name}")

        # shield: a caller that stops waiting leaves the job queued
        return await asyncio.shield(future)

    async def _run(self) -> None:
        queue = self._queue
        while not queue.empty():
            job = queue.get_nowait()
            try:
                await self._dispatch(job)
            finally:
                queue.task_done()

    async def _dispatch(self, job: _Job) -> None:
        if self._last_start is not None:
            wait = self._min_delay - (self._clock() - self._last_start)
            if wait > 0:
                await self._sleep(wait)

        self._last_start = self._clock()
        self._in_flight = True
        self._dispatched += 1
        try:
            result = job.fn(*job.args, **job.kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug("serialized_call_failed", serializer=self.name, error=str(e))
            if not job.future.done():
                job.future.set_exception(e)
        else:
            if not job.future.done():
                job.future.set_result(result)
        finally:
            self._in_flight = False


__all__ = ["RequestSerializer"]
