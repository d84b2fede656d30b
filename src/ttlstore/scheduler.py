"""Timer backends used by TTLStore for scheduled removals.

A scheduler supplies two things that must agree with each other: a way to
run a callback once after a delay, and the monotonic clock that delay is
measured on. The store uses the same clock for its read-time expiry check.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
import time
from fractions import Fraction
from numbers import Real
from typing import Callable, Protocol

from ttlstore.models import SchedulerError, to_fraction

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


# ---------------------------------------------------------------------------
# Protocol types (used by TTLStore)
# ---------------------------------------------------------------------------

class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callback) -> TimerHandle: ...

    def monotonic(self) -> Real: ...


def _run_safely(callback: Callback) -> None:
    """Run a timer callback; nobody upstream can catch what it raises."""
    try:
        callback()
    except Exception:
        logger.exception("Scheduled callback %r failed", callback)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class ThreadingScheduler:
    """One daemon ``threading.Timer`` per scheduled callback."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        if delay > threading.TIMEOUT_MAX:
            logger.debug("Clamping timer delay %.0fs to TIMEOUT_MAX", delay)
            delay = threading.TIMEOUT_MAX
        timer = threading.Timer(max(delay, 0.0), _run_safely, args=(callback,))
        timer.daemon = True
        timer.start()
        return timer

    def monotonic(self) -> float:
        return time.monotonic()


class AsyncioScheduler:
    """Schedules on an asyncio event loop via ``loop.call_later``.

    The loop is bound at construction. Callbacks must be scheduled from the
    loop's own thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise SchedulerError(
                    "AsyncioScheduler needs a running event loop or an explicit loop"
                ) from exc
        self._loop = loop

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        return self._loop.call_later(max(delay, 0.0), _run_safely, callback)

    def monotonic(self) -> float:
        return self._loop.time()


class _ManualHandle:
    __slots__ = ("deadline", "callback", "cancelled", "queued", "_scheduler")

    def __init__(self, scheduler: ManualScheduler, deadline: Fraction, callback: Callback):
        self._scheduler = scheduler
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False
        self.queued = True

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self.queued:
            self._scheduler._discard()


class ManualScheduler:
    """Virtual clock that only moves when told to.

    Time is kept as an exact ``Fraction`` of seconds, so splitting an
    advance into steps lands on the same instant as one big step.
    Callbacks fire from inside ``advance()`` / ``run_pending()`` in deadline
    order, ties broken by scheduling order. Not thread-safe.
    """

    def __init__(self, start: float = 0.0):
        self._now = to_fraction(start)
        self._queue: list[tuple[Fraction, int, _ManualHandle]] = []
        self._seq = itertools.count()
        self._cancelled = 0  # cancelled handles still sitting in _queue

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = _ManualHandle(self, self._now + max(to_fraction(delay), 0), callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._seq), handle))
        return handle

    def monotonic(self) -> Fraction:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every callback that comes due."""
        if seconds < 0:
            raise ValueError("ManualScheduler cannot move backwards")
        target = self._now + to_fraction(seconds)
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle = heapq.heappop(self._queue)
            handle.queued = False
            if handle.cancelled:
                self._cancelled -= 1
                continue
            self._now = max(self._now, deadline)
            _run_safely(handle.callback)
        self._now = target

    def advance_ms(self, ms: float) -> None:
        self.advance(to_fraction(ms) / 1000)

    def run_pending(self) -> None:
        """Fire callbacks that are already due without moving the clock."""
        self.advance(0)

    def pending(self) -> int:
        return len(self._queue) - self._cancelled

    def _discard(self) -> None:
        # Rebuild once cancelled handles make up half the queue.
        self._cancelled += 1
        if self._cancelled * 2 >= len(self._queue):
            kept = []
            for item in self._queue:
                if item[2].cancelled:
                    item[2].queued = False
                else:
                    kept.append(item)
            heapq.heapify(kept)
            self._queue = kept
            self._cancelled = 0


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

SCHEDULER_BACKENDS: dict[str, Callable[[], Scheduler]] = {
    "thread": ThreadingScheduler,
    "asyncio": AsyncioScheduler,
    "manual": ManualScheduler,
}


def build_scheduler(name: str) -> Scheduler:
    try:
        factory = SCHEDULER_BACKENDS[name]
    except KeyError as exc:
        raise SchedulerError(f"Unknown scheduler backend: {name}") from exc
    return factory()
