"""
Schedulers - Deferred callbacks for the flip-back delay.

A presentation adapter shows a non-matching pair for a moment before the
engine hides it again. The delay is driven by a Scheduler so the same
GameLoop works on an asyncio event loop (API) and on a manual clock
(terminal, tests).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable
import asyncio
import itertools
import time


class ScheduledCall(ABC):
    """Handle for a deferred callback."""

    @abstractmethod
    def cancel(self):
        """Prevent the callback from running. Safe to call more than once."""
        ...


class Scheduler(ABC):
    """Runs callbacks after a delay."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Schedule callback to run after delay seconds."""
        ...


class _AsyncioCall(ScheduledCall):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self):
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Uses the running loop at call time unless one is given, so it can be
    created before the server starts.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioCall(loop.call_later(delay, callback))


@dataclass
class _ClockCall(ScheduledCall):
    due_at: float
    seq: int
    callback: Callable[[], None]
    cancelled: bool = field(default=False)

    def cancel(self):
        self.cancelled = True


class ClockScheduler(Scheduler):
    """
    Scheduler driven by an explicit clock.

    Nothing runs on its own: callers fire due callbacks with run_due()
    or move a fake clock forward with advance().

    Usage:
        scheduler = ClockScheduler()
        scheduler.call_later(0.7, flip_back)
        scheduler.advance(0.7)  # flip_back runs here
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock
        self._now = 0.0
        self._calls: list[_ClockCall] = []
        self._seq = itertools.count()

    def now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ClockCall(due_at=self.now() + max(delay, 0.0), seq=next(self._seq), callback=callback)
        self._calls.append(call)
        return call

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self._calls if not c.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the fake clock forward and run whatever came due."""
        if self._clock is not None:
            raise RuntimeError("advance() requires the built-in fake clock")
        self._now += seconds
        return self.run_due()

    def run_due(self) -> int:
        """Run due callbacks in schedule order. Returns how many ran."""
        now = self.now()
        due = sorted(
            (c for c in self._calls if c.due_at <= now and not c.cancelled),
            key=lambda c: (c.due_at, c.seq),
        )
        self._calls = [c for c in self._calls if c.due_at > now and not c.cancelled]
        for call in due:
            call.callback()
        return len(due)


def monotonic_clock_scheduler() -> ClockScheduler:
    """ClockScheduler on real time, for polling loops such as the terminal UI."""
    return ClockScheduler(clock=time.monotonic)
