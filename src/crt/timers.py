"""
Clock abstraction and the cancellable timer queue.

Clock – protocol implemented by:
  PsychopyClock – psychopy core.Clock for monotonic time, time.time() for epoch

TimerQueue – schedule/cancel/poll built on a Clock; agnostic to which.
The runner polls once per frame, tests advance a fake clock and poll.
"""
from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol


class Clock(Protocol):
    """Monotonic milliseconds for RT and deadlines, epoch milliseconds for stamps."""

    def now_ms(self) -> float:
        ...

    def epoch_ms(self) -> int:
        ...


class PsychopyClock:
    def __init__(self) -> None:
        from psychopy import core
        self._clock = core.Clock()

    def now_ms(self) -> float:
        return self._clock.getTime() * 1000.0

    def epoch_ms(self) -> int:
        return int(time.time() * 1000)


@dataclass(order=True)
class TimerHandle:
    due_ms: float
    seq: int
    fn: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class TimerQueue:
    """One-shot timers fired from poll() in due-time order."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._heap: list[TimerHandle] = []
        self._seq = itertools.count()

    def schedule(self, after_ms: float, fn: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._clock.now_ms() + max(0.0, after_ms), next(self._seq), fn)
        heapq.heappush(self._heap, handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True

    def pending(self) -> int:
        return sum(1 for h in self._heap if not h.cancelled)

    def poll(self) -> int:
        """Fire every timer due now. Returns the number fired."""
        fired = 0
        now = self._clock.now_ms()
        while self._heap and self._heap[0].due_ms <= now:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.cancelled = True
            handle.fn()
            fired += 1
        return fired
