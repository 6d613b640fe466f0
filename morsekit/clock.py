"""morsekit — schedulable delay capability.

Reveal ticks and tone/silence durations all suspend through a ``Clock`` so the
same coroutines run against the wall clock or against simulated time.

    AsyncioClock  — real time (asyncio.sleep / loop.time)
    VirtualClock  — simulated time; no real waiting
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod


class Clock(ABC):
    """Milliseconds in, milliseconds out."""

    @abstractmethod
    def now(self) -> float:
        ...

    @abstractmethod
    async def sleep(self, ms: float) -> None:
        ...


class AsyncioClock(Clock):

    def now(self) -> float:
        return asyncio.get_running_loop().time() * 1000.0

    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(ms / 1000.0)


class VirtualClock(Clock):
    """Discrete-event clock for tests and dry runs.

    ``sleep`` registers a wake-up at ``now() + ms`` and parks the caller.  Time
    only moves when the loop gets round to the clock's advance callback, which
    jumps to the earliest pending wake-up and releases that one sleeper.  The
    woken task runs up to its next ``sleep`` before the clock advances again,
    so several sessions sharing one VirtualClock see the same timeline they
    would see on the wall clock, in zero real time.

    Every requested delay is appended to :attr:`delays`.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._timers: list[tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()
        self._pending: asyncio.AbstractEventLoop | None = None
        self.delays: list[float] = []

    def now(self) -> float:
        return self._now

    async def sleep(self, ms: float) -> None:
        loop = asyncio.get_running_loop()
        self.delays.append(float(ms))
        fut = loop.create_future()
        heapq.heappush(self._timers, (self._now + float(ms), next(self._seq), fut))
        self._schedule_advance(loop)
        await fut

    def _schedule_advance(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._pending is loop:
            return
        self._pending = loop
        loop.call_soon(self._advance, loop)

    def _advance(self, loop: asyncio.AbstractEventLoop) -> None:
        self._pending = None
        while self._timers:
            wake, _, fut = heapq.heappop(self._timers)
            # cancelled sleepers, or leftovers from a loop that has since closed
            if fut.done() or fut.get_loop() is not loop:
                continue
            self._now = max(self._now, wake)
            fut.set_result(None)
            break
        if self._timers:
            self._schedule_advance(loop)
