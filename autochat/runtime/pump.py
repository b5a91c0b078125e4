"""Serialising event pump for session state mutations.

Inbound frames, timer expiries and scheduler ticks are all posted into one
asyncio queue and executed by a single consumer task, so state transitions
never interleave with each other.
"""

from __future__ import annotations

import asyncio
import logging
import contextlib
from collections.abc import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Timer:
    """Cancellable alarm whose expiry is delivered through the pump."""

    def __init__(self, pump: EventPump, delay_s: float, callback: Callback, *, repeat: bool = False) -> None:
        self._pump = pump
        self._delay_s = max(0.0, float(delay_s))
        self._callback = callback
        self._repeat = repeat
        self._cancelled = False
        self._finished = False
        self._task: asyncio.Task | None = asyncio.create_task(self._run())

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._finished

    @property
    def repeat(self) -> bool:
        return self._repeat

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _fire(self) -> None:
        # An expiry queued before cancel() must not run.
        if self._cancelled:
            return
        self._callback()

    async def _run(self) -> None:
        try:
            while not self._cancelled:
                await asyncio.sleep(self._delay_s)
                if self._cancelled:
                    return
                self._pump.post(self._fire)
                if not self._repeat:
                    self._finished = True
                    self._task = None
                    return
        except asyncio.CancelledError:
            return


class EventPump:
    def __init__(self) -> None:
        self._inbox: asyncio.Queue[Callback] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._timers: set[Timer] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
        return self._task

    async def stop(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
        self._timers.clear()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def post(self, callback: Callback) -> None:
        self._inbox.put_nowait(callback)

    def call_later(self, delay_s: float, callback: Callback) -> Timer:
        return self._track(Timer(self, delay_s, callback))

    def call_every(self, interval_s: float, callback: Callback) -> Timer:
        return self._track(Timer(self, interval_s, callback, repeat=True))

    def pending_timers(self) -> int:
        self._timers = {t for t in self._timers if t.active}
        return len(self._timers)

    async def drain(self) -> None:
        """Wait until every callback posted so far has run."""
        done = asyncio.Event()
        self.post(done.set)
        await done.wait()

    def _track(self, timer: Timer) -> Timer:
        self._timers = {t for t in self._timers if t.active}
        self._timers.add(timer)
        return timer

    async def _loop(self) -> None:
        while True:
            callback = await self._inbox.get()
            try:
                callback()
            except Exception:
                logger.exception("session event callback failed")


__all__ = ["EventPump", "Timer"]
