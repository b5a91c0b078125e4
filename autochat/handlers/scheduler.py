"""Autosend loop that walks the prompt queue at a fixed cadence."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Awaitable

from autochat.runtime.pump import EventPump
from autochat.state.session import SessionState

logger = logging.getLogger(__name__)

DispatchFn = Callable[[str], Awaitable[bool]]
EnsureOpenFn = Callable[[], Awaitable[object]]
# Called with the next index and a completion callback; the callback must be invoked once.
AdvanceFn = Callable[[int, Callable[[], None]], None]


class DispatchScheduler:
    """Idle/Running state machine over SessionState.scheduler and the cursor.

    Ticks are wall-clock paced: a tick that lands while an index advance is
    still in progress is skipped, never queued.
    """

    def __init__(
        self,
        state: SessionState,
        pump: EventPump,
        *,
        dispatch: DispatchFn,
        ensure_open: EnsureOpenFn,
        cadence_ms: int,
        min_cadence_ms: int = 1,
        advance: AdvanceFn | None = None,
    ) -> None:
        self._state = state
        self._pump = pump
        self._dispatch = dispatch
        self._ensure_open = ensure_open
        self._advance = advance
        self._min_cadence_ms = max(1, int(min_cadence_ms))
        self._state.scheduler.cadence_ms = self._validate_cadence(cadence_ms)
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._state.scheduler.running

    @property
    def cadence_ms(self) -> int:
        return self._state.scheduler.cadence_ms

    def _validate_cadence(self, cadence_ms: int) -> int:
        value = int(cadence_ms)
        if value < self._min_cadence_ms:
            raise ValueError(f"cadence must be at least {self._min_cadence_ms} ms")
        return value

    async def start(self) -> bool:
        """Begin autosending from the selected index; False if the loop could not start."""
        sched = self._state.scheduler
        if sched.running:
            return True
        if not self._state.prompts:
            return False

        run_id = sched.run_id
        conn = await self._ensure_open()
        if sched.running:
            return True
        if sched.run_id != run_id:
            # stop() or another start/stop pair happened while we were connecting.
            return False
        if conn is None:
            logger.warning("autosend not started: connection unavailable")
            return False
        if not self._state.prompts:
            return False

        sched.run_id += 1
        sched.running = True
        sched.advancing = False
        self._state.set_cursor(min(self._state.selected_index, len(self._state.prompts) - 1))
        logger.info("autosend started at index %d every %d ms", self._state.cursor, sched.cadence_ms)
        self._dispatch_index(self._state.cursor)
        self._arm()
        return True

    def stop(self) -> None:
        sched = self._state.scheduler
        # Always bump so a start() still waiting on the connection gives up.
        sched.run_id += 1
        if not sched.running and sched.timer is None:
            return
        if sched.timer is not None:
            sched.timer.cancel()
            sched.timer = None
        sched.running = False
        sched.advancing = False
        logger.info("autosend stopped at index %d", self._state.cursor)

    def set_cadence(self, cadence_ms: int) -> None:
        sched = self._state.scheduler
        sched.cadence_ms = self._validate_cadence(cadence_ms)
        if sched.running:
            self._arm()

    def _arm(self) -> None:
        sched = self._state.scheduler
        if sched.timer is not None:
            sched.timer.cancel()
        sched.timer = self._pump.call_every(sched.cadence_ms / 1000.0, self._tick)

    def _tick(self) -> None:
        sched = self._state.scheduler
        if not sched.running:
            return
        if sched.advancing:
            return

        nxt = self._state.cursor + 1
        if nxt >= len(self._state.prompts):
            logger.info("autosend finished: prompt queue exhausted")
            self.stop()
            return

        self._state.set_cursor(nxt)
        run_id = sched.run_id
        sched.advancing = True

        def _advanced() -> None:
            self._pump.post(lambda: self._after_advance(run_id, nxt))

        if self._advance is None:
            _advanced()
            return
        try:
            self._advance(nxt, _advanced)
        except Exception:
            logger.exception("index advance callback failed")
            _advanced()

    def _after_advance(self, run_id: int, index: int) -> None:
        sched = self._state.scheduler
        if sched.run_id != run_id:
            return
        sched.advancing = False
        self._state.selected_index = index
        if sched.running:
            self._dispatch_index(index)

    def _dispatch_index(self, index: int) -> None:
        if index < 0 or index >= len(self._state.prompts):
            return
        prompt = self._state.prompts[index]
        if not prompt:
            return
        task = asyncio.create_task(self._dispatch_safely(prompt))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _dispatch_safely(self, prompt: str) -> None:
        try:
            sent = await self._dispatch(prompt)
        except Exception:
            logger.exception("autosend dispatch failed")
            return
        if not sent:
            logger.debug("autosend dispatch dropped for this tick")

    async def wait_dispatched(self) -> None:
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def shutdown(self) -> None:
        self.stop()
        for task in list(self._inflight):
            task.cancel()
        await self.wait_dispatched()


__all__ = ["AdvanceFn", "DispatchScheduler"]
