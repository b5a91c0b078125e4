from __future__ import annotations

import asyncio

import pytest

from autochat.runtime.pump import EventPump


@pytest.mark.asyncio
async def test_posted_callbacks_run_in_order() -> None:
    pump = EventPump()
    seen: list[int] = []
    for i in range(5):
        pump.post(lambda i=i: seen.append(i))
    pump.start()
    await pump.drain()
    assert seen == [0, 1, 2, 3, 4]
    await pump.stop()


@pytest.mark.asyncio
async def test_call_later_fires_once() -> None:
    pump = EventPump()
    pump.start()
    fired: list[str] = []
    pump.call_later(0.01, lambda: fired.append("x"))
    await asyncio.sleep(0.05)
    assert fired == ["x"]
    assert pump.pending_timers() == 0
    await pump.stop()


@pytest.mark.asyncio
async def test_cancel_discards_already_queued_expiry() -> None:
    pump = EventPump()
    fired: list[str] = []
    timer = pump.call_later(0.0, lambda: fired.append("late"))
    # Let the expiry reach the inbox while the pump is not consuming yet.
    await asyncio.sleep(0.01)
    timer.cancel()
    pump.start()
    await pump.drain()
    assert fired == []
    await pump.stop()


@pytest.mark.asyncio
async def test_call_every_repeats_until_cancelled() -> None:
    pump = EventPump()
    pump.start()
    ticks: list[int] = []
    timer = pump.call_every(0.01, lambda: ticks.append(1))
    await asyncio.sleep(0.06)
    timer.cancel()
    count = len(ticks)
    assert count >= 2
    await asyncio.sleep(0.03)
    assert len(ticks) == count
    await pump.stop()


@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_the_pump() -> None:
    pump = EventPump()
    pump.start()
    seen: list[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    pump.post(boom)
    pump.post(lambda: seen.append("after"))
    await pump.drain()
    assert seen == ["after"]
    assert pump.running
    await pump.stop()


@pytest.mark.asyncio
async def test_stop_cancels_outstanding_timers() -> None:
    pump = EventPump()
    pump.start()
    fired: list[str] = []
    pump.call_later(0.02, lambda: fired.append("x"))
    pump.call_every(0.02, lambda: fired.append("y"))
    await pump.stop()
    assert pump.pending_timers() == 0
    await asyncio.sleep(0.05)
    assert fired == []
    assert not pump.running
