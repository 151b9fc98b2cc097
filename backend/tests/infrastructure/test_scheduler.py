"""Round Scheduler — keyed asyncio timers.

Tests cover:
    - Timer fires once after its delay; a cancelled timer never fires
    - Arming over a pending timer raises; a firing callback may re-arm its own key
    - Callback failures are logged, not propagated
    - shutdown cancels pending and running timers
"""

import asyncio
import logging

import pytest

from arcade.core.errors import TimerAlreadyArmedError
from arcade.infrastructure.scheduler import RoundScheduler


async def test_fires_after_delay():
    scheduler = RoundScheduler()
    fired = []

    async def callback():
        fired.append("x")

    scheduler.arm("k", 0.01, callback)
    assert scheduler.is_armed("k")
    await asyncio.sleep(0.05)

    assert fired == ["x"]
    assert not scheduler.is_armed("k")


async def test_cancelled_timer_never_fires():
    scheduler = RoundScheduler()
    fired = []

    async def callback():
        fired.append("x")

    scheduler.arm("k", 0.01, callback)
    assert scheduler.cancel("k") is True
    await asyncio.sleep(0.05)

    assert fired == []
    assert scheduler.cancel("k") is False


async def test_arming_twice_raises():
    scheduler = RoundScheduler()

    async def callback():
        return None

    scheduler.arm("k", 1, callback)
    with pytest.raises(TimerAlreadyArmedError):
        scheduler.arm("k", 1, callback)
    await scheduler.shutdown()


async def test_callback_can_rearm_same_key():
    scheduler = RoundScheduler()
    fired = []

    async def second():
        fired.append("second")

    async def first():
        fired.append("first")
        scheduler.arm("k", 0, second, label="advance")

    scheduler.arm("k", 0, first)
    await asyncio.sleep(0.05)

    assert fired == ["first", "second"]


async def test_keys_are_independent():
    scheduler = RoundScheduler()
    fired = []

    async def make(name):
        fired.append(name)

    scheduler.arm("a", 0.01, lambda: make("a"))
    scheduler.arm("b", 0.01, lambda: make("b"))
    scheduler.cancel("a")
    await asyncio.sleep(0.05)

    assert fired == ["b"]


async def test_callback_error_logged(caplog):
    scheduler = RoundScheduler()

    async def boom():
        raise RuntimeError("kaput")

    with caplog.at_level(logging.ERROR, logger="arcade.infrastructure.scheduler"):
        scheduler.arm("k", 0, boom)
        await asyncio.sleep(0.02)

    assert "kaput" in caplog.text
    assert scheduler.pending_count == 0


async def test_shutdown_cancels_pending_and_running():
    scheduler = RoundScheduler()
    started = asyncio.Event()
    finished = []

    async def slow():
        started.set()
        await asyncio.sleep(10)
        finished.append("slow")

    async def never():
        finished.append("never")

    scheduler.arm("running", 0, slow)
    scheduler.arm("pending", 10, never)
    await started.wait()

    await scheduler.shutdown()

    assert finished == []
    assert scheduler.pending_count == 0
