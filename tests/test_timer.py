from __future__ import annotations

import asyncio

import pytest

from sprintplay.core.timer import TimerSource


def test_timer_ticks_repeatedly_until_stopped() -> None:
    async def _run() -> None:
        timer = TimerSource(interval_sec=0.01)
        ticks: list[int] = []

        timer.start(lambda: ticks.append(1))
        assert timer.is_running
        await asyncio.sleep(0.08)
        timer.stop()
        count = len(ticks)

        assert count >= 3
        assert not timer.is_running
        await asyncio.sleep(0.05)
        assert len(ticks) == count

    asyncio.run(_run())


def test_stop_from_callback_prevents_next_tick() -> None:
    async def _run() -> None:
        timer = TimerSource(interval_sec=0.01)
        ticks: list[int] = []

        def on_tick() -> None:
            ticks.append(1)
            if len(ticks) == 2:
                timer.stop()

        timer.start(on_tick)
        await asyncio.sleep(0.1)
        assert len(ticks) == 2
        assert not timer.is_running

    asyncio.run(_run())


def test_restart_keeps_a_single_tick_stream() -> None:
    async def _run() -> None:
        timer = TimerSource(interval_sec=0.02)
        ticks: list[float] = []
        loop = asyncio.get_running_loop()

        timer.start(lambda: ticks.append(loop.time()))
        for _ in range(5):
            await asyncio.sleep(0.005)
            timer.restart()
        await asyncio.sleep(0.1)
        timer.stop()

        # Restarts inside one interval postpone the tick rather than stacking.
        gaps = [b - a for a, b in zip(ticks, ticks[1:])]
        assert ticks
        assert all(gap >= 0.015 for gap in gaps)

    asyncio.run(_run())


def test_failing_callback_keeps_ticking() -> None:
    async def _run() -> None:
        timer = TimerSource(interval_sec=0.01)
        calls: list[int] = []

        def on_tick() -> None:
            calls.append(1)
            raise RuntimeError("tick failed")

        timer.start(on_tick)
        await asyncio.sleep(0.06)
        timer.stop()
        assert len(calls) >= 2

    asyncio.run(_run())


def test_invalid_interval_and_restart_without_start() -> None:
    with pytest.raises(ValueError):
        TimerSource(interval_sec=0)
    with pytest.raises(RuntimeError):
        TimerSource().restart()
