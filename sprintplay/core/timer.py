"""One-second tick source on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TimerSource:
    """Fires ``callback`` once per interval, rescheduling after each tick.

    Each tick is armed with ``loop.call_later`` only after the previous one
    has run, so ``stop()`` between two ticks guarantees the next one never
    fires and two tick streams can never overlap.
    """

    def __init__(self, interval_sec: float = 1.0) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be > 0")
        self._interval_sec = interval_sec
        self._callback: Optional[TickCallback] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._generation = 0

    @property
    def interval_sec(self) -> float:
        return self._interval_sec

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self, callback: TickCallback) -> None:
        self.stop()
        self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._arm()

    def restart(self) -> None:
        if self._callback is None:
            raise RuntimeError("Timer was never started")
        self.start(self._callback)

    def stop(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self._interval_sec, self._fire)

    def _fire(self) -> None:
        self._handle = None
        callback = self._callback
        if callback is None:
            return
        generation = self._generation
        try:
            callback()
        except Exception:
            logger.exception("Tick callback failed")
        # stop()/start() from inside the callback bumps the generation.
        if generation == self._generation:
            self._arm()
