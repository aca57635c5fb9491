"""Session controller used by the terminal and web players."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from sprintplay.core.engine import DEFAULT_REST_EXTEND_SEC, PlaybackEngine
from sprintplay.core.state import PlaybackState
from sprintplay.core.timer import TimerSource
from sprintplay.media.backends import LoggingMediaBackend, MediaBackend
from sprintplay.media.coordinator import MediaCoordinator
from sprintplay.schedule.model import Schedule

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[PlaybackState], None]
FinishCallback = Callable[[bool], None]


class PlayerController:
    def __init__(
        self,
        media_backend: MediaBackend | None = None,
        tick_interval_sec: float = 1.0,
    ) -> None:
        self._engine = PlaybackEngine()
        self._timer = TimerSource(interval_sec=tick_interval_sec)
        self._media = MediaCoordinator(self._engine, media_backend or LoggingMediaBackend())
        self._on_finish: Optional[FinishCallback] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._finished = False
        self._engine.subscribe(self._on_engine_snapshot)

    @property
    def engine(self) -> PlaybackEngine:
        return self._engine

    @property
    def media(self) -> MediaCoordinator:
        return self._media

    @property
    def is_running(self) -> bool:
        return self._timer.is_running

    async def load_schedule(
        self,
        schedule: Schedule,
        rest_duration_sec: int,
        on_snapshot: SnapshotCallback | None = None,
        on_finish: FinishCallback | None = None,
    ) -> PlaybackState:
        if schedule is self._engine.schedule and not self._finished:
            return self._engine.get_snapshot()

        await self.close()
        self._finished = False
        self._on_finish = on_finish
        if on_snapshot is not None:
            self._unsubscribe = self._engine.subscribe(on_snapshot)

        if schedule is self._engine.schedule and not self._engine.get_snapshot().is_complete:
            # A stopped session of the same schedule starts over.
            self._engine.update_rest_duration(rest_duration_sec)
            self._engine.reset()
        else:
            self._engine.initialize(schedule, rest_duration_sec)
        self._media.attach()

        state = self._engine.get_snapshot()
        # An empty schedule is already complete and has been reported finished.
        if not state.is_complete:
            self._timer.start(self._engine.tick)
        return state

    async def close(self) -> None:
        self._timer.stop()
        await self._media.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._engine.schedule is not None and not self._finished:
            self._finish(False)

    def pause(self) -> None:
        self._engine.pause()

    def resume(self) -> None:
        self._engine.resume()

    def toggle_pause(self) -> None:
        self._engine.toggle_pause()

    def skip(self) -> None:
        self._engine.skip()
        self._restart_tick()

    def jump_to_next_step(self) -> None:
        self._engine.jump_to_next_step()
        self._restart_tick()

    def extend_rest(self, seconds: int = DEFAULT_REST_EXTEND_SEC) -> None:
        self._engine.extend_rest(seconds)

    def set_repeat_count(self, step_id: str, count: object) -> None:
        self._engine.set_repeat_count(step_id, count)

    def set_muted(self, muted: bool) -> None:
        self._engine.set_muted(muted)

    def toggle_mute(self) -> None:
        self._engine.toggle_mute()

    def update_rest_duration(self, seconds: int) -> None:
        self._engine.update_rest_duration(seconds)

    def get_snapshot(self) -> PlaybackState:
        return self._engine.get_snapshot()

    def _restart_tick(self) -> None:
        # A manual transition gets a full second before the first tick.
        if self._timer.is_running:
            self._timer.restart()

    def _on_engine_snapshot(self, state: PlaybackState) -> None:
        if state.is_complete and not self._finished:
            self._timer.stop()
            self._finish(True)

    def _finish(self, completed: bool) -> None:
        self._finished = True
        callback = self._on_finish
        logger.info("Playback %s", "completed" if completed else "stopped")
        if callback is None:
            return
        try:
            callback(completed)
        except Exception:
            logger.exception("Finish callback failed")
