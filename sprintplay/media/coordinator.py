"""Keeps at most one step media resource in sync with the playback engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Literal, Optional

from sprintplay.core.engine import PlaybackEngine
from sprintplay.core.state import PlaybackState
from sprintplay.media.backends import MediaBackend, MediaHandle
from sprintplay.media.effects import (
    Countdown,
    Load,
    MediaEffect,
    Pause,
    Play,
    SetMuted,
    Unload,
    derive_media_effects,
)
from sprintplay.schedule.model import ScheduleStep, StepMedia

logger = logging.getLogger(__name__)

MediaStatus = Literal["none", "loading", "ready", "unavailable"]


class MediaCoordinator:
    """Applies derived media effects to a backend.

    Reads engine snapshots only; never calls engine commands. Loads run as
    background tasks so a slow or failing load cannot hold up the timer.
    """

    def __init__(self, engine: PlaybackEngine, backend: MediaBackend) -> None:
        self._engine = engine
        self._backend = backend
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._last_state: Optional[PlaybackState] = None
        self._last_step: Optional[ScheduleStep] = None
        self._handle: Optional[MediaHandle] = None
        self._load_task: Optional[asyncio.Task[None]] = None
        self._generation = 0
        self._want_playing = False
        self._want_muted = False
        self._status: MediaStatus = "none"
        self._media: Optional[StepMedia] = None

    @property
    def status(self) -> MediaStatus:
        return self._status

    @property
    def loaded_media(self) -> StepMedia | None:
        return self._media if self._handle is not None else None

    @property
    def display_media(self) -> StepMedia | None:
        """Media the presentation layer should show for the current step."""
        if self._status == "unavailable":
            return None
        step = self._last_step
        return step.media if step is not None else None

    def attach(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._engine.subscribe(self.on_snapshot)
        self.on_snapshot(self._engine.get_snapshot())

    def on_snapshot(self, state: PlaybackState) -> None:
        step = self._step_for(state)
        last = self._last_state
        if (
            last is not None
            and last.media_key == state.media_key
            and last.repeat_index == state.repeat_index
            and last.remaining_sec == state.remaining_sec
            and self._last_step is step
        ):
            return
        effects = derive_media_effects(self._last_state, state, self._last_step, step)
        self._last_state = state
        self._last_step = step
        self.apply(effects)

    def apply(self, effects: list[MediaEffect]) -> None:
        for effect in effects:
            if isinstance(effect, Unload):
                self._unload()
            elif isinstance(effect, Load):
                self._start_load(effect.media)
            elif isinstance(effect, Play):
                self._want_playing = True
                self._call_handle("play")
            elif isinstance(effect, Pause):
                self._want_playing = False
                self._call_handle("pause")
            elif isinstance(effect, SetMuted):
                self._want_muted = effect.muted
                self._call_handle("set_muted", effect.muted)
            elif isinstance(effect, Countdown):
                self._announce(effect.seconds_left)

    async def wait_loaded(self) -> None:
        task = self._load_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        task = self._load_task
        self._unload()
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        self._last_state = None
        self._last_step = None

    def _step_for(self, state: PlaybackState) -> ScheduleStep | None:
        schedule = self._engine.schedule
        if schedule is None or not schedule.steps:
            return None
        return schedule.steps[state.step_index]

    def _unload(self) -> None:
        self._generation += 1
        task = self._load_task
        self._load_task = None
        if task is not None and not task.done():
            task.cancel()
        handle = self._handle
        self._handle = None
        self._media = None
        self._status = "none"
        self._want_muted = False
        self._want_playing = False
        if handle is not None:
            try:
                handle.unload()
            except Exception as exc:
                logger.warning("Failed to unload media: %s", exc)

    def _start_load(self, media: StepMedia) -> None:
        self._generation += 1
        generation = self._generation
        self._media = media
        self._status = "loading"
        self._load_task = asyncio.get_running_loop().create_task(
            self._load(media, generation)
        )

    async def _load(self, media: StepMedia, generation: int) -> None:
        try:
            handle = await self._backend.load(media)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if generation == self._generation:
                logger.warning("Failed to load %s media %s: %s", media.kind, media.url, exc)
                self._status = "unavailable"
            return

        if generation != self._generation:
            logger.debug("Discarding late media load for %s", media.url)
            try:
                handle.unload()
            except Exception as exc:
                logger.warning("Failed to unload discarded media: %s", exc)
            return

        self._handle = handle
        self._status = "ready"
        self._call_handle("set_muted", self._want_muted)
        self._call_handle("play" if self._want_playing else "pause")

    def _call_handle(self, method: str, *args: object) -> None:
        handle = self._handle
        if handle is None:
            return
        try:
            getattr(handle, method)(*args)
        except Exception as exc:
            logger.warning("Media %s failed: %s", method, exc)

    def _announce(self, seconds_left: int) -> None:
        announce = getattr(self._backend, "announce", None)
        if announce is None:
            return
        try:
            announce(seconds_left)
        except Exception as exc:
            logger.warning("Countdown cue failed: %s", exc)
