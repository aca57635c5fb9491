"""Interval playback engine: steps, repeats and rest periods on a tick clock."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from sprintplay.core.state import (
    REST_BETWEEN_REPEATS,
    REST_BETWEEN_STEPS,
    STEP,
    PlaybackState,
    RestPhase,
    StepPhase,
    complete_state,
)
from sprintplay.schedule.model import Schedule, ScheduleStep

logger = logging.getLogger(__name__)

DEFAULT_REST_EXTEND_SEC = 15

SnapshotCallback = Callable[[PlaybackState], None]


def normalize_repeat_count(value: object) -> int:
    if isinstance(value, bool):
        return 1
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return 1
    return max(1, value)


class PlaybackEngine:
    """Owns the single ``PlaybackState`` of one playback session.

    Every command runs to completion synchronously and publishes at most one
    new snapshot. Phase changes happen only inside ``advance_phase``; the
    tick clock only ever decrements ``remaining_sec``.
    """

    def __init__(self) -> None:
        self._schedule: Optional[Schedule] = None
        self._rest_duration_sec = 0
        self._repeat_config: dict[str, int] = {}
        self._state: PlaybackState = complete_state()
        self._subscribers: list[SnapshotCallback] = []

    # -- session lifecycle -------------------------------------------------

    def initialize(self, schedule: Schedule, rest_duration_sec: int) -> PlaybackState:
        if schedule is self._schedule and not self._state.is_complete:
            return self._state

        self._schedule = schedule
        self._rest_duration_sec = max(0, int(rest_duration_sec))
        self._repeat_config = {step.id: 1 for step in schedule.steps}

        if not schedule.steps:
            logger.info("Schedule %r has no steps; nothing to play", schedule.title)
            self._publish(complete_state(), force=True)
            return self._state

        first = schedule.steps[0]
        logger.info(
            "Starting schedule %r: %d steps, rest %ds",
            schedule.title,
            len(schedule.steps),
            self._rest_duration_sec,
        )
        self._publish(
            PlaybackState(
                phase=STEP,
                step_index=0,
                repeat_index=1,
                planned_repeats=1,
                remaining_sec=first.effective_duration_sec,
            ),
            force=True,
        )
        return self._state

    def reset(self) -> PlaybackState:
        schedule = self._schedule
        if schedule is None:
            return self._state
        self._schedule = None
        return self.initialize(schedule, self._rest_duration_sec)

    def update_rest_duration(self, rest_duration_sec: int) -> None:
        self._rest_duration_sec = max(0, int(rest_duration_sec))

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # -- queries -----------------------------------------------------------

    def get_snapshot(self) -> PlaybackState:
        return self._state

    @property
    def snapshot(self) -> PlaybackState:
        return self._state

    @property
    def schedule(self) -> Schedule | None:
        return self._schedule

    @property
    def rest_duration_sec(self) -> int:
        return self._rest_duration_sec

    @property
    def repeat_config(self) -> dict[str, int]:
        return dict(self._repeat_config)

    @property
    def current_step(self) -> ScheduleStep | None:
        if self._schedule is None or self._state.is_complete:
            return None
        return self._schedule.steps[self._state.step_index]

    def planned_repeats(self, step_id: str) -> int:
        return self._repeat_config.get(step_id, 1)

    def upcoming_steps(self, limit: int = 2) -> tuple[ScheduleStep, ...]:
        if self._schedule is None or self._state.is_complete:
            return ()
        start = self._state.step_index + 1
        return self._schedule.steps[start:start + max(0, limit)]

    @property
    def next_step(self) -> ScheduleStep | None:
        state = self._state
        if (
            state.rest_context == "between_repeats"
            and state.repeat_index < state.planned_repeats
        ):
            return self.current_step
        upcoming = self.upcoming_steps(1)
        return upcoming[0] if upcoming else None

    @property
    def can_mute(self) -> bool:
        step = self.current_step
        return step is not None and step.media is not None and step.media.is_playable

    # -- commands ----------------------------------------------------------

    def tick(self) -> PlaybackState:
        state = self._state
        if self._schedule is None or state.is_complete or state.is_paused:
            return state

        if state.remaining_sec > 0:
            state = replace(state, remaining_sec=state.remaining_sec - 1)
            if state.remaining_sec > 0:
                self._publish(state)
                return self._state
            self._state = state

        self.advance_phase()
        return self._state

    def advance_phase(self) -> PlaybackState:
        state = self._state
        step = self.current_step
        if step is None:
            return state

        if isinstance(state.phase, StepPhase):
            planned = self.planned_repeats(step.id)
            more_repeats = state.repeat_index < planned
            if more_repeats and self._rest_duration_sec > 0:
                self._publish(
                    replace(
                        state,
                        phase=REST_BETWEEN_REPEATS,
                        remaining_sec=self._rest_duration_sec,
                    )
                )
            elif more_repeats:
                self._publish(
                    replace(
                        state,
                        repeat_index=state.repeat_index + 1,
                        remaining_sec=step.effective_duration_sec,
                    )
                )
            elif self._rest_duration_sec > 0:
                self._publish(
                    replace(
                        state,
                        phase=REST_BETWEEN_STEPS,
                        remaining_sec=self._rest_duration_sec,
                    )
                )
            else:
                self._advance_to_next_step()
            return self._state

        if (
            state.rest_context == "between_repeats"
            and state.repeat_index < self.planned_repeats(step.id)
        ):
            self._publish(
                replace(
                    state,
                    phase=STEP,
                    repeat_index=state.repeat_index + 1,
                    remaining_sec=step.effective_duration_sec,
                )
            )
            return self._state

        self._advance_to_next_step()
        return self._state

    def skip(self) -> PlaybackState:
        if self._state.is_complete or self._schedule is None:
            return self._state
        if self._state.is_paused:
            self._state = replace(self._state, is_paused=False)
        return self.advance_phase()

    def jump_to_next_step(self) -> PlaybackState:
        state = self._state
        if state.is_complete or self._schedule is None:
            return state
        if isinstance(state.phase, RestPhase):
            return self.skip()
        self._advance_to_next_step()
        return self._state

    def set_repeat_count(self, step_id: str, count: object) -> PlaybackState:
        state = self._state
        if state.is_complete or self._schedule is None:
            return state
        if step_id not in self._repeat_config:
            logger.debug("Ignoring repeat count for unknown step %r", step_id)
            return state

        planned = normalize_repeat_count(count)
        self._repeat_config[step_id] = planned

        step = self.current_step
        if step is None or step.id != step_id:
            return state

        if isinstance(state.phase, StepPhase):
            self._publish(
                replace(
                    state,
                    repeat_index=1,
                    planned_repeats=planned,
                    remaining_sec=step.effective_duration_sec,
                )
            )
        else:
            self._publish(replace(state, repeat_index=1, planned_repeats=planned))
        return self._state

    def extend_rest(self, delta_sec: int = DEFAULT_REST_EXTEND_SEC) -> PlaybackState:
        state = self._state
        if not isinstance(state.phase, RestPhase) or delta_sec <= 0:
            return state
        self._publish(replace(state, remaining_sec=state.remaining_sec + int(delta_sec)))
        return self._state

    def pause(self) -> PlaybackState:
        return self._set_flags(is_paused=True)

    def resume(self) -> PlaybackState:
        return self._set_flags(is_paused=False)

    def toggle_pause(self) -> PlaybackState:
        return self._set_flags(is_paused=not self._state.is_paused)

    def set_muted(self, muted: bool) -> PlaybackState:
        return self._set_flags(is_muted=bool(muted))

    def toggle_mute(self) -> PlaybackState:
        return self._set_flags(is_muted=not self._state.is_muted)

    # -- internals ---------------------------------------------------------

    def _advance_to_next_step(self) -> None:
        assert self._schedule is not None
        steps = self._schedule.steps
        next_index = self._state.step_index + 1
        if next_index >= len(steps):
            logger.info("Schedule %r complete", self._schedule.title)
            self._publish(replace(complete_state(), step_index=self._state.step_index))
            return

        next_step = steps[next_index]
        self._publish(
            PlaybackState(
                phase=STEP,
                step_index=next_index,
                repeat_index=1,
                planned_repeats=self.planned_repeats(next_step.id),
                remaining_sec=next_step.effective_duration_sec,
            )
        )

    def _set_flags(self, **flags: bool) -> PlaybackState:
        if self._state.is_complete or self._schedule is None:
            return self._state
        self._publish(replace(self._state, **flags))
        return self._state

    def _publish(self, state: PlaybackState, force: bool = False) -> None:
        previous = self._state
        if (
            state.step_index != previous.step_index
            or state.phase_name != previous.phase_name
        ) and (state.is_paused or state.is_muted):
            state = replace(state, is_paused=False, is_muted=False)

        self._state = state
        if state == previous and not force:
            return
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Playback subscriber failed")
