"""Pure derivation of media side effects from playback snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sprintplay.core.state import PlaybackState
from sprintplay.schedule.model import ScheduleStep, StepMedia


@dataclass(frozen=True)
class Unload:
    pass


@dataclass(frozen=True)
class Load:
    step_id: str
    media: StepMedia


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class SetMuted:
    muted: bool


@dataclass(frozen=True)
class Countdown:
    seconds_left: int


MediaEffect = Union[Unload, Load, Play, Pause, SetMuted, Countdown]


def should_play(state: PlaybackState) -> bool:
    return state.phase_name == "step" and not state.is_paused


def derive_media_effects(
    prev: Optional[PlaybackState],
    next_state: PlaybackState,
    prev_step: Optional[ScheduleStep],
    next_step: Optional[ScheduleStep],
) -> list[MediaEffect]:
    """Return the ordered effects that move media from ``prev`` to ``next_state``.

    ``prev`` is ``None`` at session start. Steps are the ones at each
    snapshot's ``step_index`` (``None`` for an empty schedule); the step stays
    the same through its rest phases and into completion, so media is paused
    there rather than unloaded.
    """
    effects: list[MediaEffect] = []
    prev_id = prev_step.id if prev_step is not None else None
    next_id = next_step.id if next_step is not None else None
    playing = should_play(next_state)

    if prev is None or prev_id != next_id:
        effects.append(Unload())
        media = next_step.media if next_step is not None else None
        if media is not None and media.is_playable:
            assert next_id is not None
            effects.append(Load(step_id=next_id, media=media))
            if next_state.is_muted:
                effects.append(SetMuted(True))
            effects.append(Play() if playing else Pause())
    else:
        if playing != should_play(prev):
            effects.append(Play() if playing else Pause())
        if next_state.is_muted != prev.is_muted:
            effects.append(SetMuted(next_state.is_muted))

    countdown = _countdown_cue(prev, next_state, next_step)
    if countdown is not None:
        effects.append(countdown)
    return effects


def _countdown_cue(
    prev: Optional[PlaybackState],
    next_state: PlaybackState,
    next_step: Optional[ScheduleStep],
) -> Countdown | None:
    if next_step is None or not should_play(next_state):
        return None
    seconds_left = next_state.remaining_sec
    if not 1 <= seconds_left <= next_step.countdown_voice_sec:
        return None
    if prev is not None and (
        prev.remaining_sec,
        prev.phase_name,
        prev.step_index,
        prev.repeat_index,
    ) == (
        seconds_left,
        next_state.phase_name,
        next_state.step_index,
        next_state.repeat_index,
    ):
        return None
    return Countdown(seconds_left)
