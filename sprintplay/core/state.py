"""Playback state snapshots for the interval engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Union


PhaseName = Literal["step", "rest", "complete"]
RestContext = Literal["between_repeats", "between_steps"]


@dataclass(frozen=True)
class StepPhase:
    name: ClassVar[PhaseName] = "step"


@dataclass(frozen=True)
class RestPhase:
    context: RestContext
    name: ClassVar[PhaseName] = "rest"


@dataclass(frozen=True)
class CompletePhase:
    name: ClassVar[PhaseName] = "complete"


Phase = Union[StepPhase, RestPhase, CompletePhase]

STEP = StepPhase()
COMPLETE = CompletePhase()
REST_BETWEEN_REPEATS = RestPhase("between_repeats")
REST_BETWEEN_STEPS = RestPhase("between_steps")


@dataclass(frozen=True)
class PlaybackState:
    phase: Phase
    step_index: int = 0
    repeat_index: int = 1
    planned_repeats: int = 1
    remaining_sec: int = 0
    is_paused: bool = False
    is_muted: bool = False

    @property
    def phase_name(self) -> PhaseName:
        return self.phase.name

    @property
    def rest_context(self) -> RestContext | None:
        if isinstance(self.phase, RestPhase):
            return self.phase.context
        return None

    @property
    def is_complete(self) -> bool:
        return isinstance(self.phase, CompletePhase)

    @property
    def media_key(self) -> tuple[PhaseName, bool, bool, int]:
        return (self.phase_name, self.is_paused, self.is_muted, self.step_index)


def complete_state() -> PlaybackState:
    return PlaybackState(phase=COMPLETE, remaining_sec=0)
