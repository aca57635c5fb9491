"""Schedule domain models."""

from __future__ import annotations

import math
import random
import string
from dataclasses import dataclass, replace
from typing import Literal


MediaKind = Literal["image", "video", "audio"]
MEDIA_KINDS: tuple[MediaKind, ...] = ("image", "video", "audio")


def make_step_id() -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(11))


@dataclass(frozen=True)
class StepMedia:
    kind: MediaKind
    url: str
    hint: str | None = None

    @property
    def is_playable(self) -> bool:
        return self.kind in ("audio", "video")


@dataclass(frozen=True)
class ScheduleStep:
    id: str
    name: str
    duration_sec: int
    rest_duration_sec: int = 0
    media: StepMedia | None = None
    sprint_count: int = 1
    countdown_voice_sec: int = 5
    mute_background: bool = False
    min_duration_sec: int | None = None
    instruction: str | None = None

    @property
    def effective_duration_sec(self) -> int:
        return max(self.duration_sec, 0)

    def with_media_duration(self, media_seconds: float) -> ScheduleStep:
        """Return a copy whose duration covers the loaded video length."""
        if self.media is None or self.media.kind != "video" or media_seconds <= 0:
            return self
        minimum = int(math.ceil(media_seconds))
        return replace(
            self,
            duration_sec=max(self.duration_sec, minimum),
            min_duration_sec=minimum,
        )


@dataclass(frozen=True)
class Schedule:
    id: str
    title: str
    steps: tuple[ScheduleStep, ...]
    owner_id: str | None = None
    description: str | None = None

    @property
    def total_duration_sec(self) -> int:
        return sum(step.effective_duration_sec for step in self.steps)

    def step_by_id(self, step_id: str) -> ScheduleStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None
