from __future__ import annotations

from dataclasses import replace

from sprintplay.core.state import (
    COMPLETE,
    REST_BETWEEN_REPEATS,
    STEP,
    PlaybackState,
)
from sprintplay.media.effects import (
    Countdown,
    Load,
    Pause,
    Play,
    SetMuted,
    Unload,
    derive_media_effects,
)
from sprintplay.schedule.model import ScheduleStep, StepMedia

VIDEO = StepMedia(kind="video", url="https://cdn.example/clip.mp4")
AUDIO = StepMedia(kind="audio", url="https://cdn.example/cue.mp3", hint="Breathe")
IMAGE = StepMedia(kind="image", url="https://cdn.example/pose.png")

STEP_A = ScheduleStep(id="a", name="Squats", duration_sec=30, media=VIDEO, countdown_voice_sec=3)
STEP_B = ScheduleStep(id="b", name="Plank", duration_sec=20, media=AUDIO, countdown_voice_sec=0)
STEP_C = ScheduleStep(id="c", name="Stretch", duration_sec=20, media=IMAGE, countdown_voice_sec=0)


def _state(**kwargs: object) -> PlaybackState:
    base = PlaybackState(phase=STEP, step_index=0, remaining_sec=30)
    return replace(base, **kwargs)  # type: ignore[arg-type]


def test_session_start_loads_and_plays_step_media() -> None:
    effects = derive_media_effects(None, _state(), None, STEP_A)

    assert effects == [Unload(), Load(step_id="a", media=VIDEO), Play()]


def test_step_change_unloads_before_loading_next() -> None:
    prev = _state()
    nxt = _state(step_index=1, remaining_sec=20)

    effects = derive_media_effects(prev, nxt, STEP_A, STEP_B)

    assert effects == [Unload(), Load(step_id="b", media=AUDIO), Play()]


def test_image_media_is_not_loaded_as_playable() -> None:
    effects = derive_media_effects(_state(), _state(step_index=2), STEP_A, STEP_C)

    assert effects == [Unload()]


def test_rest_and_pause_pause_without_unloading() -> None:
    running = _state()
    resting = _state(phase=REST_BETWEEN_REPEATS, remaining_sec=10)
    paused = _state(is_paused=True)

    assert derive_media_effects(running, resting, STEP_A, STEP_A) == [Pause()]
    assert derive_media_effects(running, paused, STEP_A, STEP_A) == [Pause()]
    assert derive_media_effects(resting, running, STEP_A, STEP_A) == [Play()]


def test_completion_pauses_media() -> None:
    running = _state(remaining_sec=1)
    done = PlaybackState(phase=COMPLETE, step_index=0, remaining_sec=0)

    assert derive_media_effects(running, done, STEP_B, STEP_B) == [Pause()]


def test_mute_toggle_does_not_reload() -> None:
    effects = derive_media_effects(_state(), _state(is_muted=True), STEP_A, STEP_A)

    assert effects == [SetMuted(True)]


def test_plain_tick_has_no_effects() -> None:
    effects = derive_media_effects(_state(remaining_sec=30), _state(remaining_sec=29), STEP_A, STEP_A)

    assert effects == []


def test_countdown_cue_inside_voice_window() -> None:
    assert derive_media_effects(_state(remaining_sec=4), _state(remaining_sec=3), STEP_A, STEP_A) == [
        Countdown(3)
    ]
    assert derive_media_effects(_state(remaining_sec=2), _state(remaining_sec=1), STEP_A, STEP_A) == [
        Countdown(1)
    ]


def test_countdown_cue_silent_when_paused_or_resting() -> None:
    paused = _state(remaining_sec=3, is_paused=True)
    resting = _state(phase=REST_BETWEEN_REPEATS, remaining_sec=2)

    assert Countdown(3) not in derive_media_effects(_state(remaining_sec=3), paused, STEP_A, STEP_A)
    assert derive_media_effects(_state(phase=REST_BETWEEN_REPEATS, remaining_sec=3), resting, STEP_A, STEP_A) == []
