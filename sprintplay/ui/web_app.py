"""NiceGUI web player for interval schedules."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from nicegui import ui

from sprintplay.core.state import PlaybackState
from sprintplay.schedule.model import Schedule, StepMedia
from sprintplay.schedule.parser import ScheduleParseError, load_schedule
from sprintplay.schedule.settings import load_rest_duration, save_rest_duration
from sprintplay.ui.controller import PlayerController

MAX_REST_SETTING_SEC = 600


class NiceGuiMediaHandle:
    def __init__(self, element: Any, media: StepMedia) -> None:
        self._element = element
        self.media = media

    def play(self) -> None:
        self._element.play()

    def pause(self) -> None:
        self._element.pause()

    def set_muted(self, muted: bool) -> None:
        if muted:
            self._element.props("muted")
        else:
            self._element.props(remove="muted")

    def unload(self) -> None:
        element = self._element
        if element is None:
            return
        self._element = None
        element.delete()


class NiceGuiMediaBackend:
    """Creates audio/video elements inside the player's media container."""

    def __init__(self, container: Any) -> None:
        self._container = container

    async def load(self, media: StepMedia) -> NiceGuiMediaHandle:
        await asyncio.sleep(0)
        with self._container:
            if media.kind == "video":
                element = ui.video(media.url, autoplay=False, loop=True).classes("w-full")
            elif media.kind == "audio":
                element = ui.audio(media.url, autoplay=False).classes("w-full")
            else:
                raise ValueError(f"Media kind '{media.kind}' is not playable")
        return NiceGuiMediaHandle(element, media)

    def announce(self, seconds_left: int) -> None:
        with self._container:
            ui.notify(f"{seconds_left}", position="top", timeout=800)


@dataclass
class WebState:
    status: str = "No schedule loaded"
    schedule: Schedule | None = None
    snapshot: PlaybackState | None = None


def _fmt_clock(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, total_seconds), 60)
    return f"{minutes}:{seconds:02d}"


def run_web_ui(
    *,
    schedule_path: Optional[Path] = None,
    host: str = "127.0.0.1",
    port: int = 8089,
    tick_interval_sec: float = 1.0,
) -> int:
    state = WebState()

    with ui.column().classes("w-full gap-1"):
        ui.label("SPRINTPLAY").classes("text-xl font-semibold tracking-wide")
        status_label = ui.label("Status: No schedule loaded").classes("text-lg font-semibold")

    with ui.card().classes("w-full"):
        with ui.row().classes("w-full items-end gap-2"):
            path_input = ui.input(
                "Schedule file",
                value=str(schedule_path) if schedule_path else "",
            ).classes("min-w-[320px]")
            rest_input = ui.number(
                "Rest (sec)",
                value=load_rest_duration(),
                min=0,
                max=MAX_REST_SETTING_SEC,
            )
            load_btn = ui.button("Load & play")

    with ui.card().classes("w-full"):
        title_label = ui.label("-").classes("text-lg font-semibold")
        position_label = ui.label("").classes("text-sm")
        phase_label = ui.label("").classes("text-base font-medium")
        timer_label = ui.label("0:00").classes("text-5xl font-bold")
        repeat_label = ui.label("").classes("text-sm")
        upcoming_label = ui.label("").classes("text-sm text-slate-500")
        media_container = ui.column().classes("w-full")
        with media_container:
            media_image = ui.image("").classes("w-full max-h-96")
            media_hint = ui.label("No media added").classes("text-sm text-slate-500")
        with ui.row().classes("w-full items-center gap-2"):
            pause_btn = ui.button("Pause")
            skip_btn = ui.button("Skip")
            next_btn = ui.button("Next step")
            extend_btn = ui.button("+15s rest")
            mute_btn = ui.button("Mute")
        with ui.row().classes("w-full items-end gap-2"):
            repeat_input = ui.number("Repeats for this step", value=1, min=1, max=99)
            repeat_btn = ui.button("Save repeats")

    controller = PlayerController(
        media_backend=NiceGuiMediaBackend(media_container),
        tick_interval_sec=tick_interval_sec,
    )

    def refresh_ui() -> None:
        status_label.text = f"Status: {state.status}"
        schedule = state.schedule
        snapshot = controller.get_snapshot() if schedule is not None else None
        state.snapshot = snapshot
        if schedule is None or snapshot is None:
            title_label.text = "-"
            for button in (pause_btn, skip_btn, next_btn, extend_btn, mute_btn, repeat_btn):
                button.disable()
            return

        engine = controller.engine
        title_label.text = schedule.title
        if snapshot.is_complete:
            position_label.text = ""
            phase_label.text = "All done! Great job completing your schedule."
            timer_label.text = _fmt_clock(0)
            repeat_label.text = ""
            upcoming_label.text = ""
            media_image.set_visibility(False)
            media_hint.text = ""
            for button in (pause_btn, skip_btn, next_btn, extend_btn, mute_btn, repeat_btn):
                button.disable()
            return

        step = schedule.steps[snapshot.step_index]
        position_label.text = f"Sprint Number: {snapshot.step_index + 1} of {len(schedule.steps)}"
        if snapshot.rest_context is not None:
            upcoming = engine.next_step
            phase_label.text = f"Rest - up next: {upcoming.name if upcoming else 'finish'}"
        else:
            phase_label.text = step.name
        timer_label.text = _fmt_clock(snapshot.remaining_sec)
        repeat_label.text = f"Repeat {snapshot.repeat_index} of {snapshot.planned_repeats}"
        upcoming_label.text = "Up next: " + (
            ", ".join(s.name for s in engine.upcoming_steps()) or "-"
        )

        media = controller.media.display_media
        if media is not None and media.kind == "image":
            media_image.set_source(media.url)
            media_image.set_visibility(True)
        else:
            media_image.set_visibility(False)
        if controller.media.status == "unavailable":
            media_hint.text = "Media unavailable"
        elif media is None:
            media_hint.text = "No media added"
        else:
            media_hint.text = media.hint or ""

        pause_btn.text = "Resume" if snapshot.is_paused else "Pause"
        mute_btn.text = "Unmute" if snapshot.is_muted else "Mute"
        for button in (pause_btn, skip_btn, next_btn, repeat_btn):
            button.enable()
        if snapshot.rest_context is not None:
            extend_btn.enable()
        else:
            extend_btn.disable()
        if engine.can_mute:
            mute_btn.enable()
        else:
            mute_btn.disable()

    def on_snapshot(snapshot: PlaybackState) -> None:
        state.snapshot = snapshot

    def on_finish(completed: bool) -> None:
        state.status = "Schedule completed" if completed else "Schedule stopped"

    async def on_load() -> None:
        raw_path = str(path_input.value or "").strip()
        if not raw_path:
            ui.notify("Enter a schedule file path", color="negative")
            return
        path = Path(raw_path).expanduser()
        if not path.exists():
            state.status = "Schedule not found"
            refresh_ui()
            return
        try:
            schedule = load_schedule(path)
        except ScheduleParseError as exc:
            ui.notify(str(exc), color="negative")
            return
        rest_sec = max(0, int(rest_input.value or 0))
        save_rest_duration(rest_sec)
        state.schedule = schedule
        state.status = f"Playing {schedule.title}"
        await controller.load_schedule(
            schedule,
            rest_sec,
            on_snapshot=on_snapshot,
            on_finish=on_finish,
        )
        refresh_ui()

    def on_rest_change() -> None:
        seconds = max(0, int(rest_input.value or 0))
        save_rest_duration(seconds)
        controller.update_rest_duration(seconds)

    def on_save_repeats() -> None:
        step = controller.engine.current_step
        if step is None:
            return
        controller.set_repeat_count(step.id, int(repeat_input.value or 1))
        refresh_ui()

    def on_action(action: Any) -> None:
        action()
        refresh_ui()

    load_btn.on_click(on_load)
    rest_input.on_value_change(lambda _: on_rest_change())
    pause_btn.on_click(lambda: on_action(controller.toggle_pause))
    skip_btn.on_click(lambda: on_action(controller.skip))
    next_btn.on_click(lambda: on_action(controller.jump_to_next_step))
    extend_btn.on_click(lambda: on_action(controller.extend_rest))
    mute_btn.on_click(lambda: on_action(controller.toggle_mute))
    repeat_btn.on_click(on_save_repeats)

    refresh_ui()
    ui.timer(0.5, refresh_ui)
    ui.run(host=host, port=port, reload=False, title="Sprintplay Web Player")
    return 0
