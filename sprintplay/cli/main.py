"""Terminal CLI entrypoint for the sprintplay interval player."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from sprintplay.core.state import PlaybackState
from sprintplay.schedule.model import Schedule
from sprintplay.schedule.parser import ScheduleParseError, load_schedule
from sprintplay.schedule.settings import load_rest_duration, save_rest_duration
from sprintplay.ui.controller import PlayerController


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interval schedule player")
    parser.add_argument(
        "schedule",
        nargs="?",
        default=None,
        help="Schedule file to play (.json or .csv)",
    )
    parser.add_argument(
        "--rest",
        type=int,
        default=None,
        help="Rest seconds between repeats and steps (default: saved setting)",
    )
    parser.add_argument(
        "--save-rest",
        type=int,
        default=None,
        help="Store the default rest seconds and exit unless a schedule is given",
    )
    parser.add_argument(
        "--repeat",
        action="append",
        default=[],
        metavar="STEP_ID=N",
        help="Planned repeat count for a step (repeatable)",
    )
    parser.add_argument(
        "--tick",
        type=float,
        default=1.0,
        help="Seconds per timer tick",
    )
    parser.add_argument(
        "--ui-web",
        action="store_true",
        help="Launch web player (NiceGUI)",
    )
    parser.add_argument(
        "--web-host",
        default="127.0.0.1",
        help="Host bind for --ui-web",
    )
    parser.add_argument(
        "--web-port",
        type=int,
        default=8089,
        help="Port for --ui-web",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log media and engine details",
    )
    return parser


def parse_repeat_args(values: list[str]) -> dict[str, int]:
    repeats: dict[str, int] = {}
    for raw in values:
        step_id, sep, count = raw.partition("=")
        if not sep or not step_id.strip():
            raise ValueError(f"Invalid --repeat '{raw}', expected STEP_ID=N")
        try:
            repeats[step_id.strip()] = int(count)
        except ValueError as exc:
            raise ValueError(f"Invalid --repeat '{raw}', expected STEP_ID=N") from exc
    return repeats


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def format_status_line(schedule: Schedule, state: PlaybackState) -> str:
    if state.is_complete:
        return f"{schedule.title}: All done!"

    step = schedule.steps[state.step_index]
    position = f"Step {state.step_index + 1}/{len(schedule.steps)}"
    repeat = f"Repeat {state.repeat_index}/{state.planned_repeats}"
    if state.rest_context == "between_repeats":
        label = f"Rest before repeat {state.repeat_index + 1} of {step.name}"
    elif state.rest_context == "between_steps":
        upcoming = (
            schedule.steps[state.step_index + 1].name
            if state.step_index + 1 < len(schedule.steps)
            else "finish"
        )
        label = f"Rest, next: {upcoming}"
    else:
        label = step.name
    flags = ""
    if state.is_paused:
        flags += " [paused]"
    if state.is_muted:
        flags += " [muted]"
    return f"{position} | {repeat} | {label} | {format_clock(state.remaining_sec)}{flags}"


async def run_terminal(
    schedule: Schedule,
    rest_duration_sec: int,
    repeats: dict[str, int],
    tick_interval_sec: float,
) -> int:
    controller = PlayerController(tick_interval_sec=tick_interval_sec)
    done = asyncio.Event()

    def on_snapshot(state: PlaybackState) -> None:
        print(format_status_line(schedule, state))

    def on_finish(completed: bool) -> None:
        done.set()

    await controller.load_schedule(
        schedule,
        rest_duration_sec,
        on_snapshot=on_snapshot,
        on_finish=on_finish,
    )
    for step_id, count in repeats.items():
        if schedule.step_by_id(step_id) is None:
            print(f"Warning: unknown step id '{step_id}' ignored")
            continue
        controller.set_repeat_count(step_id, count)

    try:
        await done.wait()
    finally:
        await controller.close()
    return 0


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    if args.save_rest is not None:
        path = save_rest_duration(args.save_rest)
        print(f"Default rest set to {max(0, args.save_rest)}s ({path})")
        if args.schedule is None and not args.ui_web:
            return 0

    if args.ui_web:
        from sprintplay.ui.web_app import run_web_ui

        return run_web_ui(
            schedule_path=Path(args.schedule) if args.schedule else None,
            host=args.web_host,
            port=args.web_port,
            tick_interval_sec=args.tick,
        )

    if args.schedule is None:
        parser.print_help()
        return 1

    schedule_path = Path(args.schedule)
    if not schedule_path.exists():
        print(f"Schedule not found: {schedule_path}")
        return 1

    try:
        schedule = load_schedule(schedule_path)
        repeats = parse_repeat_args(args.repeat)
    except (ScheduleParseError, ValueError) as exc:
        print(f"Error: {exc}")
        return 1

    rest = args.rest if args.rest is not None else load_rest_duration()
    if args.tick <= 0:
        print("Error: --tick must be > 0")
        return 1

    try:
        return asyncio.run(run_terminal(schedule, rest, repeats, args.tick))
    except KeyboardInterrupt:
        print("Stopped")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
