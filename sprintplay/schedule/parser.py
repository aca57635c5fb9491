"""Schedule file parser (CSV/JSON)."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from sprintplay.schedule.model import MEDIA_KINDS, Schedule, ScheduleStep, StepMedia, make_step_id


class ScheduleParseError(ValueError):
    """Raised when a schedule file is invalid."""


def load_schedule(path: str | Path) -> Schedule:
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix == ".json":
        return _load_json(file_path)
    if suffix == ".csv":
        return _load_csv(file_path)
    raise ScheduleParseError(
        f"Unsupported schedule format '{file_path.suffix}'. Use .json or .csv"
    )


def schedule_from_dict(data: object, *, fallback_title: str = "Schedule") -> Schedule:
    if not isinstance(data, dict):
        raise ScheduleParseError("Schedule JSON must be an object")

    title_obj = data.get("title", data.get("name", fallback_title))
    if not isinstance(title_obj, str):
        raise ScheduleParseError("Schedule field 'title' must be a string")

    steps_obj = data.get("steps", [])
    if not isinstance(steps_obj, list):
        raise ScheduleParseError("Schedule field 'steps' must be an array")

    steps: list[ScheduleStep] = []
    for i, raw in enumerate(steps_obj):
        if not isinstance(raw, dict):
            raise ScheduleParseError(f"Step {i + 1}: must be an object")
        media_obj = raw.get("media")
        if media_obj is not None and not isinstance(media_obj, dict):
            raise ScheduleParseError(f"Step {i + 1}: media must be an object")
        media_obj = media_obj or {}
        steps.append(
            _build_step(
                id_obj=raw.get("id"),
                name_obj=raw.get("name"),
                duration_obj=raw.get("duration_sec", raw.get("duration")),
                rest_obj=raw.get("rest_duration_sec", raw.get("restDuration")),
                media_kind_obj=media_obj.get("kind", media_obj.get("type")),
                media_url_obj=media_obj.get("url"),
                media_hint_obj=media_obj.get("hint"),
                index=i,
                extras=raw,
            )
        )

    title = title_obj.strip() or fallback_title
    schedule_id = data.get("id")
    owner_id = data.get("owner_id", data.get("userId"))
    description = data.get("description")
    return _build_schedule(
        schedule_id=str(schedule_id) if schedule_id else title,
        title=title,
        owner_id=str(owner_id) if owner_id else None,
        description=str(description) if description else None,
        steps=steps,
    )


def _load_json(path: Path) -> Schedule:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ScheduleParseError(f"Invalid JSON: {exc}") from exc
    return schedule_from_dict(data, fallback_title=path.stem)


def _load_csv(path: Path) -> Schedule:
    rows: list[ScheduleStep] = []
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        fields = set(reader.fieldnames or [])
        required = {"name", "duration_sec"}
        if not required.issubset(fields):
            raise ScheduleParseError(
                "CSV must contain headers: name,duration_sec[,rest_duration_sec,"
                "media_kind,media_url,media_hint,id]"
            )

        for i, row in enumerate(reader):
            rows.append(
                _build_step(
                    id_obj=row.get("id"),
                    name_obj=row.get("name"),
                    duration_obj=row.get("duration_sec"),
                    rest_obj=row.get("rest_duration_sec"),
                    media_kind_obj=row.get("media_kind"),
                    media_url_obj=row.get("media_url"),
                    media_hint_obj=row.get("media_hint"),
                    index=i,
                    extras={},
                )
            )

    return _build_schedule(
        schedule_id=path.stem,
        title=path.stem,
        owner_id=None,
        description=None,
        steps=rows,
    )


def _build_step(
    *,
    id_obj: object,
    name_obj: object,
    duration_obj: object,
    rest_obj: object,
    media_kind_obj: object,
    media_url_obj: object,
    media_hint_obj: object,
    index: int,
    extras: dict[str, object],
) -> ScheduleStep:
    duration_sec = _parse_int_field(
        raw=duration_obj,
        field_name="duration_sec",
        index=index,
    )
    rest_duration_sec = _parse_optional_int_field(
        raw=rest_obj,
        field_name="rest_duration_sec",
        index=index,
    )
    if rest_duration_sec is not None and rest_duration_sec < 0:
        raise ScheduleParseError(f"Step {index + 1}: rest_duration_sec must be >= 0")

    step_id = str(id_obj).strip() if id_obj is not None else ""
    name = str(name_obj).strip() if name_obj is not None else ""

    sprint_count = _parse_optional_int_field(
        raw=extras.get("sprint_count", extras.get("sprintCount")),
        field_name="sprint_count",
        index=index,
    )
    countdown_voice_sec = _parse_optional_int_field(
        raw=extras.get("countdown_voice_sec", extras.get("countdownVoice")),
        field_name="countdown_voice_sec",
        index=index,
    )
    min_duration_sec = _parse_optional_int_field(
        raw=extras.get("min_duration_sec", extras.get("minDuration")),
        field_name="min_duration_sec",
        index=index,
    )
    instruction = extras.get("instruction")

    return ScheduleStep(
        id=step_id or make_step_id(),
        name=name or f"Step {index + 1}",
        duration_sec=duration_sec,
        rest_duration_sec=rest_duration_sec or 0,
        media=_build_media(
            kind_obj=media_kind_obj,
            url_obj=media_url_obj,
            hint_obj=media_hint_obj,
            index=index,
        ),
        sprint_count=max(1, sprint_count or 1),
        countdown_voice_sec=max(0, countdown_voice_sec if countdown_voice_sec is not None else 5),
        mute_background=bool(extras.get("mute_background", extras.get("muteBackground", False))),
        min_duration_sec=min_duration_sec,
        instruction=_clean_text(instruction),
    )


def _clean_text(raw: object) -> str | None:
    if raw is None:
        return None
    return str(raw).strip() or None


def _build_media(
    *, kind_obj: object, url_obj: object, hint_obj: object, index: int
) -> StepMedia | None:
    url = str(url_obj).strip() if url_obj is not None else ""
    if not url:
        return None
    kind = str(kind_obj).strip().lower() if kind_obj is not None else ""
    if kind not in MEDIA_KINDS:
        raise ScheduleParseError(
            f"Step {index + 1}: media kind must be one of {', '.join(MEDIA_KINDS)}"
        )
    return StepMedia(kind=kind, url=url, hint=_clean_text(hint_obj))  # type: ignore[arg-type]


def _build_schedule(
    *,
    schedule_id: str,
    title: str,
    owner_id: str | None,
    description: str | None,
    steps: list[ScheduleStep],
) -> Schedule:
    seen: set[str] = set()
    for i, step in enumerate(steps):
        if step.id in seen:
            raise ScheduleParseError(f"Step {i + 1}: duplicate id '{step.id}'")
        seen.add(step.id)
    return Schedule(
        id=schedule_id,
        title=title,
        steps=tuple(steps),
        owner_id=owner_id,
        description=description,
    )


def _parse_int_field(*, raw: object, field_name: str, index: int) -> int:
    if raw is None or isinstance(raw, bool):
        raise ScheduleParseError(f"Step {index + 1}: invalid {field_name}")
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise ScheduleParseError(f"Step {index + 1}: invalid {field_name}") from exc


def _parse_optional_int_field(
    *, raw: object, field_name: str, index: int
) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, str) and raw.strip() == "":
        return None
    return _parse_int_field(raw=raw, field_name=field_name, index=index)
