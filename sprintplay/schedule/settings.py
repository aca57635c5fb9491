"""Local persistence for the default rest duration preference."""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_REST_DURATION_SEC = 10
REST_DURATION_KEY = "rest_duration_sec"


def _default_settings_path() -> Path:
    return Path.home() / ".sprintplay" / "settings.json"


def load_rest_duration(path: Path | None = None) -> int:
    target = path or _default_settings_path()
    if not target.exists():
        return DEFAULT_REST_DURATION_SEC

    try:
        payload = json.loads(target.read_text(encoding="utf-8"))
        value = int(payload[REST_DURATION_KEY])
    except (OSError, ValueError, TypeError, KeyError) as exc:
        logger.warning("Failed to load rest duration setting from %s: %s", target, exc)
        return DEFAULT_REST_DURATION_SEC
    return max(0, value)


def save_rest_duration(seconds: int, path: Path | None = None) -> Path:
    target = path or _default_settings_path()
    target.parent.mkdir(parents=True, exist_ok=True)

    payload: dict[str, object] = {}
    if target.exists():
        try:
            loaded = json.loads(target.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                payload = loaded
        except ValueError:
            logger.warning("Overwriting unreadable settings file %s", target)

    payload[REST_DURATION_KEY] = max(0, int(seconds))
    target.write_text(json.dumps(payload, ensure_ascii=True, indent=2), encoding="utf-8")
    return target
