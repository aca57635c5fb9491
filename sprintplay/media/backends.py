"""Media backend interfaces and the terminal (logging-only) backend."""

from __future__ import annotations

import logging
from typing import Protocol

from sprintplay.schedule.model import StepMedia

logger = logging.getLogger(__name__)


class MediaHandle(Protocol):
    def play(self) -> None: ...

    def pause(self) -> None: ...

    def set_muted(self, muted: bool) -> None: ...

    def unload(self) -> None: ...


class MediaBackend(Protocol):
    async def load(self, media: StepMedia) -> MediaHandle: ...

    def announce(self, seconds_left: int) -> None: ...


class LoggingMediaHandle:
    def __init__(self, media: StepMedia) -> None:
        self.media = media
        self.playing = False
        self.muted = False
        self.unloaded = False

    def play(self) -> None:
        self.playing = True
        logger.info("Playing %s %s", self.media.kind, self.media.url)

    def pause(self) -> None:
        self.playing = False
        logger.info("Paused %s %s", self.media.kind, self.media.url)

    def set_muted(self, muted: bool) -> None:
        self.muted = muted
        logger.info("%s %s", "Muted" if muted else "Unmuted", self.media.url)

    def unload(self) -> None:
        if self.unloaded:
            return
        self.unloaded = True
        self.playing = False
        logger.info("Unloaded %s", self.media.url)


class LoggingMediaBackend:
    """Backend for headless playback: records media actions in the log."""

    async def load(self, media: StepMedia) -> LoggingMediaHandle:
        logger.info("Loading %s %s", media.kind, media.url)
        return LoggingMediaHandle(media)

    def announce(self, seconds_left: int) -> None:
        logger.info("Countdown: %d", seconds_left)
