from __future__ import annotations

import asyncio

from sprintplay.core.engine import PlaybackEngine
from sprintplay.media.coordinator import MediaCoordinator
from sprintplay.schedule.model import Schedule, ScheduleStep, StepMedia


class FakeHandle:
    def __init__(self, media: StepMedia) -> None:
        self.media = media
        self.actions: list[str] = []
        self.unloaded = False

    def play(self) -> None:
        self.actions.append("play")

    def pause(self) -> None:
        self.actions.append("pause")

    def set_muted(self, muted: bool) -> None:
        self.actions.append(f"muted={muted}")

    def unload(self) -> None:
        self.unloaded = True
        self.actions.append("unload")


class FakeBackend:
    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.announced: list[int] = []
        self.failing_urls: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}

    async def load(self, media: StepMedia) -> FakeHandle:
        gate = self.gates.get(media.url)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                # Players that cannot abort an in-flight load still resolve it.
                pass
        if media.url in self.failing_urls:
            raise OSError("network down")
        handle = FakeHandle(media)
        self.handles.append(handle)
        return handle

    def announce(self, seconds_left: int) -> None:
        self.announced.append(seconds_left)


def _media_schedule() -> Schedule:
    return Schedule(
        id="media",
        title="Media",
        steps=(
            ScheduleStep(
                id="a",
                name="Squats",
                duration_sec=5,
                media=StepMedia("video", "https://cdn.example/a.mp4"),
                countdown_voice_sec=2,
            ),
            ScheduleStep(
                id="b",
                name="Plank",
                duration_sec=5,
                media=StepMedia("audio", "https://cdn.example/b.mp3"),
            ),
            ScheduleStep(id="c", name="Rest pose", duration_sec=5),
        ),
    )


def test_loads_plays_and_pauses_with_phase() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=3)
        coordinator.attach()
        await coordinator.wait_loaded()

        assert coordinator.status == "ready"
        assert len(backend.handles) == 1
        handle = backend.handles[0]
        assert handle.actions == ["muted=False", "play"]

        engine.pause()
        engine.resume()
        engine.set_muted(True)
        assert handle.actions[-3:] == ["pause", "play", "muted=True"]

        engine.skip()
        assert engine.get_snapshot().phase_name == "rest"
        # Entering rest pauses the resource and clears the mute flag.
        assert handle.actions[-2:] == ["pause", "muted=False"]
        assert handle.unloaded is False

        engine.skip()
        assert handle.unloaded is True
        await coordinator.wait_loaded()
        assert len(backend.handles) == 2
        assert coordinator.loaded_media is not None
        assert coordinator.loaded_media.url.endswith("b.mp3")

        await coordinator.close()
        assert backend.handles[1].unloaded is True
        assert coordinator.status == "none"

    asyncio.run(_run())


def test_late_load_is_discarded_after_step_change() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        gate = asyncio.Event()
        backend.gates["https://cdn.example/a.mp4"] = gate
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=0)
        coordinator.attach()
        await asyncio.sleep(0)
        assert coordinator.status == "loading"

        engine.skip()
        gate.set()
        await asyncio.sleep(0.01)
        await coordinator.wait_loaded()

        stale = [h for h in backend.handles if h.media.url.endswith("a.mp4")]
        assert len(stale) == 1
        assert stale[0].unloaded is True
        assert "play" not in stale[0].actions
        assert coordinator.loaded_media is not None
        assert coordinator.loaded_media.url.endswith("b.mp3")

        await coordinator.close()

    asyncio.run(_run())


def test_load_failure_surfaces_no_media_and_keeps_timer_going() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        backend.failing_urls.add("https://cdn.example/a.mp4")
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=0)
        coordinator.attach()
        await coordinator.wait_loaded()

        assert coordinator.status == "unavailable"
        assert coordinator.display_media is None
        assert engine.tick().remaining_sec == 4

        engine.skip()
        await coordinator.wait_loaded()
        assert coordinator.status == "ready"

        await coordinator.close()

    asyncio.run(_run())


def test_step_without_media_leaves_nothing_loaded() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=0)
        coordinator.attach()
        await coordinator.wait_loaded()

        engine.skip()
        await coordinator.wait_loaded()
        engine.skip()
        await coordinator.wait_loaded()

        assert engine.get_snapshot().step_index == 2
        assert coordinator.loaded_media is None
        assert coordinator.display_media is None
        assert all(h.unloaded for h in backend.handles)

        await coordinator.close()

    asyncio.run(_run())


def test_repeated_snapshot_is_ignored() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=0)
        coordinator.attach()
        await coordinator.wait_loaded()
        for _ in range(3):
            engine.tick()
        handle = backend.handles[0]
        actions = list(handle.actions)
        assert backend.announced == [2]

        coordinator.on_snapshot(engine.get_snapshot())
        coordinator.on_snapshot(engine.get_snapshot())

        assert handle.actions == actions
        assert backend.announced == [2]
        assert len(backend.handles) == 1
        await coordinator.close()

    asyncio.run(_run())


def test_countdown_cues_reach_backend() -> None:
    async def _run() -> None:
        engine = PlaybackEngine()
        backend = FakeBackend()
        coordinator = MediaCoordinator(engine, backend)
        engine.initialize(_media_schedule(), rest_duration_sec=0)
        coordinator.attach()
        await coordinator.wait_loaded()

        for _ in range(4):
            engine.tick()

        assert backend.announced == [2, 1]
        await coordinator.close()

    asyncio.run(_run())
