"""Pytest configuration helpers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from voicecraft.errors import SynthesisFailure  # noqa: E402
from voicecraft.practice.scheduler import Scheduler  # noqa: E402
from voicecraft.practice.transport import AudioClip  # noqa: E402


class ManualScheduler(Scheduler):
    """Scheduler with a hand-driven clock; tasks run only on ``run_tasks``."""

    def __init__(self) -> None:
        super().__init__()
        self.clock = 0.0
        self._timers: list[list[Any]] = []
        self._tasks: list[list[Any]] = []
        self._seq = 0

    def now(self) -> float:
        return self.clock

    def _call_later(self, delay: float, callback: Callable[[], None]) -> Callable[[], None]:
        self._seq += 1
        entry = [self.clock + delay, self._seq, callback, False]
        self._timers.append(entry)

        def cancel() -> None:
            entry[3] = True

        return cancel

    def _start_task(self, awaitable: Awaitable[Any], callback) -> Callable[[], None]:
        entry = [awaitable, callback, False]
        self._tasks.append(entry)

        def cancel() -> None:
            if not entry[2]:
                entry[2] = True
                close = getattr(awaitable, "close", None)
                if close is not None:
                    close()

        return cancel

    def advance(self, seconds: float) -> None:
        target = self.clock + seconds
        while True:
            due = [t for t in self._timers if not t[3] and t[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda t: (t[0], t[1]))
            self._timers.remove(entry)
            self.clock = max(self.clock, entry[0])
            entry[2]()
        self._timers = [t for t in self._timers if not t[3]]
        self.clock = target

    def run_tasks(self) -> None:
        while True:
            live = [t for t in self._tasks if not t[2]]
            self._tasks = []
            if not live:
                return
            for entry in live:
                if entry[2]:
                    continue
                entry[2] = True
                try:
                    result, error = asyncio.run(_await(entry[0])), None
                except Exception as exc:  # noqa: BLE001
                    result, error = None, exc
                entry[1](result, error)


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class FakeTransport:
    """In-memory audio element; tests move the playhead with ``advance``."""

    def __init__(self, track_duration: float = 0.0, clip_duration: float = 1.0) -> None:
        self.track_duration = track_duration
        self.clip_duration = clip_duration
        self.source: Any = None
        self.position = 0.0
        self.duration = track_duration
        self.playing = False
        self.rate = 1.0
        self.loads: list[Any] = []
        self.seeks: list[float] = []
        self._position_listeners: list[Callable[[float], None]] = []
        self._ended_listeners: list[Callable[[], None]] = []

    def load(self, source: Any) -> None:
        self.source = source
        self.loads.append(source)
        self.position = 0.0
        self.playing = False
        if isinstance(source, AudioClip):
            self.duration = self.clip_duration
        else:
            self.duration = self.track_duration

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek(self, position: float) -> None:
        self.position = position
        self.seeks.append(position)

    def set_rate(self, rate: float) -> None:
        self.rate = rate

    def on_position(self, listener: Callable[[float], None]) -> Callable[[], None]:
        self._position_listeners.append(listener)
        return lambda: self._drop(self._position_listeners, listener)

    def on_ended(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._ended_listeners.append(listener)
        return lambda: self._drop(self._ended_listeners, listener)

    def advance(self, seconds: float) -> None:
        if not self.playing:
            return
        self.position += seconds
        ended = bool(self.duration) and self.position >= self.duration
        if ended:
            self.position = self.duration
        for listener in list(self._position_listeners):
            listener(self.position)
        if ended and self.playing:
            self.playing = False
            for listener in list(self._ended_listeners):
                listener()

    @property
    def listener_count(self) -> int:
        return len(self._position_listeners) + len(self._ended_listeners)

    @staticmethod
    def _drop(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)


class FakeSynthesizer:
    def __init__(self, failures: set[str] | None = None) -> None:
        self.failures = failures or set()
        self.calls: list[tuple[str, Any]] = []

    async def synthesize(self, text: str, voice) -> bytes:
        self.calls.append((text, voice))
        if text in self.failures:
            raise SynthesisFailure(f"backend refused {text!r}")
        return f"audio:{text}".encode("utf-8")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(track_duration=4.0, clip_duration=1.0)


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def make_synthesizer() -> Callable[..., FakeSynthesizer]:
    return FakeSynthesizer
