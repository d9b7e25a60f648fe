"""Playback transport contract and synthesized clip resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

from ..services.synthesis import VoiceParams


@runtime_checkable
class PlaybackTransport(Protocol):
    """Audio element driven by a session.

    Transports only signal position changes and end of media; sessions
    build "stop at the end of this phrase" on top of ``on_position``.
    Listener callbacks may unsubscribe themselves, so implementations must
    iterate over a copy of their listeners.
    """

    @property
    def position(self) -> float: ...

    @property
    def duration(self) -> float: ...

    def load(self, source: Any) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, position: float) -> None: ...

    def set_rate(self, rate: float) -> None: ...

    def on_position(self, listener: Callable[[float], None]) -> Callable[[], None]: ...

    def on_ended(self, listener: Callable[[], None]) -> Callable[[], None]: ...


class Synthesizer(Protocol):
    async def synthesize(self, text: str, voice: VoiceParams) -> bytes: ...


@dataclass(slots=True)
class AudioClip:
    """Synthesized phrase audio owned by one session until released."""

    data: bytes
    text: str = ""
    mime_type: str = "audio/mpeg"
    released: bool = False

    def release(self) -> None:
        self.data = b""
        self.released = True


__all__ = ["AudioClip", "PlaybackTransport", "Synthesizer"]
