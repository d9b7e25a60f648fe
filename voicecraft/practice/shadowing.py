"""Shadowing practice: play a phrase, leave a timed gap to repeat it, advance."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, List, Optional, Sequence

from ..audio.types import PhraseTiming
from ..errors import EmptyInput, SynthesisFailure
from ..services.synthesis import VoiceParams
from ..settings import (
    DEFAULT_GAP_MULTIPLIER,
    DEFAULT_LOOP_COUNT,
    DEFAULT_PLAYBACK_SPEED,
    PracticeSettings,
)
from .scheduler import Scheduler
from .scoring import round_half_up
from .track import PracticeTrack
from .transport import AudioClip, PlaybackTransport, Synthesizer

LOGGER = logging.getLogger("voicecraft.shadowing")

# Gap basis when the transport cannot report a clip's length.
FALLBACK_CLIP_SECONDS = 2.0


class ShadowingPhase(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    GAP = "gap"
    COMPLETE = "complete"


@dataclass(slots=True)
class ShadowingConfig:
    gap_multiplier: float = DEFAULT_GAP_MULTIPLIER
    loop_count: int = DEFAULT_LOOP_COUNT
    playback_speed: float = DEFAULT_PLAYBACK_SPEED

    def __post_init__(self) -> None:
        self.gap_multiplier = _non_negative(self.gap_multiplier, DEFAULT_GAP_MULTIPLIER)
        try:
            loops = int(self.loop_count)
        except (TypeError, ValueError):
            loops = DEFAULT_LOOP_COUNT
        self.loop_count = loops if loops >= 0 else DEFAULT_LOOP_COUNT
        speed = _non_negative(self.playback_speed, DEFAULT_PLAYBACK_SPEED)
        self.playback_speed = speed if speed > 0 else DEFAULT_PLAYBACK_SPEED

    @classmethod
    def from_settings(cls, settings: PracticeSettings) -> "ShadowingConfig":
        return cls(
            gap_multiplier=settings.gap_multiplier,
            loop_count=settings.loop_count,
            playback_speed=settings.playback_speed,
        )


@dataclass(slots=True)
class ShadowingState:
    phrases: List[str]
    current_index: int = 0
    is_playing: bool = False
    is_paused: bool = False
    loop_iteration: int = 0
    timings: List[PhraseTiming] = field(default_factory=list)
    uses_source_audio: bool = False
    timings_estimated: bool = False
    phrases_completed: int = 0
    phase: ShadowingPhase = ShadowingPhase.IDLE


@dataclass(slots=True, frozen=True)
class ShadowingSummary:
    phrases_attempted: int
    phrases_completed: int
    completion_percent: int
    elapsed_seconds: int


Listener = Callable[[str, ShadowingState], None]


class ShadowingSession:
    """One shadowing run over a fixed list of phrases.

    With a prepared track the session seeks inside the shared audio and
    stops at each phrase boundary; otherwise every phrase is synthesized on
    first use and cached until ``stop``. All state changes go through the
    methods below and all waits go through the session's scheduler.
    """

    def __init__(
        self,
        phrases: Optional[Sequence[str]],
        transport: PlaybackTransport,
        scheduler: Scheduler,
        *,
        track: Optional[PracticeTrack] = None,
        synthesizer: Optional[Synthesizer] = None,
        voice: Optional[VoiceParams] = None,
        config: Optional[ShadowingConfig] = None,
    ) -> None:
        if track is not None:
            phrases = track.phrases
        cleaned = [phrase.strip() for phrase in (phrases or []) if phrase and phrase.strip()]
        uses_source = track is not None and len(track.timings) == len(cleaned) and bool(cleaned)
        if not uses_source and track is not None:
            LOGGER.warning("Track timings do not cover the phrases; synthesizing instead")
        if not uses_source and synthesizer is None:
            raise ValueError("A synthesizer is required when no timed track is given")
        self.transport = transport
        self.config = config or ShadowingConfig()
        self.state = ShadowingState(
            phrases=cleaned,
            timings=list(track.timings) if uses_source and track else [],
            uses_source_audio=uses_source,
            timings_estimated=bool(uses_source and track and track.estimated),
        )
        self._scheduler = scheduler
        self._track = track if uses_source else None
        self._synthesizer = synthesizer
        self._voice = voice or VoiceParams()
        self._clips: dict[int, AudioClip] = {}
        self._listeners: list[Listener] = []
        self._armed = False
        self._gap_deadline: Optional[float] = None
        self._gap_remaining: Optional[float] = None
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    # -- public controls -------------------------------------------------

    def start(self) -> None:
        if not self.state.phrases:
            raise EmptyInput("No phrases to practice")
        self._halt()
        if self._track is not None:
            self.transport.load(self._track.source)
        self.state.current_index = 0
        self.state.loop_iteration = 0
        self.state.phrases_completed = 0
        self.state.is_paused = False
        self._started_at = self._scheduler.now()
        self._finished_at = None
        LOGGER.info(
            "Shadowing %d phrase(s) (%s)",
            len(self.state.phrases),
            "source audio" if self.state.uses_source_audio else "on-demand synthesis",
        )
        self._play_current()

    def toggle(self) -> None:
        """Single play/pause control."""
        if not self.state.is_playing:
            if self._started_at is None or self.state.current_index >= len(self.state.phrases):
                self.start()
            else:
                self._play_current()
        elif self.state.is_paused:
            self.resume()
        else:
            self.pause()

    def pause(self) -> bool:
        if not self.state.is_playing or self.state.is_paused:
            return False
        if self.state.phase is ShadowingPhase.GAP and self._gap_deadline is not None:
            self._gap_remaining = max(0.0, self._gap_deadline - self._scheduler.now())
        self._halt()
        self.state.is_paused = True
        self._emit("paused")
        return True

    def resume(self) -> bool:
        if not self.state.is_paused:
            return False
        self.state.is_paused = False
        self._emit("resumed")
        if self.state.phase is ShadowingPhase.GAP:
            remaining = self._gap_remaining or 0.0
            self._gap_remaining = None
            self._schedule_gap(remaining)
        elif self._armed:
            self._arm_phrase_end()
            self.transport.play()
        else:
            self._play_current()
        return True

    def jump_to(self, index: int) -> bool:
        if not 0 <= index < len(self.state.phrases):
            LOGGER.debug("Ignoring jump to phrase %d of %d", index, len(self.state.phrases))
            return False
        self._halt()
        self._armed = False
        self._gap_deadline = None
        self._gap_remaining = None
        self.state.current_index = index
        self.state.loop_iteration = 0
        if self.state.is_playing and not self.state.is_paused:
            self._play_current()
        elif self.state.is_paused:
            self.state.phase = ShadowingPhase.PLAYING
        elif self.state.phase is ShadowingPhase.COMPLETE:
            self.state.phase = ShadowingPhase.IDLE
        return True

    def next(self) -> bool:
        if self.state.current_index < len(self.state.phrases) - 1:
            return self.jump_to(self.state.current_index + 1)
        return False

    def previous(self) -> bool:
        if self.state.current_index > 0:
            return self.jump_to(self.state.current_index - 1)
        return False

    def restart(self) -> bool:
        return self.jump_to(0)

    def stop(self) -> ShadowingSummary:
        summary = self.summary()
        self._halt()
        for clip in self._clips.values():
            clip.release()
        self._clips.clear()
        self._armed = False
        self._gap_deadline = None
        self._gap_remaining = None
        self._started_at = None
        self._finished_at = None
        self.state.is_playing = False
        self.state.is_paused = False
        self.state.current_index = 0
        self.state.loop_iteration = 0
        self.state.phrases_completed = 0
        self.state.phase = ShadowingPhase.IDLE
        self._emit("stopped")
        return summary

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def summary(self) -> ShadowingSummary:
        attempted = len(self.state.phrases)
        completed = self.state.phrases_completed
        percent = round_half_up(completed / attempted * 100) if attempted else 0
        elapsed = 0
        if self._started_at is not None:
            end = self._finished_at if self._finished_at is not None else self._scheduler.now()
            elapsed = round_half_up(max(0.0, end - self._started_at))
        return ShadowingSummary(
            phrases_attempted=attempted,
            phrases_completed=completed,
            completion_percent=percent,
            elapsed_seconds=elapsed,
        )

    @property
    def gap_remaining(self) -> Optional[float]:
        """Seconds left in the current gap, for countdown displays."""
        if self.state.phase is not ShadowingPhase.GAP:
            return None
        if self.state.is_paused:
            return self._gap_remaining
        if self._gap_deadline is None:
            return None
        return max(0.0, self._gap_deadline - self._scheduler.now())

    @property
    def is_complete(self) -> bool:
        return self.state.phase is ShadowingPhase.COMPLETE

    # -- transitions -----------------------------------------------------

    def _play_current(self) -> None:
        self._halt()
        self._armed = False
        self._gap_deadline = None
        self._gap_remaining = None
        index = self.state.current_index
        if index >= len(self.state.phrases):
            self._complete()
            return
        self.state.phase = ShadowingPhase.PLAYING
        self.state.is_playing = True
        self._emit("phrase_started")

        if self.state.uses_source_audio:
            timing = self.state.timings[index]
            self.transport.seek(timing.start)
            self.transport.set_rate(self.config.playback_speed)
            self._armed = True
            self._arm_phrase_end()
            self.transport.play()
            LOGGER.debug(
                "Playing phrase %d from %.2fs to %.2fs", index + 1, timing.start, timing.end
            )
            return

        clip = self._clips.get(index)
        if clip is not None:
            self._play_clip(clip)
            return
        assert self._synthesizer is not None
        voice = self._voice.with_rate(self.config.playback_speed)
        self._scheduler.run(
            self._synthesizer.synthesize(self.state.phrases[index], voice),
            partial(self._on_clip_ready, index),
            label=f"synthesize-{index}",
        )

    def _on_clip_ready(self, index: int, audio: Any, error: Optional[BaseException]) -> None:
        if error is not None:
            if not isinstance(error, SynthesisFailure):
                LOGGER.error("Unexpected %s from synthesizer", type(error).__name__, exc_info=error)
            LOGGER.warning("Skipping phrase %d: %s", index + 1, error)
            self._emit("phrase_skipped")
            self.state.loop_iteration = 0
            self.state.current_index = index + 1
            self._play_current()
            return
        clip = AudioClip(data=audio, text=self.state.phrases[index])
        self._clips[index] = clip
        self._play_clip(clip)

    def _play_clip(self, clip: AudioClip) -> None:
        self.transport.load(clip)
        self.transport.set_rate(1.0)
        self._armed = True
        self._arm_phrase_end()
        self.transport.play()

    def _arm_phrase_end(self) -> None:
        index = self.state.current_index
        if self.state.uses_source_audio:
            timing = self.state.timings[index]
            self._scheduler.wait_until(
                partial(self._on_phrase_end, timing.duration),
                events=[
                    (self.transport.on_position, lambda position: position >= timing.end),
                    (self.transport.on_ended, None),
                ],
                label=f"phrase-end-{index}",
            )
        else:
            self._scheduler.wait_until(
                lambda: self._on_phrase_end(self._clip_seconds()),
                events=[(self.transport.on_ended, None)],
                label=f"clip-end-{index}",
            )

    def _on_phrase_end(self, phrase_seconds: float) -> None:
        self.transport.pause()
        self._armed = False
        if not self.state.is_playing or self.state.is_paused:
            return
        self.state.phase = ShadowingPhase.GAP
        self._schedule_gap(phrase_seconds * self.config.gap_multiplier)
        self._emit("gap_started")

    def _schedule_gap(self, seconds: float) -> None:
        self._gap_deadline = self._scheduler.now() + seconds
        self._scheduler.after(seconds, self._on_gap_elapsed, label="gap")

    def _on_gap_elapsed(self) -> None:
        self._gap_deadline = None
        self.state.loop_iteration += 1
        loops = self.config.loop_count
        if loops == 0 or self.state.loop_iteration < loops:
            self._play_current()
            return
        self.state.loop_iteration = 0
        self.state.phrases_completed += 1
        self._emit("phrase_completed")
        self.state.current_index += 1
        self._play_current()

    def _complete(self) -> None:
        self._halt()
        self.state.current_index = len(self.state.phrases)
        self.state.is_playing = False
        self.state.is_paused = False
        self.state.phase = ShadowingPhase.COMPLETE
        self._finished_at = self._scheduler.now()
        LOGGER.info(
            "Shadowing complete: %d/%d phrase(s)",
            self.state.phrases_completed,
            len(self.state.phrases),
        )
        self._emit("completed")

    def _halt(self) -> None:
        self._scheduler.cancel_all()
        self.transport.pause()

    def _clip_seconds(self) -> float:
        duration = self.transport.duration
        if not duration or not math.isfinite(duration) or duration <= 0:
            return FALLBACK_CLIP_SECONDS
        return float(duration)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.state)


def _non_negative(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or number < 0:
        return default
    return number


__all__ = [
    "ShadowingConfig",
    "ShadowingPhase",
    "ShadowingSession",
    "ShadowingState",
    "ShadowingSummary",
]
