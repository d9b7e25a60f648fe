"""Dictation practice: hear a phrase, type it, get a similarity score."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from ..audio.types import PhraseTiming
from ..errors import EmptyInput, SynthesisFailure
from ..metrics import DICTATION_ANSWER_COUNTER
from ..services.synthesis import VoiceParams
from ..settings import (
    DEFAULT_MAX_REPLAYS,
    DEFAULT_PLAYBACK_SPEED,
    PracticeSettings,
    get_settings,
)
from .scheduler import Scheduler
from .scoring import ScoreResult, TextScorer, round_half_up
from .track import PracticeTrack
from .transport import AudioClip, PlaybackTransport, Synthesizer

LOGGER = logging.getLogger("voicecraft.dictation")

PARTIAL_SCORE = 70


class DictationPhase(str, Enum):
    IDLE = "idle"
    AWAITING_ANSWER = "awaiting_answer"
    SHOWING_RESULT = "showing_result"
    COMPLETE = "complete"


@dataclass(slots=True)
class DictationConfig:
    max_replays: int = DEFAULT_MAX_REPLAYS
    playback_speed: float = DEFAULT_PLAYBACK_SPEED

    def __post_init__(self) -> None:
        try:
            replays = int(self.max_replays)
        except (TypeError, ValueError):
            replays = DEFAULT_MAX_REPLAYS
        self.max_replays = replays if replays >= 0 else DEFAULT_MAX_REPLAYS
        try:
            speed = float(self.playback_speed)
        except (TypeError, ValueError):
            speed = DEFAULT_PLAYBACK_SPEED
        if math.isnan(speed) or speed <= 0:
            speed = DEFAULT_PLAYBACK_SPEED
        self.playback_speed = speed

    @classmethod
    def from_settings(cls, settings: PracticeSettings) -> "DictationConfig":
        return cls(max_replays=settings.max_replays, playback_speed=settings.playback_speed)


@dataclass(slots=True)
class DictationState:
    phrases: List[str]
    current_index: int = 0
    replays_left: int = 0
    scores: List[int] = field(default_factory=list)
    total_correct: int = 0
    timings: List[PhraseTiming] = field(default_factory=list)
    uses_source_audio: bool = False
    phase: DictationPhase = DictationPhase.IDLE
    last_result: Optional[ScoreResult] = None
    last_error: Optional[str] = None
    is_loading: bool = False

    @property
    def current_phrase(self) -> Optional[str]:
        if 0 <= self.current_index < len(self.phrases):
            return self.phrases[self.current_index]
        return None


@dataclass(slots=True, frozen=True)
class DictationSummary:
    average_score: int
    total_correct: int
    phrase_count: int
    accuracy: float


Listener = Callable[[str, DictationState], None]


class DictationSession:
    def __init__(
        self,
        phrases: Optional[Sequence[str]],
        transport: PlaybackTransport,
        scheduler: Scheduler,
        *,
        track: Optional[PracticeTrack] = None,
        synthesizer: Optional[Synthesizer] = None,
        voice: Optional[VoiceParams] = None,
        config: Optional[DictationConfig] = None,
        scorer: Optional[TextScorer] = None,
    ) -> None:
        if track is not None:
            phrases = track.phrases
        cleaned = [phrase.strip() for phrase in (phrases or []) if phrase and phrase.strip()]
        uses_source = track is not None and len(track.timings) == len(cleaned) and bool(cleaned)
        if not uses_source and synthesizer is None:
            raise ValueError("A synthesizer is required when no timed track is given")
        self.transport = transport
        self.config = config or DictationConfig()
        self.scorer = scorer or TextScorer.from_settings(get_settings())
        self.state = DictationState(
            phrases=cleaned,
            replays_left=self.config.max_replays,
            timings=list(track.timings) if uses_source and track else [],
            uses_source_audio=uses_source,
        )
        self._scheduler = scheduler
        self._track = track if uses_source else None
        self._synthesizer = synthesizer
        self._voice = voice or VoiceParams()
        self._clip: Optional[AudioClip] = None
        self._listeners: list[Listener] = []

    def start(self) -> None:
        if not self.state.phrases:
            raise EmptyInput("No phrases to practice")
        self._halt()
        if self._track is not None:
            self.transport.load(self._track.source)
        self._release_clip()
        self.state.current_index = 0
        self.state.scores = []
        self.state.total_correct = 0
        self._enter_phrase()
        LOGGER.info("Dictation started with %d phrase(s)", len(self.state.phrases))

    def restart(self) -> None:
        self.start()

    def play(self) -> bool:
        """Play the current phrase, spending one replay. False when nothing played."""
        if self.state.phase is not DictationPhase.AWAITING_ANSWER:
            return False
        if self.state.is_loading:
            LOGGER.debug("Phrase %d is still loading", self.state.current_index + 1)
            return False
        if self.state.replays_left <= 0:
            LOGGER.debug("Replay budget exhausted for phrase %d", self.state.current_index + 1)
            return False
        self.state.replays_left -= 1
        self.state.last_error = None
        self._play_phrase()
        self._emit("played")
        return True

    def replay_reference(self) -> bool:
        """Hear the phrase again for comparison without touching the budget."""
        if self.state.is_loading:
            return False
        if self.state.uses_source_audio:
            if self.state.current_phrase is None:
                return False
            self._play_window(self.state.timings[self.state.current_index])
            return True
        if self._clip is None or self._clip.released:
            return False
        self._halt()
        self.transport.load(self._clip)
        self.transport.set_rate(1.0)
        self.transport.seek(0.0)
        self.transport.play()
        return True

    def submit(self, answer: str) -> Optional[ScoreResult]:
        if self.state.phase is not DictationPhase.AWAITING_ANSWER:
            return None
        reference = self.state.phrases[self.state.current_index]
        result = self.scorer.score(answer or "", reference)
        self._halt()
        self.state.is_loading = False
        self.state.scores.append(result.score)
        if result.score == 100:
            self.state.total_correct += 1
        self.state.last_result = result
        self.state.phase = DictationPhase.SHOWING_RESULT
        DICTATION_ANSWER_COUNTER.labels(result=_bucket(result.score)).inc()
        LOGGER.debug("Phrase %d scored %d", self.state.current_index + 1, result.score)
        self._emit("answered")
        return result

    def skip(self) -> None:
        if self.state.phase is not DictationPhase.AWAITING_ANSWER:
            return
        self._halt()
        self.state.scores.append(0)
        self.state.is_loading = False
        self.state.last_result = None
        DICTATION_ANSWER_COUNTER.labels(result="skipped").inc()
        self._emit("skipped")
        self._advance()

    def next(self) -> bool:
        if self.state.phase is not DictationPhase.SHOWING_RESULT:
            return False
        self._advance()
        return True

    def stop(self) -> DictationSummary:
        summary = self.summary()
        self._halt()
        self._release_clip()
        self.state.current_index = 0
        self.state.scores = []
        self.state.total_correct = 0
        self.state.replays_left = self.config.max_replays
        self.state.last_result = None
        self.state.last_error = None
        self.state.is_loading = False
        self.state.phase = DictationPhase.IDLE
        self._emit("stopped")
        return summary

    def summary(self) -> DictationSummary:
        scores = self.state.scores
        count = len(self.state.phrases)
        average = round_half_up(sum(scores) / len(scores)) if scores else 0
        accuracy = self.state.total_correct / count if count else 0.0
        return DictationSummary(
            average_score=average,
            total_correct=self.state.total_correct,
            phrase_count=count,
            accuracy=accuracy,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def is_complete(self) -> bool:
        return self.state.phase is DictationPhase.COMPLETE

    def _enter_phrase(self) -> None:
        self.state.replays_left = self.config.max_replays
        self.state.last_result = None
        self.state.last_error = None
        self.state.is_loading = False
        self.state.phase = DictationPhase.AWAITING_ANSWER
        self._emit("phrase_ready")

    def _advance(self) -> None:
        self._halt()
        self._release_clip()
        self.state.current_index += 1
        if self.state.current_index >= len(self.state.phrases):
            self.state.current_index = len(self.state.phrases)
            self.state.phase = DictationPhase.COMPLETE
            summary = self.summary()
            LOGGER.info(
                "Dictation complete: average %d, %d/%d correct",
                summary.average_score,
                summary.total_correct,
                summary.phrase_count,
            )
            self._emit("completed")
            return
        self._enter_phrase()

    def _play_phrase(self) -> None:
        index = self.state.current_index
        if self.state.uses_source_audio:
            self._play_window(self.state.timings[index])
            return
        self._halt()
        assert self._synthesizer is not None
        self.state.is_loading = True
        voice = self._voice.with_rate(self.config.playback_speed)
        self._scheduler.run(
            self._synthesizer.synthesize(self.state.phrases[index], voice),
            self._on_clip_ready,
            label=f"dictation-synthesize-{index}",
        )

    def _play_window(self, timing: PhraseTiming) -> None:
        self._halt()
        self.transport.seek(timing.start)
        self.transport.set_rate(self.config.playback_speed)
        self._scheduler.wait_until(
            self.transport.pause,
            events=[
                (self.transport.on_position, lambda position: position >= timing.end),
                (self.transport.on_ended, None),
            ],
            label="dictation-phrase-end",
        )
        self.transport.play()

    def _on_clip_ready(self, audio: Any, error: Optional[BaseException]) -> None:
        self.state.is_loading = False
        if error is not None:
            if not isinstance(error, SynthesisFailure):
                LOGGER.error("Unexpected %s from synthesizer", type(error).__name__, exc_info=error)
            # Failed attempts do not cost a replay.
            self.state.replays_left = min(self.config.max_replays, self.state.replays_left + 1)
            self.state.last_error = str(error)
            LOGGER.warning("Could not play phrase %d: %s", self.state.current_index + 1, error)
            self._emit("synthesis_failed")
            return
        self._release_clip()
        self._clip = AudioClip(data=audio, text=self.state.phrases[self.state.current_index])
        self.transport.load(self._clip)
        self.transport.set_rate(1.0)
        self.transport.play()

    def _release_clip(self) -> None:
        if self._clip is not None:
            self._clip.release()
            self._clip = None

    def _halt(self) -> None:
        self._scheduler.cancel_all()
        self.transport.pause()

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.state)


def _bucket(score: int) -> str:
    if score == 100:
        return "perfect"
    if score >= PARTIAL_SCORE:
        return "partial"
    return "incorrect"


__all__ = [
    "DictationConfig",
    "DictationPhase",
    "DictationSession",
    "DictationState",
    "DictationSummary",
]
