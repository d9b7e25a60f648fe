"""Practice sessions and the pieces they are built from."""

from .dictation import DictationConfig, DictationPhase, DictationSession, DictationSummary
from .phrases import prepare_phrases, split_into_phrases, strip_comments
from .scheduler import LoopScheduler, Scheduler
from .scoring import DiffKind, DiffToken, ScoreResult, TextScorer, score_answer
from .shadowing import ShadowingConfig, ShadowingPhase, ShadowingSession, ShadowingSummary
from .track import PracticeTrack, TimingSource, analyze_track, prepare_track
from .transport import AudioClip, PlaybackTransport, Synthesizer

__all__ = [
    "AudioClip",
    "DictationConfig",
    "DictationPhase",
    "DictationSession",
    "DictationSummary",
    "DiffKind",
    "DiffToken",
    "LoopScheduler",
    "PlaybackTransport",
    "PracticeTrack",
    "Scheduler",
    "ScoreResult",
    "ShadowingConfig",
    "ShadowingPhase",
    "ShadowingSession",
    "ShadowingSummary",
    "Synthesizer",
    "TextScorer",
    "TimingSource",
    "analyze_track",
    "prepare_phrases",
    "prepare_track",
    "score_answer",
    "split_into_phrases",
    "strip_comments",
]
