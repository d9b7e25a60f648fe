"""Audio analysis helpers (decode, silence scan, phrase timing)."""

from .decoder import decode_audio
from .silence_detector import SilenceDetector, detect_silence
from .timing import estimate_timings, reconcile_timings
from .types import DecodedAudio, PhraseTiming, SilenceInterval, SilenceScan

__all__ = [
    "DecodedAudio",
    "PhraseTiming",
    "SilenceDetector",
    "SilenceInterval",
    "SilenceScan",
    "decode_audio",
    "detect_silence",
    "estimate_timings",
    "reconcile_timings",
]
