"""Prepare an existing audio track for phrase-by-phrase practice."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from ..audio.silence_detector import SilenceDetector
from ..audio.timing import estimate_timings, reconcile_timings, split_pre_roll
from ..audio.types import PhraseTiming, SilenceScan
from ..errors import DecodeFailure, EmptyInput, NoGapsFound
from ..metrics import TIMING_PLAN_COUNTER
from ..settings import get_settings

LOGGER = logging.getLogger("voicecraft.track")

FULL_AUDIO_LABEL = "Full Audio"


class TimingSource(str, Enum):
    SILENCE = "silence"
    ESTIMATE = "estimate"
    WHOLE_TRACK = "whole_track"


@dataclass(slots=True)
class PracticeTrack:
    """A track the transport can load, plus where each phrase sits in it."""

    source: Any
    phrases: List[str]
    timings: List[PhraseTiming] = field(default_factory=list)
    timing_source: TimingSource = TimingSource.WHOLE_TRACK
    duration: float = 0.0

    @property
    def estimated(self) -> bool:
        return self.timing_source is not TimingSource.SILENCE


def phrase_labels(count: int) -> list[str]:
    return [f"Phrase {idx}" for idx in range(1, count + 1)]


def prepare_track(
    source: Any,
    phrases: Sequence[str] = (),
    *,
    duration: Optional[float] = None,
    detector: Optional[SilenceDetector] = None,
    audio: Any = None,
) -> PracticeTrack:
    """Build phrase timings for ``source``.

    ``audio`` is what gets decoded when it differs from what the transport
    loads (for example bytes behind a URL); ``duration`` is the transport's
    own figure, used when decoding fails. Without text the phrases are
    labelled from the detected pauses.
    """
    detector = detector or SilenceDetector.from_settings(get_settings())
    texts = [phrase.strip() for phrase in phrases if phrase and phrase.strip()]
    audio_only = not texts

    scan: Optional[SilenceScan] = None
    try:
        scan = detector.scan_source(audio if audio is not None else source)
    except DecodeFailure as exc:
        LOGGER.warning("Silence detection failed, falling back: %s", exc)

    total = scan.total_duration if scan else float(duration or 0.0)
    if total <= 0:
        raise EmptyInput("Practice audio has no duration")

    if scan is not None:
        try:
            if audio_only:
                _, gaps = split_pre_roll(scan.intervals)
                texts = phrase_labels(len(gaps) + 1)
            timings = reconcile_timings(scan, len(texts))
            return _planned(source, texts, timings, TimingSource.SILENCE, total)
        except NoGapsFound:
            LOGGER.info("No pauses found in %.2fs track; estimating phrase timings", total)
            if audio_only:
                texts = []

    if texts:
        timings = estimate_timings(texts, total)
        if timings:
            return _planned(source, texts, timings, TimingSource.ESTIMATE, total)

    whole = [" ".join(texts)] if texts else [FULL_AUDIO_LABEL]
    return _planned(
        source, whole, [PhraseTiming.span(0.0, total)], TimingSource.WHOLE_TRACK, total
    )


async def analyze_track(
    source: Any,
    phrases: Sequence[str] = (),
    *,
    duration: Optional[float] = None,
    detector: Optional[SilenceDetector] = None,
    audio: Any = None,
) -> PracticeTrack:
    """``prepare_track`` off the event loop; decoding is CPU bound."""
    return await asyncio.to_thread(
        prepare_track, source, phrases, duration=duration, detector=detector, audio=audio
    )


def _planned(
    source: Any,
    phrases: list[str],
    timings: list[PhraseTiming],
    timing_source: TimingSource,
    total: float,
) -> PracticeTrack:
    TIMING_PLAN_COUNTER.labels(source=timing_source.value).inc()
    LOGGER.info(
        "Prepared %d phrase(s) over %.2fs from %s", len(phrases), total, timing_source.value
    )
    return PracticeTrack(
        source=source,
        phrases=phrases,
        timings=timings,
        timing_source=timing_source,
        duration=total,
    )


__all__ = [
    "FULL_AUDIO_LABEL",
    "PracticeTrack",
    "TimingSource",
    "analyze_track",
    "phrase_labels",
    "prepare_track",
]
