"""Turn silence scans (or character counts) into per-phrase timings."""

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import NoGapsFound
from .types import PhraseTiming, SilenceInterval, SilenceScan

LOGGER = logging.getLogger("voicecraft.timing")

# Silence starting this close to 0 is pre-roll, not a phrase boundary.
PRE_ROLL_WINDOW = 0.1


def split_pre_roll(intervals: Sequence[SilenceInterval]) -> tuple[float, list[SilenceInterval]]:
    """Return the audio start offset and the gaps that separate phrases."""
    audio_start = 0.0
    gaps: list[SilenceInterval] = []
    for interval in intervals:
        if interval.start < PRE_ROLL_WINDOW:
            audio_start = max(audio_start, interval.end)
        else:
            gaps.append(interval)
    return audio_start, gaps


def reconcile_timings(scan: SilenceScan, phrase_count: int) -> list[PhraseTiming]:
    """Map the scan's gaps onto ``phrase_count`` phrases in order.

    Phrase ``i`` ends where gap ``i`` starts and phrase ``i + 1`` starts
    where that gap ends. The last phrase, and any phrase left without a
    gap, runs to the end of the track. Raises NoGapsFound when the scan has
    nothing but pre-roll.
    """
    if phrase_count <= 0:
        return []
    audio_start, gaps = split_pre_roll(scan.intervals)
    if not gaps:
        raise NoGapsFound(
            f"No inter-phrase silence in {scan.total_duration:.2f}s of audio"
        )
    if audio_start > 0:
        LOGGER.debug("Audio starts after leading silence at %.2fs", audio_start)
    total = scan.total_duration
    timings: list[PhraseTiming] = []
    current = audio_start
    for idx in range(phrase_count):
        is_last = idx == phrase_count - 1
        if idx < len(gaps) and not is_last:
            gap = gaps[idx]
            timing = PhraseTiming.span(current, gap.start)
            current = gap.end
        else:
            timing = PhraseTiming.span(current, max(current, total))
        LOGGER.debug("  phrase %d: %.2fs - %.2fs", idx + 1, timing.start, timing.end)
        timings.append(timing)
    if len(gaps) < phrase_count - 1:
        LOGGER.info(
            "Only %d gap(s) for %d phrases; trailing phrases share the track end",
            len(gaps),
            phrase_count,
        )
    return timings


def estimate_timings(phrases: Sequence[str], total_duration: float) -> list[PhraseTiming]:
    """Lay phrases back to back with durations proportional to their length.

    This is an approximation used when the track has no usable pauses.
    Returns an empty list when there is nothing to time.
    """
    lengths = [len(phrase) for phrase in phrases]
    total_chars = sum(lengths)
    if not lengths or total_chars == 0 or total_duration <= 0:
        return []
    LOGGER.debug(
        "Estimating timings from %d characters over %.2fs", total_chars, total_duration
    )
    timings: list[PhraseTiming] = []
    current = 0.0
    for idx, length in enumerate(lengths):
        if idx == len(lengths) - 1:
            end = float(total_duration)
        else:
            end = current + total_duration * length / total_chars
        timings.append(PhraseTiming.span(current, end))
        current = end
    return timings


__all__ = ["PRE_ROLL_WINDOW", "estimate_timings", "reconcile_timings", "split_pre_roll"]
