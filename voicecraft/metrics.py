"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Summary, generate_latest

SYNTHESIS_COUNTER = Counter(
    "voicecraft_synthesis_requests_total",
    "On-demand phrase synthesis requests",
    labelnames=("status",),
)

SILENCE_SCAN_COUNTER = Counter(
    "voicecraft_silence_scans_total",
    "Silence scans over practice audio",
    labelnames=("status",),
)

SILENCE_SCAN_DURATION = Summary(
    "voicecraft_silence_scan_seconds",
    "Time spent scanning a buffer for silence",
)

TIMING_PLAN_COUNTER = Counter(
    "voicecraft_timing_plans_total",
    "Phrase timing plans built for a practice track",
    labelnames=("source",),
)

DICTATION_ANSWER_COUNTER = Counter(
    "voicecraft_dictation_answers_total",
    "Dictation answers by outcome",
    labelnames=("result",),
)


def render_latest() -> tuple[bytes, str]:
    """Return the current exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
