"""Dataclasses shared across audio helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np


@dataclass(slots=True, frozen=True)
class SilenceInterval:
    """Quiet span of a track (seconds from the start of the buffer)."""

    start: float
    end: float
    midpoint: float

    @classmethod
    def between(cls, start: float, end: float) -> "SilenceInterval":
        return cls(start=start, end=end, midpoint=start + (end - start) / 2)

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(slots=True)
class SilenceScan:
    """Result of one silence scan; owned by whoever requested it."""

    intervals: List[SilenceInterval] = field(default_factory=list)
    total_duration: float = 0.0


@dataclass(slots=True, frozen=True)
class PhraseTiming:
    """Playback window of one phrase inside a full track."""

    start: float
    end: float
    duration: float

    @classmethod
    def span(cls, start: float, end: float) -> "PhraseTiming":
        return cls(start=start, end=end, duration=end - start)


@dataclass(slots=True)
class DecodedAudio:
    """Mono float samples plus the rate they were decoded at."""

    samples: np.ndarray
    sample_rate: int

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / float(self.sample_rate)
