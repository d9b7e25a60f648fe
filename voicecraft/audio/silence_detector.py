"""Energy-based silence detection for pause-separated speech."""

from __future__ import annotations

import logging
import time

import numpy as np

from ..errors import DecodeFailure
from ..metrics import SILENCE_SCAN_COUNTER, SILENCE_SCAN_DURATION
from ..settings import DEFAULT_MIN_SILENCE, DEFAULT_SILENCE_THRESHOLD, PracticeSettings
from .decoder import AudioSource, decode_audio
from .types import SilenceInterval, SilenceScan

LOGGER = logging.getLogger("voicecraft.silence")


class SilenceDetector:
    """Find pauses long enough to separate phrases in a mono buffer."""

    def __init__(
        self,
        *,
        threshold: float = DEFAULT_SILENCE_THRESHOLD,
        min_silence: float = DEFAULT_MIN_SILENCE,
        window_ms: int = 10,
    ) -> None:
        self.threshold = float(threshold)
        self.min_silence = max(0.0, float(min_silence))
        self.window_ms = max(1, int(window_ms))

    @classmethod
    def from_settings(cls, settings: PracticeSettings) -> "SilenceDetector":
        return cls(
            threshold=settings.silence_threshold,
            min_silence=settings.min_silence_duration,
        )

    def scan(self, samples: np.ndarray, sample_rate: int) -> SilenceScan:
        if sample_rate <= 0:
            SILENCE_SCAN_COUNTER.labels(status="error").inc()
            raise DecodeFailure(f"Invalid sample rate {sample_rate}")
        started = time.perf_counter()
        mono = self._ensure_mono(samples)
        total_duration = len(mono) / float(sample_rate)
        window = self._window_samples(sample_rate)
        levels = self._window_rms(mono, window)
        intervals = self._collect_intervals(levels, window, sample_rate, total_duration)
        SILENCE_SCAN_DURATION.observe(time.perf_counter() - started)
        SILENCE_SCAN_COUNTER.labels(status="gaps" if intervals else "no_gaps").inc()
        LOGGER.debug(
            "Scanned %.2fs at %d Hz: %d silence interval(s)",
            total_duration,
            sample_rate,
            len(intervals),
        )
        for idx, interval in enumerate(intervals, start=1):
            LOGGER.debug("  gap %d: %.2fs - %.2fs", idx, interval.start, interval.end)
        return SilenceScan(intervals=intervals, total_duration=total_duration)

    def scan_source(self, source: AudioSource) -> SilenceScan:
        """Decode ``source`` and scan it; DecodeFailure propagates."""
        try:
            decoded = decode_audio(source)
        except DecodeFailure:
            SILENCE_SCAN_COUNTER.labels(status="error").inc()
            raise
        return self.scan(decoded.samples, decoded.sample_rate)

    def _collect_intervals(
        self,
        levels: np.ndarray,
        window: int,
        sample_rate: int,
        total_duration: float,
    ) -> list[SilenceInterval]:
        intervals: list[SilenceInterval] = []
        silence_start: int | None = None
        for idx, rms in enumerate(levels):
            if rms < self.threshold:
                if silence_start is None:
                    silence_start = idx
            elif silence_start is not None:
                self._emit(intervals, silence_start * window, idx * window, sample_rate)
                silence_start = None
        if silence_start is not None:
            start = silence_start * window / float(sample_rate)
            if total_duration - start >= self.min_silence and total_duration > start:
                intervals.append(SilenceInterval.between(start, total_duration))
        return intervals

    def _emit(
        self,
        intervals: list[SilenceInterval],
        start_sample: int,
        end_sample: int,
        sample_rate: int,
    ) -> None:
        duration = (end_sample - start_sample) / float(sample_rate)
        if duration < self.min_silence or duration <= 0:
            return
        intervals.append(
            SilenceInterval.between(start_sample / float(sample_rate), end_sample / float(sample_rate))
        )

    def _window_rms(self, samples: np.ndarray, window: int) -> np.ndarray:
        if samples.size == 0:
            return np.array([], dtype=np.float64)
        data = samples.astype(np.float64, copy=False)
        full = len(data) // window
        levels = []
        if full:
            frames = data[: full * window].reshape(full, window)
            levels.append(np.sqrt(np.mean(frames**2, axis=1)))
        tail = data[full * window :]
        if tail.size:
            levels.append(np.array([np.sqrt(np.mean(tail**2))]))
        return np.concatenate(levels)

    def _window_samples(self, sample_rate: int) -> int:
        return max(1, int(sample_rate * (self.window_ms / 1000.0)))

    def _ensure_mono(self, samples: np.ndarray) -> np.ndarray:
        data = np.asarray(samples, dtype=np.float32)
        if data.ndim == 1:
            return data
        return data[:, 0]


def detect_silence(
    samples: np.ndarray,
    sample_rate: int,
    threshold: float = DEFAULT_SILENCE_THRESHOLD,
    min_silence: float = DEFAULT_MIN_SILENCE,
) -> SilenceScan:
    return SilenceDetector(threshold=threshold, min_silence=min_silence).scan(samples, sample_rate)


__all__ = ["SilenceDetector", "detect_silence"]
