import asyncio
import io
import math

import numpy as np
import pytest
import soundfile as sf

from voicecraft.errors import EmptyInput
from voicecraft.practice.track import (
    FULL_AUDIO_LABEL,
    TimingSource,
    analyze_track,
    prepare_track,
)

SAMPLE_RATE = 8000


def _wav(*parts: tuple[str, float]) -> bytes:
    chunks = []
    for kind, seconds in parts:
        length = int(round(seconds * SAMPLE_RATE))
        if kind == "tone":
            t = np.arange(length)
            chunks.append(0.5 * np.sin(2 * math.pi * 220 * t / SAMPLE_RATE))
        else:
            chunks.append(np.zeros(length))
    buffer = io.BytesIO()
    sf.write(buffer, np.concatenate(chunks).astype(np.float32), SAMPLE_RATE, format="WAV")
    return buffer.getvalue()


def test_timings_come_from_detected_pauses():
    audio = _wav(("tone", 1.0), ("silence", 0.5), ("tone", 1.0))

    track = prepare_track(audio, ["Hello there.", "General Kenobi."])

    assert track.timing_source is TimingSource.SILENCE
    assert track.estimated is False
    assert track.duration == pytest.approx(2.5)
    assert track.timings[0].start == 0.0
    assert track.timings[0].end == pytest.approx(1.0, abs=0.011)
    assert track.timings[1].start == pytest.approx(1.5, abs=0.011)
    assert track.timings[1].end == pytest.approx(2.5)


def test_audio_only_track_labels_detected_phrases():
    audio = _wav(
        ("silence", 0.05),
        ("tone", 0.5),
        ("silence", 0.4),
        ("tone", 0.5),
        ("silence", 0.4),
        ("tone", 0.5),
    )

    track = prepare_track(audio)

    assert track.phrases == ["Phrase 1", "Phrase 2", "Phrase 3"]
    assert len(track.timings) == 3
    assert track.timing_source is TimingSource.SILENCE


def test_pre_roll_only_falls_back_to_estimate():
    audio = _wav(("silence", 0.5), ("tone", 2.0))

    track = prepare_track(audio, ["Short.", "A longer phrase."])

    assert track.timing_source is TimingSource.ESTIMATE
    assert track.estimated is True
    assert track.timings[-1].end == pytest.approx(2.5)


def test_undecodable_audio_uses_transport_duration():
    track = prepare_track("https://example.com/a.mp3", ["One.", "Two three."], duration=10.0, audio=b"junk")

    assert track.timing_source is TimingSource.ESTIMATE
    assert track.source == "https://example.com/a.mp3"
    assert sum(t.duration for t in track.timings) == pytest.approx(10.0)


def test_untimed_audio_without_text_is_one_phrase():
    track = prepare_track(b"junk", duration=7.5)

    assert track.phrases == [FULL_AUDIO_LABEL]
    assert track.timing_source is TimingSource.WHOLE_TRACK
    assert (track.timings[0].start, track.timings[0].end) == (0.0, 7.5)


def test_zero_duration_is_rejected():
    with pytest.raises(EmptyInput):
        prepare_track(b"junk", ["One."])


def test_analyze_track_runs_off_loop():
    audio = _wav(("tone", 1.0), ("silence", 0.5), ("tone", 1.0))

    track = asyncio.run(analyze_track(audio, ["A.", "B."]))

    assert len(track.timings) == 2
