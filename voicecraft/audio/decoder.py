"""Decode practice audio into mono float samples."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
import soundfile as sf

from ..errors import DecodeFailure
from .types import DecodedAudio

LOGGER = logging.getLogger("voicecraft.decoder")

AudioSource = Union[bytes, bytearray, str, Path, BinaryIO]


def decode_audio(source: AudioSource) -> DecodedAudio:
    """Read ``source`` (raw bytes, a path or a binary file) as float32, first channel only.

    Raises DecodeFailure when the data is not a readable audio stream, so
    callers can tell a failed analysis apart from a track without pauses.
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise DecodeFailure("Audio payload is empty")
        handle: Union[str, BinaryIO] = io.BytesIO(bytes(source))
    elif isinstance(source, Path):
        handle = str(source)
    else:
        handle = source
    try:
        audio, sample_rate = sf.read(handle, dtype="float32")
    except (RuntimeError, TypeError, ValueError, OSError) as exc:
        LOGGER.warning("Failed to decode practice audio: %s", exc)
        raise DecodeFailure(f"Could not decode audio: {exc}") from exc
    if audio.ndim > 1:
        audio = audio[:, 0]
    if sample_rate <= 0:
        raise DecodeFailure(f"Invalid sample rate {sample_rate}")
    return DecodedAudio(samples=np.asarray(audio, dtype=np.float32), sample_rate=int(sample_rate))


__all__ = ["AudioSource", "decode_audio"]
