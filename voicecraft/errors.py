"""Exception types shared by the practice core."""

from __future__ import annotations


class VoiceCraftError(Exception):
    pass


class DecodeFailure(VoiceCraftError):
    """Audio could not be read; callers fall back to estimation."""


class SynthesisFailure(VoiceCraftError):
    """The speech backend did not return usable audio."""


class NoGapsFound(VoiceCraftError):
    """A silence scan had no usable inter-phrase gaps."""


class EmptyInput(VoiceCraftError):
    """A session was asked to start without phrases or audio."""


__all__ = [
    "DecodeFailure",
    "EmptyInput",
    "NoGapsFound",
    "SynthesisFailure",
    "VoiceCraftError",
]
