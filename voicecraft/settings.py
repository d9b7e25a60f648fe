"""Practice settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field

DEFAULT_GAP_MULTIPLIER = 1.5
DEFAULT_LOOP_COUNT = 1
DEFAULT_MAX_REPLAYS = 3
DEFAULT_PLAYBACK_SPEED = 1.0
DEFAULT_SILENCE_THRESHOLD = 0.01
DEFAULT_MIN_SILENCE = 0.3
DEFAULT_CLOSE_CREDIT = 0.5
DEFAULT_TYPO_DISTANCE = 2


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes"}


class PracticeSettings(BaseModel):
    app_name: str = Field(default="VoiceCraft Practice")
    server_url: str = Field(default=os.getenv("VOICECRAFT_SERVER_URL", "http://localhost:3000"))
    api_key: str = Field(default=os.getenv("VOICECRAFT_API_KEY", ""))
    request_timeout: float = Field(default=_env_float("VOICECRAFT_REQUEST_TIMEOUT", 60.0))
    voice_id: str = Field(default=os.getenv("VOICECRAFT_VOICE", ""))
    language_code: str = Field(default=os.getenv("VOICECRAFT_LANGUAGE", "en-US"))
    speaking_rate: float = Field(default=_env_float("VOICECRAFT_SPEAKING_RATE", 1.0))
    pitch: float = Field(default=_env_float("VOICECRAFT_PITCH", 0.0))
    playback_speed: float = Field(
        default=_env_float("VOICECRAFT_PLAYBACK_SPEED", DEFAULT_PLAYBACK_SPEED)
    )
    gap_multiplier: float = Field(
        default=_env_float("VOICECRAFT_GAP_MULTIPLIER", DEFAULT_GAP_MULTIPLIER)
    )
    loop_count: int = Field(default=_env_int("VOICECRAFT_LOOP_COUNT", DEFAULT_LOOP_COUNT))
    max_replays: int = Field(default=_env_int("VOICECRAFT_MAX_REPLAYS", DEFAULT_MAX_REPLAYS))
    silence_threshold: float = Field(
        default=_env_float("VOICECRAFT_SILENCE_THRESHOLD", DEFAULT_SILENCE_THRESHOLD)
    )
    min_silence_duration: float = Field(
        default=_env_float("VOICECRAFT_MIN_SILENCE", DEFAULT_MIN_SILENCE)
    )
    close_credit: float = Field(default=_env_float("VOICECRAFT_CLOSE_CREDIT", DEFAULT_CLOSE_CREDIT))
    max_typo_distance: int = Field(
        default=_env_int("VOICECRAFT_TYPO_DISTANCE", DEFAULT_TYPO_DISTANCE)
    )
    strip_comments: bool = Field(default=_env_flag("VOICECRAFT_STRIP_COMMENTS"))


@lru_cache()
def get_settings() -> PracticeSettings:
    return PracticeSettings()
