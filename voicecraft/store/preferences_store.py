"""Persistent learner preferences (voice, speed, gap and replay choices)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from ..settings import (
    DEFAULT_GAP_MULTIPLIER,
    DEFAULT_LOOP_COUNT,
    DEFAULT_MAX_REPLAYS,
    DEFAULT_PLAYBACK_SPEED,
    PracticeSettings,
)

LOGGER = logging.getLogger("voicecraft.preferences")


@dataclass(slots=True)
class PracticePreferences:
    voice_id: str = ""
    language_code: str = "en-US"
    speaking_rate: float = 1.0
    pitch: float = 0.0
    playback_speed: float = DEFAULT_PLAYBACK_SPEED
    gap_multiplier: float = DEFAULT_GAP_MULTIPLIER
    loop_count: int = DEFAULT_LOOP_COUNT
    max_replays: int = DEFAULT_MAX_REPLAYS


class PreferencesStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._chosen: set[str] = set()
        self._prefs = self._load()

    def _load(self) -> PracticePreferences:
        prefs = PracticePreferences()
        if not self.path.exists():
            return prefs
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable preferences at %s: %s", self.path, exc)
            return prefs
        if not isinstance(raw, dict):
            return prefs
        for item in fields(prefs):
            if item.name in raw and self._assign(prefs, item.name, raw[item.name]):
                self._chosen.add(item.name)
        return prefs

    def get(self) -> PracticePreferences:
        return self._prefs

    def update(self, **kwargs) -> PracticePreferences:
        for key, value in kwargs.items():
            if not hasattr(self._prefs, key):
                continue
            if self._assign(self._prefs, key, value):
                self._chosen.add(key)
        self._persist()
        return self._prefs

    def apply(self, settings: PracticeSettings) -> PracticeSettings:
        """Return ``settings`` with the preferences the learner set layered on top."""
        return settings.model_copy(update=self._chosen_values())

    def _chosen_values(self) -> dict:
        values = asdict(self._prefs)
        return {key: values[key] for key in sorted(self._chosen)}

    def _persist(self) -> None:
        self.path.write_text(json.dumps(self._chosen_values()), encoding="utf-8")

    @staticmethod
    def _assign(prefs: PracticePreferences, key: str, value) -> bool:
        current = getattr(prefs, key)
        try:
            if isinstance(current, float):
                setattr(prefs, key, float(value))
            elif isinstance(current, int):
                setattr(prefs, key, int(value))
            else:
                setattr(prefs, key, str(value or ""))
        except (TypeError, ValueError):
            LOGGER.debug("Keeping %s=%r; bad value %r", key, current, value)
            return False
        return True
