"""HTTP client for on-demand phrase synthesis."""

from __future__ import annotations

import base64
import binascii
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..errors import SynthesisFailure
from ..metrics import SYNTHESIS_COUNTER
from ..settings import PracticeSettings

LOGGER = logging.getLogger("voicecraft.synthesis")

SPEAKING_RATE_DEFAULT = 1.0
SPEAKING_RATE_MIN = 0.25
SPEAKING_RATE_MAX = 4.0
PITCH_DEFAULT = 0.0
PITCH_MIN = -20.0
PITCH_MAX = 20.0


def _clamped(value: Any, default: float, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return max(low, min(high, number))


@dataclass(slots=True, frozen=True)
class VoiceParams:
    voice_id: str = ""
    language_code: str = "en-US"
    speaking_rate: float = SPEAKING_RATE_DEFAULT
    pitch: float = PITCH_DEFAULT
    use_ssml: bool = False

    @classmethod
    def build(
        cls,
        voice_id: str = "",
        language_code: str = "en-US",
        speaking_rate: Any = None,
        pitch: Any = None,
        use_ssml: bool = False,
    ) -> "VoiceParams":
        """Coerce loosely typed UI values; missing or bad numbers use defaults."""
        return cls(
            voice_id=voice_id or "",
            language_code=language_code or "en-US",
            speaking_rate=_clamped(
                speaking_rate, SPEAKING_RATE_DEFAULT, SPEAKING_RATE_MIN, SPEAKING_RATE_MAX
            ),
            pitch=_clamped(pitch, PITCH_DEFAULT, PITCH_MIN, PITCH_MAX),
            use_ssml=bool(use_ssml),
        )

    @classmethod
    def from_settings(cls, settings: PracticeSettings) -> "VoiceParams":
        return cls.build(
            settings.voice_id,
            settings.language_code,
            settings.speaking_rate,
            settings.pitch,
        )

    def with_rate(self, speaking_rate: Any) -> "VoiceParams":
        return VoiceParams.build(
            self.voice_id, self.language_code, speaking_rate, self.pitch, self.use_ssml
        )

    def to_payload(self, text: str) -> Dict[str, Any]:
        return {
            "language": self.language_code,
            "voice": self.voice_id,
            "speakingRate": self.speaking_rate,
            "pitch": self.pitch,
            "customText": text,
            "useSsml": self.use_ssml,
        }


class SpeechClient:
    """Calls the app's ``/test-voice`` endpoint and returns MP3 bytes."""

    def __init__(
        self,
        settings: PracticeSettings,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    def _headers(self) -> dict:
        if not self.settings.api_key:
            raise SynthesisFailure("API key missing")
        return {"X-API-Key": self.settings.api_key}

    def _url(self, path: str) -> str:
        base = self.settings.server_url.rstrip("/")
        if not base:
            raise SynthesisFailure("Server URL missing")
        return f"{base}{path}"

    async def synthesize(self, text: str, voice: VoiceParams) -> bytes:
        try:
            audio = await self._request_audio(text, voice)
        except SynthesisFailure as exc:
            SYNTHESIS_COUNTER.labels(status="error").inc()
            LOGGER.warning("Synthesis failed for %r: %s", text[:40], exc)
            raise
        SYNTHESIS_COUNTER.labels(status="success").inc()
        return audio

    async def _request_audio(self, text: str, voice: VoiceParams) -> bytes:
        text = (text or "").strip()
        if not text:
            raise SynthesisFailure("Nothing to synthesize")
        try:
            resp = await self._client.post(
                self._url("/test-voice"),
                headers=self._headers(),
                json=voice.to_payload(text),
            )
        except httpx.HTTPError as exc:
            raise SynthesisFailure(f"Synthesis request failed: {exc}") from exc
        if resp.status_code in (401, 403):
            raise SynthesisFailure("Unauthorized: check API key")
        if resp.status_code >= 400:
            raise SynthesisFailure(self._error_message(resp))
        try:
            data = resp.json()
        except ValueError as exc:
            raise SynthesisFailure(f"Invalid response: {exc}") from exc
        if not isinstance(data, dict) or not data.get("success"):
            detail = data.get("error") if isinstance(data, dict) else None
            raise SynthesisFailure(detail or "Unknown error")
        try:
            audio = base64.b64decode(data.get("audioContent") or "", validate=True)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise SynthesisFailure(f"Invalid audio payload: {exc}") from exc
        if not audio:
            raise SynthesisFailure("Empty audio payload")
        return audio

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return f"Server error: {resp.status_code}"

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["SpeechClient", "VoiceParams"]
