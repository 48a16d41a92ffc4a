from __future__ import annotations  # Provider route configuration derived from settings

from typing import Dict, Optional

from pydantic import BaseModel, Field

from .settings import Settings, settings as default_settings

_AUDIO_MIME_TYPES: Dict[str, str] = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/pcm",
}


class ProviderConfig(BaseModel):  # OpenAI-compatible endpoint configuration
    api_key: str = ""
    base_url: str
    chat_model: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(ge=1)
    tts_model: str
    tts_voice: str
    tts_response_format: str = "mp3"
    transcription_model: str
    timeout_s: float = Field(ge=0.1)
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return bool(self.api_key.strip())

    @property
    def speech_mime_type(self) -> str:
        return _AUDIO_MIME_TYPES.get(self.tts_response_format.lower(), "audio/mpeg")

    def url(self, endpoint: str) -> str:
        return self.base_url.rstrip("/") + endpoint


def provider_config(source: Optional[Settings] = None) -> ProviderConfig:  # Build provider route from settings
    cfg = source or default_settings
    return ProviderConfig(
        api_key=cfg.OPENAI_API_KEY,
        base_url=cfg.OPENAI_BASE_URL,
        chat_model=cfg.CHAT_MODEL,
        temperature=cfg.CHAT_TEMPERATURE,
        max_tokens=cfg.CHAT_MAX_TOKENS,
        tts_model=cfg.TTS_MODEL,
        tts_voice=cfg.TTS_VOICE,
        tts_response_format=cfg.TTS_RESPONSE_FORMAT,
        transcription_model=cfg.TRANSCRIPTION_MODEL,
        timeout_s=cfg.PROVIDER_TIMEOUT_S,
    )
