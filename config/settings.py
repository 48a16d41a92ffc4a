"""Application settings and configuration management."""
from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[1]


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com"
    CHAT_MODEL: str = "gpt-4o"
    CHAT_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    CHAT_MAX_TOKENS: int = Field(default=500, ge=1)
    TTS_MODEL: str = "tts-1"
    TTS_VOICE: str = "alloy"
    TTS_RESPONSE_FORMAT: str = "mp3"
    TRANSCRIPTION_MODEL: str = "whisper-1"
    PROVIDER_TIMEOUT_S: float = Field(default=60.0, ge=0.1)

    APP_ACCESS_TOKEN: str = ""
    APP_VERSION: str = "1.0.0"
    SESSION_SECRET: str = "change-me-in-production"
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    AUDIO_SUPPORTED_FORMATS: str = (
        "audio/webm,audio/wav,audio/x-wav,audio/mp3,audio/mpeg,audio/mp4,audio/ogg,audio/m4a"
    )
    AUDIO_MAX_SIZE_BYTES: int = Field(default=26214400, ge=1)

    HISTORY_MAX_TURNS: int = Field(default=20, ge=2)
    SESSION_IDLE_TTL_S: float = Field(default=6 * 3600, gt=0)
    SESSION_SWEEP_INTERVAL_S: float = Field(default=300, ge=0)

    PERSONA_PROMPT_PATH: str = str(ROOT_DIR / "prompts" / "job-candidate-system-prompt.txt")
    QUESTIONS_PATH: str = str(ROOT_DIR / "prompts" / "common-interview-questions.txt")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)

    @field_validator("HISTORY_MAX_TURNS")
    @classmethod
    def _even_history_cap(cls, value: int) -> int:
        if value % 2:
            raise ValueError("HISTORY_MAX_TURNS must be even so whole exchanges are kept")
        return value

    @property
    def supported_audio_formats(self) -> List[str]:
        return [item.lower() for item in _split_csv(self.AUDIO_SUPPORTED_FORMATS)]

    @property
    def cors_origins(self) -> List[str]:
        return _split_csv(self.CORS_ALLOWED_ORIGINS)

    @property
    def auth_enabled(self) -> bool:
        return bool(self.APP_ACCESS_TOKEN.strip())


settings = Settings()
