"""Upload checks applied before audio reaches the transcription provider."""
from __future__ import annotations

from typing import Iterable, Optional


class InvalidAudioError(ValueError):
    pass


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lower-case media type with parameters such as ``;codecs=opus`` removed."""

    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_audio(
    audio_bytes: Optional[bytes],
    content_type: Optional[str],
    *,
    supported_formats: Iterable[str],
    max_size_bytes: int,
) -> None:
    if not audio_bytes:
        raise InvalidAudioError("Audio file is required and cannot be empty")

    allowed = [fmt.strip().lower() for fmt in supported_formats if fmt.strip()]
    media_type = normalize_content_type(content_type)
    if not media_type or media_type not in allowed:
        raise InvalidAudioError(
            f"Unsupported audio format: {content_type}. Supported formats: {', '.join(allowed)}"
        )

    if len(audio_bytes) > max_size_bytes:
        raise InvalidAudioError(
            f"Audio file size exceeds maximum allowed size of {max_size_bytes // 1024 // 1024}MB"
        )


__all__ = ["InvalidAudioError", "normalize_content_type", "validate_audio"]
