from __future__ import annotations  # Provider request gateway module

import logging
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

import httpx

from config import ProviderConfig


logger = logging.getLogger(__name__)  # Module logger setup

TRANSCRIPTIONS_ENDPOINT = "/v1/audio/transcriptions"
CHAT_ENDPOINT = "/v1/chat/completions"
SPEECH_ENDPOINT = "/v1/audio/speech"
DEFAULT_AUDIO_CONTENT_TYPE = "audio/webm"
_ERROR_BODY_LIMIT = 500


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    @property
    def content(self) -> bytes: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, **kwargs: Any) -> HttpResponse: ...


class ChatTurn(Protocol):  # Anything carrying role/content, e.g. ConversationTurn
    role: str
    content: str


class ProviderGatewayError(RuntimeError):  # Base gateway error
    pass


class ProviderNotConfiguredError(ProviderGatewayError):  # Credentials missing at construction
    pass


class ProviderTransportError(ProviderGatewayError):  # Timeout or connection failure
    pass


class ProviderResponseError(ProviderGatewayError):  # Non-success status or malformed payload
    def __init__(self, message: str, *, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProviderGateway:  # Transcription, chat and speech calls against one provider route
    def __init__(self, cfg: ProviderConfig, *, client: Optional[HttpClient] = None) -> None:
        if not cfg.configured:
            raise ProviderNotConfiguredError(
                "OPENAI_API_KEY is not configured. Set it in the environment or a .env file."
            )
        self._cfg = cfg
        self._owns_client = client is None
        self._client: HttpClient = client if client is not None else httpx.Client(timeout=cfg.timeout_s)

    @property
    def config(self) -> ProviderConfig:
        return self._cfg

    def close(self) -> None:  # Release the default transport
        if self._owns_client:
            close_cb = getattr(self._client, "close", None)
            if callable(close_cb):
                close_cb()

    def transcribe(self, audio_bytes: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """Send recorded audio to the speech-to-text endpoint and return the transcript."""

        name = filename or "recording.webm"
        logger.info(
            "Transcription request model=%s file=%s bytes=%d",
            self._cfg.transcription_model,
            name,
            len(audio_bytes),
        )
        response = self._post(
            TRANSCRIPTIONS_ENDPOINT,
            files={"file": (name, audio_bytes, content_type or DEFAULT_AUDIO_CONTENT_TYPE)},
            data={"model": self._cfg.transcription_model},
        )
        data = self._json(response, "Transcription")
        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ProviderResponseError("Transcription response missing 'text' field")
        logger.info("Transcription done chars=%d", len(text))
        return text

    def chat_complete(self, system_prompt: str, user_message: str, history_turns: Sequence[ChatTurn] = ()) -> str:
        """Run a chat completion over ``[system, *history, user]`` and return the reply text."""

        messages = build_messages(system_prompt, user_message, history_turns)
        payload: Dict[str, Any] = {
            "model": self._cfg.chat_model,
            "messages": messages,
            "temperature": self._cfg.temperature,
            "max_tokens": self._cfg.max_tokens,
        }
        preview = _preview(user_message)
        logger.info(
            "Chat request model=%s history_turns=%d preview=%s",
            self._cfg.chat_model,
            len(history_turns),
            preview,
        )
        response = self._post(CHAT_ENDPOINT, json=payload, headers={"Content-Type": "application/json"})
        content = _extract_content(self._json(response, "Chat completion"))
        logger.info("Chat request done model=%s chars=%d", self._cfg.chat_model, len(content))
        return content

    def synthesize_speech(self, text: str) -> Tuple[bytes, str]:
        """Convert ``text`` to audio; returns the raw bytes and their MIME type."""

        if text is None or not text.strip():
            raise ValueError("Text cannot be null or empty")
        payload = {
            "model": self._cfg.tts_model,
            "input": text,
            "voice": self._cfg.tts_voice,
            "response_format": self._cfg.tts_response_format,
        }
        logger.info("Speech request model=%s voice=%s chars=%d", self._cfg.tts_model, self._cfg.tts_voice, len(text))
        response = self._post(SPEECH_ENDPOINT, json=payload, headers={"Content-Type": "application/json"})
        audio = response.content
        logger.info("Speech request done bytes=%d", len(audio))
        return audio, self._cfg.speech_mime_type

    def _post(self, endpoint: str, *, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> HttpResponse:
        merged = {"Authorization": f"Bearer {self._cfg.api_key}"}
        merged.update(self._cfg.extra_headers)
        if headers:
            merged.update(headers)
        url = self._cfg.url(endpoint)
        try:
            response = self._client.post(url, headers=merged, timeout=self._cfg.timeout_s, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error("Provider timeout endpoint=%s: %s", endpoint, exc)
            raise ProviderTransportError(f"Provider request timed out after {self._cfg.timeout_s}s") from exc
        except httpx.HTTPError as exc:
            logger.error("Provider transport failure endpoint=%s: %s", endpoint, exc)
            raise ProviderTransportError(f"Provider transport failed: {exc}") from exc
        if response.status_code >= 400:
            body = _truncate(_safe_text(response))
            logger.error("Provider error status=%s endpoint=%s", response.status_code, endpoint)
            raise ProviderResponseError(
                f"Provider returned status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )
        return response

    @staticmethod
    def _json(response: HttpResponse, label: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s payload was not JSON: %s", label, exc)
            raise ProviderResponseError(f"{label} payload was not JSON") from exc


def build_messages(system_prompt: str, user_message: str, history_turns: Sequence[ChatTurn] = ()) -> list[Dict[str, str]]:  # Order: system, history, user
    messages: list[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
    for turn in history_turns:
        messages.append({"role": str(turn.role), "content": turn.content})
    messages.append({"role": "user", "content": user_message})
    return messages


def _extract_content(data: Any) -> str:  # Extract message content from chat response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
    raise ProviderResponseError("Chat completion response missing content")


def _safe_text(response: HttpResponse) -> str:
    try:
        return response.text or ""
    except (UnicodeDecodeError, AttributeError):
        return ""


def _truncate(text: str) -> str:
    text = " ".join(text.split())
    if len(text) > _ERROR_BODY_LIMIT:
        return text[: _ERROR_BODY_LIMIT - 3] + "..."
    return text


def _preview(text: str) -> str:  # Build preview string for logging
    stripped = (text or "").strip()
    first = stripped.splitlines()[0] if stripped else ""
    if len(first) > 80:
        return first[:77] + "..."
    return first
