"""Interview pipeline: transcription, answer generation and speech synthesis."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Optional

from config import Settings, provider_config, settings as default_settings
from observability import log_event, span
from provider_gateway import HttpClient, ProviderGateway, ProviderGatewayError

from .answer_generator import AnswerGenerationError, AnswerGenerator
from .history import SessionHistoryStore
from .prompts import PromptLibrary

logger = logging.getLogger(__name__)

Stage = Literal["transcription", "generation", "synthesis"]


@dataclass(frozen=True)
class PipelineResult:
    transcript: Optional[str]
    answer_text: str
    audio_bytes: bytes
    audio_format: str


class PipelineError(RuntimeError):
    """A pipeline stage failed; the remaining stages were not run."""

    def __init__(self, stage: Stage, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class InterviewPipeline:
    def __init__(
        self,
        gateway: ProviderGateway,
        store: SessionHistoryStore,
        prompts: PromptLibrary,
        generator: Optional[AnswerGenerator] = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._prompts = prompts
        self._generator = generator or AnswerGenerator(gateway, store, prompts)

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None, *, client: Optional[HttpClient] = None) -> "InterviewPipeline":
        """Wire the pipeline from settings; raises ProviderNotConfiguredError without credentials."""

        cfg = cfg or default_settings
        gateway = ProviderGateway(provider_config(cfg), client=client)
        store = SessionHistoryStore(
            cfg.HISTORY_MAX_TURNS,
            idle_ttl_s=cfg.SESSION_IDLE_TTL_S,
            sweep_interval_s=cfg.SESSION_SWEEP_INTERVAL_S,
        )
        prompts = PromptLibrary(cfg.PERSONA_PROMPT_PATH, cfg.QUESTIONS_PATH)
        return cls(gateway, store, prompts)

    @property
    def store(self) -> SessionHistoryStore:
        return self._store

    @property
    def prompts(self) -> PromptLibrary:
        return self._prompts

    def close(self) -> None:
        self._gateway.close()

    def process_audio_question(
        self,
        session_id: str,
        audio_bytes: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> PipelineResult:
        logger.info("Processing interview question from audio file: %s", filename)
        try:
            with span(session_id, "transcription", bytes=len(audio_bytes)):
                transcript = self._gateway.transcribe(audio_bytes, filename, content_type)
        except ProviderGatewayError as exc:
            raise PipelineError("transcription", f"Failed to transcribe audio: {exc}") from exc
        return self._answer(session_id, transcript)

    def process_text_question(self, session_id: str, question_text: str) -> PipelineResult:
        logger.info("Processing text interview question, chars: %d", len(question_text))
        return self._answer(session_id, question_text)

    def _answer(self, session_id: str, transcript: str) -> PipelineResult:
        try:
            with span(session_id, "generation", chars=len(transcript)):
                answer = self._generator.generate(session_id, transcript)
        except AnswerGenerationError as exc:
            raise PipelineError("generation", str(exc)) from exc

        try:
            with span(session_id, "synthesis", chars=len(answer)):
                audio_bytes, audio_format = self._gateway.synthesize_speech(answer)
        except (ProviderGatewayError, ValueError) as exc:
            raise PipelineError("synthesis", f"Failed to synthesize speech: {exc}") from exc

        log_event(
            "exchange",
            session_id,
            outcome="ok",
            bytes=len(audio_bytes),
            pairs=self._store.pair_count(session_id),
        )
        return PipelineResult(
            transcript=transcript,
            answer_text=answer,
            audio_bytes=audio_bytes,
            audio_format=audio_format,
        )

    def reset_conversation(self, session_id: str) -> None:
        self._store.reset(session_id)
        log_event("reset", session_id)

    def history_pair_count(self, session_id: str) -> int:
        return self._store.pair_count(session_id)

    def list_common_questions(self) -> List[str]:
        return self._prompts.common_questions()


__all__ = ["InterviewPipeline", "PipelineError", "PipelineResult", "Stage"]
