"""Persona-consistent answer generation backed by per-session history."""
from __future__ import annotations

import logging

from provider_gateway import ProviderGateway, ProviderGatewayError

from .history import SessionHistoryStore
from .prompts import PromptLibrary, PromptLoadError

logger = logging.getLogger(__name__)


class AnswerGenerationError(RuntimeError):
    pass


class AnswerGenerator:
    def __init__(self, gateway: ProviderGateway, store: SessionHistoryStore, prompts: PromptLibrary) -> None:
        self._gateway = gateway
        self._store = store
        self._prompts = prompts

    def generate(self, session_id: str, user_utterance: str) -> str:
        """Answer ``user_utterance`` in persona and record the exchange on success.

        The prompt carries the history as it stood before this exchange; the
        snapshot, provider call and both appends run under the session lock so
        concurrent requests for the same session cannot interleave.
        """

        try:
            persona = self._prompts.persona_instruction()
        except PromptLoadError as exc:
            raise AnswerGenerationError(f"Failed to generate response: {exc}") from exc

        with self._store.locked(session_id):
            history = self._store.snapshot(session_id)
            try:
                answer = self._gateway.chat_complete(persona, user_utterance, history)
            except ProviderGatewayError as exc:
                logger.error("Error generating response for session %s: %s", session_id, exc)
                raise AnswerGenerationError(f"Failed to generate response: {exc}") from exc
            self._store.append_exchange(session_id, user_utterance, answer)

        logger.info(
            "Generated response with context, chars: %d, history_turns: %d, session: %s",
            len(answer),
            len(history),
            session_id,
        )
        return answer


__all__ = ["AnswerGenerationError", "AnswerGenerator"]
