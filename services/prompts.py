"""Static prompt resources: persona instruction and preset interview questions."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PromptLoadError(RuntimeError):
    pass


def parse_questions(content: str) -> List[str]:
    """One question per non-empty line, surrounding whitespace trimmed."""

    return [line.strip() for line in content.splitlines() if line.strip()]


class PromptLibrary:
    """Lazily loads bundled text resources and caches them for the process lifetime."""

    def __init__(self, persona_path: PathLike, questions_path: PathLike) -> None:
        self._persona_path = Path(persona_path)
        self._questions_path = Path(questions_path)
        self._persona: Optional[str] = None
        self._questions: Optional[List[str]] = None

    def persona_instruction(self) -> str:
        if self._persona is None:
            try:
                text = self._persona_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise PromptLoadError(f"Unable to read persona prompt at {self._persona_path}") from exc
            self._persona = text.strip()
            logger.info("Loaded persona prompt, chars: %d", len(self._persona))
        return self._persona

    def common_questions(self) -> List[str]:
        if self._questions is None:
            try:
                content = self._questions_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.exception("Error loading interview questions from %s", self._questions_path)
                return []
            self._questions = parse_questions(content)
            logger.info("Loaded %d interview questions", len(self._questions))
        return list(self._questions)


__all__ = ["PathLike", "PromptLibrary", "PromptLoadError", "parse_questions"]
