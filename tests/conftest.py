import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.history import SessionHistoryStore
from services.pipeline import InterviewPipeline
from services.prompts import PromptLibrary


PERSONA_TEXT = "You are a thoughtful software engineer interviewing for a new role."
QUESTIONS_BYTES = b"Q1\n\nQ2\r\n  \nQ3"


class FakeGateway:
    """Stands in for ProviderGateway; records calls and can fail per operation."""

    def __init__(
        self,
        *,
        transcript: str = "What is your greatest strength?",
        answer: Union[str, Callable[[str], str]] = "I value collaboration.",
        audio: bytes = b"ID3\x04fake-mp3-bytes",
        audio_format: str = "audio/mpeg",
    ) -> None:
        self.transcript = transcript
        self.answer = answer
        self.audio = audio
        self.audio_format = audio_format
        self.calls: Dict[str, int] = {"transcribe": 0, "chat": 0, "speech": 0}
        self.chat_requests: List[Tuple[str, str, tuple]] = []
        self.spoken: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self.closed = False

    def transcribe(self, audio_bytes: bytes, filename: str, content_type: Optional[str] = None) -> str:
        self.calls["transcribe"] += 1
        if "transcribe" in self.failures:
            raise self.failures["transcribe"]
        return self.transcript

    def chat_complete(self, system_prompt: str, user_message: str, history_turns: Any = ()) -> str:
        self.calls["chat"] += 1
        self.chat_requests.append((system_prompt, user_message, tuple(history_turns)))
        if "chat" in self.failures:
            raise self.failures["chat"]
        if callable(self.answer):
            return self.answer(user_message)
        return self.answer

    def synthesize_speech(self, text: str) -> Tuple[bytes, str]:
        self.calls["speech"] += 1
        self.spoken.append(text)
        if "speech" in self.failures:
            raise self.failures["speech"]
        return self.audio, self.audio_format

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def gateway_factory() -> Callable[..., FakeGateway]:
    return FakeGateway


@pytest.fixture
def prompt_files(tmp_path) -> Tuple[Path, Path]:
    persona = tmp_path / "persona.txt"
    persona.write_text(PERSONA_TEXT, encoding="utf-8")
    questions = tmp_path / "questions.txt"
    questions.write_bytes(QUESTIONS_BYTES)
    return persona, questions


@pytest.fixture
def prompts(prompt_files) -> PromptLibrary:
    persona, questions = prompt_files
    return PromptLibrary(persona, questions)


@pytest.fixture
def store() -> SessionHistoryStore:
    return SessionHistoryStore()


@pytest.fixture
def pipeline(fake_gateway, store, prompts) -> InterviewPipeline:
    return InterviewPipeline(fake_gateway, store, prompts)
