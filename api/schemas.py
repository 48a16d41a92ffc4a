"""Pydantic schemas for the interview API."""
from __future__ import annotations

import base64
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from services.pipeline import PipelineResult

QUESTION_MAX_CHARS = 1000


class AskReq(BaseModel):
    question: str = Field(..., max_length=QUESTION_MAX_CHARS)

    @field_validator("question")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question is required")
        return value


class SpeakResp(BaseModel):
    transcription: Optional[str] = None
    response: str
    audioData: str
    audioFormat: str

    @classmethod
    def from_result(cls, result: PipelineResult) -> "SpeakResp":
        return cls(
            transcription=result.transcript,
            response=result.answer_text,
            audioData=base64.b64encode(result.audio_bytes).decode("ascii"),
            audioFormat=result.audio_format,
        )


class MessageResp(BaseModel):
    message: str


class InfoResp(BaseModel):
    conversationHistorySize: int
    status: str = "UP"


class HealthResp(BaseModel):
    status: str
    timestamp: str
    version: str


class ErrorResp(BaseModel):
    error: str
    timestamp: str
