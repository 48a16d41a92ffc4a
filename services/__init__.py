"""Conversation state and interview pipeline services."""
from .answer_generator import AnswerGenerationError, AnswerGenerator
from .audio import InvalidAudioError, validate_audio
from .history import ConversationTurn, SessionHistoryStore
from .pipeline import InterviewPipeline, PipelineError, PipelineResult
from .prompts import PromptLibrary, PromptLoadError, parse_questions

__all__ = [
    "AnswerGenerationError",
    "AnswerGenerator",
    "ConversationTurn",
    "InterviewPipeline",
    "InvalidAudioError",
    "PipelineError",
    "PipelineResult",
    "PromptLibrary",
    "PromptLoadError",
    "SessionHistoryStore",
    "parse_questions",
    "validate_audio",
]
