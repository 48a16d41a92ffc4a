"""FastAPI routes for the voice interview representative."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile

from api.schemas import AskReq, HealthResp, InfoResp, MessageResp, SpeakResp
from api.session import resolve_session_id
from config.settings import Settings, settings as default_settings
from provider_gateway import ProviderNotConfiguredError
from services.audio import validate_audio
from services.pipeline import InterviewPipeline, PipelineResult
from services.prompts import PromptLibrary


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/interview")

DEFAULT_UPLOAD_NAME = "recording.webm"


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_pipeline(request: Request) -> InterviewPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        reason = getattr(request.app.state, "config_error", None) or "Interview pipeline is not configured"
        raise ProviderNotConfiguredError(reason)
    return pipeline


def get_prompts(request: Request) -> PromptLibrary:
    """Preset questions need no provider credentials, so they never go through get_pipeline."""

    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is not None:
        return pipeline.prompts
    return request.app.state.prompts


def _process_upload(
    audio: UploadFile,
    session_id: str,
    pipeline: InterviewPipeline,
    cfg: Settings,
) -> PipelineResult:
    data = audio.file.read()
    filename = audio.filename or DEFAULT_UPLOAD_NAME
    logger.info("Received audio upload, file: %s, size: %d bytes, session: %s", filename, len(data), session_id)
    validate_audio(
        data,
        audio.content_type,
        supported_formats=cfg.supported_audio_formats,
        max_size_bytes=cfg.AUDIO_MAX_SIZE_BYTES,
    )
    return pipeline.process_audio_question(session_id, data, filename, audio.content_type)


@router.post("/speak", response_model=SpeakResp)
def speak(
    audio: UploadFile = File(...),
    session_id: str = Depends(resolve_session_id),
    pipeline: InterviewPipeline = Depends(get_pipeline),
    cfg: Settings = Depends(get_settings),
) -> SpeakResp:
    result = _process_upload(audio, session_id, pipeline, cfg)
    logger.info("Successfully processed interview question")
    return SpeakResp.from_result(result)


@router.post("/speak/audio")
def speak_as_audio(
    audio: UploadFile = File(...),
    session_id: str = Depends(resolve_session_id),
    pipeline: InterviewPipeline = Depends(get_pipeline),
    cfg: Settings = Depends(get_settings),
) -> Response:
    result = _process_upload(audio, session_id, pipeline, cfg)
    extension = cfg.TTS_RESPONSE_FORMAT.lower() or "mp3"
    return Response(
        content=result.audio_bytes,
        media_type=result.audio_format,
        headers={"Content-Disposition": f'attachment; filename="ai-response.{extension}"'},
    )


@router.post("/ask", response_model=SpeakResp)
def ask(
    req: AskReq,
    session_id: str = Depends(resolve_session_id),
    pipeline: InterviewPipeline = Depends(get_pipeline),
) -> SpeakResp:
    result = pipeline.process_text_question(session_id, req.question)
    return SpeakResp.from_result(result)


@router.get("/questions", response_model=List[str])
def questions(prompts: PromptLibrary = Depends(get_prompts)) -> List[str]:
    return prompts.common_questions()


@router.post("/reset", response_model=MessageResp)
def reset(
    session_id: str = Depends(resolve_session_id),
    pipeline: InterviewPipeline = Depends(get_pipeline),
) -> MessageResp:
    pipeline.reset_conversation(session_id)
    return MessageResp(message="Conversation reset successfully")


@router.get("/info", response_model=InfoResp)
def info(
    session_id: str = Depends(resolve_session_id),
    pipeline: InterviewPipeline = Depends(get_pipeline),
) -> InfoResp:
    return InfoResp(conversationHistorySize=pipeline.history_pair_count(session_id), status="UP")


@router.get("/health", response_model=HealthResp)
def health(cfg: Settings = Depends(get_settings)) -> HealthResp:
    return HealthResp(
        status="UP",
        timestamp=datetime.now().isoformat(timespec="seconds"),
        version=cfg.APP_VERSION,
    )
