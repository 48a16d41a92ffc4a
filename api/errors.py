"""Map service exceptions onto JSON error responses."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from provider_gateway import ProviderNotConfiguredError
from services.audio import InvalidAudioError
from services.pipeline import PipelineError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected error occurred. Please try again later."
NOT_CONFIGURED_ERROR = "Interview service is not configured. Please try again later."


def error_body(message: str) -> Dict[str, Any]:
    return {"error": message, "timestamp": datetime.now().isoformat(timespec="seconds")}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(message))


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(item) for item in err.get("loc", ()) if item not in ("body", "query", "header")]
        msg = str(err.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


async def _on_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    logger.warning("Invalid request %s: %s", request.url.path, message)
    return error_response(400, message)


async def _on_invalid_audio(request: Request, exc: InvalidAudioError) -> JSONResponse:
    logger.warning("Invalid audio upload: %s", exc)
    return error_response(400, str(exc))


async def _on_not_configured(request: Request, exc: ProviderNotConfiguredError) -> JSONResponse:
    logger.error("Provider not configured: %s", exc)
    return error_response(503, NOT_CONFIGURED_ERROR)


async def _on_pipeline(request: Request, exc: PipelineError) -> JSONResponse:
    logger.error("Error processing interview question at %s stage: %s", exc.stage, exc, exc_info=exc)
    return error_response(500, f"Failed to process interview question: {exc.stage} failed")


async def _on_http(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)


async def _on_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error: %s", exc, exc_info=exc)
    return error_response(500, GENERIC_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _on_validation)
    app.add_exception_handler(InvalidAudioError, _on_invalid_audio)
    app.add_exception_handler(ProviderNotConfiguredError, _on_not_configured)
    app.add_exception_handler(PipelineError, _on_pipeline)
    app.add_exception_handler(StarletteHTTPException, _on_http)
    app.add_exception_handler(Exception, _on_unexpected)


__all__ = [
    "GENERIC_ERROR",
    "NOT_CONFIGURED_ERROR",
    "error_body",
    "error_response",
    "register_exception_handlers",
]
