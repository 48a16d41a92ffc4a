from __future__ import annotations  # FastAPI server exposing the interview representative

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from api.errors import error_response, register_exception_handlers
from api.routes import router
from api.security import is_authorized
from config import Settings, settings as default_settings
from observability import configure_logging
from provider_gateway import ProviderNotConfiguredError
from services.pipeline import InterviewPipeline
from services.prompts import PromptLibrary


logger = logging.getLogger(__name__)

UPLOAD_PATH_PREFIX = "/api/v1/interview/speak"
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _build_pipeline(app: FastAPI, cfg: Settings) -> None:  # Validate provider configuration once
    try:
        app.state.pipeline = InterviewPipeline.from_settings(cfg)
        app.state.config_error = None
    except ProviderNotConfiguredError as exc:
        logger.warning("Interview pipeline unavailable: %s", exc)
        app.state.pipeline = None
        app.state.config_error = str(exc)


def _origin_regex(origins: List[str]) -> str:  # Translate "http://localhost:*" style patterns
    return "|".join(re.escape(origin).replace(r"\*", ".*") for origin in origins)


def create_app(pipeline: Optional[InterviewPipeline] = None, cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "pipeline", None) is None:
            _build_pipeline(app, cfg)
        yield
        current = getattr(app.state, "pipeline", None)
        if current is not None:
            current.close()

    app = FastAPI(title="AI Interview Representative API", version=cfg.APP_VERSION, lifespan=lifespan)
    app.state.pipeline = pipeline
    app.state.settings = cfg
    app.state.prompts = PromptLibrary(cfg.PERSONA_PROMPT_PATH, cfg.QUESTIONS_PATH)
    app.state.config_error = None

    @app.middleware("http")
    async def _guard_requests(request: Request, call_next):
        if not is_authorized(request.method, request.url.path, request.headers, cfg.APP_ACCESS_TOKEN):
            logger.warning("Rejected unauthorized request to %s", request.url.path)
            return error_response(401, "Unauthorized")
        if request.method == "POST" and request.url.path.startswith(UPLOAD_PATH_PREFIX):
            declared = request.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > cfg.AUDIO_MAX_SIZE_BYTES + MULTIPART_OVERHEAD_BYTES:
                logger.error("File size exceeded: declared %s bytes", declared)
                limit_mb = cfg.AUDIO_MAX_SIZE_BYTES // 1024 // 1024
                return error_response(413, f"Audio file size exceeds maximum allowed size ({limit_mb}MB)")
        return await call_next(request)

    app.add_middleware(SessionMiddleware, secret_key=cfg.SESSION_SECRET, same_site="lax")

    origins = cfg.cors_origins
    wildcard = any("*" in origin for origin in origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if wildcard else origins,
        allow_origin_regex=_origin_regex(origins) if wildcard else None,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


def main() -> None:  # Console entry point
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()
