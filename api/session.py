"""Caller session identity for the interview API."""
from __future__ import annotations

import uuid

from fastapi import Request

SESSION_HEADER = "X-Session-Id"
SESSION_COOKIE_KEY = "sid"
_MAX_HEADER_ID = 128


def resolve_session_id(request: Request) -> str:
    """Explicit ``X-Session-Id`` header wins; otherwise a UUID kept in the signed session cookie."""

    supplied = (request.headers.get(SESSION_HEADER) or "").strip()
    if supplied:
        return supplied[:_MAX_HEADER_ID]
    session_id = request.session.get(SESSION_COOKIE_KEY)
    if not session_id:
        session_id = uuid.uuid4().hex
        request.session[SESSION_COOKIE_KEY] = session_id
    return session_id


__all__ = ["SESSION_COOKIE_KEY", "SESSION_HEADER", "resolve_session_id"]
