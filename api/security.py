"""Shared-secret token check applied ahead of the interview routes."""
from __future__ import annotations

import hmac
from typing import Mapping, Optional

TOKEN_HEADER = "X-APP-TOKEN"
BEARER_PREFIX = "Bearer "


def provided_token(headers: Mapping[str, str]) -> Optional[str]:
    token = (headers.get(TOKEN_HEADER) or "").strip()
    if token:
        return token
    auth = headers.get("Authorization") or ""
    if auth.startswith(BEARER_PREFIX):
        return auth[len(BEARER_PREFIX):].strip() or None
    return None


def is_authorized(method: str, path: str, headers: Mapping[str, str], expected: str) -> bool:
    """Preflight and health always pass; an empty ``expected`` disables the check."""

    if method.upper() == "OPTIONS":
        return True
    if path.rstrip("/").endswith("/health"):
        return True
    if not (expected or "").strip():
        return True
    token = provided_token(headers)
    if token is None:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.strip().encode("utf-8"))


__all__ = ["BEARER_PREFIX", "TOKEN_HEADER", "is_authorized", "provided_token"]
