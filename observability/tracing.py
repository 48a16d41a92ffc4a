"""Simple span helper for recording pipeline stage timings."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from .logger import log_event


@contextmanager
def span(session_id: str, stage: str, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception as exc:
        outcome = "error"
        fields["error"] = type(exc).__name__
        raise
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_event(
            "stage",
            session_id,
            level=logging.INFO if outcome == "ok" else logging.WARNING,
            stage=stage,
            outcome=outcome,
            ms=elapsed_ms,
            **fields,
        )


__all__ = ["span"]
