"""Per-session rolling conversation history.

Each session id maps to its own entry holding a re-entrant lock and the ordered
list of turns. The guard lock only protects the session map itself, so work on
one session never waits on another.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]

DEFAULT_MAX_TURNS = 20


class ConversationTurn(BaseModel):  # One message within a session
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


@dataclass
class _SessionEntry:
    lock: threading.RLock = field(default_factory=threading.RLock)
    turns: List[ConversationTurn] = field(default_factory=list)
    last_access: float = 0.0
    holders: int = 0


class SessionHistoryStore:
    """Bounded, thread-safe map of session id to conversation turns."""

    def __init__(
        self,
        max_turns: int = DEFAULT_MAX_TURNS,
        *,
        idle_ttl_s: Optional[float] = None,
        sweep_interval_s: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_turns < 2 or max_turns % 2:
            raise ValueError("max_turns must be a positive even number")
        self._max_turns = max_turns
        self._idle_ttl_s = idle_ttl_s
        self._sweep_interval_s = sweep_interval_s
        self._clock = clock
        self._sessions: Dict[str, _SessionEntry] = {}
        self._guard = threading.Lock()
        self._last_sweep = clock()

    @property
    def max_turns(self) -> int:
        return self._max_turns

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------
    def _get_or_create(self, session_id: str) -> _SessionEntry:
        self._maybe_sweep()
        with self._guard:
            entry = self._sessions.get(session_id)
            if entry is None:
                entry = _SessionEntry(last_access=self._clock())
                self._sessions[session_id] = entry
            return entry

    def _find(self, session_id: str) -> Optional[_SessionEntry]:
        self._maybe_sweep()
        with self._guard:
            return self._sessions.get(session_id)

    def _claim(self, session_id: str, entry: _SessionEntry) -> bool:
        entry.lock.acquire()
        with self._guard:
            if self._sessions.get(session_id) is entry:
                entry.holders += 1
                entry.last_access = self._clock()
                return True
        # Entry was reset or evicted while we waited; the caller retries against the live one.
        entry.lock.release()
        return False

    def _acquire(self, session_id: str) -> _SessionEntry:
        while True:
            entry = self._get_or_create(session_id)
            if self._claim(session_id, entry):
                return entry

    def _acquire_existing(self, session_id: str) -> Optional[_SessionEntry]:
        while True:
            entry = self._find(session_id)
            if entry is None:
                return None
            if self._claim(session_id, entry):
                return entry

    @staticmethod
    def _release(entry: _SessionEntry) -> None:
        entry.holders -= 1
        entry.lock.release()

    @contextmanager
    def locked(self, session_id: str) -> Iterator[None]:
        """Hold the session's lock so several operations run as one critical section."""

        entry = self._acquire(session_id)
        try:
            yield
        finally:
            self._release(entry)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def append(self, session_id: str, turn: ConversationTurn) -> None:
        entry = self._acquire(session_id)
        try:
            self._append_locked(entry, turn)
        finally:
            self._release(entry)

    def append_exchange(self, session_id: str, user_text: str, assistant_text: str) -> None:
        """Append a user turn and its assistant reply without letting anything in between."""

        entry = self._acquire(session_id)
        try:
            self._append_locked(entry, ConversationTurn(role="user", content=user_text))
            self._append_locked(entry, ConversationTurn(role="assistant", content=assistant_text))
        finally:
            self._release(entry)

    def _append_locked(self, entry: _SessionEntry, turn: ConversationTurn) -> None:
        entry.turns.append(turn)
        while len(entry.turns) > self._max_turns:
            del entry.turns[:2]

    def reset(self, session_id: str) -> None:
        entry = self._acquire_existing(session_id)
        if entry is None:
            return
        try:
            with self._guard:
                if self._sessions.get(session_id) is entry:
                    del self._sessions[session_id]
        finally:
            self._release(entry)
        logger.info("Conversation history reset for session: %s", session_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def snapshot(self, session_id: str) -> Tuple[ConversationTurn, ...]:
        entry = self._acquire_existing(session_id)
        if entry is None:
            return ()
        try:
            return tuple(entry.turns)
        finally:
            self._release(entry)

    def pair_count(self, session_id: str) -> int:
        entry = self._acquire_existing(session_id)
        if entry is None:
            return 0
        try:
            return len(entry.turns) // 2
        finally:
            self._release(entry)

    def session_count(self) -> int:
        with self._guard:
            return len(self._sessions)

    # ------------------------------------------------------------------
    # Idle eviction
    # ------------------------------------------------------------------
    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop sessions idle for longer than the TTL; returns how many were removed."""

        if self._idle_ttl_s is None:
            return 0
        current = self._clock() if now is None else now
        evicted = 0
        with self._guard:
            for session_id, entry in list(self._sessions.items()):
                if entry.holders or current - entry.last_access < self._idle_ttl_s:
                    continue
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    del self._sessions[session_id]
                    evicted += 1
                finally:
                    entry.lock.release()
        if evicted:
            logger.info("Evicted %d idle conversation sessions", evicted)
        return evicted

    def _maybe_sweep(self) -> None:
        if self._idle_ttl_s is None:
            return
        now = self._clock()
        with self._guard:
            if now - self._last_sweep < self._sweep_interval_s:
                return
            self._last_sweep = now
        self.evict_idle(now)


__all__ = ["ConversationTurn", "DEFAULT_MAX_TURNS", "Role", "SessionHistoryStore"]
