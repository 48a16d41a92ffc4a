from __future__ import annotations

import threading
import time

import pytest
from pydantic import ValidationError

from services.history import ConversationTurn, SessionHistoryStore


def _user(text: str) -> ConversationTurn:
    return ConversationTurn(role="user", content=text)


def _assistant(text: str) -> ConversationTurn:
    return ConversationTurn(role="assistant", content=text)


def test_pair_count_caps_at_ten_exchanges():
    store = SessionHistoryStore()
    for n in range(1, 15):
        store.append_exchange("s", f"q{n}", f"a{n}")
        assert store.pair_count("s") == min(n, 10)
    turns = store.snapshot("s")
    assert len(turns) == 20
    assert turns[0] == _user("q5")
    assert turns[-1] == _assistant("a14")


def test_single_appends_evict_oldest_pair():
    store = SessionHistoryStore(max_turns=4)
    for turn in (_user("u0"), _assistant("a0"), _user("u1"), _assistant("a1"), _user("u2")):
        store.append("s", turn)
    assert [t.content for t in store.snapshot("s")] == ["u1", "a1", "u2"]
    store.append("s", _assistant("a2"))
    assert [t.content for t in store.snapshot("s")] == ["u1", "a1", "u2", "a2"]
    assert store.pair_count("s") == 2


def test_sessions_are_isolated():
    store = SessionHistoryStore()
    store.append_exchange("alpha", "hello", "hi there")
    before = store.snapshot("beta")
    store.append_exchange("alpha", "again", "sure")
    assert store.pair_count("alpha") == 2
    assert store.pair_count("beta") == 0
    assert store.snapshot("beta") == before == ()


def test_reset_is_idempotent_and_clears_history():
    store = SessionHistoryStore()
    store.reset("never-seen")
    assert store.pair_count("never-seen") == 0

    store.append_exchange("s", "q", "a")
    store.reset("s")
    assert store.pair_count("s") == 0
    assert store.snapshot("s") == ()
    store.reset("s")
    assert store.session_count() == 0


def test_snapshot_is_an_immutable_copy():
    store = SessionHistoryStore()
    store.append_exchange("s", "q", "a")
    snap = store.snapshot("s")
    assert isinstance(snap, tuple)
    store.append_exchange("s", "q2", "a2")
    assert len(snap) == 2
    with pytest.raises(ValidationError):
        snap[0].content = "changed"  # type: ignore[misc]


def test_rejects_odd_or_tiny_cap():
    with pytest.raises(ValueError):
        SessionHistoryStore(max_turns=5)
    with pytest.raises(ValueError):
        SessionHistoryStore(max_turns=0)


def test_concurrent_snapshots_never_see_half_an_exchange():
    store = SessionHistoryStore(max_turns=6)
    stop = threading.Event()
    problems: list[str] = []

    def writer(tag: str) -> None:
        for i in range(300):
            store.append_exchange("shared", f"{tag}-q{i}", f"{tag}-a{i}")

    def reader() -> None:
        while not stop.is_set():
            snap = store.snapshot("shared")
            if len(snap) % 2:
                problems.append(f"odd length {len(snap)}")
            for user, assistant in zip(snap[::2], snap[1::2]):
                if user.role != "user" or assistant.role != "assistant":
                    problems.append("roles out of order")
                elif user.content.replace("-q", "-a") != assistant.content:
                    problems.append(f"mismatched pair {user.content}/{assistant.content}")

    readers = [threading.Thread(target=reader) for _ in range(2)]
    writers = [threading.Thread(target=writer, args=(tag,)) for tag in ("x", "y", "z")]
    for t in readers + writers:
        t.start()
    for t in writers:
        t.join(timeout=10)
    stop.set()
    for t in readers:
        t.join(timeout=10)

    assert problems == []
    assert store.pair_count("shared") == 3


def test_locked_session_blocks_only_itself():
    store = SessionHistoryStore()
    appended = threading.Event()

    def append_same_session() -> None:
        store.append_exchange("busy", "q", "a")
        appended.set()

    with store.locked("busy"):
        worker = threading.Thread(target=append_same_session)
        worker.start()
        store.append_exchange("other", "q", "a")
        assert store.pair_count("other") == 1
        assert not appended.wait(timeout=0.2)
    worker.join(timeout=5)
    assert appended.is_set()
    assert store.pair_count("busy") == 1


def test_waiter_retries_after_reset_removes_entry():
    store = SessionHistoryStore()
    store.append_exchange("s", "old-q", "old-a")
    done = threading.Event()

    def append_later() -> None:
        store.append_exchange("s", "new-q", "new-a")
        done.set()

    with store.locked("s"):
        worker = threading.Thread(target=append_later)
        worker.start()
        time.sleep(0.05)
        store.reset("s")
    worker.join(timeout=5)

    assert done.is_set()
    assert [t.content for t in store.snapshot("s")] == ["new-q", "new-a"]


def test_evict_idle_drops_only_stale_unlocked_sessions():
    now = [1000.0]
    store = SessionHistoryStore(idle_ttl_s=60, sweep_interval_s=3600, clock=lambda: now[0])
    store.append_exchange("stale", "q", "a")
    now[0] += 30
    store.append_exchange("fresh", "q", "a")
    now[0] += 45

    assert store.evict_idle() == 1
    assert store.pair_count("stale") == 0
    assert store.pair_count("fresh") == 1


def test_evict_idle_skips_sessions_in_use():
    now = [0.0]
    store = SessionHistoryStore(idle_ttl_s=10, sweep_interval_s=3600, clock=lambda: now[0])
    store.append_exchange("s", "q", "a")
    with store.locked("s"):
        now[0] += 100
        assert store.evict_idle() == 0
    assert store.pair_count("s") == 1


def test_sweep_runs_on_access_after_interval():
    now = [0.0]
    store = SessionHistoryStore(idle_ttl_s=10, sweep_interval_s=5, clock=lambda: now[0])
    store.append_exchange("old", "q", "a")
    now[0] += 20
    store.append_exchange("new", "q", "a")
    assert store.session_count() == 1
    assert store.pair_count("new") == 1


def test_eviction_disabled_without_ttl():
    store = SessionHistoryStore()
    store.append_exchange("s", "q", "a")
    assert store.evict_idle(now=10**9) == 0
    assert store.pair_count("s") == 1


def test_locked_creates_entry_for_new_session():
    store = SessionHistoryStore()
    with store.locked("fresh"):
        assert store.session_count() == 1
        store.append_exchange("fresh", "q", "a")
    assert store.pair_count("fresh") == 1


def test_reads_do_not_create_sessions():
    store = SessionHistoryStore()
    assert store.snapshot("ghost") == ()
    assert store.pair_count("ghost") == 0
    store.reset("ghost")
    assert store.session_count() == 0
