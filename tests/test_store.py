"""Tests for timekeep/store.py: JSON store, transactions and versioning."""

import pytest

from conftest import T0, at, make_session
from timekeep.errors import (
    ConflictError,
    NotFoundError,
    SessionActiveError,
    SessionEndedError,
    StorageError,
    ValidationError,
)
from timekeep.models import SESSION_PAUSE, SESSION_RESUME, SESSION_START, SessionEvent
from timekeep.store import JsonSessionStore


def _event(type_: str, when, **kw) -> SessionEvent:
    return SessionEvent(session_id="s1", user_id="u1", type=type_, timestamp=when, **kw)


def test_create_and_get_session(store):
    store.create_session(make_session(goal_duration=3600))
    session = store.get_session("s1")
    assert session.user_id == "u1"
    assert session.start_time == T0
    assert session.goal_duration == 3600
    assert store.get_session("missing") is None


def test_store_persists_across_instances(store, workspace):
    store.create_session(make_session(), _event(SESSION_START, T0))
    other = JsonSessionStore(workspace)
    assert other.get_session("s1") is not None
    assert [e.type for e in other.query_events("s1")] == [SESSION_START]


def test_create_session_assigns_id(store):
    session = store.create_session(make_session(id=""))
    assert session.id
    assert store.get_session(session.id) is not None


def test_create_second_active_session_rejected(store):
    store.create_session(make_session())
    with pytest.raises(SessionActiveError):
        store.create_session(make_session(id="s2"))


def test_get_active_session(store):
    store.create_session(make_session(id="old"))
    store.update_session("old", {"end_time": at(hours=1)})
    assert store.get_active_session("u1") is None
    store.create_session(make_session(id="new", start_time=at(hours=2)))
    assert store.get_active_session("u1").id == "new"
    assert store.get_active_session("someone-else") is None


def test_query_events_sorted_ascending(store):
    store.create_session(make_session())
    store.append_event(_event(SESSION_RESUME, at(minutes=40), pause_duration=600))
    store.append_event(_event(SESSION_PAUSE, at(minutes=30), reason="Medical"))
    store.append_event(_event(SESSION_START, T0))

    events = store.query_events("s1")
    assert [e.type for e in events] == [SESSION_START, SESSION_PAUSE, SESSION_RESUME]
    assert [e.type for e in store.query_events("s1", SESSION_PAUSE)] == [SESSION_PAUSE]
    assert store.latest_event("s1", SESSION_PAUSE).reason == "Medical"
    assert store.latest_event("s1", "session_end") is None


def test_append_event_validation(store):
    with pytest.raises(NotFoundError):
        store.append_event(_event(SESSION_PAUSE, T0))
    store.create_session(make_session())
    with pytest.raises(ValidationError):
        store.append_event(_event("bogus", T0))
    event = store.append_event(_event(SESSION_PAUSE, T0))
    assert event.id


def test_commit_updates_session_and_log_together(store):
    store.create_session(make_session())
    updated = store.commit(
        "s1",
        {"is_paused": True, "pause_start_time": at(minutes=30)},
        _event(SESSION_PAUSE, at(minutes=30), reason="Emergency"),
        expected_version=0,
    )
    assert updated.version == 1
    assert store.get_session("s1").is_paused is True
    assert len(store.query_events("s1", SESSION_PAUSE)) == 1


def test_commit_with_stale_version_writes_nothing(store):
    store.create_session(make_session())
    store.update_session("s1", {"notes": "first writer"})

    with pytest.raises(ConflictError):
        store.commit(
            "s1",
            {"is_paused": True, "pause_start_time": at(minutes=30)},
            _event(SESSION_PAUSE, at(minutes=30)),
            expected_version=0,
        )

    session = store.get_session("s1")
    assert session.is_paused is False
    assert session.version == 1
    assert store.query_events("s1") == []


def test_update_rejects_immutable_and_unknown_fields(store):
    store.create_session(make_session())
    with pytest.raises(ValidationError):
        store.update_session("s1", {"start_time": at(hours=1)})
    with pytest.raises(ValidationError):
        store.update_session("s1", {"colour": "red"})


def test_accumulated_pause_time_cannot_decrease(store):
    store.create_session(make_session(accumulated_pause_time=600))
    with pytest.raises(ValidationError):
        store.update_session("s1", {"accumulated_pause_time": 300})
    assert store.get_session("s1").accumulated_pause_time == 600


def test_ended_session_is_immutable(store):
    store.create_session(make_session())
    store.update_session("s1", {"end_time": at(hours=1)})
    with pytest.raises(SessionEndedError):
        store.update_session("s1", {"notes": "late edit"})


def test_update_missing_session(store):
    with pytest.raises(NotFoundError):
        store.update_session("missing", {"notes": "x"})


def test_malformed_document_raises_storage_error(store, workspace):
    (workspace / "data" / "sessions.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        store.get_session("s1")


@pytest.mark.parametrize("content", ['[]', '"x"', '1', '{"sessions": []}', '{"events": {}}'])
def test_wrong_shape_document_raises_storage_error(store, workspace, content):
    (workspace / "data" / "sessions.json").write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        store.get_session("s1")
    with pytest.raises(StorageError):
        store.query_events("s1")
