"""Session store for Timekeep.

``SessionStore`` is the protocol the engines talk to. ``JsonSessionStore``
keeps every session and the whole event log in one JSON document under the
workspace, so a session update and its event append land in a single
atomic rename. Writers hold an exclusive lock on a sidecar file for the
whole read-check-write, and every session carries a ``version`` that is
checked and bumped on each commit.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol

from timekeep.errors import (
    ConflictError,
    NotFoundError,
    SessionActiveError,
    SessionEndedError,
    StorageError,
    ValidationError,
)
from timekeep.fileio import locked, read_json, write_json_atomic
from timekeep.models import EVENT_TYPES, Session, SessionEvent
from timekeep.workspace import sessions_lock_path, sessions_path, workspace_root

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"id", "user_id", "start_time", "version"}
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def store_root(store: Any, root: Path | None = None) -> Path | None:
    """*root* if given, else the workspace *store* is rooted in, if any."""
    if root is not None:
        return root
    return getattr(store, "root", None)


class SessionStore(Protocol):
    """Record store holding sessions and the append-only event log."""

    def get_session(self, session_id: str) -> Session | None: ...

    def get_active_session(self, user_id: str) -> Session | None: ...

    def create_session(self, session: Session, event: SessionEvent | None = None) -> Session: ...

    def update_session(
        self,
        session_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> Session: ...

    def query_events(
        self,
        session_id: str,
        types: Iterable[str] | str | None = None,
    ) -> list[SessionEvent]: ...

    def latest_event(self, session_id: str, event_type: str) -> SessionEvent | None: ...

    def append_event(self, event: SessionEvent) -> SessionEvent: ...

    def commit(
        self,
        session_id: str,
        fields: dict[str, Any],
        event: SessionEvent,
        expected_version: int | None = None,
    ) -> Session: ...


def _apply_fields(session: Session, fields: dict[str, Any]) -> Session:
    """Return a copy of *session* with *fields* applied and version bumped."""
    known = {f.name for f in dataclasses.fields(Session)}
    unknown = set(fields) - known
    if unknown:
        raise ValidationError(f"Unknown session fields: {sorted(unknown)}")
    frozen = set(fields) & IMMUTABLE_FIELDS
    if frozen:
        raise ValidationError(f"Session fields are immutable: {sorted(frozen)}")
    if "accumulated_pause_time" in fields and fields["accumulated_pause_time"] < session.accumulated_pause_time:
        raise ValidationError("accumulated_pause_time cannot decrease")
    return dataclasses.replace(session, **fields, version=session.version + 1)


def _check_event(event: SessionEvent) -> SessionEvent:
    if event.type not in EVENT_TYPES:
        raise ValidationError(f"Unknown event type: {event.type!r}")
    if not event.session_id:
        raise ValidationError("Event has no session id")
    if not event.id:
        event = dataclasses.replace(event, id=new_id())
    return event


class JsonSessionStore:
    """File-backed SessionStore rooted at a Timekeep workspace."""

    def __init__(self, root: Path | None = None):
        if root is None:
            root = workspace_root()
        self.root = root
        self.path = sessions_path(root)
        self.lock_path = sessions_lock_path(root)

    # ── Document I/O ──────────────────────────────────────────

    def _load(self) -> dict[str, Any]:
        try:
            doc = read_json(self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {self.path}: {e}", {"path": str(self.path)}) from e
        if not isinstance(doc, dict):
            raise StorageError(f"Malformed session store {self.path}: not an object", {"path": str(self.path)})
        doc.setdefault("sessions", {})
        doc.setdefault("events", [])
        if not isinstance(doc["sessions"], dict) or not isinstance(doc["events"], list):
            raise StorageError(
                f"Malformed session store {self.path}: bad sessions or events", {"path": str(self.path)}
            )
        return doc

    def _save(self, doc: dict[str, Any]) -> None:
        try:
            write_json_atomic(self.path, doc)
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}", {"path": str(self.path)}) from e

    @contextmanager
    def _transaction(self) -> Iterator[dict[str, Any]]:
        """Yield the document under the lock; save it if the block succeeds."""
        try:
            with locked(self.lock_path):
                doc = self._load()
                yield doc
                self._save(doc)
        except OSError as e:
            raise StorageError(f"Could not lock {self.lock_path}: {e}", {"path": str(self.lock_path)}) from e

    @staticmethod
    def _stored_session(doc: dict[str, Any], session_id: str) -> Session:
        data = doc["sessions"].get(session_id)
        if data is None:
            raise NotFoundError(f"Session not found: {session_id}", {"session_id": session_id})
        return Session.from_dict(data)

    @staticmethod
    def _check_version(session: Session, expected_version: int | None) -> None:
        if expected_version is not None and session.version != expected_version:
            raise ConflictError(
                f"Session {session.id} changed since it was read "
                f"(expected version {expected_version}, found {session.version})",
                {"session_id": session.id, "expected": expected_version, "found": session.version},
            )

    # ── Sessions ──────────────────────────────────────────────

    def get_session(self, session_id: str) -> Session | None:
        data = self._load()["sessions"].get(session_id)
        return Session.from_dict(data) if data is not None else None

    def get_active_session(self, user_id: str) -> Session | None:
        """The user's session without an end time, newest start first."""
        active = [
            s for s in (Session.from_dict(d) for d in self._load()["sessions"].values())
            if s.user_id == user_id and s.end_time is None
        ]
        if not active:
            return None
        return max(active, key=lambda s: s.start_time or _EARLIEST)

    def create_session(self, session: Session, event: SessionEvent | None = None) -> Session:
        """Insert a new session (and optionally its first event) atomically."""
        if not session.id:
            session = dataclasses.replace(session, id=new_id())
        with self._transaction() as doc:
            if session.id in doc["sessions"]:
                raise ConflictError(f"Session already exists: {session.id}", {"session_id": session.id})
            for data in doc["sessions"].values():
                other = Session.from_dict(data)
                if other.user_id == session.user_id and other.end_time is None:
                    raise SessionActiveError(
                        f"User {session.user_id} already has an active session",
                        {"user_id": session.user_id, "session_id": other.id},
                    )
            doc["sessions"][session.id] = session.to_dict()
            if event is not None:
                event = _check_event(dataclasses.replace(event, session_id=session.id))
                doc["events"].append(event.to_dict())
        return session

    def update_session(
        self,
        session_id: str,
        fields: dict[str, Any],
        expected_version: int | None = None,
    ) -> Session:
        with self._transaction() as doc:
            current = self._stored_session(doc, session_id)
            if current.is_ended:
                raise SessionEndedError(f"Session {session_id} has ended", {"session_id": session_id})
            self._check_version(current, expected_version)
            updated = _apply_fields(current, fields)
            doc["sessions"][session_id] = updated.to_dict()
        return updated

    # ── Events ────────────────────────────────────────────────

    def query_events(
        self,
        session_id: str,
        types: Iterable[str] | str | None = None,
    ) -> list[SessionEvent]:
        """Events for a session, oldest first; ties keep append order."""
        if isinstance(types, str):
            types = {types}
        wanted = set(types) if types is not None else None
        events = [
            SessionEvent.from_dict(d) for d in self._load()["events"]
            if d.get("sessionId") == session_id and (wanted is None or d.get("type") in wanted)
        ]
        return sorted(events, key=lambda e: e.timestamp or _EARLIEST)

    def latest_event(self, session_id: str, event_type: str) -> SessionEvent | None:
        events = self.query_events(session_id, event_type)
        return events[-1] if events else None

    def append_event(self, event: SessionEvent) -> SessionEvent:
        event = _check_event(event)
        with self._transaction() as doc:
            if event.session_id not in doc["sessions"]:
                raise NotFoundError(f"Session not found: {event.session_id}", {"session_id": event.session_id})
            doc["events"].append(event.to_dict())
        return event

    # ── Unit of work ──────────────────────────────────────────

    def commit(
        self,
        session_id: str,
        fields: dict[str, Any],
        event: SessionEvent,
        expected_version: int | None = None,
    ) -> Session:
        """Apply *fields* to the session and append *event* as one write.

        Raises ConflictError, and writes nothing, when the stored version no
        longer matches *expected_version*.
        """
        event = _check_event(event)
        with self._transaction() as doc:
            current = self._stored_session(doc, session_id)
            if current.is_ended:
                raise SessionEndedError(f"Session {session_id} has ended", {"session_id": session_id})
            self._check_version(current, expected_version)
            updated = _apply_fields(current, fields)
            doc["sessions"][session_id] = updated.to_dict()
            doc["events"].append(event.to_dict())
        return updated
