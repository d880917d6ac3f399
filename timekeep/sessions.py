"""Session lifecycle for Timekeep: starting and ending sessions.

A user has at most one active session. Ending is terminal; a session that
is paused when it ends has its open pause closed into
accumulated_pause_time first, so the paused flag and pause start time stay
consistent on the final record.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from timekeep.errors import SessionEndedError, StorageError
from timekeep.hooks import run_hooks
from timekeep.models import SESSION_END, SESSION_START, Session, SessionEvent
from timekeep.pause import commit_transition, load_session
from timekeep.store import JsonSessionStore, SessionStore, new_id, store_root
from timekeep.timing import aware, effective_time, format_duration, seconds_between, utc_now

logger = logging.getLogger(__name__)


def start_session(
    user_id: str,
    *,
    goal_duration: int | None = None,
    is_hardcore_mode: bool = False,
    keyholder_approval_required: bool = False,
    notes: str = "",
    store: SessionStore | None = None,
    now: datetime | None = None,
    root: Path | None = None,
) -> Session:
    """Start a new session. Raises if the user already has one active."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    now = aware(now) if now is not None else utc_now()

    session = Session(
        id=new_id(),
        user_id=user_id,
        start_time=now,
        goal_duration=goal_duration,
        is_hardcore_mode=is_hardcore_mode,
        keyholder_approval_required=keyholder_approval_required,
        notes=notes,
    )
    event = SessionEvent(
        id=new_id(),
        session_id=session.id,
        user_id=user_id,
        type=SESSION_START,
        timestamp=now,
        notes=notes,
    )
    try:
        session = store.create_session(session, event)
    except StorageError:
        logger.error("Failed to start session for user %s", user_id, exc_info=True)
        raise

    logger.info("Session %s started for user %s", session.id, user_id)
    run_hooks("on_session_start", {"session": session.to_dict(), "event": event.to_dict()}, root)
    return session


def end_session(
    session_id: str,
    *,
    reason: str = "",
    store: SessionStore | None = None,
    now: datetime | None = None,
    root: Path | None = None,
) -> Session:
    """End a session. Returns the final, immutable record."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    now = aware(now) if now is not None else utc_now()

    session = load_session(store, session_id, "end")
    if session.is_ended:
        raise SessionEndedError("Session has already ended", {"session_id": session_id})

    fields: dict[str, Any] = {"end_time": now, "end_reason": reason}
    closed_pause = None
    if session.is_paused:
        closed_pause = max(0, seconds_between(session.pause_start_time, now))
        fields.update(
            is_paused=False,
            pause_start_time=None,
            accumulated_pause_time=session.accumulated_pause_time + closed_pause,
        )

    final = dataclasses.replace(session, **fields)
    effective = effective_time(final, now)
    event = SessionEvent(
        id=new_id(),
        session_id=session.id,
        user_id=session.user_id,
        type=SESSION_END,
        timestamp=now,
        pause_duration=closed_pause,
        notes=f"Session ended after {format_duration(effective)} effective time"
        + (f": {reason}" if reason else ""),
    )
    updated = commit_transition(store, session, fields, event, "end")
    logger.info("Session %s ended (effective %ds)", session.id, effective)
    run_hooks("on_session_end", {"session": updated.to_dict(), "event": event.to_dict()}, root)
    return updated


def get_session(
    session_id: str,
    *,
    store: SessionStore | None = None,
    root: Path | None = None,
) -> Session:
    """Get a session by id or raise NotFoundError."""
    if store is None:
        store = JsonSessionStore(root)
    return load_session(store, session_id, "read")


def get_active_session(
    user_id: str,
    *,
    store: SessionStore | None = None,
    root: Path | None = None,
) -> Session | None:
    """Get the user's active session, or None."""
    if store is None:
        store = JsonSessionStore(root)
    return store.get_active_session(user_id)
