"""Pause/resume orchestration for Timekeep.

Drives the per-session state machine:

    Active <-> Paused -> Ended (terminal)

Each transition validates its preconditions, consults the cooldown guard
(pause only), then commits the session update and the audit event through
``SessionStore.commit`` so both land together or not at all. Precondition
failures raise typed errors; storage failures are logged and re-raised
as-is. Nothing is retried here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from timekeep.cooldown import can_user_pause, cooldown_info
from timekeep.errors import (
    AlreadyPausedError,
    ConflictError,
    CooldownActiveError,
    NotFoundError,
    NotPausedError,
    SessionEndedError,
    StorageError,
    ValidationError,
)
from timekeep.hooks import run_hooks
from timekeep.models import (
    PAUSE_EVENT_TYPES,
    SESSION_PAUSE,
    SESSION_RESUME,
    PauseState,
    PauseStatus,
    Session,
    SessionEvent,
)
from timekeep.store import JsonSessionStore, SessionStore, new_id, store_root
from timekeep.timing import (
    aware,
    current_pause_duration,
    seconds_between,
    total_pause_time,
    utc_now,
)

logger = logging.getLogger(__name__)

PAUSE_REASONS = (
    "Bathroom Break",
    "Emergency",
    "Medical",
    "Work/Social",
    "Other",
)


def get_pause_reasons() -> tuple[str, ...]:
    return PAUSE_REASONS


def is_valid_pause_reason(reason: str) -> bool:
    return reason in PAUSE_REASONS


def resolve_custom_reason(reason: str, custom_reason: str | None = None) -> str | None:
    """Validate *reason* and return the custom text to record with it.

    "Other" requires a non-blank *custom_reason*; any other reason records none.
    """
    if not is_valid_pause_reason(reason):
        raise ValidationError(
            f"Invalid pause reason: {reason!r}",
            {"reason": reason, "allowed": list(PAUSE_REASONS)},
        )
    if reason != "Other":
        return None
    if not isinstance(custom_reason, str) or not custom_reason.strip():
        raise ValidationError("A custom reason is required when the pause reason is 'Other'")
    return custom_reason.strip()


# ── Helpers ───────────────────────────────────────────────────


def load_session(store: SessionStore, session_id: str, operation: str) -> Session:
    """Fetch a session or raise NotFoundError; storage errors are logged."""
    try:
        session = store.get_session(session_id)
    except StorageError:
        logger.error("Failed to load session %s for %s", session_id, operation, exc_info=True)
        raise
    if session is None:
        raise NotFoundError(f"Session not found: {session_id}", {"session_id": session_id})
    return session


def commit_transition(
    store: SessionStore,
    session: Session,
    fields: dict[str, Any],
    event: SessionEvent,
    operation: str,
) -> Session:
    """Commit *fields* + *event* against the version that was read."""
    try:
        return store.commit(session.id, fields, event, expected_version=session.version)
    except (StorageError, ConflictError):
        logger.error(
            "Failed to %s session %s (user %s)", operation, session.id, session.user_id,
            exc_info=True,
        )
        raise


def _hook_context(session: Session, event: SessionEvent) -> dict[str, Any]:
    return {"session": session.to_dict(), "event": event.to_dict()}


# ── Transitions ───────────────────────────────────────────────


def pause_session(
    session_id: str,
    reason: str,
    custom_reason: str | None = None,
    *,
    notes: str = "",
    store: SessionStore | None = None,
    now: datetime | None = None,
    cooldown: timedelta | None = None,
    root: Path | None = None,
) -> Session:
    """Pause an active session. Returns the updated session."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    now = aware(now) if now is not None else utc_now()

    session = load_session(store, session_id, "pause")
    if session.is_ended:
        raise SessionEndedError("Cannot pause an ended session", {"session_id": session_id})
    if session.is_paused:
        raise AlreadyPausedError("Session is already paused", {"session_id": session_id})

    custom = resolve_custom_reason(reason, custom_reason)

    state = can_user_pause(session.user_id, store=store, now=now, cooldown=cooldown, root=root)
    if not state.can_pause:
        available = state.next_pause_available.isoformat() if state.next_pause_available else "unknown"
        raise CooldownActiveError(
            f"Pause cooldown active. Next pause available at {available}",
            next_pause_available=state.next_pause_available,
            cooldown_remaining=state.cooldown_remaining,
            context={"session_id": session_id, "user_id": session.user_id},
        )

    event = SessionEvent(
        id=new_id(),
        session_id=session.id,
        user_id=session.user_id,
        type=SESSION_PAUSE,
        timestamp=now,
        reason=reason,
        custom_reason=custom,
        notes=notes,
    )
    updated = commit_transition(
        store,
        session,
        {"is_paused": True, "pause_start_time": now, "last_pause_event_id": event.id},
        event,
        "pause",
    )
    logger.info("Session %s paused (user %s, reason %r)", session.id, session.user_id, event.effective_reason)
    run_hooks("on_session_pause", _hook_context(updated, event), root)
    return updated


def resume_session(
    session_id: str,
    *,
    notes: str = "",
    store: SessionStore | None = None,
    now: datetime | None = None,
    root: Path | None = None,
) -> Session:
    """Resume a paused session, folding the pause into accumulated_pause_time."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    now = aware(now) if now is not None else utc_now()

    session = load_session(store, session_id, "resume")
    if session.is_ended:
        raise SessionEndedError("Cannot resume an ended session", {"session_id": session_id})
    if not session.is_paused or session.pause_start_time is None:
        raise NotPausedError("Session is not paused", {"session_id": session_id})

    pause_duration = max(0, seconds_between(session.pause_start_time, now))
    event = SessionEvent(
        id=new_id(),
        session_id=session.id,
        user_id=session.user_id,
        type=SESSION_RESUME,
        timestamp=now,
        pause_duration=pause_duration,
        notes=notes or f"Session resumed after {pause_duration // 60} minutes",
    )
    updated = commit_transition(
        store,
        session,
        {
            "is_paused": False,
            "pause_start_time": None,
            "accumulated_pause_time": session.accumulated_pause_time + pause_duration,
        },
        event,
        "resume",
    )
    logger.info(
        "Session %s resumed after %ds (accumulated %ds)",
        session.id, pause_duration, updated.accumulated_pause_time,
    )
    run_hooks("on_session_resume", _hook_context(updated, event), root)
    return updated


# ── Read-only projections ─────────────────────────────────────


def get_pause_status(
    session_id: str,
    *,
    store: SessionStore | None = None,
    now: datetime | None = None,
    cooldown: timedelta | None = None,
    root: Path | None = None,
) -> PauseStatus:
    """Current pause state of a session, including cooldown eligibility."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    now = aware(now) if now is not None else utc_now()

    session = load_session(store, session_id, "pause status")
    if session.is_ended:
        state = PauseState(can_pause=False)
    else:
        state = can_user_pause(session.user_id, store=store, now=now, cooldown=cooldown, root=root)

    return PauseStatus(
        is_paused=session.is_paused,
        can_pause=state.can_pause and not session.is_paused and session.is_active,
        current_pause_duration=current_pause_duration(session, now),
        total_pause_time=total_pause_time(session, now),
        accumulated_pause_time=session.accumulated_pause_time,
        pause_start_time=session.pause_start_time,
        cooldown=state,
        cooldown_message=cooldown_info(state),
    )


def get_pause_history(
    session_id: str,
    *,
    store: SessionStore | None = None,
    root: Path | None = None,
) -> list[SessionEvent]:
    """All pause and resume events of a session, oldest first."""
    if store is None:
        store = JsonSessionStore(root)
    try:
        return store.query_events(session_id, PAUSE_EVENT_TYPES)
    except StorageError:
        logger.error("Failed to read pause history for session %s", session_id, exc_info=True)
        raise
