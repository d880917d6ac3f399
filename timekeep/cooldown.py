"""Pause cooldown guard for Timekeep.

Decides whether a user may pause right now. The answer is derived only
from the event log: the most recent ``session_pause`` event of the user's
active session, compared against a fixed cooldown window (4 hours unless
``pause.cooldown_hours`` is set in config.yaml). Cached session fields are
never consulted, so a stale copy of a session cannot unlock a pause.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path

from timekeep.errors import StorageError
from timekeep.models import DEFAULT_COOLDOWN_HOURS, SESSION_PAUSE, PauseState
from timekeep.store import JsonSessionStore, SessionStore, store_root
from timekeep.timing import ONE_SECOND, aware, format_time_remaining, utc_now
from timekeep.workspace import load_settings

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(hours=DEFAULT_COOLDOWN_HOURS)


def cooldown_hours(root: Path | None = None) -> float:
    """The configured cooldown window, in hours."""
    return load_settings(root).cooldown_hours


def can_user_pause(
    user_id: str,
    *,
    store: SessionStore | None = None,
    now: datetime | None = None,
    cooldown: timedelta | None = None,
    root: Path | None = None,
) -> PauseState:
    """Check whether *user_id* may pause their active session at *now*."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    if cooldown is None:
        cooldown = load_settings(root).cooldown
    now = aware(now) if now is not None else utc_now()

    try:
        session = store.get_active_session(user_id)
        if session is None:
            return PauseState(can_pause=False)
        last_pause = store.latest_event(session.id, SESSION_PAUSE)
    except StorageError:
        logger.error("Failed to read pause history for user %s", user_id, exc_info=True)
        raise

    if last_pause is None or last_pause.timestamp is None:
        return PauseState(can_pause=True)

    elapsed = now - last_pause.timestamp
    if elapsed >= cooldown:
        return PauseState(can_pause=True, last_pause_time=last_pause.timestamp)

    remaining = cooldown - elapsed
    return PauseState(
        can_pause=False,
        last_pause_time=last_pause.timestamp,
        next_pause_available=last_pause.timestamp + cooldown,
        # Rounded up to whole seconds.
        cooldown_remaining=-(-remaining // ONE_SECOND),
    )


def cooldown_info(state: PauseState) -> str:
    """Human-readable cooldown message, empty when a pause is allowed."""
    if state.can_pause or state.cooldown_remaining is None:
        return ""
    return f"Next pause available in {format_time_remaining(state.cooldown_remaining)}"
