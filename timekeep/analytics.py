"""Pause analytics for Timekeep.

Summarizes a session's pause/resume log and proposes an adaptive cooldown.
The suggestion is informational only: the cooldown guard always enforces
the fixed configured window and never reads anything computed here.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from timekeep.cooldown import DEFAULT_COOLDOWN
from timekeep.models import SESSION_PAUSE, SESSION_RESUME, PauseAnalytics, SessionEvent
from timekeep.pause import get_pause_history
from timekeep.store import JsonSessionStore, SessionStore, store_root
from timekeep.timing import aware, utc_now
from timekeep.workspace import load_settings

# More than one pause a day, or pauses averaging over half an hour, each
# stretch the suggested cooldown by half the base window.
FREQUENT_PAUSES_PER_WEEK = 7
LONG_PAUSE_SECONDS = 30 * 60
MAX_COOLDOWN_FACTOR = 2.0


def suggest_cooldown(
    pauses_last_7_days: int,
    average_pause_seconds: float,
    base: timedelta = DEFAULT_COOLDOWN,
) -> int:
    """Suggested cooldown in seconds, between 1x and 2x the base window."""
    factor = 1.0
    if pauses_last_7_days > FREQUENT_PAUSES_PER_WEEK:
        factor += 0.5
    if average_pause_seconds > LONG_PAUSE_SECONDS:
        factor += 0.5
    return int(base.total_seconds() * min(factor, MAX_COOLDOWN_FACTOR))


def compute_pause_analytics(
    events: Iterable[SessionEvent],
    now: datetime | None = None,
    base_cooldown: timedelta = DEFAULT_COOLDOWN,
) -> PauseAnalytics:
    """Aggregate pause/resume events into a PauseAnalytics summary."""
    now = aware(now) if now is not None else utc_now()
    week_ago = now - timedelta(days=7)

    pauses = [e for e in events if e.type in (SESSION_PAUSE, SESSION_RESUME)]
    durations = [
        e.pause_duration for e in pauses
        if e.type == SESSION_RESUME and e.pause_duration is not None
    ]

    reasons: dict[str, int] = defaultdict(int)
    recent = 0
    total_pauses = 0
    for e in pauses:
        if e.type != SESSION_PAUSE:
            continue
        total_pauses += 1
        reasons[e.reason or "Unknown"] += 1
        if e.timestamp is not None and e.timestamp >= week_ago:
            recent += 1

    total_seconds = sum(durations)
    average = total_seconds / len(durations) if durations else 0.0
    return PauseAnalytics(
        total_pauses=total_pauses,
        total_pause_seconds=total_seconds,
        average_pause_seconds=average,
        longest_pause_seconds=max(durations, default=0),
        pauses_last_7_days=recent,
        reasons=dict(reasons),
        suggested_cooldown_seconds=suggest_cooldown(recent, average, base_cooldown),
    )


def session_pause_analytics(
    session_id: str,
    *,
    store: SessionStore | None = None,
    now: datetime | None = None,
    root: Path | None = None,
) -> PauseAnalytics:
    """Pause analytics for one session, read from its event log."""
    if store is None:
        store = JsonSessionStore(root)
    root = store_root(store, root)
    events = get_pause_history(session_id, store=store)
    return compute_pause_analytics(events, now, load_settings(root).cooldown)
