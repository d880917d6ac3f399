"""Tests for timekeep/analytics.py: pause summaries and cooldown suggestions."""

from datetime import timedelta

from conftest import T0, at
from timekeep.analytics import compute_pause_analytics, session_pause_analytics, suggest_cooldown
from timekeep.cooldown import DEFAULT_COOLDOWN, can_user_pause
from timekeep.models import SESSION_PAUSE, SESSION_RESUME, SessionEvent
from timekeep.pause import pause_session, resume_session
from timekeep.sessions import start_session

BASE = int(DEFAULT_COOLDOWN.total_seconds())


def _pair(start, minutes, reason="Medical"):
    return [
        SessionEvent(session_id="s1", type=SESSION_PAUSE, timestamp=start, reason=reason),
        SessionEvent(
            session_id="s1", type=SESSION_RESUME,
            timestamp=start + timedelta(minutes=minutes), pause_duration=minutes * 60,
        ),
    ]


def test_empty_history():
    analytics = compute_pause_analytics([], now=T0)
    assert analytics.total_pauses == 0
    assert analytics.average_pause_seconds == 0.0
    assert analytics.longest_pause_seconds == 0
    assert analytics.suggested_cooldown_seconds == BASE


def test_summary():
    events = _pair(at(hours=1), 10) + _pair(at(hours=6), 20, "Emergency") + _pair(at(hours=11), 30)
    analytics = compute_pause_analytics(events, now=at(hours=12))
    assert analytics.total_pauses == 3
    assert analytics.total_pause_seconds == 3600
    assert analytics.average_pause_seconds == 1200
    assert analytics.longest_pause_seconds == 1800
    assert analytics.reasons == {"Medical": 2, "Emergency": 1}
    assert analytics.pauses_last_7_days == 3


def test_custom_reasons_grouped_under_other():
    events = [
        SessionEvent(session_id="s1", type=SESSION_PAUSE, timestamp=at(hours=1),
                     reason="Other", custom_reason="Dog walk"),
        SessionEvent(session_id="s1", type=SESSION_PAUSE, timestamp=at(hours=6),
                     reason="Other", custom_reason="Parcel"),
    ]
    analytics = compute_pause_analytics(events, now=at(hours=7))
    assert analytics.reasons == {"Other": 2}


def test_old_pauses_not_recent():
    events = _pair(at(hours=1), 10)
    analytics = compute_pause_analytics(events, now=at(hours=1) + timedelta(days=8))
    assert analytics.pauses_last_7_days == 0


def test_suggest_cooldown():
    assert suggest_cooldown(0, 0) == BASE
    assert suggest_cooldown(8, 0) == int(BASE * 1.5)
    assert suggest_cooldown(8, 3600) == BASE * 2
    assert suggest_cooldown(1, 3600, base=timedelta(hours=1)) == 5400


def test_suggestion_does_not_change_enforcement(store):
    """The guard keeps the fixed window whatever analytics suggests."""
    session = start_session("u1", store=store, now=T0)
    pause_session(session.id, "Medical", store=store, now=at(minutes=10))
    resume_session(session.id, store=store, now=at(hours=1, minutes=10))

    analytics = session_pause_analytics(session.id, store=store, now=at(hours=2))
    assert analytics.suggested_cooldown_seconds == BASE * 1.5
    assert can_user_pause("u1", store=store, now=at(hours=4, minutes=10)).can_pause is True
