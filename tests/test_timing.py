"""Tests for timekeep/timing.py: effective time, goals and stats."""

from datetime import datetime, timedelta, timezone

from conftest import T0, at, make_session
from timekeep.models import Goal
from timekeep.timing import (
    current_pause_duration,
    detect_clock_issue,
    effective_time,
    format_duration,
    format_time_remaining,
    goal_progress,
    goal_progress_percent,
    is_goal_met,
    remaining_goal_time,
    session_stats,
    total_elapsed,
)


def test_effective_time_no_pauses():
    session = make_session()
    assert effective_time(session, at(hours=1)) == 3600


def test_effective_time_excludes_accumulated_pause():
    session = make_session(accumulated_pause_time=600)
    assert effective_time(session, at(hours=1)) == 3000


def test_effective_time_excludes_open_pause():
    session = make_session(is_paused=True, pause_start_time=at(minutes=30))
    assert current_pause_duration(session, at(hours=1)) == 1800
    assert effective_time(session, at(hours=1)) == 1800


def test_effective_time_clamped_at_zero():
    """More pause than elapsed time never goes negative."""
    session = make_session(accumulated_pause_time=5000)
    assert effective_time(session, at(hours=1)) == 0


def test_effective_time_floors_sub_second():
    session = make_session()
    assert effective_time(session, at(seconds=1.999)) == 1
    assert effective_time(session, at(seconds=0.999)) == 0


def test_effective_time_never_negative():
    session = make_session(
        accumulated_pause_time=120,
        is_paused=True,
        pause_start_time=at(minutes=5),
    )
    for offset in (-3600, -1, 0, 1, 59, 300, 301, 7200):
        assert effective_time(session, at(seconds=offset)) >= 0


def test_effective_time_start_in_future():
    session = make_session(start_time=at(hours=2))
    assert effective_time(session, at(hours=1)) == 0


def test_effective_time_missing_start():
    session = make_session(start_time=None)
    assert effective_time(session, at(hours=1)) == 0
    assert total_elapsed(session, at(hours=1)) == 0


def test_naive_now_is_utc():
    session = make_session()
    naive = datetime(2026, 2, 11, 11, 0, 0)
    assert effective_time(session, naive) == 3600


def test_ended_session_measured_to_end_time():
    session = make_session(end_time=at(hours=2), accumulated_pause_time=600)
    assert total_elapsed(session, at(hours=5)) == 7200
    assert effective_time(session, at(hours=5)) == 6600


def test_goal_helpers():
    session = make_session(accumulated_pause_time=600)
    now = at(hours=1)  # effective 3000
    assert remaining_goal_time(session, 3600, now) == 600
    assert remaining_goal_time(session, 1000, now) == 0
    assert goal_progress_percent(session, 6000, now) == 50.0
    assert goal_progress_percent(session, 1000, now) == 100.0
    assert goal_progress_percent(session, 0, now) == 0.0
    assert is_goal_met(session, 3000, now) is True
    assert is_goal_met(session, 3001, now) is False


def test_goal_progress_from_goal_and_session():
    session = make_session(goal_duration=7200)
    progress = goal_progress(session, now=at(hours=1))
    assert progress.goal_time == 7200
    assert progress.progress == 50.0
    assert progress.time_remaining == 3600
    assert progress.is_completed is False

    progress = goal_progress(session, Goal(target_value=1800), at(hours=1))
    assert progress.is_completed is True
    assert progress.progress == 100.0


def test_session_stats():
    session = make_session(
        accumulated_pause_time=600,
        is_paused=True,
        pause_start_time=at(minutes=50),
    )
    stats = session_stats(session, at(hours=1))
    assert stats.total_elapsed == 3600
    assert stats.current_pause_duration == 600
    assert stats.total_pause_time == 1200
    assert stats.effective_time == 2400
    assert round(stats.pause_percentage, 3) == 33.333
    assert stats.is_paused is True
    assert stats.is_active is True


def test_session_stats_zero_elapsed():
    stats = session_stats(make_session(), T0)
    assert stats.total_elapsed == 0
    assert stats.pause_percentage == 0.0


def test_detect_clock_issue():
    assert detect_clock_issue(make_session(), at(hours=1)) is None

    issue = detect_clock_issue(make_session(start_time=at(minutes=1)), T0)
    assert issue.type == "future_timestamp"
    assert issue.severity == "warning"

    issue = detect_clock_issue(make_session(start_time=at(hours=1)), T0)
    assert issue.severity == "error"

    paused = make_session(is_paused=True, pause_start_time=at(minutes=20))
    issue = detect_clock_issue(paused, at(minutes=10))
    assert issue.type == "clock_skew"

    issue = detect_clock_issue(make_session(start_time=None), T0, max_skew=timedelta(seconds=1))
    assert issue.type == "missing_data"


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(-5) == "0s"
    assert format_duration(45) == "45s"
    assert format_duration(3600) == "1h"
    assert format_duration(93784) == "1d 2h 3m 4s"


def test_format_time_remaining():
    assert format_time_remaining(3665) == "1h 1m 5s"
    assert format_time_remaining(125) == "2m 5s"
    assert format_time_remaining(45) == "45s"
    assert format_time_remaining(0) == "0s"


def test_aware_non_utc_now():
    session = make_session()
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2026, 2, 11, 13, 0, 0, tzinfo=plus_two)  # 11:00 UTC
    assert effective_time(session, now) == 3600
