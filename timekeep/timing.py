"""Effective time calculator for Timekeep.

Pure functions over a Session snapshot and a reference instant (default:
now). All durations are whole seconds, floored, never rounded up.

None of these functions raise. Missing instants count as zero seconds and
every subtraction saturates at zero, so a drifted pause total or a skewed
clock shows up as 0 rather than a negative duration.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from timekeep.models import (
    DEFAULT_MAX_CLOCK_SKEW_SECONDS,
    Goal,
    GoalProgress,
    Session,
    SessionStats,
    TimerSyncIssue,
)

logger = logging.getLogger(__name__)

ONE_SECOND = timedelta(seconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def seconds_between(start: datetime | None, end: datetime | None) -> int:
    """Floored whole seconds from *start* to *end*; 0 if either is missing.

    The result is negative when *end* precedes *start*.
    """
    if start is None or end is None:
        return 0
    return (aware(end) - aware(start)) // ONE_SECOND


def _reference(session: Session, now: datetime | None) -> datetime:
    """The instant elapsed time is measured to: now, capped at end_time."""
    ref = aware(now) if now is not None else utc_now()
    if session.end_time is not None and aware(session.end_time) < ref:
        return aware(session.end_time)
    return ref


# ── Durations ─────────────────────────────────────────────────


def total_elapsed(session: Session, now: datetime | None = None) -> int:
    """Wall-clock seconds since start, pauses included."""
    return max(0, seconds_between(session.start_time, _reference(session, now)))


def current_pause_duration(session: Session, now: datetime | None = None) -> int:
    """Seconds spent in the open pause, 0 when not paused or ended."""
    if not session.is_paused or session.pause_start_time is None or session.is_ended:
        return 0
    return max(0, seconds_between(session.pause_start_time, _reference(session, now)))


def total_pause_time(session: Session, now: datetime | None = None) -> int:
    return session.accumulated_pause_time + current_pause_duration(session, now)


def effective_time(session: Session, now: datetime | None = None) -> int:
    """Elapsed seconds minus every paused interval, never below zero."""
    elapsed = total_elapsed(session, now)
    current_pause = current_pause_duration(session, now)
    effective = max(0, elapsed - session.accumulated_pause_time - current_pause)
    logger.debug(
        "Effective time for session %s: elapsed=%d accumulated=%d current_pause=%d effective=%d",
        session.id, elapsed, session.accumulated_pause_time, current_pause, effective,
    )
    return effective


# ── Goals ─────────────────────────────────────────────────────


def remaining_goal_time(session: Session, target_seconds: int, now: datetime | None = None) -> int:
    return max(0, target_seconds - effective_time(session, now))


def goal_progress_percent(session: Session, target_seconds: int, now: datetime | None = None) -> float:
    """Percent of *target_seconds* reached, capped at 100."""
    if target_seconds <= 0:
        return 0.0
    return min(100.0, 100.0 * effective_time(session, now) / target_seconds)


def is_goal_met(session: Session, target_seconds: int, now: datetime | None = None) -> bool:
    return effective_time(session, now) >= target_seconds


def goal_progress(
    session: Session,
    goal: Goal | int | None = None,
    now: datetime | None = None,
) -> GoalProgress:
    """Progress toward *goal*, or toward the session's own goal_duration."""
    if isinstance(goal, Goal):
        target = goal.target_value
    elif goal is None:
        target = session.goal_duration or 0
    else:
        target = int(goal)

    effective = effective_time(session, now)
    return GoalProgress(
        effective_time=effective,
        goal_time=target,
        progress=min(100.0, 100.0 * effective / target) if target > 0 else 0.0,
        is_completed=target > 0 and effective >= target,
        time_remaining=max(0, target - effective),
    )


# ── Stats ─────────────────────────────────────────────────────


def session_stats(session: Session, now: datetime | None = None) -> SessionStats:
    elapsed = total_elapsed(session, now)
    current_pause = current_pause_duration(session, now)
    pause_total = session.accumulated_pause_time + current_pause
    return SessionStats(
        total_elapsed=elapsed,
        effective_time=effective_time(session, now),
        total_pause_time=pause_total,
        accumulated_pause_time=session.accumulated_pause_time,
        current_pause_duration=current_pause,
        pause_percentage=(pause_total / elapsed * 100) if elapsed > 0 else 0.0,
        is_paused=session.is_paused,
        is_active=session.is_active,
    )


def detect_clock_issue(
    session: Session,
    now: datetime | None = None,
    max_skew: timedelta = timedelta(seconds=DEFAULT_MAX_CLOCK_SKEW_SECONDS),
) -> TimerSyncIssue | None:
    """Spot session timestamps that make the timer untrustworthy."""
    ref = aware(now) if now is not None else utc_now()

    if session.start_time is None:
        return TimerSyncIssue("missing_data", "Session start time is missing", "error")

    start = aware(session.start_time)
    if start > ref:
        skew = start - ref
        logger.warning("Session %s start time is %ds in the future", session.id, skew // ONE_SECOND)
        return TimerSyncIssue(
            "future_timestamp",
            f"Session start time is {skew // ONE_SECOND}s in the future. Check device clock.",
            "error" if skew > max_skew else "warning",
        )

    if session.is_paused and session.pause_start_time is not None:
        pause_start = aware(session.pause_start_time)
        if pause_start > ref:
            skew = pause_start - ref
            logger.warning("Session %s pause start is %ds in the future", session.id, skew // ONE_SECOND)
            return TimerSyncIssue(
                "clock_skew",
                f"Pause time is {skew // ONE_SECOND}s in the future. Timer may be inaccurate.",
                "warning",
            )

    return None


# ── Formatting ────────────────────────────────────────────────


def format_duration(seconds: int) -> str:
    """'1d 2h 3m 4s', omitting zero parts; '0s' for zero or less."""
    if seconds <= 0:
        return "0s"
    days, rest = divmod(int(seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_time_remaining(seconds: int) -> str:
    """Compact cooldown countdown: '1h 1m 5s', '2m 5s' or '45s'."""
    if seconds <= 0:
        return "0s"
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
