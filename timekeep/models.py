"""Typed dataclasses for the Timekeep data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
Instants are timezone-aware datetimes; naive values are taken as UTC and
unparseable values load as None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any


# ── Event types ───────────────────────────────────────────────

SESSION_START = "session_start"
SESSION_PAUSE = "session_pause"
SESSION_RESUME = "session_resume"
SESSION_END = "session_end"

EVENT_TYPES = {SESSION_START, SESSION_PAUSE, SESSION_RESUME, SESSION_END}
PAUSE_EVENT_TYPES = (SESSION_PAUSE, SESSION_RESUME)

DEFAULT_COOLDOWN_HOURS = 4
DEFAULT_MAX_CLOCK_SKEW_SECONDS = 5 * 60


# ── Primitives ────────────────────────────────────────────────


def parse_instant(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or datetime into an aware datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_instant(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds")


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _pick(d: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    return d.get(camel, d.get(snake, default))


# ── Session ───────────────────────────────────────────────────


@dataclass
class Session:
    id: str = ""
    user_id: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None
    is_paused: bool = False
    pause_start_time: datetime | None = None
    accumulated_pause_time: int = 0  # seconds
    goal_duration: int | None = None  # seconds
    is_hardcore_mode: bool = False
    keyholder_approval_required: bool = False
    end_reason: str = ""
    notes: str = ""
    version: int = 0
    last_pause_event_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Session:
        if not d or not isinstance(d, dict):
            return cls()
        goal = _pick(d, "goalDuration", "goal_duration")
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_pick(d, "userId", "user_id", "")),
            start_time=parse_instant(_pick(d, "startTime", "start_time")),
            end_time=parse_instant(_pick(d, "endTime", "end_time")),
            is_paused=bool(_pick(d, "isPaused", "is_paused", False)),
            pause_start_time=parse_instant(_pick(d, "pauseStartTime", "pause_start_time")),
            accumulated_pause_time=max(0, _int(_pick(d, "accumulatedPauseTime", "accumulated_pause_time", 0))),
            goal_duration=_int(goal) if goal is not None else None,
            is_hardcore_mode=bool(_pick(d, "isHardcoreMode", "is_hardcore_mode", False)),
            keyholder_approval_required=bool(
                _pick(d, "keyholderApprovalRequired", "keyholder_approval_required", False)
            ),
            end_reason=str(_pick(d, "endReason", "end_reason", "") or ""),
            notes=str(d.get("notes", "") or ""),
            version=_int(d.get("version", 0)),
            last_pause_event_id=_pick(d, "lastPauseEventId", "last_pause_event_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "startTime": format_instant(self.start_time),
            "endTime": format_instant(self.end_time),
            "isPaused": self.is_paused,
            "pauseStartTime": format_instant(self.pause_start_time),
            "accumulatedPauseTime": self.accumulated_pause_time,
            "isHardcoreMode": self.is_hardcore_mode,
            "keyholderApprovalRequired": self.keyholder_approval_required,
            "version": self.version,
        }
        if self.goal_duration is not None:
            d["goalDuration"] = self.goal_duration
        if self.end_reason:
            d["endReason"] = self.end_reason
        if self.notes:
            d["notes"] = self.notes
        if self.last_pause_event_id:
            d["lastPauseEventId"] = self.last_pause_event_id
        return d


# ── Event log ─────────────────────────────────────────────────


@dataclass(frozen=True)
class SessionEvent:
    """One immutable entry of the append-only event log."""

    id: str = ""
    session_id: str = ""
    user_id: str = ""
    type: str = ""
    timestamp: datetime | None = None
    reason: str | None = None  # session_pause, one of the pause reasons
    custom_reason: str | None = None  # session_pause with reason "Other"
    pause_duration: int | None = None  # session_resume, seconds
    notes: str = ""

    @property
    def effective_reason(self) -> str | None:
        """The reason text to show: the custom reason when one was given."""
        return self.custom_reason or self.reason

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SessionEvent:
        if not d or not isinstance(d, dict):
            return cls()
        details = d.get("details") if isinstance(d.get("details"), dict) else {}
        duration = details.get("pauseDuration", details.get("pause_duration"))
        return cls(
            id=str(d.get("id", "")),
            session_id=str(_pick(d, "sessionId", "session_id", "")),
            user_id=str(_pick(d, "userId", "user_id", "")),
            type=str(d.get("type", "")),
            timestamp=parse_instant(d.get("timestamp")),
            reason=details.get("pauseReason", details.get("reason")),
            custom_reason=details.get("customReason", details.get("custom_reason")),
            pause_duration=_int(duration) if duration is not None else None,
            notes=str(details.get("notes", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        details: dict[str, Any] = {}
        if self.reason is not None:
            details["pauseReason"] = self.reason
        if self.custom_reason is not None:
            details["customReason"] = self.custom_reason
        if self.pause_duration is not None:
            details["pauseDuration"] = self.pause_duration
        if self.notes:
            details["notes"] = self.notes
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "type": self.type,
            "timestamp": format_instant(self.timestamp),
            "details": details,
        }


# ── Derived projections ───────────────────────────────────────


@dataclass
class PauseState:
    can_pause: bool = False
    last_pause_time: datetime | None = None
    next_pause_available: datetime | None = None
    cooldown_remaining: int | None = None  # seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "canPause": self.can_pause,
            "lastPauseTime": format_instant(self.last_pause_time),
            "nextPauseAvailable": format_instant(self.next_pause_available),
            "cooldownRemaining": self.cooldown_remaining,
        }


@dataclass
class PauseStatus:
    is_paused: bool = False
    can_pause: bool = False
    current_pause_duration: int = 0
    total_pause_time: int = 0
    accumulated_pause_time: int = 0
    pause_start_time: datetime | None = None
    cooldown: PauseState = field(default_factory=PauseState)
    cooldown_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "isPaused": self.is_paused,
            "canPause": self.can_pause,
            "currentPauseDuration": self.current_pause_duration,
            "totalPauseTime": self.total_pause_time,
            "accumulatedPauseTime": self.accumulated_pause_time,
            "pauseStartTime": format_instant(self.pause_start_time),
            "cooldown": self.cooldown.to_dict(),
            "cooldownMessage": self.cooldown_message,
        }


@dataclass
class SessionStats:
    total_elapsed: int = 0
    effective_time: int = 0
    total_pause_time: int = 0
    accumulated_pause_time: int = 0
    current_pause_duration: int = 0
    pause_percentage: float = 0.0
    is_paused: bool = False
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalElapsed": self.total_elapsed,
            "effectiveTime": self.effective_time,
            "totalPauseTime": self.total_pause_time,
            "accumulatedPauseTime": self.accumulated_pause_time,
            "currentPauseDuration": self.current_pause_duration,
            "pausePercentage": round(self.pause_percentage, 2),
            "isPaused": self.is_paused,
            "isActive": self.is_active,
        }


@dataclass
class Goal:
    """A duration goal owned elsewhere; read-only here."""

    target_value: int = 0  # seconds
    current_value: int = 0
    is_completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            target_value=_int(_pick(d, "targetValue", "target_value", 0)),
            current_value=_int(_pick(d, "currentValue", "current_value", 0)),
            is_completed=bool(_pick(d, "isCompleted", "is_completed", False)),
        )


@dataclass
class GoalProgress:
    effective_time: int = 0
    goal_time: int = 0
    progress: float = 0.0  # percent, 0-100
    is_completed: bool = False
    time_remaining: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "effectiveTime": self.effective_time,
            "goalTime": self.goal_time,
            "progress": round(self.progress, 2),
            "isCompleted": self.is_completed,
            "timeRemaining": self.time_remaining,
        }


@dataclass
class TimerSyncIssue:
    type: str = ""  # missing_data, future_timestamp, clock_skew
    message: str = ""
    severity: str = "warning"  # warning, error

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "severity": self.severity}


# ── Analytics ─────────────────────────────────────────────────


@dataclass
class PauseAnalytics:
    total_pauses: int = 0
    total_pause_seconds: int = 0
    average_pause_seconds: float = 0.0
    longest_pause_seconds: int = 0
    pauses_last_7_days: int = 0
    reasons: dict[str, int] = field(default_factory=dict)
    suggested_cooldown_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalPauses": self.total_pauses,
            "totalPauseSeconds": self.total_pause_seconds,
            "averagePauseSeconds": round(self.average_pause_seconds, 1),
            "longestPauseSeconds": self.longest_pause_seconds,
            "pausesLast7Days": self.pauses_last_7_days,
            "reasons": self.reasons,
            "suggestedCooldownSeconds": self.suggested_cooldown_seconds,
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    cooldown_hours: float = DEFAULT_COOLDOWN_HOURS
    max_clock_skew_seconds: int = DEFAULT_MAX_CLOCK_SKEW_SECONDS

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=self.cooldown_hours)

    @property
    def max_clock_skew(self) -> timedelta:
        return timedelta(seconds=self.max_clock_skew_seconds)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        pause = d.get("pause") if isinstance(d.get("pause"), dict) else {}
        clock = d.get("clock") if isinstance(d.get("clock"), dict) else {}

        cooldown_hours: float = DEFAULT_COOLDOWN_HOURS
        try:
            value = float(pause.get("cooldown_hours", DEFAULT_COOLDOWN_HOURS))
            if value > 0:
                cooldown_hours = value
        except (TypeError, ValueError):
            pass

        skew = _int(clock.get("max_skew_seconds"), DEFAULT_MAX_CLOCK_SKEW_SECONDS)
        return cls(
            cooldown_hours=cooldown_hours,
            max_clock_skew_seconds=skew if skew > 0 else DEFAULT_MAX_CLOCK_SKEW_SECONDS,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "pause": {"cooldown_hours": self.cooldown_hours},
            "clock": {"max_skew_seconds": self.max_clock_skew_seconds},
        }
