"""Timekeep JSON API: the surface the presentation layer polls and posts to.

Run with:  uvicorn ui.app:app --port 8000
The workspace comes from TIMEKEEP_ROOT.
"""

from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from timekeep import (
    ConflictError,
    CooldownActiveError,
    NotFoundError,
    SessionStateError,
    StorageError,
    TimekeepError,
    ValidationError,
    can_user_pause,
    compute_pause_analytics,
    detect_clock_issue,
    end_session,
    get_pause_history,
    get_pause_reasons,
    get_pause_status,
    get_session,
    goal_progress,
    load_settings,
    pause_session,
    resume_session,
    session_stats,
    start_session,
)
from timekeep.logger import setup_logging

setup_logging()

app = FastAPI(title="Timekeep API", version="0.1.0")


# ── Error mapping ─────────────────────────────────────────────

_STATUS_BY_ERROR: list[tuple[type[TimekeepError], int]] = [
    (NotFoundError, 404),
    (ValidationError, 422),
    (CooldownActiveError, 429),
    (SessionStateError, 409),
    (ConflictError, 409),
    (StorageError, 503),
]


def status_for(error: TimekeepError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return code
    return 500


@app.exception_handler(TimekeepError)
async def timekeep_error_handler(request: Request, exc: TimekeepError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content={"ok": False, "error": exc.to_dict()})


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/pause-reasons")
def api_pause_reasons() -> dict[str, Any]:
    return {"reasons": list(get_pause_reasons())}


@app.post("/api/sessions")
def api_start_session(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Start a session for a user."""
    user_id = str(payload.get("user_id", "")).strip()
    if not user_id:
        raise ValidationError("user_id is required")
    goal = payload.get("goal_duration")
    if goal is not None:
        bad_goal = ValidationError("goal_duration must be a whole number of seconds", {"goal_duration": goal})
        if isinstance(goal, bool) or not isinstance(goal, (int, float, str)):
            raise bad_goal
        try:
            goal = int(goal)
        except (ValueError, OverflowError) as e:
            raise bad_goal from e
    session = start_session(
        user_id,
        goal_duration=goal,
        is_hardcore_mode=bool(payload.get("is_hardcore_mode", False)),
        keyholder_approval_required=bool(payload.get("keyholder_approval_required", False)),
        notes=str(payload.get("notes", "")),
    )
    return {"ok": True, "session": session.to_dict()}


@app.get("/api/sessions/{session_id}")
def api_get_session(session_id: str) -> dict[str, Any]:
    session = get_session(session_id)
    issue = detect_clock_issue(session, max_skew=load_settings().max_clock_skew)
    return {
        "session": session.to_dict(),
        "stats": session_stats(session).to_dict(),
        "goal": goal_progress(session).to_dict() if session.goal_duration else None,
        "clock_issue": issue.to_dict() if issue else None,
    }


@app.get("/api/sessions/{session_id}/stats")
def api_session_stats(session_id: str) -> dict[str, Any]:
    session = get_session(session_id)
    return session_stats(session).to_dict()


@app.post("/api/sessions/{session_id}/pause")
def api_pause(session_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Pause a session; 429 while the cooldown is running."""
    custom_reason = payload.get("custom_reason")
    if custom_reason is not None and not isinstance(custom_reason, str):
        raise ValidationError("custom_reason must be a string", {"custom_reason": custom_reason})
    session = pause_session(
        session_id,
        str(payload.get("reason", "")),
        custom_reason,
        notes=str(payload.get("notes", "")),
    )
    return {"ok": True, "session": session.to_dict()}


@app.post("/api/sessions/{session_id}/resume")
def api_resume(session_id: str, payload: dict[str, Any] = Body(default={})) -> dict[str, Any]:
    session = resume_session(session_id, notes=str(payload.get("notes", "")))
    return {"ok": True, "session": session.to_dict()}


@app.post("/api/sessions/{session_id}/end")
def api_end(session_id: str, payload: dict[str, Any] = Body(default={})) -> dict[str, Any]:
    session = end_session(session_id, reason=str(payload.get("reason", "")))
    return {"ok": True, "session": session.to_dict()}


@app.get("/api/sessions/{session_id}/pause")
def api_pause_status(session_id: str) -> dict[str, Any]:
    return get_pause_status(session_id).to_dict()


@app.get("/api/sessions/{session_id}/history")
def api_pause_history(session_id: str) -> dict[str, Any]:
    """Pause/resume log, oldest first, with summary analytics."""
    events = get_pause_history(session_id)
    return {
        "events": [e.to_dict() for e in events],
        "analytics": compute_pause_analytics(events, base_cooldown=load_settings().cooldown).to_dict(),
    }


@app.get("/api/users/{user_id}/can-pause")
def api_can_pause(user_id: str) -> dict[str, Any]:
    return can_user_pause(user_id).to_dict()
