"""Exception hierarchy for Timekeep.

State-machine and validation errors are raised straight to the caller so
that a presentation layer can show an actionable message. StorageError and
ConflictError come from the store and are re-raised unchanged by the
orchestrator after logging.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class TimekeepError(Exception):
    """Base exception for all Timekeep errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


class NotFoundError(TimekeepError):
    """No session for the given id, or no active session for the user."""


class ValidationError(TimekeepError):
    """Invalid input, e.g. an unknown pause reason."""


# ── State machine ─────────────────────────────────────────────


class SessionStateError(TimekeepError):
    """A pause/resume/end precondition was violated."""


class AlreadyPausedError(SessionStateError):
    pass


class NotPausedError(SessionStateError):
    pass


class SessionEndedError(SessionStateError):
    """The session has an end time and can no longer change."""


class SessionActiveError(SessionStateError):
    """The user already has an active session."""


class CooldownActiveError(TimekeepError):
    """A pause was requested inside the cooldown window."""

    def __init__(
        self,
        message: str,
        next_pause_available: datetime | None,
        cooldown_remaining: int | None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.next_pause_available = next_pause_available
        self.cooldown_remaining = cooldown_remaining

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["next_pause_available"] = (
            self.next_pause_available.isoformat() if self.next_pause_available else None
        )
        d["cooldown_remaining"] = self.cooldown_remaining
        return d


# ── Storage ───────────────────────────────────────────────────


class StorageError(TimekeepError):
    """The underlying store could not be read or written."""


class ConflictError(TimekeepError):
    """A write was based on a stale session version and was rejected."""
