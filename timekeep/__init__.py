"""Timekeep core library: session timing and pause-cooldown engine.

Public API re-exports for convenient imports:
    from timekeep import pause_session, effective_time, can_user_pause, ...
"""

# Workspace & settings
from timekeep.workspace import (
    workspace_root,
    load_settings,
    config_path,
    hooks_config_path,
    sessions_path,
)

# Errors
from timekeep.errors import (
    TimekeepError,
    NotFoundError,
    ValidationError,
    SessionStateError,
    AlreadyPausedError,
    NotPausedError,
    SessionEndedError,
    SessionActiveError,
    CooldownActiveError,
    StorageError,
    ConflictError,
)

# Effective time calculator
from timekeep.timing import (
    effective_time,
    total_elapsed,
    current_pause_duration,
    total_pause_time,
    remaining_goal_time,
    goal_progress_percent,
    is_goal_met,
    goal_progress,
    session_stats,
    detect_clock_issue,
    format_duration,
    format_time_remaining,
)

# Store
from timekeep.store import SessionStore, JsonSessionStore

# Cooldown guard
from timekeep.cooldown import (
    DEFAULT_COOLDOWN,
    can_user_pause,
    cooldown_hours,
    cooldown_info,
)

# Pause/resume
from timekeep.pause import (
    PAUSE_REASONS,
    get_pause_reasons,
    is_valid_pause_reason,
    pause_session,
    resume_session,
    get_pause_status,
    get_pause_history,
)

# Lifecycle
from timekeep.sessions import (
    start_session,
    end_session,
    get_session,
    get_active_session,
)

# Analytics
from timekeep.analytics import compute_pause_analytics, session_pause_analytics

# Models
from timekeep.models import (
    Session,
    SessionEvent,
    PauseState,
    PauseStatus,
    SessionStats,
    Goal,
    GoalProgress,
    TimerSyncIssue,
    PauseAnalytics,
    Settings,
)
