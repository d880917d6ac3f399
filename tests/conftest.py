"""Shared test fixtures for Timekeep tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from timekeep.models import Session
from timekeep.store import JsonSessionStore

T0 = datetime(2026, 2, 11, 10, 0, 0, tzinfo=timezone.utc)


def at(hours: float = 0, minutes: float = 0, seconds: float = 0) -> datetime:
    """An instant relative to T0 (10:00:00 UTC)."""
    return T0 + timedelta(hours=hours, minutes=minutes, seconds=seconds)


def make_session(**overrides) -> Session:
    fields = {"id": "s1", "user_id": "u1", "start_time": T0}
    fields.update(overrides)
    return Session(**fields)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a default config."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    config = {
        "pause": {"cooldown_hours": 4},
        "clock": {"max_skew_seconds": 300},
    }
    (root / "config.yaml").write_text(
        yaml.dump(config, default_flow_style=False), encoding="utf-8"
    )

    os.environ["TIMEKEEP_ROOT"] = str(root)
    yield root
    if "TIMEKEEP_ROOT" in os.environ:
        del os.environ["TIMEKEEP_ROOT"]


@pytest.fixture
def store(workspace: Path) -> JsonSessionStore:
    return JsonSessionStore(workspace)
