"""Workspace root, settings and path helpers for Timekeep."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import yaml

from timekeep.fileio import read_yaml
from timekeep.models import Settings

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (contains config.yaml and data/)."""
    return Path(
        os.environ.get("TIMEKEEP_ROOT", str(Path.home() / "timekeep"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> Settings:
    """Load settings from config.yaml, falling back to defaults."""
    if root is None:
        root = workspace_root()
    try:
        data = read_yaml(config_path(root))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s: %s", config_path(root), e)
        return Settings()
    return Settings.from_dict(data)


# ── Path helpers ──────────────────────────────────────────────

def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def sessions_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "sessions.json"


def sessions_lock_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / ".sessions.lock"
