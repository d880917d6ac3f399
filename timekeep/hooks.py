"""Lifecycle hooks for Timekeep.

Hooks run shell commands after a session transition has been committed.
Configured via hooks.yaml in the workspace root:

    on_session_pause:
      - ./scripts/log-pause.sh
      - command: curl -s -X POST http://localhost:9000/pause --data-binary @-
        timeout: 5

Hook points:
- on_session_start, on_session_end
- on_session_pause, on_session_resume

A failing or slow hook is reported in its result and never changes the
outcome of the transition that triggered it.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

import yaml

from timekeep.fileio import read_yaml
from timekeep.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = {
    "on_session_start",
    "on_session_pause",
    "on_session_resume",
    "on_session_end",
}

DEFAULT_TIMEOUT = 30


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from hooks.yaml."""
    if root is None:
        root = workspace_root()
    path = hooks_config_path(root)
    if not path.exists():
        return {}
    try:
        return read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable hooks config %s: %s", path, e)
        return {}


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a given hook point.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []

    if root is None:
        root = workspace_root()

    config = load_hooks_config(root)
    hooks = config.get(hook_point, [])

    if not hooks or not isinstance(hooks, list):
        return []

    results = []
    context_json = json.dumps(context, ensure_ascii=False, default=str)

    for hook in hooks:
        if isinstance(hook, str):
            command = hook
            timeout = DEFAULT_TIMEOUT
        elif isinstance(hook, dict):
            command = hook.get("command", "")
            timeout = hook.get("timeout", DEFAULT_TIMEOUT)
        else:
            logger.warning("Skipping malformed %s hook entry: %r", hook_point, hook)
            continue

        if not command:
            continue
        if not isinstance(command, str):
            logger.warning("Skipping %s hook with non-string command: %r", hook_point, command)
            continue
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            logger.warning("Skipping %s hook %r with invalid timeout: %r", hook_point, command, timeout)
            continue

        result: dict[str, Any] = {"command": command, "hook_point": hook_point}
        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=context_json,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(root),
            )
            result["exit_code"] = proc.returncode
            result["stdout"] = proc.stdout[:4096]  # Cap output
            result["stderr"] = proc.stderr[:4096]
            if proc.returncode != 0:
                logger.warning("Hook %r for %s exited with %d", command, hook_point, proc.returncode)
        except subprocess.TimeoutExpired:
            result["exit_code"] = -1
            result["error"] = f"Hook timed out after {timeout}s"
            logger.warning("Hook %r for %s timed out after %ss", command, hook_point, timeout)
        except (OSError, ValueError) as e:
            result["exit_code"] = -1
            result["error"] = str(e)
            logger.warning("Hook %r for %s failed: %s", command, hook_point, e)

        results.append(result)

    return results
