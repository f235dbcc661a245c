"""Shared filesystem locations for the pushlog CLI and web server."""
from __future__ import annotations

import os
from pathlib import Path

LEDGER_FILENAME = "pushups.json"
HOME_ENV_VAR = "PUSHLOG_HOME"
DEFAULT_STATE_ROOT = Path.home() / ".pushlog"


def _global_root() -> Path:
    override = os.environ.get(HOME_ENV_VAR)
    root = Path(override).expanduser() if override else DEFAULT_STATE_ROOT
    root.mkdir(parents=True, exist_ok=True)
    return root


def ledger_path() -> Path:
    return _global_root() / LEDGER_FILENAME

