"""Configuration settings for mindflow."""

from __future__ import annotations

import os
from pathlib import Path

# Storage keys
AUTOSAVE_KEY = "mindmap_autosave"
AUTOSAVE_HISTORY_KEY = "mindmap_autosave_history"

# Autosave timing (milliseconds)
AUTOSAVE_INTERVAL_MS = 30_000
CONFLICT_AGE_MS = 60_000
MAX_SAVE_SLOTS = 5

# Undo/redo
MAX_UNDO_HISTORY = 50
EDIT_LABEL_PREVIEW = 20

# Default layout for nodes without a stored position
LAYOUT_X_SPACING = 250
LAYOUT_Y_SPACING = 100

# Environment
HOME_ENV_VAR = "MINDFLOW_HOME"
DEFAULT_HOME = "~/.mindflow"


def storage_dir() -> Path:
    """Directory used by the CLI for autosave records."""
    return Path(os.environ.get(HOME_ENV_VAR, DEFAULT_HOME)).expanduser()
