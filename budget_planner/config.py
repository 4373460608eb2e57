"""Configuration management for the budget planner.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in budget_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))
STATES_DIR = Path(os.getenv("BUDGET_PLANNER_STATES_DIR", DATA_DIR / "states"))
EXPORTS_DIR = DATA_DIR / "exports"

# Reminder idempotency log
REMINDER_DB_PATH = Path(
    os.getenv("BUDGET_PLANNER_REMINDER_DB", DATA_DIR / "reminders.db")
).resolve()

# Quiet period before a burst of edits is written to the store
SAVE_DEBOUNCE_SECONDS = float(os.getenv("BUDGET_PLANNER_SAVE_DEBOUNCE", "0.8"))

# Budget coach endpoint. Unset means the copilot only handles local commands.
ASSISTANT_URL: Optional[str] = os.getenv("BUDGET_PLANNER_ASSISTANT_URL") or None
ASSISTANT_API_KEY: Optional[str] = os.getenv("BUDGET_PLANNER_ASSISTANT_KEY") or None
ASSISTANT_TIMEOUT = float(os.getenv("BUDGET_PLANNER_ASSISTANT_TIMEOUT", "30"))

# Outbound reminder e-mail API
EMAIL_API_URL: Optional[str] = os.getenv("BUDGET_PLANNER_EMAIL_URL") or None
EMAIL_API_KEY: Optional[str] = os.getenv("BUDGET_PLANNER_EMAIL_KEY") or None
EMAIL_FROM: Optional[str] = os.getenv("BUDGET_PLANNER_EMAIL_FROM") or None

LOG_LEVEL = os.getenv("BUDGET_PLANNER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, STATES_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
