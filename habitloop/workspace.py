"""Data root, settings, timezone and path helpers for HabitLoop."""

from __future__ import annotations

import locale
import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from habitloop.clock import day_key
from habitloop.fileio import read_yaml

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_LOG_LEVEL = "INFO"


def workspace_root() -> Path:
    """Get the data root directory (holds settings, accounts and per-user data)."""
    return Path(
        os.environ.get("HABITLOOP_ROOT", str(Path.home() / ".habitloop"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> dict:
    """Read settings.yaml, filling in defaults for missing keys."""
    if root is None:
        root = workspace_root()
    try:
        data = read_yaml(settings_path(root))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable settings file: %s", e)
        data = {}
    settings = {"timezone": DEFAULT_TIMEZONE, "log_level": DEFAULT_LOG_LEVEL}
    settings.update({k: v for k, v in data.items() if v is not None})
    env_level = os.environ.get("HABITLOOP_LOG_LEVEL")
    if env_level:
        settings["log_level"] = env_level
    return settings


def setup_locale() -> None:
    """Collate names in the user's locale; stay on C when it is unavailable."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Could not set collation locale: %s", e)


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the configured timezone, defaulting to UTC."""
    name = load_settings(root).get("timezone", DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in settings, using UTC", name)
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's day key (YYYY-MM-DD) in the configured timezone."""
    return day_key(now_local(root))


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def preferences_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "preferences.yaml"


def users_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "users.json"


def session_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "session.json"


def user_data_dir(user_id: str, root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "users" / user_id
