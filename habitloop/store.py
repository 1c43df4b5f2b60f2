"""Per-user persistence for habits, stats and the last processed day.

Each value lives in its own JSON document, namespaced by user id:

    <root>/users/<user_id>/habits.json
    <root>/users/<user_id>/stats.json
    <root>/users/<user_id>/last_updated.json

Write faults are logged and reported as ``False``. A missing document reads as
``None``; a document that exists but cannot be decoded raises StorageFailure,
so callers never mistake a damaged file for an empty one and save over it.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, Generic, NewType, TypeVar

import yaml

from habitloop.errors import StorageFailure, ValidationError
from habitloop.fileio import read_json, read_yaml, remove_file, write_json_atomic, write_yaml_atomic
from habitloop.models import THEMES, Habit, Stats
from habitloop.workspace import preferences_path, user_data_dir, workspace_root

logger = logging.getLogger(__name__)

UserId = NewType("UserId", str)
V = TypeVar("V")

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class Store(Generic[V]):
    """A namespaced key-value store: one JSON document per user."""

    def __init__(
        self,
        namespace: str,
        encode: Callable[[V], Any],
        decode: Callable[[Any], V],
        root: Path | None = None,
    ) -> None:
        self.namespace = namespace
        self._encode = encode
        self._decode = decode
        self._root = root

    @property
    def root(self) -> Path:
        return self._root if self._root is not None else workspace_root()

    def path_for(self, user_id: UserId) -> Path:
        if not _SAFE_ID.match(user_id or ""):
            raise ValidationError(f"Invalid user id: {user_id!r}")
        return user_data_dir(user_id, self.root) / f"{self.namespace}.json"

    def get(self, user_id: UserId) -> V | None:
        """Return the stored value, or None if nothing was stored yet.

        Raises StorageFailure when the document exists but is empty, truncated
        or not decodable.
        """
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            raw = read_json(path)
            if raw is None:
                raise ValueError("empty document")
            return self._decode(raw)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error("Error loading %s for user %s: %s", self.namespace, user_id, e)
            raise StorageFailure(f"Unreadable {self.namespace} for user {user_id}: {e}") from e

    def set(self, user_id: UserId, value: V) -> bool:
        path = self.path_for(user_id)
        try:
            write_json_atomic(path, self._encode(value))
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving %s for user %s", self.namespace, user_id)
            return False

    def delete(self, user_id: UserId) -> bool:
        path = self.path_for(user_id)
        try:
            remove_file(path)
            return True
        except OSError:
            logger.exception("Error clearing %s for user %s", self.namespace, user_id)
            return False


def _encode_habits(habits: list[Habit]) -> list[dict[str, Any]]:
    return [h.to_dict() for h in habits]


def _decode_habits(raw: Any) -> list[Habit]:
    if not isinstance(raw, list):
        raise TypeError(f"habits must be a list, got {type(raw).__name__}")
    habits = []
    for i, d in enumerate(raw):
        if not isinstance(d, dict) or not d.get("id"):
            logger.warning("Skipping malformed habit record at index %d", i)
            continue
        habits.append(Habit.from_dict(d))
    return habits


def _decode_day_key(raw: Any) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"day key must be a string, got {type(raw).__name__}")
    return raw


class HabitStore:
    """Storage collaborator for the habit engine, partitioned by user id."""

    def __init__(self, root: Path | None = None) -> None:
        self.habits: Store[list[Habit]] = Store("habits", _encode_habits, _decode_habits, root)
        self.stats: Store[Stats] = Store("stats", Stats.to_dict, Stats.from_dict, root)
        self.last_updated: Store[str] = Store("last_updated", str, _decode_day_key, root)

    def load(self, user_id: UserId) -> list[Habit]:
        """Stored habits, [] for a new user. Raises StorageFailure if unreadable."""
        return self.habits.get(user_id) or []

    def save(self, user_id: UserId, habits: list[Habit]) -> bool:
        return self.habits.set(user_id, habits)

    def clear(self, user_id: UserId) -> bool:
        return self.habits.delete(user_id)

    def load_stats(self, user_id: UserId) -> Stats:
        # Stats are derived; a damaged snapshot is rebuilt on the next save.
        try:
            return self.stats.get(user_id) or Stats()
        except StorageFailure:
            return Stats()

    def save_stats(self, user_id: UserId, stats: Stats) -> bool:
        return self.stats.set(user_id, stats)

    def load_last_updated(self, user_id: UserId) -> str | None:
        """Last processed day key; None when unset or unreadable."""
        try:
            return self.last_updated.get(user_id)
        except StorageFailure:
            return None

    def save_last_updated(self, user_id: UserId, day: str) -> bool:
        return self.last_updated.set(user_id, day)


# ── Preferences ───────────────────────────────────────────────


def load_theme(root: Path | None = None) -> str:
    """Saved theme preference; ``system`` when unset or unreadable."""
    try:
        theme = read_yaml(preferences_path(root)).get("theme")
    except (OSError, yaml.YAMLError) as e:
        logger.error("Error loading preferences: %s", e)
        return "system"
    return theme if theme in THEMES else "system"


def save_theme(theme: str, root: Path | None = None) -> bool:
    if theme not in THEMES:
        raise ValidationError(f"Invalid theme: {theme}")
    path = preferences_path(root)
    try:
        data = read_yaml(path)
        data["theme"] = theme
        write_yaml_atomic(path, data)
        return True
    except (OSError, yaml.YAMLError):
        logger.exception("Error saving theme preference")
        return False
