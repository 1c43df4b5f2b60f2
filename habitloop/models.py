"""Typed dataclasses for the HabitLoop data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

WINDOW_DAYS = 7

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_CATEGORY = "other"
DEFAULT_DIFFICULTY = "easy"

SORT_KEYS = ("name", "streak", "progress")
FILTER_CHOICES = ("all", "completed", "incomplete")
THEMES = ("light", "dark", "system")


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return default


def _normalize_window(values: Any) -> list[bool]:
    """Coerce a stored window to exactly WINDOW_DAYS booleans, keeping the newest."""
    if not isinstance(values, list):
        values = []
    days = [bool(v) for v in values][-WINDOW_DAYS:]
    return [False] * (WINDOW_DAYS - len(days)) + days


# ── Habit ─────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    category: str = DEFAULT_CATEGORY
    goal: str = ""
    difficulty: str = DEFAULT_DIFFICULTY  # easy, medium, hard
    streak: int = 0
    completed: bool = False
    last_seven_days: list[bool] = field(default_factory=lambda: [False] * WINDOW_DAYS)
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            category=str(d.get("category") or DEFAULT_CATEGORY),
            goal=str(d.get("goal") or ""),
            difficulty=str(d.get("difficulty") or DEFAULT_DIFFICULTY),
            streak=max(0, _as_int(d.get("streak"))),
            completed=bool(d.get("completed", False)),
            last_seven_days=_normalize_window(d.get("lastSevenDays", d.get("last_seven_days"))),
            created_at=str(d.get("createdAt", d.get("created_at", "")) or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "goal": self.goal,
            "difficulty": self.difficulty,
            "streak": self.streak,
            "completed": self.completed,
            "lastSevenDays": list(self.last_seven_days),
            "createdAt": self.created_at,
        }

    def days_completed(self) -> int:
        return sum(1 for day in self.last_seven_days if day)

    def progress(self) -> float:
        """Fraction of the rolling window marked complete."""
        if not self.last_seven_days:
            return 0.0
        return self.days_completed() / len(self.last_seven_days)


# ── Stats ─────────────────────────────────────────────────────


@dataclass
class Stats:
    active_habits: int = 0
    completed_today: int = 0
    highest_streak: int = 0
    completion_rate: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Stats:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            active_habits=_as_int(d.get("activeHabits")),
            completed_today=_as_int(d.get("completedToday")),
            highest_streak=_as_int(d.get("highestStreak")),
            completion_rate=_as_int(d.get("completionRate")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeHabits": self.active_habits,
            "completedToday": self.completed_today,
            "highestStreak": self.highest_streak,
            "completionRate": self.completion_rate,
        }


# ── Accounts ──────────────────────────────────────────────────


@dataclass
class User:
    """A registered account.

    The password is kept exactly as entered. That is a known weakness of the
    storage format and nothing should rely on it being secret at rest.
    """

    id: str = ""
    username: str = ""
    password: str = ""
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> User:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "")),
            username=str(d.get("username", "")),
            password=str(d.get("password", "")),
            created_at=str(d.get("createdAt", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "createdAt": self.created_at,
        }

    def public_dict(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username, "createdAt": self.created_at}


# ── View state ────────────────────────────────────────────────


@dataclass
class FilterSpec:
    completed_only: bool = False
    incomplete_only: bool = False
    category: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> FilterSpec:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            completed_only=bool(d.get("completedOnly", d.get("completed_only", False))),
            incomplete_only=bool(d.get("incompleteOnly", d.get("incomplete_only", False))),
            category=d.get("category") or None,
        )

    @classmethod
    def from_choice(cls, choice: str | None = None, category: str | None = None) -> FilterSpec:
        """Build the single-choice filter offered by the UIs.

        ``completed`` / ``incomplete`` select by today's flag; a category
        selects by tag; ``all`` (or nothing) is the identity filter.
        """
        choice = (choice or "all").strip().lower()
        if choice == "completed":
            return cls(completed_only=True)
        if choice == "incomplete":
            return cls(incomplete_only=True)
        if category:
            return cls(category=category)
        return cls()

    def is_empty(self) -> bool:
        return not (self.completed_only or self.incomplete_only or self.category)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.completed_only:
            d["completedOnly"] = True
        if self.incomplete_only:
            d["incompleteOnly"] = True
        if self.category:
            d["category"] = self.category
        return d


@dataclass
class ViewState:
    """Presentation state: current sort, filter and the habit being edited."""

    sort_by: str = "name"
    ascending: bool = True
    filters: FilterSpec = field(default_factory=FilterSpec)
    editing_habit_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> ViewState:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            sort_by=str(d.get("sortBy", "name")),
            ascending=bool(d.get("ascending", True)),
            filters=FilterSpec.from_dict(d.get("filters")),
            editing_habit_id=d.get("editingHabitId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sortBy": self.sort_by,
            "ascending": self.ascending,
            "filters": self.filters.to_dict(),
            "editingHabitId": self.editing_habit_id,
        }
