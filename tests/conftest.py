"""Shared test fixtures for HabitLoop tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from habitloop.models import Habit
from habitloop.store import HabitStore, UserId

USER_ID = UserId("1760000000000")


def make_habit(
    habit_id: str,
    name: str = "",
    streak: int = 0,
    completed: bool = False,
    days: list[bool] | None = None,
    category: str = "other",
) -> Habit:
    """Build a habit whose newest window entry agrees with *completed*."""
    if days is None:
        days = [False] * 6 + [completed]
    return Habit(
        id=habit_id,
        name=name or habit_id,
        category=category,
        streak=streak,
        completed=completed,
        last_seven_days=list(days),
        created_at="2026-10-01T08:00:00.000Z",
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with settings and one user's habits."""
    root = tmp_path / "habitloop"
    root.mkdir(parents=True)

    settings = {"timezone": "UTC", "log_level": "DEBUG"}
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    users = [
        {
            "id": USER_ID,
            "username": "alice",
            "password": "wonderland",
            "createdAt": "2026-10-01T08:00:00.000Z",
        }
    ]
    (root / "users.json").write_text(json.dumps(users, indent=2), encoding="utf-8")

    habits = [
        {
            "id": "h-read",
            "name": "Read 20 pages",
            "category": "learning",
            "goal": "One book a month",
            "difficulty": "medium",
            "streak": 3,
            "completed": True,
            "lastSevenDays": [False, False, False, False, True, True, True],
            "createdAt": "2026-10-01T08:00:00.000Z",
        },
        {
            "id": "h-run",
            "name": "Morning run",
            "category": "health",
            "goal": "",
            "difficulty": "hard",
            "streak": 0,
            "completed": False,
            "lastSevenDays": [True, False, True, False, False, False, False],
            "createdAt": "2026-10-02T08:00:00.000Z",
        },
    ]
    user_dir = root / "users" / USER_ID
    user_dir.mkdir(parents=True)
    (user_dir / "habits.json").write_text(json.dumps(habits, indent=2), encoding="utf-8")
    (user_dir / "last_updated.json").write_text(json.dumps("2026-10-18"), encoding="utf-8")

    os.environ["HABITLOOP_ROOT"] = str(root)
    yield root
    if "HABITLOOP_ROOT" in os.environ:
        del os.environ["HABITLOOP_ROOT"]


@pytest.fixture
def store(workspace: Path) -> HabitStore:
    return HabitStore(workspace)


@pytest.fixture
def user_id() -> UserId:
    return USER_ID
