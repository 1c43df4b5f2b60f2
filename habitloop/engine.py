"""Habit state engine.

Pure transitions over one user's habit collection: add, remove, edit,
toggle-completion, roll-forward-day and aggregate stats. Every function takes
a list of habits and returns a new list; inputs are never mutated and no I/O
happens here. Loading and saving around each call is the job of
:mod:`habitloop.tracker`.

Unknown habit ids are silent no-ops so repeated clicks on a stale entry stay
harmless.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from habitloop.clock import generate_id, utc_now_iso
from habitloop.errors import ValidationError
from habitloop.models import (
    DEFAULT_CATEGORY,
    DEFAULT_DIFFICULTY,
    DIFFICULTIES,
    WINDOW_DAYS,
    Habit,
    Stats,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "category", "goal", "difficulty")


# ── Validation ────────────────────────────────────────────────


def validate_habit_fields(data: Mapping[str, Any], require_name: bool = True) -> list[str]:
    """Validate user-supplied habit fields and return a list of errors."""
    errors = []
    if "name" in data or require_name:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Missing required field: name")
    difficulty = data.get("difficulty")
    if difficulty and difficulty not in DIFFICULTIES:
        errors.append(f"Invalid difficulty: {difficulty}")
    for key in ("category", "goal"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{key} must be a string")
    return errors


def _shift(window: list[bool], today: bool) -> list[bool]:
    """Drop the oldest day and append *today* as the newest."""
    return (list(window) + [today])[-WINDOW_DAYS:]


# ── CRUD ──────────────────────────────────────────────────────


def add_habit(habits: list[Habit], data: Mapping[str, Any]) -> list[Habit]:
    """Append a new habit built from *data*.

    Raises ValidationError (and leaves *habits* untouched) when ``name`` is
    missing or blank or ``difficulty`` is not one of easy/medium/hard.
    """
    errors = validate_habit_fields(data, require_name=True)
    if errors:
        raise ValidationError(errors)

    habit = Habit(
        id=generate_id(),
        name=data["name"].strip(),
        category=data.get("category") or DEFAULT_CATEGORY,
        goal=data.get("goal") or "",
        difficulty=data.get("difficulty") or DEFAULT_DIFFICULTY,
        streak=0,
        completed=False,
        last_seven_days=[False] * WINDOW_DAYS,
        created_at=utc_now_iso(),
    )
    return [*habits, habit]


def remove_habit(habits: list[Habit], habit_id: str) -> list[Habit]:
    """Return the collection without *habit_id*; unknown ids change nothing."""
    result = [h for h in habits if h.id != habit_id]
    if len(result) == len(habits):
        logger.debug("remove_habit: no habit with id %s", habit_id)
    return result


def update_habit(habits: list[Habit], habit_id: str, patch: Mapping[str, Any]) -> list[Habit]:
    """Overwrite the editable fields present in *patch*.

    Only name, category, goal and difficulty can change; streak, completion
    and history are preserved. Other keys in *patch* are ignored.
    """
    updates = {k: patch[k] for k in EDITABLE_FIELDS if k in patch and patch[k] is not None}
    errors = validate_habit_fields(updates, require_name=False)
    if errors:
        raise ValidationError(errors)
    if "name" in updates:
        updates["name"] = updates["name"].strip()
    if updates.get("category") == "":
        updates["category"] = DEFAULT_CATEGORY
    if updates.get("difficulty") == "":
        updates["difficulty"] = DEFAULT_DIFFICULTY

    found = False
    result = []
    for h in habits:
        if h.id == habit_id:
            found = True
            result.append(replace(h, last_seven_days=list(h.last_seven_days), **updates))
        else:
            result.append(h)
    if not found:
        logger.debug("update_habit: no habit with id %s", habit_id)
    return result


# ── Completion & day roll ─────────────────────────────────────


def toggle_completion(habits: list[Habit], habit_id: str) -> tuple[list[Habit], Habit | None]:
    """Flip today's completion for *habit_id*.

    Marking done adds one to the streak; un-marking takes one away, never
    below zero. The rolling window loses its oldest day and gains the new
    flag, so the newest entry always mirrors ``completed``. Each toggle
    consumes a history slot: toggling off and on again rewrites the last two
    entries rather than restoring the original window.

    Returns the new collection and the toggled habit, or ``None`` when the
    id is unknown.
    """
    toggled = None
    result = []
    for h in habits:
        if h.id != habit_id:
            result.append(h)
            continue
        completed = not h.completed
        streak = h.streak + 1 if completed else max(0, h.streak - 1)
        toggled = replace(
            h,
            completed=completed,
            streak=streak,
            last_seven_days=_shift(h.last_seven_days, completed),
        )
        result.append(toggled)
    if toggled is None:
        logger.debug("toggle_completion: no habit with id %s", habit_id)
    return result, toggled


def roll_forward_day(habits: list[Habit]) -> list[Habit]:
    """Open a new day: clear today's flags and advance every rolling window.

    The engine does not know what day it is. Calling this twice for the same
    calendar day consumes two history slots; see
    :func:`habitloop.day_boundary.check_and_roll` for the guard.
    """
    return [
        replace(h, completed=False, last_seven_days=_shift(h.last_seven_days, False))
        for h in habits
    ]


# ── Stats ─────────────────────────────────────────────────────


def completion_rate(habits: list[Habit]) -> int:
    """Percentage of completed days across all rolling windows, rounded half up."""
    total = sum(len(h.last_seven_days) for h in habits)
    if total == 0:
        return 0
    done = sum(h.days_completed() for h in habits)
    # floor(100 * done / total + 0.5) in integer arithmetic
    return (200 * done + total) // (2 * total)


def compute_stats(habits: list[Habit]) -> Stats:
    """Aggregate statistics, recomputed from scratch."""
    return Stats(
        active_habits=len(habits),
        completed_today=sum(1 for h in habits if h.completed),
        highest_streak=max((h.streak for h in habits), default=0),
        completion_rate=completion_rate(habits),
    )
