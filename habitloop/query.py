"""Sorting and filtering of habit collections for display."""

from __future__ import annotations

import locale
import unicodedata
from typing import Any, Mapping

from habitloop.errors import ValidationError
from habitloop.models import SORT_KEYS, FilterSpec, Habit, ViewState


def _fold(name: str) -> str:
    """Casefolded name with accents stripped: ``Étirements`` -> ``etirements``."""
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _name_key(habit: Habit) -> tuple[str, str, str]:
    # Accent- and case-insensitive first, then the collation locale, then the
    # raw name for names that differ only by case.
    return _fold(habit.name), locale.strxfrm(habit.name.casefold()), habit.name


def sort_habits(habits: list[Habit], key: str = "name", ascending: bool = True) -> list[Habit]:
    """Return a new list ordered by ``name``, ``streak`` or ``progress``.

    The sort is stable in both directions: habits that compare equal keep
    their relative input order whether ascending or descending.
    """
    if key == "name":
        sort_key = _name_key
    elif key == "streak":
        sort_key = lambda h: h.streak  # noqa: E731
    elif key == "progress":
        sort_key = lambda h: h.progress()  # noqa: E731
    else:
        raise ValidationError(f"Invalid sort key: {key} (expected one of {', '.join(SORT_KEYS)})")
    return sorted(habits, key=sort_key, reverse=not ascending)


def filter_habits(
    habits: list[Habit],
    spec: FilterSpec | Mapping[str, Any] | None = None,
) -> list[Habit]:
    """Return the habits matching every criterion set in *spec*.

    An empty spec is the identity filter and returns all habits in order.
    """
    if not isinstance(spec, FilterSpec):
        spec = FilterSpec.from_dict(dict(spec) if spec else None)

    result = []
    for habit in habits:
        if spec.completed_only and not habit.completed:
            continue
        if spec.incomplete_only and habit.completed:
            continue
        if spec.category and habit.category != spec.category:
            continue
        result.append(habit)
    return result


def apply_view(habits: list[Habit], view: ViewState | None = None) -> list[Habit]:
    """Sort, then filter, according to the current view state."""
    if view is None:
        view = ViewState()
    return filter_habits(sort_habits(habits, view.sort_by, view.ascending), view.filters)


def categories(habits: list[Habit]) -> list[str]:
    """Distinct categories in first-seen order."""
    seen: dict[str, None] = {}
    for habit in habits:
        seen.setdefault(habit.category, None)
    return list(seen)
