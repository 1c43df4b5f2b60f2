"""Persistence wrapper around the habit engine.

Each operation loads the user's collection, applies one engine transition,
then saves the collection and freshly computed stats. Storage failures come
back as ``TrackerResult(ok=False)`` with the collection as it was before the
call. A collection that cannot be read is never written: the mutation is
refused with reason ``load-failed``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from habitloop import engine
from habitloop.day_boundary import check_and_roll
from habitloop.errors import NotFoundError, StorageFailure
from habitloop.models import Habit, Stats, ViewState
from habitloop.query import apply_view
from habitloop.store import HabitStore, UserId


@dataclass
class TrackerResult:
    ok: bool
    habits: list[Habit] = field(default_factory=list)
    habit: Habit | None = None
    stats: Stats | None = None
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "ok": self.ok,
            "habits": [h.to_dict() for h in self.habits],
            "habit": self.habit.to_dict() if self.habit else None,
            "stats": self.stats.to_dict() if self.stats else None,
        }
        if self.reason:
            d["reason"] = self.reason
        return d


def _load_failed() -> TrackerResult:
    return TrackerResult(ok=False, reason="load-failed")


class HabitTracker:
    """One user's habits, backed by a HabitStore."""

    def __init__(self, store: HabitStore, user_id: UserId, root: Path | None = None) -> None:
        self.store = store
        self.user_id = user_id
        self.root = root

    def habits(self) -> list[Habit]:
        """Current collection. Raises StorageFailure if it cannot be read."""
        return self.store.load(self.user_id)

    def view(self, view_state: ViewState | None = None) -> list[Habit]:
        return apply_view(self.habits(), view_state)

    def find(self, habit_id: str) -> Habit | None:
        for habit in self.habits():
            if habit.id == habit_id:
                return habit
        return None

    def get(self, habit_id: str) -> Habit:
        """Like find, but raises NotFoundError for unknown ids."""
        habit = self.find(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit not found: {habit_id}")
        return habit

    def stats(self) -> Stats:
        """Last saved stats snapshot (zeros if none)."""
        return self.store.load_stats(self.user_id)

    def refresh_stats(self) -> Stats:
        stats = engine.compute_stats(self.habits())
        self.store.save_stats(self.user_id, stats)
        return stats

    def start_session(self, today: str | None = None) -> bool:
        """Run the day-boundary check; True if habits were rolled forward."""
        return check_and_roll(self.store, self.user_id, today=today, root=self.root)

    # ── Mutations ─────────────────────────────────────────────

    def _load_for_update(self) -> list[Habit] | None:
        try:
            return self.habits()
        except StorageFailure:
            return None

    def _commit(self, before: list[Habit], after: list[Habit], habit: Habit | None = None) -> TrackerResult:
        if not self.store.save(self.user_id, after):
            return TrackerResult(ok=False, habits=before, reason="storage-failure")
        stats = engine.compute_stats(after)
        if not self.store.save_stats(self.user_id, stats):
            return TrackerResult(ok=False, habits=after, habit=habit, stats=stats, reason="stats-not-saved")
        return TrackerResult(ok=True, habits=after, habit=habit, stats=stats)

    def add(self, data: Mapping[str, Any]) -> TrackerResult:
        """Add a habit. ValidationError propagates with nothing saved."""
        before = self._load_for_update()
        if before is None:
            return _load_failed()
        after = engine.add_habit(before, data)
        return self._commit(before, after, after[-1])

    def remove(self, habit_id: str) -> TrackerResult:
        before = self._load_for_update()
        if before is None:
            return _load_failed()
        return self._commit(before, engine.remove_habit(before, habit_id))

    def update(self, habit_id: str, patch: Mapping[str, Any]) -> TrackerResult:
        before = self._load_for_update()
        if before is None:
            return _load_failed()
        after = engine.update_habit(before, habit_id, patch)
        updated = next((h for h in after if h.id == habit_id), None)
        return self._commit(before, after, updated)

    def toggle(self, habit_id: str) -> TrackerResult:
        before = self._load_for_update()
        if before is None:
            return _load_failed()
        after, toggled = engine.toggle_completion(before, habit_id)
        return self._commit(before, after, toggled)
