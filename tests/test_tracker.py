"""Tests for habitloop/tracker.py — load, transition, save."""

import pytest

from habitloop.errors import NotFoundError, ValidationError
from habitloop.models import FilterSpec, Stats, ViewState
from habitloop.store import HabitStore
from habitloop.tracker import HabitTracker, TrackerResult


@pytest.fixture
def tracker(store, user_id, workspace):
    return HabitTracker(store, user_id, root=workspace)


def test_add_persists_habit_and_stats(tracker, store, user_id):
    result = tracker.add({"name": "Floss", "category": "health"})
    assert result.ok
    assert result.habit.name == "Floss"
    assert [h.name for h in store.load(user_id)][-1] == "Floss"
    assert store.load_stats(user_id).active_habits == 3
    assert result.stats.active_habits == 3


def test_add_invalid_saves_nothing(tracker, store, user_id):
    with pytest.raises(ValidationError):
        tracker.add({"goal": "no name"})
    assert len(store.load(user_id)) == 2


def test_toggle(tracker, store, user_id):
    result = tracker.toggle("h-run")
    assert result.ok
    assert result.habit.completed is True
    assert result.habit.streak == 1
    assert store.load(user_id)[1].completed is True
    assert result.stats.completed_today == 2


def test_toggle_unknown_id(tracker):
    result = tracker.toggle("missing")
    assert result.ok
    assert result.habit is None
    assert len(result.habits) == 2


def test_update(tracker, store, user_id):
    result = tracker.update("h-read", {"name": "Read 30 pages", "streak": 50})
    assert result.ok
    assert result.habit.name == "Read 30 pages"
    assert store.load(user_id)[0].streak == 3


def test_remove(tracker, store, user_id):
    result = tracker.remove("h-read")
    assert result.ok
    assert [h.id for h in store.load(user_id)] == ["h-run"]
    assert result.stats.active_habits == 1


def test_get_and_find(tracker):
    assert tracker.find("h-run").name == "Morning run"
    assert tracker.find("nope") is None
    assert tracker.get("h-read").category == "learning"
    with pytest.raises(NotFoundError):
        tracker.get("nope")


def test_view(tracker):
    view = ViewState(sort_by="streak", ascending=False)
    assert [h.id for h in tracker.view(view)] == ["h-read", "h-run"]
    view.filters = FilterSpec(category="health")
    assert [h.id for h in tracker.view(view)] == ["h-run"]


def test_stats_snapshot_and_refresh(tracker, store, user_id):
    assert tracker.stats() == Stats()
    stats = tracker.refresh_stats()
    assert stats.active_habits == 2
    assert stats.highest_streak == 3
    assert store.load_stats(user_id) == stats


def test_start_session(tracker):
    assert tracker.start_session(today="2026-10-19") is True
    assert tracker.start_session(today="2026-10-19") is False
    assert all(not h.completed for h in tracker.habits())


def test_storage_failure_returns_previous_collection(tracker, monkeypatch):
    monkeypatch.setattr(HabitStore, "save", lambda self, uid, habits: False)
    result = tracker.toggle("h-run")
    assert result.ok is False
    assert result.reason == "storage-failure"
    assert result.habits[1].completed is False


def test_stats_failure_is_reported(tracker, monkeypatch):
    monkeypatch.setattr(HabitStore, "save_stats", lambda self, uid, stats: False)
    result = tracker.toggle("h-run")
    assert result.ok is False
    assert result.reason == "stats-not-saved"
    assert result.habit.completed is True


def test_result_to_dict():
    d = TrackerResult(ok=False, reason="storage-failure").to_dict()
    assert d == {"ok": False, "habits": [], "habit": None, "stats": None, "reason": "storage-failure"}


def test_unreadable_collection_survives_mutations(tracker, store, user_id, workspace):
    path = workspace / "users" / user_id / "habits.json"
    damaged = path.read_text()[:40]
    path.write_text(damaged, encoding="utf-8")
    for result in (
        tracker.add({"name": "New"}),
        tracker.toggle("h-read"),
        tracker.update("h-read", {"name": "X"}),
        tracker.remove("h-read"),
    ):
        assert result.ok is False
        assert result.reason == "load-failed"
    assert path.read_text() == damaged
    assert store.load_stats(user_id) == Stats()
