"""Tests for habitloop/day_boundary.py — once-per-day rolling."""

import json
import logging

from habitloop.day_boundary import check_and_roll, needs_roll
from habitloop.store import HabitStore


def test_needs_roll():
    assert needs_roll(None, "2026-10-19") is True
    assert needs_roll("", "2026-10-19") is True
    assert needs_roll("2026-10-18", "2026-10-19") is True
    assert needs_roll("2026-10-19", "2026-10-19") is False


def test_roll_on_new_day(store, user_id):
    assert check_and_roll(store, user_id, today="2026-10-19") is True
    habits = store.load(user_id)
    assert all(not h.completed for h in habits)
    assert habits[0].last_seven_days == [False, False, False, True, True, True, False]
    assert habits[0].streak == 3
    assert store.load_last_updated(user_id) == "2026-10-19"
    stats = store.load_stats(user_id)
    assert stats.active_habits == 2
    assert stats.completed_today == 0


def test_roll_at_most_once_per_day(store, user_id):
    assert check_and_roll(store, user_id, today="2026-10-19") is True
    once = store.load(user_id)
    assert check_and_roll(store, user_id, today="2026-10-19") is False
    assert store.load(user_id) == once


def test_same_day_is_noop(store, user_id):
    before = store.load(user_id)
    assert check_and_roll(store, user_id, today="2026-10-18") is False
    assert store.load(user_id) == before


def test_first_session_rolls(store, user_id, workspace):
    (workspace / "users" / user_id / "last_updated.json").unlink()
    assert check_and_roll(store, user_id, today="2026-10-19") is True
    assert store.load_last_updated(user_id) == "2026-10-19"


def test_multi_day_gap_rolls_once(store, user_id):
    assert check_and_roll(store, user_id, today="2026-10-25") is True
    # A single slot is consumed no matter how many days were skipped.
    assert store.load(user_id)[1].last_seven_days == [False, True, False, False, False, False, False]


def test_failed_save_leaves_day_key(store, user_id, monkeypatch):
    monkeypatch.setattr(HabitStore, "save", lambda self, uid, habits: False)
    assert check_and_roll(store, user_id, today="2026-10-19") is False
    assert store.load_last_updated(user_id) == "2026-10-18"
    assert store.load(user_id)[0].completed is True


def test_default_today_uses_configured_timezone(store, user_id):
    store.save_last_updated(user_id, "2000-01-01")
    assert check_and_roll(store, user_id) is True
    assert check_and_roll(store, user_id) is False


def test_unreadable_collection_survives_roll(store, user_id, workspace):
    path = workspace / "users" / user_id / "habits.json"
    path.write_text("", encoding="utf-8")
    assert check_and_roll(store, user_id, today="2026-10-19") is False
    assert path.read_text() == ""
    assert store.load_last_updated(user_id) == "2026-10-18"


def test_bad_field_does_not_drop_collection_on_roll(store, user_id, workspace):
    path = workspace / "users" / user_id / "habits.json"
    raw = json.loads(path.read_text())
    raw[0]["streak"] = "x"
    path.write_text(json.dumps(raw), encoding="utf-8")
    assert check_and_roll(store, user_id, today="2026-10-19") is True
    assert [h.id for h in store.load(user_id)] == ["h-read", "h-run"]


def test_failed_stats_save_is_logged(store, user_id, monkeypatch, caplog):
    monkeypatch.setattr(HabitStore, "save_stats", lambda self, uid, stats: False)
    with caplog.at_level(logging.ERROR, logger="habitloop.day_boundary"):
        assert check_and_roll(store, user_id, today="2026-10-19") is True
    assert "Could not save stats" in caplog.text
    assert store.load_last_updated(user_id) == "2026-10-19"
