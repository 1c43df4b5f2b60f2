"""Tests for habitloop/query.py — sorting, filtering and view application."""

import pytest

from conftest import make_habit
from habitloop.errors import ValidationError
from habitloop.models import FilterSpec, ViewState
from habitloop.query import apply_view, categories, filter_habits, sort_habits

T, F = True, False


@pytest.fixture
def habits():
    return [
        make_habit("1", name="yoga", streak=2, days=[T, T, F, F, F, F, F], category="health"),
        make_habit("2", name="Journal", streak=5, completed=True, days=[F, F, F, F, F, F, T], category="mind"),
        make_habit("3", name="Anki", streak=2, days=[T, T, T, F, F, F, F], category="learning"),
        make_habit("4", name="Walk", streak=0, completed=True, days=[T, F, F, F, F, F, T], category="health"),
    ]


def _ids(habits):
    return [h.id for h in habits]


def test_sort_by_name_case_insensitive(habits):
    assert _ids(sort_habits(habits, "name")) == ["3", "2", "4", "1"]
    assert _ids(sort_habits(habits, "name", ascending=False)) == ["1", "4", "2", "3"]


def test_sort_by_name_descending_is_reverse_for_distinct_names(habits):
    assert sort_habits(habits, "name", ascending=False) == list(reversed(sort_habits(habits, "name")))


def test_sort_by_streak_is_stable(habits):
    # "1" and "3" tie on streak 2 and keep their input order both ways.
    assert _ids(sort_habits(habits, "streak")) == ["4", "1", "3", "2"]
    assert _ids(sort_habits(habits, "streak", ascending=False)) == ["2", "1", "3", "4"]


def test_sort_by_progress_is_stable(habits):
    # "1", "4" at 2/7, "2" at 1/7, "3" at 3/7
    assert _ids(sort_habits(habits, "progress")) == ["2", "1", "4", "3"]
    assert _ids(sort_habits(habits, "progress", ascending=False)) == ["3", "1", "4", "2"]


def test_sort_does_not_mutate(habits):
    before = _ids(habits)
    sort_habits(habits, "streak")
    assert _ids(habits) == before


def test_sort_invalid_key(habits):
    with pytest.raises(ValidationError, match="Invalid sort key"):
        sort_habits(habits, "color")


def test_sort_is_permutation(habits):
    for key in ("name", "streak", "progress"):
        for ascending in (True, False):
            assert sorted(_ids(sort_habits(habits, key, ascending))) == sorted(_ids(habits))


def test_filter_empty_is_identity(habits):
    assert filter_habits(habits, FilterSpec()) == habits
    assert filter_habits(habits, None) == habits
    assert filter_habits(habits, {}) == habits


def test_filter_completed_and_incomplete(habits):
    assert _ids(filter_habits(habits, FilterSpec(completed_only=True))) == ["2", "4"]
    assert _ids(filter_habits(habits, {"incompleteOnly": True})) == ["1", "3"]


def test_filter_by_category(habits):
    assert _ids(filter_habits(habits, FilterSpec(category="health"))) == ["1", "4"]
    assert filter_habits(habits, FilterSpec(category="nothing")) == []


def test_filter_criteria_combine(habits):
    spec = FilterSpec(completed_only=True, category="health")
    assert _ids(filter_habits(habits, spec)) == ["4"]


def test_filter_result_is_subset_preserving_order(habits):
    result = filter_habits(habits, FilterSpec(incomplete_only=True))
    positions = [_ids(habits).index(i) for i in _ids(result)]
    assert positions == sorted(positions)


def test_apply_view_sorts_then_filters(habits):
    view = ViewState(sort_by="streak", ascending=False, filters=FilterSpec(category="health"))
    assert _ids(apply_view(habits, view)) == ["1", "4"]
    assert _ids(apply_view(habits)) == ["3", "2", "4", "1"]


def test_categories_first_seen_order(habits):
    assert categories(habits) == ["health", "mind", "learning"]
    assert categories([]) == []


def test_sort_by_name_ignores_accents():
    habits = [make_habit("z", name="Zumba"), make_habit("e", name="Étirements"), make_habit("a", name="apple")]
    assert [h.name for h in sort_habits(habits, "name")] == ["apple", "Étirements", "Zumba"]
    assert [h.name for h in sort_habits(habits, "name", ascending=False)] == ["Zumba", "Étirements", "apple"]
