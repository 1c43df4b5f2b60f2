"""Once-per-day roll of every habit's rolling window.

The engine's :func:`~habitloop.engine.roll_forward_day` has no notion of the
calendar. This controller remembers, per user, the last day key it processed
and rolls at most once when the key changes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from habitloop.engine import compute_stats, roll_forward_day
from habitloop.errors import StorageFailure
from habitloop.store import HabitStore, UserId
from habitloop.workspace import today_str

logger = logging.getLogger(__name__)


def needs_roll(last_updated: str | None, today: str) -> bool:
    """A roll is due when no day was recorded yet or the day key changed."""
    return not last_updated or last_updated != today


def check_and_roll(
    store: HabitStore,
    user_id: UserId,
    today: str | None = None,
    root: Path | None = None,
) -> bool:
    """Roll the user's habits forward if today has not been processed yet.

    Returns True when a roll happened. The day key is saved only after the
    rolled habits are saved, so a failed write is retried next session. An
    unreadable collection is left alone and no roll is recorded.
    """
    if today is None:
        today = today_str(root)

    last = store.load_last_updated(user_id)
    if not needs_roll(last, today):
        return False

    try:
        habits = roll_forward_day(store.load(user_id))
    except StorageFailure:
        logger.error("Habits for user %s unreadable; day roll skipped", user_id)
        return False
    if not store.save(user_id, habits):
        logger.error("Day roll for user %s not saved; will retry", user_id)
        return False
    if not store.save_stats(user_id, compute_stats(habits)):
        logger.error("Could not save stats for user %s after day roll", user_id)
    if not store.save_last_updated(user_id, today):
        logger.error("Could not record day key %s for user %s", today, user_id)

    logger.info("Rolled %d habit(s) for user %s: %s -> %s", len(habits), user_id, last, today)
    return True
