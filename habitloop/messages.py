"""User-facing text: greeting, progress line and toggle notifications."""

from __future__ import annotations

from datetime import datetime

from habitloop.models import Habit, Stats


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def greeting(now: datetime | None = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"


def progress_message(stats: Stats) -> str:
    """Motivational line shown next to the stats."""
    if stats.active_habits == 0:
        return "Add your first habit to start tracking!"
    if stats.completed_today == stats.active_habits:
        return "Amazing! All habits completed today!"
    if stats.completion_rate >= 80:
        return "Excellent progress! Keep it up!"
    if stats.completion_rate >= 50:
        return "Good progress! You're on the right track."
    if stats.completed_today > 0:
        remaining = stats.active_habits - stats.completed_today
        return f"You've completed {_plural(stats.completed_today, 'habit')} today. {remaining} to go!"
    return "Time to build some good habits today!"


def toggle_message(habit: Habit) -> tuple[str, str]:
    """Notification text and severity after a completion toggle."""
    if habit.completed:
        return f'Great job! "{habit.name}" marked as completed.', "success"
    return f'"{habit.name}" marked as not completed.', "info"


def streak_label(habit: Habit) -> str:
    return f"Streak: {_plural(habit.streak, 'day')}"


def progress_percent(habit: Habit) -> int:
    return int(habit.progress() * 100 + 0.5)
