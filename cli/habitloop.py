#!/usr/bin/env python3
"""HabitLoop TUI — interactive terminal habit tracker powered by Textual."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Input, Static

from habitloop import (
    AccountStore,
    FilterSpec,
    HabitLoopError,
    HabitStore,
    HabitTracker,
    StorageFailure,
    UserId,
    ValidationError,
    ViewState,
    categories,
    format_display_date,
    greeting,
    now_local,
    progress_message,
    progress_percent,
    setup_locale,
    toggle_message,
    workspace_root,
)
from habitloop.logging_config import setup_logging
from habitloop.models import DIFFICULTIES, SORT_KEYS


# ── Input parsing ──────────────────────────────────────────────


def parse_habit_input(text: str) -> dict[str, Any]:
    """Parse ``Read 20 pages #learning !medium -- one book a month``.

    ``#word`` sets the category, ``!word`` the difficulty and anything after
    `` -- `` is the goal. The remaining words form the name.
    """
    head, _, goal = text.partition(" -- ")
    data: dict[str, Any] = {}
    name_parts = []
    for token in head.split():
        if token.startswith("#") and len(token) > 1:
            data["category"] = token[1:]
        elif token.startswith("!") and token[1:].lower() in DIFFICULTIES:
            data["difficulty"] = token[1:].lower()
        else:
            name_parts.append(token)
    data["name"] = " ".join(name_parts)
    if goal.strip():
        data["goal"] = goal.strip()
    return data


def next_filter(current: FilterSpec, known_categories: list[str]) -> FilterSpec:
    """Cycle all -> completed -> incomplete -> each category -> all."""
    cycle = [FilterSpec(), FilterSpec(completed_only=True), FilterSpec(incomplete_only=True)]
    cycle += [FilterSpec(category=c) for c in known_categories]
    try:
        idx = cycle.index(current)
    except ValueError:
        return FilterSpec()
    return cycle[(idx + 1) % len(cycle)]


def describe_filter(spec: FilterSpec) -> str:
    if spec.completed_only:
        return "completed"
    if spec.incomplete_only:
        return "incomplete"
    if spec.category:
        return f"#{spec.category}"
    return "all"


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#greeting {
    height: auto;
    padding: 0 2;
    margin: 1 0 0 0;
    text-style: bold;
}

#stats-bar {
    height: auto;
    padding: 0 2;
    color: $text-muted;
}

#view-bar {
    height: 1;
    padding: 0 2;
    color: $text-muted;
}

#habits-table {
    height: 1fr;
    margin: 1 1 0 1;
}

#habit-input {
    dock: bottom;
    display: none;
    margin: 0 1;
}
"""


# ── Main app ───────────────────────────────────────────────────


class HabitLoopApp(App):
    """HabitLoop — track daily habits from the terminal."""

    TITLE = "HabitLoop"
    CSS = CSS

    BINDINGS = [
        Binding("space", "toggle_habit", "Done/Undo"),
        Binding("a", "add_habit", "Add"),
        Binding("e", "edit_habit", "Edit"),
        Binding("x", "delete_habit", "Delete"),
        Binding("s", "cycle_sort", "Sort"),
        Binding("o", "flip_order", "Order"),
        Binding("f", "cycle_filter", "Filter"),
        Binding("escape", "cancel_input", "Cancel"),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self, tracker: HabitTracker, username: str) -> None:
        super().__init__()
        self.tracker = tracker
        self.username = username
        self.view_state = ViewState()
        self._input_mode: str | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Vertical(
            Static(id="greeting"),
            Static(id="stats-bar"),
            Static(id="view-bar"),
            DataTable(id="habits-table", cursor_type="row", zebra_stripes=True),
            id="main-layout",
        )
        yield Input(id="habit-input")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#habits-table", DataTable)
        table.add_columns("Habit", "Category", "Difficulty", "Streak", "Last 7 days", "Progress", "Today")
        if self.tracker.start_session():
            self.notify("New day: completions reset.", title="HabitLoop")
        now = now_local(self.tracker.root)
        self.query_one("#greeting", Static).update(
            f"{greeting(now)}, {self.username}  ·  {format_display_date(now)}"
        )
        self._reload()
        table.focus()

    # ── Rendering ──────────────────────────────────────────────

    def _reload(self) -> None:
        table = self.query_one("#habits-table", DataTable)
        table.clear()
        try:
            habits = self.tracker.view(self.view_state)
        except StorageFailure as e:
            self.notify(str(e), title="Storage", severity="error")
            habits = []
        for habit in habits:
            table.add_row(
                habit.name,
                habit.category,
                habit.difficulty,
                f"🔥 {habit.streak}",
                "".join("●" if d else "○" for d in habit.last_seven_days),
                f"{progress_percent(habit)}%",
                "✅" if habit.completed else "⬜",
                key=habit.id,
            )

        stats = self.tracker.stats()
        self.query_one("#stats-bar", Static).update(
            f"Active {stats.active_habits}  ·  Done today {stats.completed_today}  ·  "
            f"Best streak {stats.highest_streak}  ·  Rate {stats.completion_rate}%\n"
            f"{progress_message(stats)}"
        )
        direction = "asc" if self.view_state.ascending else "desc"
        self.query_one("#view-bar", Static).update(
            f"Sort: {self.view_state.sort_by} ({direction})  ·  Filter: {describe_filter(self.view_state.filters)}"
        )

    def _selected_id(self) -> str | None:
        table = self.query_one("#habits-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    def _find(self, habit_id: str):
        try:
            return self.tracker.find(habit_id)
        except StorageFailure:
            return None

    def _report(self, result) -> bool:
        if not result.ok:
            self.notify(f"Could not save: {result.reason}", title="Storage", severity="error")
        return result.ok

    # ── Actions ────────────────────────────────────────────────

    def action_toggle_habit(self) -> None:
        habit_id = self._selected_id()
        if habit_id is None:
            return
        result = self.tracker.toggle(habit_id)
        if self._report(result) and result.habit is not None:
            message, kind = toggle_message(result.habit)
            self.notify(message, severity="information" if kind == "success" else "warning")
        self._reload()

    def action_add_habit(self) -> None:
        self._open_input("add", "", "New habit: name #category !easy|medium|hard -- goal")

    def action_edit_habit(self) -> None:
        habit_id = self._selected_id()
        if habit_id is None:
            return
        habit = self._find(habit_id)
        if habit is None:
            return
        self.view_state.editing_habit_id = habit_id
        text = f"{habit.name} #{habit.category} !{habit.difficulty}"
        if habit.goal:
            text += f" -- {habit.goal}"
        self._open_input("edit", text, "Edit habit")

    def action_delete_habit(self) -> None:
        habit_id = self._selected_id()
        if habit_id is None:
            return
        habit = self._find(habit_id)
        if self._report(self.tracker.remove(habit_id)) and habit is not None:
            self.notify(f'"{habit.name}" deleted successfully', severity="warning")
        self._reload()

    def action_cycle_sort(self) -> None:
        idx = SORT_KEYS.index(self.view_state.sort_by)
        self.view_state.sort_by = SORT_KEYS[(idx + 1) % len(SORT_KEYS)]
        self._reload()

    def action_flip_order(self) -> None:
        self.view_state.ascending = not self.view_state.ascending
        self._reload()

    def action_cycle_filter(self) -> None:
        try:
            known = categories(self.tracker.habits())
        except StorageFailure:
            known = []
        self.view_state.filters = next_filter(self.view_state.filters, known)
        self._reload()

    def action_cancel_input(self) -> None:
        self._close_input()

    def action_quit_app(self) -> None:
        self.exit()

    # ── Add / edit input ───────────────────────────────────────

    def _open_input(self, mode: str, value: str, placeholder: str) -> None:
        self._input_mode = mode
        field = self.query_one("#habit-input", Input)
        field.value = value
        field.placeholder = placeholder
        field.display = True
        field.focus()

    def _close_input(self) -> None:
        self._input_mode = None
        self.view_state.editing_habit_id = None
        field = self.query_one("#habit-input", Input)
        field.value = ""
        field.display = False
        self.query_one("#habits-table", DataTable).focus()

    @on(Input.Submitted, "#habit-input")
    def _on_habit_submitted(self, event: Input.Submitted) -> None:
        data = parse_habit_input(event.value)
        try:
            if self._input_mode == "edit" and self.view_state.editing_habit_id:
                result = self.tracker.update(self.view_state.editing_habit_id, data)
            else:
                result = self.tracker.add(data)
        except ValidationError as e:
            self.notify(str(e), title="Invalid habit", severity="error")
            return
        if self._report(result) and result.habit is not None:
            verb = "updated" if self._input_mode == "edit" else "added"
            self.notify(f'"{result.habit.name}" {verb}')
        self._close_input()
        self._reload()


# ── Entry point ────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="HabitLoop terminal habit tracker")
    parser.add_argument("--username", help="log in as this user")
    parser.add_argument("--password", default="", help="password for --username")
    parser.add_argument("--register", action="store_true", help="create the account first")
    parser.add_argument("--logout", action="store_true", help="forget the stored login and exit")
    args = parser.parse_args(argv)

    root = workspace_root()
    setup_logging(root=root, log_file=root / "habitloop.log")
    setup_locale()
    accounts = AccountStore(root)

    if args.logout:
        accounts.logout()
        print("Logged out.")
        return

    try:
        if args.username and args.register:
            accounts.register(args.username, args.password)
        if args.username:
            user = accounts.login(args.username, args.password)
        else:
            user = accounts.current_user()
    except HabitLoopError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if user is None:
        print("Not logged in. Run with --username NAME --password PW [--register].")
        sys.exit(1)

    tracker = HabitTracker(HabitStore(root), UserId(user.id), root=root)
    HabitLoopApp(tracker, user.username).run()


if __name__ == "__main__":
    main()
