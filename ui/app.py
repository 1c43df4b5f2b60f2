from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from habitloop import (
    AccountStore,
    AlreadyExists,
    FilterSpec,
    HabitStore,
    HabitTracker,
    InvalidCredentials,
    NotFoundError,
    StorageFailure,
    User,
    UserId,
    ValidationError,
    ViewState,
    categories,
    format_display_date,
    greeting,
    load_theme,
    now_local,
    progress_message,
    progress_percent,
    save_theme,
    setup_locale,
    streak_label,
    toggle_message,
    workspace_root as _workspace_root,
)
from habitloop.logging_config import setup_logging
from habitloop.models import SORT_KEYS

logger = logging.getLogger(__name__)

CSS = """
body { font-family: system-ui, sans-serif; margin: 0; background: #f7f7f9; color: #222; }
html[data-theme="dark"] body { background: #16181d; color: #e6e6e6; }
.container { max-width: 960px; margin: 0 auto; padding: 16px; }
.grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 12px; }
.card, .habit-card { border-radius: 10px; padding: 12px; margin: 8px 0; background: rgba(127,127,127,0.08); }
.pill { border-radius: 999px; padding: 0 8px; margin-left: 6px; font-size: 12px; background: rgba(127,127,127,0.2); }
.muted { opacity: 0.7; }
.small { font-size: 13px; }
.day.done { color: #2e9d55; }
"""


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _habit_card(habit) -> str:
    goal = f'<div class="habit-goal muted small">Goal: {_escape(habit.goal)}</div>' if habit.goal else ""
    days = "".join(
        f'<span class="day {"done" if d else ""}">{"●" if d else "○"}</span>'
        for d in habit.last_seven_days
    )
    return f"""
    <div class="habit-card" data-id="{_escape(habit.id)}">
      <div class="habit-header">
        <h3 class="habit-title">{_escape(habit.name)}</h3>
        <span class="pill">{_escape(habit.category)}</span>
        <span class="pill">{_escape(habit.difficulty)}</span>
      </div>
      {goal}
      <div class="habit-stats muted small">
        \U0001f525 {streak_label(habit)} &middot; Progress: {progress_percent(habit)}% &middot; {days}
      </div>
      <div class="muted small">{'✅ Completed today' if habit.completed else '⬜ Not done yet'}</div>
    </div>
    """


# ── Auth ──────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    setup_locale()
    yield


app = FastAPI(title="HabitLoop UI", version="0.1.0", lifespan=lifespan)

@app.exception_handler(StorageFailure)
async def storage_failure_handler(_request: Request, exc: StorageFailure) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": f"Storage failure: {exc}"})


security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    accounts = AccountStore(_workspace_root())
    try:
        return accounts.authenticate(credentials.username, credentials.password)
    except InvalidCredentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )


def get_tracker(user: User = Depends(get_current_user)) -> HabitTracker:
    """Per-request tracker; every request counts as a session start."""
    root = _workspace_root()
    tracker = HabitTracker(HabitStore(root), UserId(user.id), root=root)
    tracker.start_session()
    return tracker


def _ok_or_500(result) -> None:
    if not result.ok:
        raise HTTPException(status_code=500, detail=f"Storage failure: {result.reason}")


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.post("/api/register", status_code=status.HTTP_201_CREATED)
def api_register(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Create an account (no auth required)."""
    accounts = AccountStore(_workspace_root())
    try:
        user = accounts.register(payload.get("username", ""), payload.get("password", ""))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AlreadyExists as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "user": user.public_dict()}


@app.get("/api/me")
def api_me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": user.public_dict()}


@app.get("/api/habits")
def api_list_habits(
    sort: str = "name",
    ascending: bool = True,
    filter_: str = Query("all", alias="filter"),
    category: str | None = None,
    tracker: HabitTracker = Depends(get_tracker),
) -> dict[str, Any]:
    """List habits in the requested order, filtered by completion or category."""
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"Invalid sort key: {sort}")
    view = ViewState(sort_by=sort, ascending=ascending, filters=FilterSpec.from_choice(filter_, category))
    habits = tracker.view(view)
    return {
        "habits": [h.to_dict() for h in habits],
        "view": view.to_dict(),
        "categories": categories(tracker.habits()),
    }


@app.post("/api/habits", status_code=status.HTTP_201_CREATED)
def api_create_habit(payload: dict[str, Any] = Body(...), tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    try:
        result = tracker.add(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _ok_or_500(result)
    return {"ok": True, "habit": result.habit.to_dict(), "stats": result.stats.to_dict()}


@app.get("/api/habits/{habit_id}")
def api_get_habit(habit_id: str, tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    try:
        habit = tracker.get(habit_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"habit": habit.to_dict(), "streak_label": streak_label(habit), "progress": progress_percent(habit)}


@app.put("/api/habits/{habit_id}")
def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...), tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    try:
        result = tracker.update(habit_id, payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _ok_or_500(result)
    if result.habit is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    return {"ok": True, "habit": result.habit.to_dict()}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str, tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    """Delete a habit. Unknown ids succeed without changes."""
    result = tracker.remove(habit_id)
    _ok_or_500(result)
    return {"ok": True, "habit_id": habit_id, "stats": result.stats.to_dict()}


@app.post("/api/habits/{habit_id}/toggle")
def api_toggle_habit(habit_id: str, tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    result = tracker.toggle(habit_id)
    _ok_or_500(result)
    if result.habit is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
    message, kind = toggle_message(result.habit)
    return {
        "ok": True,
        "habit": result.habit.to_dict(),
        "stats": result.stats.to_dict(),
        "message": message,
        "type": kind,
    }


@app.get("/api/stats")
def api_stats(tracker: HabitTracker = Depends(get_tracker)) -> dict[str, Any]:
    stats = tracker.stats()
    return {"stats": stats.to_dict(), "message": progress_message(stats)}


@app.get("/api/theme")
def api_get_theme(user: User = Depends(get_current_user)) -> dict[str, str]:
    return {"theme": load_theme(_workspace_root())}


@app.put("/api/theme")
def api_set_theme(payload: dict[str, Any] = Body(...), user: User = Depends(get_current_user)) -> dict[str, Any]:
    try:
        saved = save_theme(str(payload.get("theme", "")), _workspace_root())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not saved:
        raise HTTPException(status_code=500, detail="Storage failure: theme not saved")
    return {"ok": True, "theme": payload["theme"]}


@app.get("/", response_class=HTMLResponse)
def index(
    sort: str = "name",
    ascending: bool = True,
    filter_: str = Query("all", alias="filter"),
    category: str | None = None,
    user: User = Depends(get_current_user),
    tracker: HabitTracker = Depends(get_tracker),
) -> HTMLResponse:
    if sort not in SORT_KEYS:
        sort = "name"
    view = ViewState(sort_by=sort, ascending=ascending, filters=FilterSpec.from_choice(filter_, category))
    habits = tracker.view(view)
    stats = tracker.stats()
    now = now_local(_workspace_root())
    theme = load_theme(_workspace_root())

    cards = "".join(_habit_card(h) for h in habits)
    if not cards:
        cards = """
        <div class="empty-state">
          <h3>No habits to display</h3>
          <p class="muted">Add a new habit and start tracking your progress!</p>
        </div>
        """

    html = f"""<!doctype html>
<html lang="en" data-theme="{_escape(theme)}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>HabitLoop</title>
  <style>{CSS}</style>
</head>
<body>
  <div class="container">
    <header class="top">
      <div>
        <h1>{greeting(now)}, {_escape(user.username)}</h1>
        <div class="muted small">{format_display_date(now)} &middot; {_escape(progress_message(stats))}</div>
      </div>
    </header>

    <section class="grid stats">
      <div class="card"><div class="muted small">Active habits</div><b>{stats.active_habits}</b></div>
      <div class="card"><div class="muted small">Completed today</div><b>{stats.completed_today}</b></div>
      <div class="card"><div class="muted small">Highest streak</div><b>{stats.highest_streak}</b></div>
      <div class="card"><div class="muted small">Completion rate</div><b>{stats.completion_rate}%</b></div>
    </section>

    <section class="card">
      <h2>Habits</h2>
      <div class="muted small">Sorted by {_escape(view.sort_by)} ({'asc' if view.ascending else 'desc'})</div>
      {cards}
    </section>
  </div>
</body>
</html>"""
    return HTMLResponse(html)
