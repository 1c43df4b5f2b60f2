"""HabitLoop core library — habit state engine, queries and storage.

Public API re-exports for convenient imports:
    from habitloop import add_habit, toggle_completion, HabitStore, ...
"""

# Clock
from habitloop.clock import (
    day_key,
    parse_day_key,
    format_display_date,
    generate_id,
    utc_now_iso,
)

# Workspace & settings
from habitloop.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    now_local,
    setup_locale,
    today_str,
)

# Errors
from habitloop.errors import (
    HabitLoopError,
    ValidationError,
    NotFoundError,
    StorageFailure,
    AlreadyExists,
    InvalidCredentials,
)

# Models
from habitloop.models import (
    Habit,
    Stats,
    User,
    FilterSpec,
    ViewState,
    DIFFICULTIES,
    SORT_KEYS,
    THEMES,
    WINDOW_DAYS,
)

# Engine
from habitloop.engine import (
    add_habit,
    remove_habit,
    update_habit,
    toggle_completion,
    roll_forward_day,
    compute_stats,
    completion_rate,
)

# Queries
from habitloop.query import (
    sort_habits,
    filter_habits,
    apply_view,
    categories,
)

# Storage & accounts
from habitloop.store import (
    UserId,
    Store,
    HabitStore,
    load_theme,
    save_theme,
)
from habitloop.accounts import AccountStore

# Day boundary & tracker
from habitloop.day_boundary import check_and_roll, needs_roll
from habitloop.tracker import HabitTracker, TrackerResult

# Messages
from habitloop.messages import (
    greeting,
    progress_message,
    toggle_message,
    streak_label,
    progress_percent,
)
