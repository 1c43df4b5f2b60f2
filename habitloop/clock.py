"""Day keys, display dates and id generation.

A *day key* is a calendar date formatted ``YYYY-MM-DD`` in local time. It is
the unit the day-boundary controller compares to decide whether the rolling
window must advance.
"""

from __future__ import annotations

import secrets
import time
from datetime import date, datetime, timezone, tzinfo

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def day_key(moment: datetime | date | None = None, tz: tzinfo | None = None) -> str:
    """Return the ``YYYY-MM-DD`` key for *moment* (default: now).

    Aware datetimes are converted to *tz* first when one is given. With no
    *moment*, "now" is taken in *tz*, or in the system local zone.
    """
    if moment is None:
        moment = datetime.now(tz) if tz is not None else datetime.now()
    if isinstance(moment, datetime):
        if tz is not None and moment.tzinfo is not None:
            moment = moment.astimezone(tz)
        moment = moment.date()
    return moment.isoformat()


def parse_day_key(key: str) -> date:
    """Inverse of :func:`day_key`. Raises ``ValueError`` on malformed keys."""
    return date.fromisoformat(key)


def format_display_date(d: date | datetime) -> str:
    """Human-readable date, e.g. ``May 8, 2025``."""
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def utc_now_iso() -> str:
    """Current UTC instant as ISO-8601 with millisecond precision and ``Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Opaque unique id: base-36 millisecond timestamp + 7 random base-36 chars."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return stamp + suffix
