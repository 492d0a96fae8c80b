# lehenga/utils/dates.py

import re
import time
from datetime import date, datetime, timedelta
from typing import Any, Optional

from domain.models import TERMINAL_STATUSES

_DMY_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_DMY_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_YMD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")

# Epoch numbers at or above this are milliseconds, below it seconds.
# 1e11 seconds is the year 5138, 1e11 ms is March 1973.
EPOCH_MS_CUTOFF = 100_000_000_000

STORAGE_FORMAT = "%d-%m-%Y"


def now_ms() -> int:
    return int(time.time() * 1000)


def _from_epoch(value: float) -> Optional[datetime]:
    seconds = value / 1000 if abs(value) >= EPOCH_MS_CUTOFF else value
    try:
        return datetime.fromtimestamp(seconds)
    except (OverflowError, OSError, ValueError):
        return None


def _safe_datetime(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Normalise every date shape found in the Orders collection.

    Accepted:
      - "DD-MM-YYYY", "DD/MM/YYYY", "YYYY-MM-DD" (and ISO strings with a time)
      - epoch numbers, in seconds or milliseconds, also as numeric strings
      - {"seconds": N} timestamp objects
      - date / datetime instances

    Anything else gives None. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return _from_epoch(seconds)
        return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    m = _DMY_DASH.match(text) or _DMY_SLASH.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        return _safe_datetime(year, month, day)

    m = _YMD.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _safe_datetime(year, month, day)

    if _NUMERIC.match(text):
        return _from_epoch(float(text))

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_date(value: Any) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def timestamp_ms(value: Any) -> int:
    """
    Epoch ms for sorting; unknown dates sort as 0.
    """
    parsed = parse_datetime(value)
    if parsed is None:
        return 0
    try:
        return int(parsed.timestamp() * 1000)
    except (OverflowError, OSError, ValueError):
        return 0


def format_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return parsed.strftime(STORAGE_FORMAT)


def to_storage_date(value: Any) -> str:
    """
    Delivery dates are written as DD-MM-YYYY. Unparseable input is kept
    verbatim so nothing the user typed is lost.
    """
    if value is None:
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value).strip()
    return parsed.strftime(STORAGE_FORMAT)


def is_overdue(delivery_date: Any, status: str, today: Optional[date] = None) -> bool:
    if status in TERMINAL_STATUSES:
        return False
    due = parse_date(delivery_date)
    if due is None:
        return False
    today = today or date.today()
    return due < today


def is_within(value: Any, start: Optional[date], end: Optional[date]) -> bool:
    """
    Inclusive whole-day range check. Open ends are unbounded; an
    unparseable value never matches a bounded range.
    """
    if start is None and end is None:
        return True
    parsed = parse_date(value)
    if parsed is None:
        return False
    if start is not None and parsed < start:
        return False
    if end is not None and parsed > end:
        return False
    return True


def relative_time(value: Any, now: Optional[datetime] = None) -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    now = now or datetime.now()
    seconds = int((now - parsed).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60} minutes ago"
    if seconds < 86400:
        return f"{seconds // 3600} hours ago"
    return f"{seconds // 86400} days ago"


def start_of_period(period: str, today: date) -> Optional[date]:
    """
    First day included by a dashboard time filter; None means no bound.
    """
    if period == "today":
        return today
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        year, month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
        return _clamped(year, month, today.day)
    if period == "year":
        return _clamped(today.year - 1, today.month, today.day)
    return None


def _clamped(year: int, month: int, day: int) -> date:
    while day > 28:
        try:
            return date(year, month, day)
        except ValueError:
            day -= 1
    return date(year, month, day)
