"""Time and date helpers.

Clock times are "HH:MM" strings on a 24h clock. Timestamps are integer
epoch milliseconds, so persisted timer state can always be re-read against
the wall clock after a restart.
"""

import calendar
import re
import time
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Optional, Union

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WEEKDAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_date(value: Union[str, date]) -> date:
    """Parse a date string in YYYY-MM-DD format."""
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def is_valid_time_format(value: str) -> bool:
    """Check a clock time is HH:MM (24h)."""
    return bool(_TIME_RE.match(value or ""))


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}'. Expected HH:MM (24h).")
    return int(match.group(1)) * 60 + int(match.group(2))


def calculate_duration(start: str, end: str) -> int:
    """Minutes between two clock times; an end before start is the next day."""
    start_min = time_to_minutes(start)
    end_min = time_to_minutes(end)
    if end_min < start_min:
        return MINUTES_PER_DAY - start_min + end_min
    return end_min - start_min


def format_duration_text(minutes: int) -> str:
    """Format minutes as "1h 10m", "45m" or "2h"."""
    hours, mins = divmod(max(0, int(minutes)), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def clock_time(ts_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Clock time ("HH:MM") of an epoch-ms timestamp in tz (local if None)."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=tz).strftime("%H:%M")


def local_date(ts_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Calendar date (YYYY-MM-DD) of an epoch-ms timestamp in tz (local if None)."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=tz).date().isoformat()


def weekday_abbreviation(value: Union[str, date]) -> str:
    """Three-letter weekday of a date ("Mon".."Sun")."""
    return WEEKDAY_ABBREVIATIONS[parse_date(value).weekday()]


def week_bounds(value: Union[str, date], start_day: str = "Monday") -> tuple[date, date]:
    """First and last day of the pay week containing a date.

    Args:
        value: Date inside the week
        start_day: Week start day name (e.g., "Monday", "Sunday"); unknown
            names fall back to Monday

    Returns:
        Tuple of (week_start, week_end), inclusive
    """
    day = parse_date(value)
    start_index = WEEKDAY_NAMES.index(start_day) if start_day in WEEKDAY_NAMES else 0
    offset = (day.weekday() - start_index) % 7
    week_start = day - timedelta(days=offset)
    return week_start, week_start + timedelta(days=6)


def month_bounds(value: Union[str, date], start_date: Optional[int] = None) -> tuple[date, date]:
    """First and last day of the monthly pay period containing a date.

    With no start_date (or 1) this is the calendar month. Otherwise the
    period runs from start_date to the day before start_date next month; a
    start_date past the end of a short month falls on that month's last day.
    """
    day = parse_date(value)
    start_date = start_date or 1

    def period_start(year: int, month: int) -> date:
        return date(year, month, min(start_date, calendar.monthrange(year, month)[1]))

    start = period_start(day.year, day.month)
    if day < start:
        year, month = (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)
        start = period_start(year, month)
    year, month = (start.year + 1, 1) if start.month == 12 else (start.year, start.month + 1)
    return start, period_start(year, month) - timedelta(days=1)


def period_bounds(
    period: str,
    value: Union[str, date],
    start_day: str = "Monday",
    start_date: Optional[int] = None,
) -> Optional[tuple[date, date]]:
    """Inclusive bounds of the "week" or "month" containing a date.

    Returns None for "all" (no bounds).

    Raises:
        ValueError: For an unknown period name
    """
    if period == "all":
        return None
    if period == "week":
        return week_bounds(value, start_day)
    if period == "month":
        return month_bounds(value, start_date)
    raise ValueError(f"Unknown period '{period}'. Expected week, month or all.")


def coerce_number(value: Any) -> float:
    """Coerce user-entered numeric text to a float.

    Malformed, missing or non-finite input becomes 0 so a calculation can
    always proceed.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number
