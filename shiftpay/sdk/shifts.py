"""Tracked shift storage.

Shifts are grouped by date in shifts.json:

    {"2025-09-08": [{"id": ..., "start": "09:00", "end": "17:30", ...}], ...}

Finished timer sessions and manually entered shifts both land here; the
hour allocation deriver reads them back per date.
"""

import hashlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from .config import get_data_path
from .schemas import Shift
from .storage import PersistenceError, read_json, write_json
from .timeutil import calculate_duration, epoch_ms, format_duration_text, parse_date, time_to_minutes

logger = logging.getLogger(__name__)

SHIFTS_FILENAME = "shifts.json"


class ShiftSource(Protocol):
    """Read access to tracked shifts by date."""

    def get_shifts_for_date(self, date: str) -> List[Shift]: ...


def calculate_day_total(shifts: List[Shift]) -> Tuple[int, str]:
    """Total worked minutes of a list of shifts and its display text."""
    total = sum(s.duration_minutes for s in shifts)
    return total, format_duration_text(total)


def new_shift(date: str, start: str, end: str, created_at: int, note: Optional[str] = None) -> Shift:
    """Build a manually entered shift. An end before start is overnight.

    Raises:
        ValueError: If start or end is not HH:MM or date is not YYYY-MM-DD
    """
    time_to_minutes(start)
    time_to_minutes(end)
    parse_date(date)
    minutes = calculate_duration(start, end)
    return Shift(
        id=hashlib.sha256(f"shift|{date}|{start}|{end}|{created_at}".encode()).hexdigest()[:8],
        start=start,
        end=end,
        duration_minutes=minutes,
        duration_text=format_duration_text(minutes),
        created_at=created_at,
        note=note or None,
    )


class JsonShiftStore:
    """Shifts by date in shifts.json under the data directory."""

    def __init__(self, data_dir: Optional[Path] = None, clock: Callable[[], int] = epoch_ms):
        self._data_dir = data_dir
        self._clock = clock

    @property
    def path(self) -> Path:
        return (self._data_dir or get_data_path()) / SHIFTS_FILENAME

    def _load(self) -> Dict[str, List[dict]]:
        data = read_json(self.path, default={})
        if not isinstance(data, dict):
            raise PersistenceError(self.path, "expected an object keyed by date")
        return data

    def get_shifts_for_date(self, date: str) -> List[Shift]:
        """Shifts recorded on a date (empty list if none).

        Raises:
            PersistenceError: If shifts.json is unreadable or malformed
        """
        try:
            return [Shift.model_validate(s) for s in self._load().get(date, [])]
        except ValidationError as e:
            raise PersistenceError(self.path, f"invalid shift on {date}: {e}") from e

    def get_shifts_between(self, start: str, end: str) -> Dict[str, List[Shift]]:
        """Shifts for every date in [start, end], keyed by date."""
        first, last = parse_date(start), parse_date(end)
        result = {}
        day = first
        while day <= last:
            result[day.isoformat()] = self.get_shifts_for_date(day.isoformat())
            day += timedelta(days=1)
        return result

    def append_shift(self, date: str, shift: Shift) -> Shift:
        """Record a finished shift under a date.

        A shift with the same id already on that date is replaced in place,
        so recording the same shift twice leaves one entry.
        """
        data = self._load()
        day = data.setdefault(date, [])
        record = shift.model_dump(mode="json")
        for i, existing in enumerate(day):
            if existing.get("id") == shift.id:
                day[i] = record
                logger.info(f"replaced shift {shift.id} on {date} ({shift.duration_text})")
                break
        else:
            day.append(record)
            logger.info(f"recorded shift {shift.id} on {date} ({shift.duration_text})")
        write_json(self.path, data)
        return shift

    def add_shift(self, date: str, start: str, end: str, note: Optional[str] = None) -> Shift:
        """Record a manually entered shift. An end before start is overnight.

        Raises:
            ValueError: If start or end is not HH:MM
        """
        return self.append_shift(date, new_shift(date, start, end, self._clock(), note))

    def clear_date(self, date: str) -> int:
        """Remove every shift on a date. Returns how many were removed."""
        data = self._load()
        removed = len(data.pop(date, []))
        if removed:
            write_json(self.path, data)
            logger.info(f"cleared {removed} shift(s) on {date}")
        return removed

    def remove_shift(self, date: str, shift_id: str) -> bool:
        """Remove a shift by id. Returns False if it wasn't found."""
        data = self._load()
        shifts = data.get(date, [])
        remaining = [s for s in shifts if s.get("id") != shift_id]
        if len(remaining) == len(shifts):
            return False
        if remaining:
            data[date] = remaining
        else:
            del data[date]
        write_json(self.path, data)
        return True
