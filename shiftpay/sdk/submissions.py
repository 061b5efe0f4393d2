"""Submitted days.

Submitting a date moves its tracked shifts out of shifts.json into a new
submission in days.json. A date keeps every submission, newest first, and
its total is the sum of its submissions:

    {"2025-09-08": {"date": "2025-09-08", "submissions": [...], "total_minutes": 480, ...}}
"""

import hashlib
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from .config import get_data_path
from .schemas import PayPeriodConfig, Shift, Submission, SubmittedDay
from .shifts import JsonShiftStore, calculate_day_total
from .storage import PersistenceError, read_json, write_json
from .timeutil import epoch_ms, format_duration_text, local_date, parse_date, period_bounds

logger = logging.getLogger(__name__)

SUBMISSIONS_FILENAME = "days.json"

PERIODS = ("week", "month", "all", "custom")


def build_day(date: str, submissions: List[Submission]) -> SubmittedDay:
    """A day record with its total recomputed from the submissions."""
    total = sum(s.total_minutes for s in submissions)
    return SubmittedDay(
        date=date,
        submissions=submissions,
        total_minutes=total,
        total_text=format_duration_text(total),
        submitted_at=submissions[0].submitted_at if submissions else None,
    )


def make_submission_id(date: str, shifts: List[Shift]) -> str:
    """Id derived from the date and the submitted shift ids.

    Submitting the same shifts again yields the same id, so a retried
    submit replaces its earlier attempt instead of adding a second one.
    """
    key = "|".join(["submission", date] + sorted(s.id for s in shifts))
    return hashlib.sha256(key.encode()).hexdigest()[:8]


class JsonSubmissionStore:
    """Submitted days in days.json under the data directory."""

    def __init__(self, data_dir: Optional[Path] = None, clock: Callable[[], int] = epoch_ms):
        self._data_dir = data_dir
        self._clock = clock

    @property
    def path(self) -> Path:
        return (self._data_dir or get_data_path()) / SUBMISSIONS_FILENAME

    def _load(self) -> Dict[str, dict]:
        data = read_json(self.path, default={})
        if not isinstance(data, dict):
            raise PersistenceError(self.path, "expected an object keyed by date")
        return data

    def _parse(self, date: str, raw: dict) -> SubmittedDay:
        try:
            return SubmittedDay.model_validate(raw)
        except ValidationError as e:
            raise PersistenceError(self.path, f"invalid submission on {date}: {e}") from e

    def _write_day(self, data: Dict[str, dict], day: SubmittedDay) -> SubmittedDay:
        if day.submissions:
            data[day.date] = day.model_dump(mode="json")
        else:
            data.pop(day.date, None)
        write_json(self.path, data)
        return day

    def get_day(self, date: str) -> Optional[SubmittedDay]:
        """The submitted day for a date, or None if nothing was submitted."""
        raw = self._load().get(date)
        return self._parse(date, raw) if raw is not None else None

    def submit_day(self, date: str, shift_store: JsonShiftStore) -> SubmittedDay:
        """Submit a date's tracked shifts as a new submission.

        The submission goes in front of any earlier ones for the date, and
        the date's shifts are then cleared from the shift store.

        Raises:
            ValueError: If the date is malformed or has no shifts
            PersistenceError: If either file can't be read or written
        """
        parse_date(date)
        shifts = shift_store.get_shifts_for_date(date)
        if not shifts:
            raise ValueError(f"No shifts to submit on {date}")

        total, total_text = calculate_day_total(shifts)
        submission = Submission(
            id=make_submission_id(date, shifts),
            shifts=shifts,
            total_minutes=total,
            total_text=total_text,
            submitted_at=self._clock(),
        )

        data = self._load()
        earlier = self._parse(date, data[date]).submissions if date in data else []
        day = build_day(date, [submission] + [s for s in earlier if s.id != submission.id])
        self._write_day(data, day)
        shift_store.clear_date(date)
        logger.info(f"submitted {len(shifts)} shift(s) on {date} as {submission.id} ({total_text})")
        return day

    def get_submitted_days(
        self,
        period: str = "all",
        anchor: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        pay_period: Optional[PayPeriodConfig] = None,
    ) -> List[SubmittedDay]:
        """Submitted days, newest date first.

        Args:
            period: "week" or "month" (the pay period containing anchor),
                "custom" (start to end inclusive) or "all"
            anchor: Date inside the week or month (default: today)
            start: First date of a custom period
            end: Last date of a custom period
            pay_period: Week start day and monthly start date (default:
                weeks from Monday, calendar months)

        Raises:
            ValueError: For an unknown period or a custom period without
                both start and end
        """
        if period not in PERIODS:
            raise ValueError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}.")
        if period == "custom":
            if not start or not end:
                raise ValueError("A custom period needs both a start and an end date.")
            bounds = (parse_date(start), parse_date(end))
        else:
            pay_period = pay_period or PayPeriodConfig()
            bounds = period_bounds(
                period, anchor or local_date(self._clock()), pay_period.start_day, pay_period.start_date,
            )

        days = [self._parse(date, raw) for date, raw in self._load().items()]
        if bounds is not None:
            first, last = bounds
            days = [d for d in days if first <= parse_date(d.date) <= last]
        return sorted(days, key=lambda d: d.date, reverse=True)

    def update_submission(self, date: str, submission_id: str, shifts: List[Shift]) -> Optional[SubmittedDay]:
        """Replace a submission's shifts and recompute the totals.

        Returns:
            The updated day, or None if the date or submission is unknown

        Raises:
            ValueError: If shifts is empty
        """
        if not shifts:
            raise ValueError("A submission needs at least one shift.")
        data = self._load()
        if date not in data:
            return None
        submissions = list(self._parse(date, data[date]).submissions)
        for i, existing in enumerate(submissions):
            if existing.id == submission_id:
                break
        else:
            return None

        total, total_text = calculate_day_total(shifts)
        submissions[i] = Submission(
            id=existing.id,
            shifts=list(shifts),
            total_minutes=total,
            total_text=total_text,
            submitted_at=existing.submitted_at,
        )
        day = self._write_day(data, build_day(date, submissions))
        logger.info(f"updated submission {submission_id} on {date} ({total_text})")
        return day

    def delete_submission(self, date: str, submission_id: str) -> bool:
        """Delete one submission. A date left with none is removed.

        Returns False if the date or submission is unknown.
        """
        data = self._load()
        if date not in data:
            return False
        submissions = self._parse(date, data[date]).submissions
        remaining = [s for s in submissions if s.id != submission_id]
        if len(remaining) == len(submissions):
            return False
        self._write_day(data, build_day(date, remaining))
        logger.info(f"deleted submission {submission_id} on {date}")
        return True

    def delete_day(self, date: str) -> bool:
        """Delete every submission for a date. Returns False if none existed."""
        data = self._load()
        if data.pop(date, None) is None:
            return False
        write_json(self.path, data)
        logger.info(f"deleted submitted day {date}")
        return True
