"""Hour allocation: splitting tracked minutes into base/overtime and night buckets.

Everything here is a pure function of recorded shifts and rule settings,
except HourAllocationDeriver which reads shifts from a ShiftSource. A date
with no shifts yields an all-zero allocation rather than an error.

All quantities are whole minutes.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Optional

from ..schemas import AppSettings, NightRules, OvertimeRules, Shift
from ..shifts import ShiftSource, calculate_day_total
from ..timeutil import MINUTES_PER_DAY, time_to_minutes, week_bounds

logger = logging.getLogger(__name__)

_ROUNDING_RE = re.compile(r"^(\d+)\s*min$")


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class OvertimeSplit:
    """Day minutes split at the overtime threshold. base + overtime == total."""

    base: int = 0
    overtime: int = 0

    @property
    def total(self) -> int:
        return self.base + self.overtime


@dataclass(frozen=True)
class NightAllocation:
    """Night minutes falling in the base and overtime buckets."""

    base: int = 0
    overtime: int = 0

    @property
    def total(self) -> int:
        return self.base + self.overtime


@dataclass(frozen=True)
class HourAllocation:
    """Resolved hours for one calculation, in minutes."""

    base: int = 0
    overtime: int = 0
    night_base: int = 0
    night_overtime: int = 0

    @property
    def total(self) -> int:
        return self.base + self.overtime

    @staticmethod
    def hours(minutes: int) -> float:
        return minutes / 60


def split_overtime(
    total: int,
    rules: Optional[OvertimeRules],
    week_total: Optional[int] = None,
) -> OvertimeSplit:
    """Split a day's minutes into base and overtime.

    Daily basis: base = min(total, threshold), overtime = the rest.

    Weekly basis: the threshold is compared against week_total (all tracked
    minutes in the pay week containing the day). The week's overtime is
    shared out in proportion to each day's contribution, so this day gets
    round(total * week_overtime / week_total) overtime minutes.

    Args:
        total: Minutes tracked on the day
        rules: Overtime rules (None or disabled means no overtime)
        week_total: Minutes tracked across the pay week (weekly basis only)
    """
    total = max(0, int(total))
    tier = rules.active_tier if rules is not None else None
    if tier is None:
        return OvertimeSplit(base=total, overtime=0)

    threshold = _half_up(tier.threshold * 60)

    if rules.active == "weekly" and week_total is not None:
        week_total = max(int(week_total), total)
        if week_total == 0:
            return OvertimeSplit()
        week_overtime = max(0, week_total - threshold)
        overtime = min(total, _half_up(total * week_overtime / week_total))
        return OvertimeSplit(base=total - overtime, overtime=overtime)

    overtime = max(0, total - threshold)
    return OvertimeSplit(base=total - overtime, overtime=overtime)


def _interval(start: int, end: int) -> tuple[int, int]:
    # An end before start wraps past midnight; equal ends are empty.
    if end < start:
        end += MINUTES_PER_DAY
    return start, end


def clock_overlap_minutes(a_start: str, a_end: str, b_start: str, b_end: str) -> int:
    """Minutes shared by two clock intervals [start, end) on a 24h clock.

    Either interval may wrap past midnight (end before start).

    Example:
        >>> clock_overlap_minutes("20:00", "23:00", "22:00", "06:00")
        60
    """
    a0, a1 = _interval(time_to_minutes(a_start), time_to_minutes(a_end))
    b0, b1 = _interval(time_to_minutes(b_start), time_to_minutes(b_end))
    overlap = 0
    # Both intervals are shorter than a day, so comparing against b shifted
    # by one day either way catches every overlap.
    for k in (-1, 0, 1):
        shift = k * MINUTES_PER_DAY
        overlap += max(0, min(a1, b1 + shift) - max(a0, b0 + shift))
    return overlap


def night_minutes(shifts: Iterable[Shift], window: NightRules) -> int:
    """Total minutes of the shifts' clock intervals inside the night window."""
    total = 0
    for shift in shifts:
        try:
            total += clock_overlap_minutes(shift.start, shift.end, window.start, window.end)
        except ValueError:
            logger.warning(f"skipping shift {shift.id} with invalid clock times {shift.start}-{shift.end}")
    return total


def allocate_night(night: int, split: OvertimeSplit) -> NightAllocation:
    """Share night minutes between the base and overtime buckets.

    Night time is capped at the day's total, divided in the base/overtime
    ratio, and each part is capped at its bucket.
    """
    if split.total <= 0:
        return NightAllocation()
    night = min(max(0, int(night)), split.total)
    overtime = min(split.overtime, _half_up(night * split.overtime / split.total))
    base = min(split.base, night - overtime)
    return NightAllocation(base=base, overtime=overtime)


def round_minutes(minutes: int, rule: Optional[str]) -> int:
    """Round minutes to the nearest step of a rounding rule.

    Rules are "none" or "<N>min" (e.g., "5min", "15min"). Unknown rules
    leave the value unchanged.
    """
    minutes = max(0, int(minutes))
    match = _ROUNDING_RE.match((rule or "none").strip().lower())
    if not match or int(match.group(1)) <= 0:
        return minutes
    step = int(match.group(1))
    return _half_up(minutes / step) * step


class HourAllocationDeriver:
    """Derives a date's hour allocation from tracked shifts."""

    def __init__(self, shift_source: ShiftSource):
        self._shifts = shift_source

    def _week_total(self, date: str, settings: AppSettings) -> int:
        start, end = week_bounds(date, settings.pay_rules.pay_period.start_day)
        total = 0
        day = start
        while day <= end:
            minutes, _ = calculate_day_total(self._shifts.get_shifts_for_date(day.isoformat()))
            total += minutes
            day += timedelta(days=1)
        return total

    def derive_tracker_overtime_split_for_date(self, date: str, settings: AppSettings) -> OvertimeSplit:
        """Base/overtime split of the minutes tracked on a date."""
        shifts = self._shifts.get_shifts_for_date(date)
        if not shifts:
            logger.debug(f"no shifts tracked on {date}; overtime split is zero")
            return OvertimeSplit()

        total, _ = calculate_day_total(shifts)
        rules = settings.pay_rules.overtime
        week_total = None
        if rules is not None and rules.active_tier is not None and rules.active == "weekly":
            week_total = self._week_total(date, settings)
        split = split_overtime(total, rules, week_total)
        logger.debug(f"{date}: {total}m tracked -> base {split.base}m, overtime {split.overtime}m")
        return split

    def derive_tracker_night_allocation_for_date(self, date: str, settings: AppSettings) -> NightAllocation:
        """Night minutes tracked on a date, split into base and overtime buckets."""
        window = settings.pay_rules.night
        if window is None or not window.enabled:
            return NightAllocation()
        shifts = self._shifts.get_shifts_for_date(date)
        if not shifts:
            return NightAllocation()
        split = self.derive_tracker_overtime_split_for_date(date, settings)
        return allocate_night(night_minutes(shifts, window), split)

    def derive(self, date: str, settings: AppSettings) -> HourAllocation:
        """Full tracker allocation for a date."""
        split = self.derive_tracker_overtime_split_for_date(date, settings)
        night = self.derive_tracker_night_allocation_for_date(date, settings)
        return HourAllocation(
            base=split.base,
            overtime=split.overtime,
            night_base=night.base,
            night_overtime=night.overtime,
        )
