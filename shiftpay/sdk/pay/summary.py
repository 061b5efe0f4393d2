"""Pay history totals over a week or month.

Saved calculations are bucketed by their calculation date into the pay
week or month containing an anchor date, summed, and compared against the
matching weekly or monthly goal from preferences.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..schemas import PayCalculationEntry, PayPeriodConfig, Preferences
from ..timeutil import parse_date, period_bounds

PROGRESS_CAP = 200.0


@dataclass(frozen=True)
class PaySummary:
    """Summed pay for the entries in one period."""

    period: str
    start: Optional[str] = None
    end: Optional[str] = None
    count: int = 0
    base: float = 0.0
    overtime: float = 0.0
    uplifts: float = 0.0
    allowances: float = 0.0
    gross: float = 0.0
    tax: float = 0.0
    ni: float = 0.0
    total: float = 0.0
    minutes: int = 0
    goal: Optional[float] = None

    @property
    def progress(self) -> Optional[float]:
        """Net total as a percentage of the goal, capped at 200 (None with no goal)."""
        if not self.goal or self.goal <= 0:
            return None
        return max(0.0, min(PROGRESS_CAP, self.total / self.goal * 100))

    @property
    def remaining(self) -> Optional[float]:
        if not self.goal or self.goal <= 0:
            return None
        return max(0.0, self.goal - self.total)


def entries_in_period(
    entries: Iterable[PayCalculationEntry],
    period: str,
    anchor: str,
    pay_period: Optional[PayPeriodConfig] = None,
) -> List[PayCalculationEntry]:
    """Entries whose calculation date falls in the week/month containing anchor."""
    pay_period = pay_period or PayPeriodConfig()
    bounds = period_bounds(period, anchor, pay_period.start_day, pay_period.start_date)
    if bounds is None:
        return list(entries)
    first, last = bounds
    return [e for e in entries if first <= parse_date(e.input.date) <= last]


def summarize_history(
    entries: Iterable[PayCalculationEntry],
    period: str,
    anchor: str,
    pay_period: Optional[PayPeriodConfig] = None,
    preferences: Optional[Preferences] = None,
) -> PaySummary:
    """Sum the entries in the period containing anchor.

    Hours are the base plus overtime actually used by each calculation.
    The goal is preferences.weekly_goal for "week", monthly_goal for
    "month" and none for "all".

    Args:
        entries: Saved calculations (any order)
        period: "week", "month" or "all"
        anchor: Date inside the period (YYYY-MM-DD)
        pay_period: Week start day and monthly start date
        preferences: Source of the goals

    Raises:
        ValueError: For an unknown period or a malformed anchor
    """
    pay_period = pay_period or PayPeriodConfig()
    bounds = period_bounds(period, anchor, pay_period.start_day, pay_period.start_date)
    selected = entries_in_period(entries, period, anchor, pay_period)

    totals = dict.fromkeys(("base", "overtime", "uplifts", "allowances", "gross", "tax", "ni", "total"), 0.0)
    minutes = 0
    for entry in selected:
        for key in totals:
            totals[key] += getattr(entry.calculated_pay, key)
        snapshot = entry.calc_snapshot
        minutes += snapshot.used_base.total_minutes + snapshot.used_overtime.total_minutes

    goal = None
    if preferences is not None:
        goal = {"week": preferences.weekly_goal, "month": preferences.monthly_goal}.get(period)

    return PaySummary(
        period=period,
        start=bounds[0].isoformat() if bounds else None,
        end=bounds[1].isoformat() if bounds else None,
        count=len(selected),
        minutes=minutes,
        goal=goal,
        **totals,
    )
