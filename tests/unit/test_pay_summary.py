"""Tests for pay history totals and pay period bounds."""

from datetime import date

import pytest

from shiftpay.sdk.pay import entries_in_period, summarize_history
from shiftpay.sdk.schemas import (
    CalcSnapshot,
    HoursAndMinutes,
    PayBreakdown,
    PayCalculationEntry,
    PayCalculationInput,
    PayPeriodConfig,
    Preferences,
    RateSnapshot,
)
from shiftpay.sdk.timeutil import month_bounds, period_bounds


def make_entry(entry_id, on, base_minutes=480, overtime_minutes=0, rate=12.0, tax=0.0):
    base = base_minutes / 60 * rate
    overtime = overtime_minutes / 60 * rate * 1.5
    gross = base + overtime
    return PayCalculationEntry(
        id=entry_id,
        input=PayCalculationInput(date=on),
        calculated_pay=PayBreakdown(
            base=base, overtime=overtime, uplifts=0, allowances=0,
            gross=gross, tax=tax, ni=0, total=gross - tax,
        ),
        rate_snapshot=RateSnapshot(base=rate, overtime=rate * 1.5),
        calc_snapshot=CalcSnapshot(
            used_base=HoursAndMinutes.from_minutes(base_minutes),
            used_overtime=HoursAndMinutes.from_minutes(overtime_minutes),
        ),
        created_at=0,
    )


@pytest.fixture
def entries():
    return [
        make_entry("a1", "2025-08-31"),
        make_entry("b2", "2025-09-08", overtime_minutes=60, tax=10),
        make_entry("c3", "2025-09-12", base_minutes=240),
        make_entry("d4", "2025-09-15"),
    ]


class TestEntriesInPeriod:

    def test_week(self, entries):
        selected = entries_in_period(entries, "week", "2025-09-10")
        assert [e.id for e in selected] == ["b2", "c3"]

    def test_week_from_sunday(self, entries):
        selected = entries_in_period(
            entries, "week", "2025-09-10", PayPeriodConfig(start_day="Sunday"),
        )
        assert [e.id for e in selected] == ["b2", "c3"]
        selected = entries_in_period(
            entries, "week", "2025-09-01", PayPeriodConfig(start_day="Sunday"),
        )
        assert [e.id for e in selected] == ["a1"]

    def test_month(self, entries):
        selected = entries_in_period(entries, "month", "2025-09-30")
        assert [e.id for e in selected] == ["b2", "c3", "d4"]

    def test_all(self, entries):
        assert entries_in_period(entries, "all", "2025-09-10") == entries


class TestSummarizeHistory:

    def test_week_totals(self, entries):
        summary = summarize_history(entries, "week", "2025-09-10", preferences=Preferences())

        assert summary.start == "2025-09-08"
        assert summary.end == "2025-09-14"
        assert summary.count == 2
        assert summary.minutes == 480 + 60 + 240
        assert summary.base == pytest.approx(96 + 48)
        assert summary.overtime == pytest.approx(18)
        assert summary.gross == pytest.approx(162)
        assert summary.tax == pytest.approx(10)
        assert summary.total == pytest.approx(152)

    def test_weekly_goal_progress(self, entries):
        summary = summarize_history(entries, "week", "2025-09-10", preferences=Preferences(weekly_goal=200))

        assert summary.goal == 200
        assert summary.progress == pytest.approx(76)
        assert summary.remaining == pytest.approx(48)

    def test_monthly_goal(self, entries):
        summary = summarize_history(entries, "month", "2025-09-10", preferences=Preferences(monthly_goal=100))

        assert summary.goal == 100
        assert summary.count == 3
        assert summary.total == pytest.approx(104 + 48 + 96)
        assert summary.remaining == 0

    def test_progress_is_capped(self):
        entries = [make_entry("x1", "2025-09-08", base_minutes=600, rate=100.0)]
        summary = summarize_history(entries, "week", "2025-09-08", preferences=Preferences(weekly_goal=10))

        assert summary.progress == 200

    @pytest.mark.parametrize("preferences", [None, Preferences(weekly_goal=0), Preferences(weekly_goal=None)])
    def test_no_goal(self, entries, preferences):
        summary = summarize_history(entries, "week", "2025-09-10", preferences=preferences)

        assert summary.progress is None
        assert summary.remaining is None

    def test_all_has_no_bounds_or_goal(self, entries):
        summary = summarize_history(entries, "all", "2025-09-10", preferences=Preferences())

        assert summary.start is None and summary.end is None
        assert summary.count == 4
        assert summary.goal is None

    def test_empty_period(self, entries):
        summary = summarize_history(entries, "week", "2025-10-01", preferences=Preferences())

        assert summary.count == 0
        assert summary.total == 0
        assert summary.progress == 0

    def test_unknown_period(self, entries):
        with pytest.raises(ValueError, match="Unknown period"):
            summarize_history(entries, "fortnight", "2025-09-10")


class TestPeriodBounds:

    @pytest.mark.parametrize("value, start_date, expected", [
        ("2025-12-05", None, (date(2025, 12, 1), date(2025, 12, 31))),
        ("2024-02-10", 1, (date(2024, 2, 1), date(2024, 2, 29))),
        ("2025-09-10", 15, (date(2025, 8, 15), date(2025, 9, 14))),
        ("2025-09-20", 15, (date(2025, 9, 15), date(2025, 10, 14))),
        ("2025-01-10", 15, (date(2024, 12, 15), date(2025, 1, 14))),
        ("2025-02-28", 31, (date(2025, 2, 28), date(2025, 3, 30))),
        ("2025-03-15", 31, (date(2025, 2, 28), date(2025, 3, 30))),
    ])
    def test_month_bounds(self, value, start_date, expected):
        assert month_bounds(value, start_date) == expected

    def test_all_is_unbounded(self):
        assert period_bounds("all", "2025-09-10") is None

    def test_week(self):
        assert period_bounds("week", "2025-09-10", "Sunday") == (date(2025, 9, 7), date(2025, 9, 13))

    def test_unknown(self):
        with pytest.raises(ValueError):
            period_bounds("quarter", "2025-09-10")
