"""Tests for hour allocation (overtime split, night overlap, rounding)."""

import pytest

from shiftpay.sdk.pay.hours import (
    HourAllocationDeriver,
    NightAllocation,
    OvertimeSplit,
    allocate_night,
    clock_overlap_minutes,
    round_minutes,
    split_overtime,
)
from shiftpay.sdk.schemas import AppSettings, OvertimeRules, Shift
from shiftpay.sdk.timeutil import calculate_duration, format_duration_text


def make_shift(start: str, end: str, shift_id: str = "s1") -> Shift:
    minutes = calculate_duration(start, end)
    return Shift(
        id=shift_id,
        start=start,
        end=end,
        duration_minutes=minutes,
        duration_text=format_duration_text(minutes),
        created_at=0,
    )


class MemoryShiftStore:
    def __init__(self, shifts_by_date=None):
        self.shifts = shifts_by_date or {}

    def get_shifts_for_date(self, date):
        return list(self.shifts.get(date, []))


def daily_rules(threshold=8, enabled=True) -> OvertimeRules:
    return OvertimeRules.model_validate({
        "enabled": enabled,
        "active": "daily",
        "daily": {"threshold": threshold, "uplift": {"kind": "multiplier", "multiplier": 1.5}},
    })


def weekly_rules(threshold=38) -> OvertimeRules:
    return OvertimeRules.model_validate({
        "active": "weekly",
        "weekly": {"threshold": threshold, "uplift": {"kind": "multiplier", "multiplier": 1.5}},
    })


class TestSplitOvertime:
    """Base/overtime split at the threshold."""

    def test_exactly_at_threshold(self):
        assert split_overtime(480, daily_rules()) == OvertimeSplit(base=480, overtime=0)

    def test_over_threshold(self):
        assert split_overtime(540, daily_rules()) == OvertimeSplit(base=480, overtime=60)

    def test_no_rules_means_all_base(self):
        assert split_overtime(600, None) == OvertimeSplit(base=600, overtime=0)

    def test_disabled_rules_mean_all_base(self):
        assert split_overtime(600, daily_rules(enabled=False)) == OvertimeSplit(base=600, overtime=0)

    def test_weekly_split_is_proportional(self):
        # 45h week against a 38h threshold: 7h overtime shared by contribution
        split = split_overtime(600, weekly_rules(), week_total=2700)
        assert split == OvertimeSplit(base=507, overtime=93)

    def test_weekly_under_threshold(self):
        assert split_overtime(600, weekly_rules(), week_total=1800).overtime == 0

    @pytest.mark.parametrize("total", [0, 1, 59, 480, 481, 725, 1439])
    @pytest.mark.parametrize("rules,week_total", [
        (daily_rules(0), None),
        (daily_rules(7.5), None),
        (weekly_rules(38), 2700),
        (weekly_rules(10), 3000),
        (None, None),
    ])
    def test_split_conserves_minutes(self, total, rules, week_total):
        split = split_overtime(total, rules, week_total)
        assert split.base + split.overtime == total
        assert split.base >= 0 and split.overtime >= 0


class TestClockOverlap:
    """Overlap of possibly-wrapping clock intervals."""

    def test_evening_shift_into_night_window(self):
        # 20:00-23:00 against 22:00-06:00: only 22:00-23:00 is night
        assert clock_overlap_minutes("20:00", "23:00", "22:00", "06:00") == 60

    def test_overnight_shift(self):
        assert clock_overlap_minutes("21:00", "07:00", "22:00", "06:00") == 480

    def test_early_morning_shift(self):
        assert clock_overlap_minutes("01:00", "03:00", "22:00", "06:00") == 120

    def test_day_shift(self):
        assert clock_overlap_minutes("07:00", "15:00", "22:00", "06:00") == 0

    def test_long_shift_touching_both_ends(self):
        assert clock_overlap_minutes("05:00", "23:00", "22:00", "06:00") == 120

    def test_non_wrapping_window(self):
        assert clock_overlap_minutes("12:00", "20:00", "18:00", "23:00") == 120


class TestAllocateNight:
    """Night minutes are shared between buckets and bounded by them."""

    def test_split_by_ratio(self):
        night = allocate_night(120, OvertimeSplit(base=480, overtime=60))
        assert night == NightAllocation(base=107, overtime=13)

    def test_night_capped_at_day_total(self):
        night = allocate_night(600, OvertimeSplit(base=300, overtime=0))
        assert night == NightAllocation(base=300, overtime=0)

    def test_no_hours_no_night(self):
        assert allocate_night(60, OvertimeSplit()) == NightAllocation()

    @pytest.mark.parametrize("night", [0, 1, 30, 179, 180, 500])
    @pytest.mark.parametrize("base,overtime", [(480, 60), (100, 100), (0, 180), (180, 0), (1, 7)])
    def test_night_bound(self, night, base, overtime):
        alloc = allocate_night(night, OvertimeSplit(base=base, overtime=overtime))
        assert 0 <= alloc.base <= base
        assert 0 <= alloc.overtime <= overtime


class TestRoundMinutes:
    """Rounding preference applied to hours."""

    @pytest.mark.parametrize("minutes,rule,expected", [
        (52, "15min", 45),
        (53, "15min", 60),
        (52, "5min", 50),
        (52, "none", 52),
        (52, None, 52),
        (52, "weird", 52),
        (52, "0min", 52),
        (7, "10min", 10),
    ])
    def test_round(self, minutes, rule, expected):
        assert round_minutes(minutes, rule) == expected


class TestHourAllocationDeriver:
    """Tracker derivation from recorded shifts."""

    def test_no_shifts_gives_zero_allocation(self):
        deriver = HourAllocationDeriver(MemoryShiftStore())
        settings = AppSettings.model_validate({
            "pay_rules": {"overtime": daily_rules().model_dump(), "night": {"enabled": True}},
        })

        assert deriver.derive_tracker_overtime_split_for_date("2025-09-08", settings) == OvertimeSplit()
        assert deriver.derive_tracker_night_allocation_for_date("2025-09-08", settings) == NightAllocation()

    def test_evening_shift_night_allocation(self):
        store = MemoryShiftStore({"2025-09-09": [make_shift("20:00", "23:00")]})
        settings = AppSettings.model_validate({
            "pay_rules": {
                "overtime": daily_rules().model_dump(),
                "night": {"start": "22:00", "end": "06:00"},
            },
        })
        deriver = HourAllocationDeriver(store)

        split = deriver.derive_tracker_overtime_split_for_date("2025-09-09", settings)
        night = deriver.derive_tracker_night_allocation_for_date("2025-09-09", settings)

        assert split == OvertimeSplit(base=180, overtime=0)
        assert night == NightAllocation(base=60, overtime=0)

    def test_night_disabled_gives_zero(self):
        store = MemoryShiftStore({"2025-09-09": [make_shift("20:00", "23:00")]})
        settings = AppSettings.model_validate({"pay_rules": {"night": {"enabled": False}}})

        night = HourAllocationDeriver(store).derive_tracker_night_allocation_for_date("2025-09-09", settings)

        assert night == NightAllocation()

    def test_multiple_shifts_summed(self):
        store = MemoryShiftStore({"2025-09-08": [
            make_shift("06:00", "12:00", "a"),
            make_shift("13:00", "17:00", "b"),
        ]})
        settings = AppSettings.model_validate({"pay_rules": {"overtime": daily_rules().model_dump()}})

        split = HourAllocationDeriver(store).derive_tracker_overtime_split_for_date("2025-09-08", settings)

        assert split == OvertimeSplit(base=480, overtime=120)

    def test_weekly_basis_uses_pay_week(self):
        # Mon 2025-09-08 .. Fri 2025-09-12, 9h per day = 45h
        days = ["2025-09-08", "2025-09-09", "2025-09-10", "2025-09-11", "2025-09-12"]
        store = MemoryShiftStore({d: [make_shift("08:00", "17:00")] for d in days})
        settings = AppSettings.model_validate({
            "pay_rules": {
                "overtime": weekly_rules(38).model_dump(),
                "pay_period": {"cycle": "weekly", "start_day": "Monday"},
            },
        })
        deriver = HourAllocationDeriver(store)

        splits = [deriver.derive_tracker_overtime_split_for_date(d, settings) for d in days]

        assert all(s == OvertimeSplit(base=456, overtime=84) for s in splits)
        assert sum(s.overtime for s in splits) == 7 * 60

    def test_derive_full_allocation(self):
        store = MemoryShiftStore({"2025-09-09": [make_shift("14:00", "00:00")]})
        settings = AppSettings.model_validate({
            "pay_rules": {"overtime": daily_rules().model_dump(), "night": {}},
        })

        alloc = HourAllocationDeriver(store).derive("2025-09-09", settings)

        # 10h: 8h base + 2h overtime; 2h night (22:00-00:00) split 8:2
        assert (alloc.base, alloc.overtime) == (480, 120)
        assert alloc.night_base + alloc.night_overtime == 120
        assert alloc.night_overtime == 24
