"""Tests for the pay rule engine (hours + rates + rules -> gross)."""

import pytest

from shiftpay.sdk.pay.hours import HourAllocation, split_overtime
from shiftpay.sdk.pay.rules import compute_gross, effective_overtime_rate, uplift_per_hour
from shiftpay.sdk.schemas import FixedUplift, MultiplierUplift, OvertimeRules, PayRules

MONDAY = "2025-09-08"
TUESDAY = "2025-09-09"
WEDNESDAY = "2025-09-10"
SATURDAY = "2025-09-13"


def hours(base=0.0, overtime=0.0, night_base=0.0, night_overtime=0.0) -> HourAllocation:
    return HourAllocation(
        base=int(base * 60),
        overtime=int(overtime * 60),
        night_base=int(night_base * 60),
        night_overtime=int(night_overtime * 60),
    )


def rules(**sections) -> PayRules:
    return PayRules.model_validate(sections)


def daily_multiplier(threshold=8, multiplier=1.5) -> dict:
    return {"active": "daily", "daily": {"threshold": threshold, "uplift": {"kind": "multiplier", "multiplier": multiplier}}}


def weekly(uplift: dict, threshold=38) -> dict:
    return {"active": "weekly", "weekly": {"threshold": threshold, "uplift": uplift}}


def assert_identity(pay):
    assert pay.gross == pytest.approx(pay.base + pay.overtime + pay.uplifts + pay.allowances)


class TestOvertimeScenarios:
    """Daily overtime at 8h x1.5 with a base rate of 10."""

    def test_eight_hours_is_all_base(self):
        split = split_overtime(480, OvertimeRules.model_validate(daily_multiplier()))
        pay = compute_gross(HourAllocation(split.base, split.overtime), 10, None,
                            rules(overtime=daily_multiplier()), MONDAY)

        assert pay.base == pytest.approx(80)
        assert pay.overtime == pytest.approx(0)
        assert pay.gross == pytest.approx(80)

    def test_nine_hours_has_one_overtime_hour(self):
        split = split_overtime(540, OvertimeRules.model_validate(daily_multiplier()))
        pay = compute_gross(HourAllocation(split.base, split.overtime), 10, None,
                            rules(overtime=daily_multiplier()), MONDAY)

        assert pay.base == pytest.approx(80)
        assert pay.overtime == pytest.approx(15)
        assert pay.gross == pytest.approx(95)

    def test_daily_multiplier_applies_to_overtime_hours_only(self):
        pay = compute_gross(hours(8, 2), 20, None, rules(overtime=daily_multiplier()), MONDAY)

        assert pay.base == pytest.approx(160)
        assert pay.overtime == pytest.approx(60)

    def test_weekly_basis_selects_weekly_tier(self):
        overtime = {
            "active": "weekly",
            "daily": {"threshold": 8, "uplift": {"kind": "multiplier", "multiplier": 2}},
            "weekly": {"threshold": 38, "uplift": {"kind": "multiplier", "multiplier": 1.25}},
        }
        pay = compute_gross(hours(0, 2), 20, None, rules(overtime=overtime), WEDNESDAY)

        assert pay.overtime == pytest.approx(20 * 1.25 * 2)


class TestEffectiveOvertimeRate:
    """Which rate prices overtime hours."""

    def test_tier_uplift_wins_over_explicit_rate(self):
        ot = OvertimeRules.model_validate(daily_multiplier())
        assert effective_overtime_rate(20, 50, ot) == pytest.approx(30)

    def test_fixed_tier(self):
        ot = OvertimeRules.model_validate(weekly({"kind": "fixed", "uplift": 0.5}))
        assert effective_overtime_rate(20, None, ot) == pytest.approx(20.5)

    def test_manual_tier_uses_overtime_rate(self):
        ot = OvertimeRules.model_validate({"active": "daily", "daily": {"threshold": 8}})
        assert effective_overtime_rate(20, 27, ot) == pytest.approx(27)

    def test_falls_back_to_base_rate(self):
        assert effective_overtime_rate(20, None, None) == pytest.approx(20)

    def test_disabled_overtime_ignores_tier(self):
        ot = OvertimeRules.model_validate({**daily_multiplier(), "enabled": False})
        assert effective_overtime_rate(20, 25, ot) == pytest.approx(25)


class TestWeekendStacking:
    """Weekend uplift with stack and highest_only."""

    def test_stack_adds_weekend_on_top_of_overtime(self):
        pay = compute_gross(
            hours(0, 4), 20, None,
            rules(overtime=weekly({"kind": "fixed", "uplift": 0.5}),
                  weekend={"days": ["Sat", "Sun"], "uplift": {"kind": "fixed", "uplift": 0.5}}),
            SATURDAY, stacking_rule="stack",
        )

        assert pay.overtime == pytest.approx(20.5 * 4)
        assert pay.weekend_uplift == pytest.approx(0.5 * 4)
        assert pay.overtime + pay.uplifts == pytest.approx(21.0 * 4)

    def test_highest_only_keeps_better_overtime_rate(self):
        pay = compute_gross(
            hours(0, 3), 20, None,
            rules(overtime=weekly({"kind": "multiplier", "multiplier": 1.5}),
                  weekend={"days": ["Sat", "Sun"], "uplift": {"kind": "fixed", "uplift": 0.5}}),
            SATURDAY, stacking_rule="highest_only",
        )

        assert pay.overtime + pay.uplifts == pytest.approx(30 * 3)
        assert pay.weekend_uplift == pytest.approx(0)

    def test_highest_only_weekend_multiplier_vs_daily_overtime(self):
        pay = compute_gross(
            hours(0, 2), 20, None,
            rules(overtime=daily_multiplier(),
                  weekend={"days": ["Sat", "Sun"], "uplift": {"kind": "multiplier", "multiplier": 1.25}}),
            SATURDAY, stacking_rule="highest_only",
        )

        assert pay.overtime + pay.uplifts == pytest.approx(30 * 2)

    def test_highest_only_weekend_can_win(self):
        pay = compute_gross(
            hours(0, 2), 20, None,
            rules(overtime=weekly({"kind": "fixed", "uplift": 0.5}),
                  weekend={"days": ["Sat"], "uplift": {"kind": "multiplier", "multiplier": 1.5}}),
            SATURDAY, stacking_rule="highest_only",
        )

        assert pay.overtime == pytest.approx(20.5 * 2)
        assert pay.overtime + pay.uplifts == pytest.approx(30 * 2)

    def test_weekend_uplift_on_base_hours(self):
        pay = compute_gross(
            hours(8), 10, None,
            rules(weekend={"days": ["Sat", "Sun"], "uplift": {"kind": "multiplier", "multiplier": 1.5}}),
            SATURDAY,
        )

        assert pay.weekend_uplift == pytest.approx(40)
        assert pay.gross == pytest.approx(120)

    def test_no_weekend_uplift_on_weekday(self):
        pay = compute_gross(
            hours(8), 10, None,
            rules(weekend={"days": ["Sat", "Sun"], "uplift": {"kind": "fixed", "uplift": 2}}),
            MONDAY,
        )
        assert pay.weekend_uplift == 0
        assert pay.weekend_rule is None

    def test_disabled_weekend(self):
        pay = compute_gross(
            hours(8), 10, None,
            rules(weekend={"enabled": False, "uplift": {"kind": "fixed", "uplift": 2}}),
            SATURDAY,
        )
        assert pay.weekend_uplift == 0


class TestNightUplift:
    """Night uplift on the base and overtime night buckets."""

    def test_fixed_night_uplift(self):
        pay = compute_gross(
            hours(2, 1, night_base=1, night_overtime=1), 20, None,
            rules(overtime=daily_multiplier(), night={"uplift": {"kind": "fixed", "uplift": 0.5}}),
            TUESDAY,
        )

        assert pay.base == pytest.approx(40)
        assert pay.uplifts == pytest.approx(1.0)

    def test_percentage_night_uplift_uses_bucket_rates(self):
        # 25% night: 1h base at 20 -> 5, 1h overtime at 30 -> 7.5
        pay = compute_gross(
            hours(2, 1, night_base=1, night_overtime=1), 20, None,
            rules(overtime=daily_multiplier(), night={"uplift": {"kind": "multiplier", "multiplier": 1.25}}),
            TUESDAY,
        )

        assert pay.night_uplift == pytest.approx(12.5)

    def test_night_without_uplift(self):
        pay = compute_gross(hours(8, night_base=2), 10, None, rules(night={}), TUESDAY)
        assert pay.night_uplift == 0
        assert pay.gross == pytest.approx(80)


class TestAllowancesAndBounds:
    """Allowances and non-negative contributions."""

    def test_allowance_units(self):
        allowances = [
            {"id": "meal", "type": "Meal", "value": 5, "unit": "per_shift"},
            {"id": "tool", "type": "Tools", "value": 1, "unit": "per_hour"},
            {"id": "km", "type": "Mileage", "value": 0.45, "unit": "per_km"},
        ]
        pay = compute_gross(hours(8, 1), 10, None, rules(allowances=allowances), MONDAY, distance_km=10)

        assert pay.allowances == pytest.approx(5 + 9 + 4.5)
        assert_identity(pay)

    def test_per_km_without_distance(self):
        allowances = [{"id": "km", "type": "Mileage", "value": 0.45, "unit": "per_km"}]
        pay = compute_gross(hours(8), 10, None, rules(allowances=allowances), MONDAY)
        assert pay.allowances == 0

    def test_multiplier_below_one_never_negative(self):
        pay = compute_gross(
            hours(4, night_base=4), 10, None,
            rules(night={"uplift": {"kind": "multiplier", "multiplier": 0.5}},
                  weekend={"uplift": {"kind": "multiplier", "multiplier": 0.5}}),
            SATURDAY,
        )

        assert pay.night_uplift == 0
        assert pay.weekend_uplift == 0
        assert pay.gross == pytest.approx(40)

    def test_uplift_per_hour(self):
        assert uplift_per_hour(None, 20) == 0
        assert uplift_per_hour(MultiplierUplift(multiplier=1.5), 20) == pytest.approx(10)
        assert uplift_per_hour(FixedUplift(uplift=0.75), 20) == pytest.approx(0.75)

    def test_zero_hours(self):
        pay = compute_gross(HourAllocation(), 10, None, rules(overtime=daily_multiplier()), MONDAY)
        assert pay.gross == 0
