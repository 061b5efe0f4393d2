"""Tests for pydantic schemas (hour parsing, input coercion, coherence)."""

import pytest
from pydantic import ValidationError

from shiftpay.sdk.schemas import (
    Break,
    HoursAndMinutes,
    PayBreakdown,
    PayCalculationInput,
    PayRules,
    to_money,
)


class TestHoursAndMinutes:

    @pytest.mark.parametrize("text,expected", [
        ("7:30", 450),
        ("7h 30m", 450),
        ("45m", 45),
        ("2h", 120),
        ("7.5h", 450),
        ("1.5h 15m", 105),
        ("0.25h", 15),
        ("7.5", 450),
        ("", 0),
        ("abc", 0),
        ("-3", 0),
    ])
    def test_parse(self, text, expected):
        assert HoursAndMinutes.parse(text).total_minutes == expected

    def test_negative_clamps_to_zero(self):
        assert HoursAndMinutes(hours=-2, minutes=-5).total_minutes == 0

    def test_from_minutes(self):
        assert HoursAndMinutes.from_minutes(125) == HoursAndMinutes(hours=2, minutes=5)
        assert str(HoursAndMinutes.from_minutes(125)) == "2:05"

    def test_to_hours(self):
        assert HoursAndMinutes(hours=1, minutes=30).to_hours() == 1.5


class TestPayCalculationInput:

    def test_blank_manual_rate_is_unset(self):
        assert PayCalculationInput(date="2025-09-08", manual_base_rate="  ").manual_base_rate is None

    def test_malformed_manual_rate_is_zero(self):
        assert PayCalculationInput(date="2025-09-08", manual_base_rate="abc").manual_base_rate == 0

    def test_malformed_distance_is_zero(self):
        assert PayCalculationInput(date="2025-09-08", distance_km="far").distance_km == 0

    def test_invalid_date(self):
        with pytest.raises(ValidationError):
            PayCalculationInput(date="2025-13-01")

    def test_frozen(self):
        calc_input = PayCalculationInput(date="2025-09-08")
        with pytest.raises(ValidationError):
            calc_input.date = "2025-09-09"


class TestPayBreakdown:

    def test_coherent_breakdown(self):
        breakdown = PayBreakdown(base=80, overtime=15, uplifts=0, allowances=0, gross=95, tax=9, ni=0, total=86)
        assert breakdown.display_amounts()["total"] == 86.0

    def test_incoherent_gross_rejected(self):
        with pytest.raises(ValidationError, match="gross"):
            PayBreakdown(base=80, overtime=15, uplifts=0, allowances=0, gross=100, tax=0, ni=0, total=100)

    def test_incoherent_total_rejected(self):
        with pytest.raises(ValidationError, match="total"):
            PayBreakdown(base=80, overtime=0, uplifts=0, allowances=0, gross=80, tax=10, ni=0, total=80)

    @pytest.mark.parametrize("value,expected", [(1.005, 1.01), (2.675, 2.68), (0.125, 0.13), (10, 10.0)])
    def test_money_rounds_half_up(self, value, expected):
        assert to_money(value) == expected


class TestRuleSchemas:

    def test_unknown_uplift_kind_rejected(self):
        with pytest.raises(ValidationError):
            PayRules.model_validate({"night": {"uplift": {"kind": "percentage", "value": 10}}})

    def test_malformed_night_clock_becomes_midnight(self):
        rules = PayRules.model_validate({"night": {"start": "late", "end": "06:00"}})
        assert rules.night.start == "00:00"

    def test_break_end_before_start_rejected(self):
        with pytest.raises(ValidationError):
            Break(start=2_000, end=1_000)
