"""Tests for tax and NI deductions."""

import pytest

from shiftpay.sdk.pay.deductions import compute_deductions, compute_ni, compute_tax
from shiftpay.sdk.schemas import NiRules, TaxRules


class TestDeductions:

    def test_tax_above_personal_allowance(self):
        assert compute_tax(95, TaxRules(percentage=20, personal_allowance=50)) == pytest.approx(9)

    def test_ni_below_threshold_is_zero(self):
        assert compute_ni(95, NiRules(percentage=12, threshold=190)) == 0

    def test_total_after_deductions(self):
        deductions = compute_deductions(
            95,
            TaxRules(percentage=20, personal_allowance=50),
            NiRules(percentage=12, threshold=190),
        )

        assert deductions.tax == pytest.approx(9)
        assert deductions.ni == 0
        assert 95 - deductions.total == pytest.approx(86)

    def test_ni_above_threshold(self):
        assert compute_ni(300, NiRules(percentage=12, threshold=200)) == pytest.approx(12)

    def test_gross_below_allowance_never_negative(self):
        assert compute_tax(10, TaxRules(percentage=20, personal_allowance=50)) == 0

    def test_absent_rules_deduct_nothing(self):
        assert compute_deductions(95, None, None).total == 0

    def test_toggle_is_idempotent(self):
        """Disabling then re-enabling returns exactly the original figures."""
        enabled = TaxRules(percentage=20, personal_allowance=50)
        disabled = enabled.model_copy(update={"enabled": False})
        reenabled = disabled.model_copy(update={"enabled": True})

        assert compute_tax(95, disabled) == 0
        assert compute_tax(95, reenabled) == compute_tax(95, enabled)
