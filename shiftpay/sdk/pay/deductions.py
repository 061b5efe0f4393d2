"""Tax and NI-style deductions from gross pay.

Both are flat percentages above an allowance/threshold, computed per
calculation. The NI threshold is compared against this calculation's gross
only; there is no weekly aggregation.
"""

from dataclasses import dataclass
from typing import Optional

from ..schemas import NiRules, TaxRules


@dataclass(frozen=True)
class Deductions:
    tax: float = 0.0
    ni: float = 0.0

    @property
    def total(self) -> float:
        return self.tax + self.ni


def compute_tax(gross: float, rules: Optional[TaxRules]) -> float:
    if rules is None or not rules.enabled:
        return 0.0
    return rules.percentage / 100 * max(0.0, gross - rules.personal_allowance)


def compute_ni(gross: float, rules: Optional[NiRules]) -> float:
    if rules is None or not rules.enabled:
        return 0.0
    return rules.percentage / 100 * max(0.0, gross - rules.threshold)


def compute_deductions(gross: float, tax: Optional[TaxRules], ni: Optional[NiRules]) -> Deductions:
    """Tax and NI on a gross amount. Disabled or absent rules deduct nothing."""
    return Deductions(tax=compute_tax(gross, tax), ni=compute_ni(gross, ni))
