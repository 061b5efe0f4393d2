"""Pay rule engine: hour allocation + rates + rules -> gross pay.

Composition order is fixed:

    1. base       = base_hours * R_b
    2. overtime   = overtime_hours * R_o'   (R_o' from the active overtime tier)
    3. night      = night_base_hours * n(R_b) + night_overtime_hours * n(R_o')
    4. weekend    = weekend days only, over base and overtime hours
    5. uplifts    = night + weekend
    6. allowances = per shift, per hour or per km
    7. gross      = base + overtime + uplifts + allowances

where n() and w() are the per-hour night and weekend uplifts. Money is never
rounded here; only display rounds.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..schemas import (
    AllowanceItem,
    FixedUplift,
    MultiplierUplift,
    NightRules,
    OvertimeRules,
    PayRules,
    WeekendRules,
)
from ..timeutil import weekday_abbreviation
from .hours import HourAllocation

logger = logging.getLogger(__name__)

UpliftRule = Union[MultiplierUplift, FixedUplift]


@dataclass(frozen=True)
class GrossPay:
    """Gross pay components, unrounded. Every component is >= 0."""

    base: float = 0.0
    overtime: float = 0.0
    night_uplift: float = 0.0
    weekend_uplift: float = 0.0
    allowances: float = 0.0
    night_rule: Optional[UpliftRule] = None
    weekend_rule: Optional[UpliftRule] = None

    @property
    def uplifts(self) -> float:
        return self.night_uplift + self.weekend_uplift

    @property
    def gross(self) -> float:
        return self.base + self.overtime + self.uplifts + self.allowances


def uplift_per_hour(uplift: Optional[UpliftRule], rate: float) -> float:
    """Extra pay per hour an uplift adds to rate (0 when no uplift)."""
    if uplift is None:
        return 0.0
    return max(0.0, uplift.per_hour(max(0.0, rate)))


def effective_overtime_rate(
    base_rate: float,
    overtime_rate: Optional[float],
    rules: Optional[OvertimeRules],
) -> float:
    """Hourly rate for overtime hours (R_o').

    An active tier with an uplift prices overtime off the base rate
    (multiplier: R_b * m, fixed: R_b + u). Otherwise the overtime rate is
    used as-is, falling back to the base rate when unset.
    """
    tier = rules.active_tier if rules is not None else None
    if tier is not None and tier.uplift is not None:
        return max(0.0, tier.uplift.apply(base_rate))
    if overtime_rate is None:
        return max(0.0, base_rate)
    return max(0.0, overtime_rate)


def active_night_rule(rules: Optional[NightRules]) -> Optional[UpliftRule]:
    if rules is None or not rules.enabled:
        return None
    return rules.uplift


def active_weekend_rule(rules: Optional[WeekendRules], date: str) -> Optional[UpliftRule]:
    """The weekend uplift if the date falls on a configured weekend day."""
    if rules is None or not rules.enabled or rules.uplift is None:
        return None
    if weekday_abbreviation(date) not in rules.days:
        return None
    return rules.uplift


def allowance_total(items: Iterable[AllowanceItem], total_hours: float, distance_km: float = 0.0) -> float:
    total = 0.0
    for item in items:
        if item.unit == "per_hour":
            total += item.value * total_hours
        elif item.unit == "per_km":
            total += item.value * max(0.0, distance_km)
        else:
            total += item.value
    return total


def compute_gross(
    allocation: HourAllocation,
    base_rate: float,
    overtime_rate: Optional[float],
    rules: PayRules,
    date: str,
    stacking_rule: str = "stack",
    distance_km: float = 0.0,
) -> GrossPay:
    """Compute gross pay for one day's hour allocation.

    Args:
        allocation: Resolved base/overtime/night minutes
        base_rate: R_b
        overtime_rate: R_o before tier rules (None falls back to R_b)
        rules: Normalized pay rules
        date: Calculation date (YYYY-MM-DD), for weekend matching
        stacking_rule: "stack" adds the weekend uplift on top of the
            overtime rate; "highest_only" pays overtime hours the better of
            the overtime rate and the weekend-uplifted base rate
        distance_km: Distance for per-km allowances

    Returns:
        GrossPay with each component and the rules that were applied
    """
    base_rate = max(0.0, base_rate)
    ot_rate = effective_overtime_rate(base_rate, overtime_rate, rules.overtime)

    base_hours = allocation.hours(allocation.base)
    ot_hours = allocation.hours(allocation.overtime)
    night_base_hours = allocation.hours(min(allocation.night_base, allocation.base))
    night_ot_hours = allocation.hours(min(allocation.night_overtime, allocation.overtime))

    base = base_hours * base_rate
    overtime = ot_hours * ot_rate

    night_rule = active_night_rule(rules.night)
    night = (
        night_base_hours * uplift_per_hour(night_rule, base_rate)
        + night_ot_hours * uplift_per_hour(night_rule, ot_rate)
    )

    weekend_rule = active_weekend_rule(rules.weekend, date)
    weekend = 0.0
    if weekend_rule is not None:
        base_uplift = uplift_per_hour(weekend_rule, base_rate)
        if stacking_rule == "highest_only":
            ot_uplift = max(0.0, base_rate + base_uplift - ot_rate)
        else:
            ot_uplift = uplift_per_hour(weekend_rule, ot_rate)
        weekend = base_hours * base_uplift + ot_hours * ot_uplift

    allowances = allowance_total(rules.allowances, base_hours + ot_hours, distance_km)

    result = GrossPay(
        base=base,
        overtime=overtime,
        night_uplift=night,
        weekend_uplift=weekend,
        allowances=allowances,
        night_rule=night_rule,
        weekend_rule=weekend_rule,
    )
    logger.debug(
        f"{date}: base {base:.4f} overtime {overtime:.4f} (R_o'={ot_rate:.4f}) "
        f"night {night:.4f} weekend {weekend:.4f} allowances {allowances:.4f}"
    )
    return result
