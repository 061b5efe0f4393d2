"""Pydantic schemas for shift-pay data validation.

All schemas use extra='forbid' to reject unknown fields, ensuring
typos in profile.yaml cause clear errors rather than silent ignoring.

Rule records here are the canonical shapes only. Legacy shapes
(type/value, flat overtime thresholds, camelCase keys) are converted by
normalize.py before they reach these models.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .timeutil import coerce_number, is_valid_time_format, parse_date

TimerStatus = Literal["idle", "running", "paused"]
Weekday = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

COHERENCE_TOLERANCE = 1e-6


def to_money(value: float) -> float:
    """Round to the smallest currency unit (2 dp, half up) for display."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


# =============================================================================
# Hours
# =============================================================================


class HoursAndMinutes(BaseModel):
    """A non-negative (hours, minutes) quantity."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hours: int = Field(default=0, ge=0)
    minutes: int = Field(default=0, ge=0)

    @field_validator("hours", "minutes", mode="before")
    @classmethod
    def clamp_non_negative(cls, value):
        """Malformed text becomes 0; negatives clamp to 0."""
        return max(0, int(coerce_number(value)))

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes

    def to_hours(self) -> float:
        return self.total_minutes / 60

    @classmethod
    def from_minutes(cls, minutes: float) -> "HoursAndMinutes":
        whole = max(0, int(round(minutes)))
        return cls(hours=whole // 60, minutes=whole % 60)

    @classmethod
    def parse(cls, text: str) -> "HoursAndMinutes":
        """Parse "H:MM", "Hh Mm" ("7.5h" allowed) or decimal hours ("7.5"); malformed is zero."""
        text = (text or "").strip().lower()
        if ":" in text:
            hours, _, minutes = text.partition(":")
            return cls(hours=hours, minutes=minutes)
        if "h" in text or "m" in text:
            hours, _, rest = text.partition("h") if "h" in text else ("0", "", text)
            hours, minutes = coerce_number(hours), coerce_number(rest.replace("m", ""))
            return cls.from_minutes(max(0.0, hours) * 60 + max(0.0, minutes))
        return cls.from_minutes(coerce_number(text) * 60)

    def __str__(self) -> str:
        return f"{self.hours}:{self.minutes:02d}"


# =============================================================================
# Timer and shifts
# =============================================================================


class Break(BaseModel):
    """A pause interval inside a running timer session.

    Timestamps are epoch milliseconds. An open break has no end yet.
    """

    model_config = ConfigDict(extra="forbid")

    start: int = Field(..., ge=0)
    end: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = None

    @model_validator(mode="after")
    def check_order(self) -> "Break":
        if self.end is not None and self.end < self.start:
            raise ValueError(f"break end ({self.end}) before start ({self.start})")
        return self

    @property
    def is_open(self) -> bool:
        return self.end is None

    def duration_ms(self, now: int) -> int:
        """Closed: end - start. Open: now - start. Never negative."""
        end = self.end if self.end is not None else now
        return max(0, end - self.start)


class TimerSession(BaseModel):
    """The single active timer session, as persisted."""

    model_config = ConfigDict(extra="forbid")

    id: str
    date: str = Field(..., description="Local start date (YYYY-MM-DD)")
    started_at: int = Field(..., ge=0, description="Epoch ms")
    status: Literal["running", "paused"] = "running"
    breaks: List[Break] = Field(default_factory=list)
    last_updated_at: int = Field(..., ge=0)


class ShiftBreak(BaseModel):
    """A closed break recorded on a finished shift."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start: int
    end: int
    duration_minutes: int = Field(..., ge=0)
    note: Optional[str] = None


class Shift(BaseModel):
    """One completed work interval. Immutable once created."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    start: str = Field(..., description="Clock time HH:MM")
    end: str = Field(..., description="Clock time HH:MM")
    duration_minutes: int = Field(..., ge=0)
    duration_text: str
    created_at: int
    note: Optional[str] = None
    break_minutes: int = Field(default=0, ge=0)
    break_count: int = Field(default=0, ge=0)
    include_breaks: bool = False
    breaks: List[ShiftBreak] = Field(default_factory=list)


class Submission(BaseModel):
    """A batch of a day's shifts handed in together."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    shifts: List[Shift]
    total_minutes: int = Field(..., ge=0)
    total_text: str
    submitted_at: int


class SubmittedDay(BaseModel):
    """Every submission for one date, newest first, with the day's total."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: str
    submissions: List[Submission] = Field(default_factory=list)
    total_minutes: int = Field(default=0, ge=0)
    total_text: str = "0m"
    submitted_at: Optional[int] = Field(default=None, description="Newest submission time")


# =============================================================================
# Pay rates and rules (canonical shapes)
# =============================================================================


class PayRate(BaseModel):
    """A saved hourly rate."""

    model_config = ConfigDict(extra="forbid")

    id: str
    label: str = "Rate"
    value: float = Field(default=0, ge=0, description="Hourly value in currency units")
    type: Literal["base", "overtime", "premium"] = "base"
    created_at: int = 0
    updated_at: int = 0


class MultiplierUplift(BaseModel):
    """Rate x multiplier (e.g., 1.5 for time-and-a-half)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["multiplier"] = "multiplier"
    multiplier: float = Field(..., ge=0)

    @property
    def value(self) -> float:
        return self.multiplier

    def per_hour(self, rate: float) -> float:
        """Extra pay per hour on top of rate."""
        return max(0.0, rate * (self.multiplier - 1))

    def apply(self, rate: float) -> float:
        """Uplifted hourly rate."""
        return rate + self.per_hour(rate)


class FixedUplift(BaseModel):
    """Rate + a fixed amount per hour."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["fixed"] = "fixed"
    uplift: float = Field(..., ge=0)

    @property
    def value(self) -> float:
        return self.uplift

    def per_hour(self, rate: float) -> float:
        return self.uplift

    def apply(self, rate: float) -> float:
        return rate + self.uplift


Uplift = Annotated[Union[MultiplierUplift, FixedUplift], Field(discriminator="kind")]


class OvertimeTier(BaseModel):
    """Overtime threshold and how overtime hours are priced.

    No uplift means the overtime rate is used as-is.
    """

    model_config = ConfigDict(extra="forbid")

    threshold: float = Field(default=0, ge=0, description="Hours before overtime starts")
    uplift: Optional[Uplift] = None


class OvertimeRules(BaseModel):
    """Overtime tiers. Only the active basis applies."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    active: Literal["daily", "weekly"] = "daily"
    daily: Optional[OvertimeTier] = None
    weekly: Optional[OvertimeTier] = None

    @property
    def active_tier(self) -> Optional[OvertimeTier]:
        if not self.enabled:
            return None
        return self.weekly if self.active == "weekly" else self.daily


class NightRules(BaseModel):
    """Night window [start, end) on the 24h clock; wraps midnight when end < start."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    start: str = "22:00"
    end: str = "06:00"
    uplift: Optional[Uplift] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_clock(cls, value):
        """Malformed clock text becomes midnight."""
        return value if isinstance(value, str) and is_valid_time_format(value) else "00:00"


class WeekendRules(BaseModel):
    """Uplift applied on configured weekend days."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    days: List[Weekday] = Field(default_factory=lambda: ["Sat", "Sun"])
    uplift: Optional[Uplift] = None


class TaxRules(BaseModel):
    """Flat income tax above a personal allowance."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    percentage: float = Field(default=0, ge=0, le=100)
    personal_allowance: float = Field(default=0, ge=0)


class NiRules(BaseModel):
    """Flat National Insurance-style contribution above a threshold."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    percentage: float = Field(default=0, ge=0, le=100)
    threshold: float = Field(default=0, ge=0)


class AllowanceItem(BaseModel):
    """A flat or per-unit addition to gross pay."""

    model_config = ConfigDict(extra="forbid")

    id: str
    type: str = Field(default="Allowance", description="Label, e.g., 'Meal', 'Mileage'")
    value: float = Field(default=0, ge=0)
    unit: Literal["per_shift", "per_hour", "per_km"] = "per_shift"


class PayPeriodConfig(BaseModel):
    """Pay period cycle; start_day anchors the week for weekly overtime."""

    model_config = ConfigDict(extra="forbid")

    cycle: Literal["weekly", "fortnightly", "monthly"] = "weekly"
    start_day: str = "Monday"
    start_date: Optional[int] = Field(default=None, ge=1, le=31)


class PayRules(BaseModel):
    """All pay rules. Absent sections are disabled."""

    model_config = ConfigDict(extra="forbid")

    overtime: Optional[OvertimeRules] = None
    night: Optional[NightRules] = None
    weekend: Optional[WeekendRules] = None
    allowances: List[AllowanceItem] = Field(default_factory=list)
    pay_period: PayPeriodConfig = Field(default_factory=PayPeriodConfig)
    tax: Optional[TaxRules] = None
    ni: Optional[NiRules] = None


class Preferences(BaseModel):
    """User preferences affecting calculation and display."""

    model_config = ConfigDict(extra="forbid")

    currency: str = "GBP"
    date_format: str = "DD/MM/YYYY"
    time_format: Literal["24h", "12h"] = "24h"
    stacking_rule: Literal["stack", "highest_only"] = "stack"
    holiday_recognition: bool = False
    rounding_rule: str = Field(default="15min", description="none, 5min, 15min or <N>min")
    weekly_goal: Optional[float] = Field(default=1000, ge=0)
    monthly_goal: Optional[float] = Field(default=4000, ge=0)


class NotificationsPrefs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    remind_submit_shifts: bool = True
    remind_check_pay: bool = True


class AppSettings(BaseModel):
    """Everything in profile.yaml after normalization."""

    model_config = ConfigDict(extra="forbid")

    pay_rates: List[PayRate] = Field(default_factory=list)
    pay_rules: PayRules = Field(default_factory=PayRules)
    preferences: Preferences = Field(default_factory=Preferences)
    notifications: NotificationsPrefs = Field(default_factory=NotificationsPrefs)

    def find_rate(self, rate_id: Optional[str]) -> Optional[PayRate]:
        if not rate_id:
            return None
        return next((r for r in self.pay_rates if r.id == rate_id), None)


# =============================================================================
# Pay calculation
# =============================================================================


class PayCalculationInput(BaseModel):
    """What the user asked to calculate. Frozen so saved snapshots can't drift."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: Literal["tracker", "manual"] = "manual"
    date: str = Field(..., description="Calculation date (YYYY-MM-DD)")
    hourly_rate_id: Optional[str] = None
    overtime_rate_id: Optional[str] = None
    hours_worked: HoursAndMinutes = Field(default_factory=HoursAndMinutes)
    overtime_worked: HoursAndMinutes = Field(default_factory=HoursAndMinutes)
    night_base_hours: Optional[HoursAndMinutes] = None
    night_overtime_hours: Optional[HoursAndMinutes] = None
    manual_base_rate: Optional[float] = None
    manual_overtime_rate: Optional[float] = None
    distance_km: float = Field(default=0, ge=0)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return parse_date(value).isoformat()

    @field_validator("manual_base_rate", "manual_overtime_rate", mode="before")
    @classmethod
    def coerce_rate(cls, value):
        """Blank stays unset; malformed text becomes 0."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return max(0.0, coerce_number(value))

    @field_validator("distance_km", mode="before")
    @classmethod
    def coerce_distance(cls, value):
        return max(0.0, coerce_number(value))


class PayBreakdown(BaseModel):
    """Money breakdown for one calculation. Values are unrounded.

    Invariants: gross = base + overtime + uplifts + allowances and
    total = gross - tax - ni.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    base: float = Field(..., ge=0)
    overtime: float = Field(..., ge=0)
    uplifts: float = Field(..., ge=0)
    allowances: float = Field(..., ge=0)
    gross: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    ni: float = Field(..., ge=0)
    total: float

    @model_validator(mode="after")
    def check_coherence(self) -> "PayBreakdown":
        errors = []
        expected_gross = self.base + self.overtime + self.uplifts + self.allowances
        if abs(self.gross - expected_gross) > COHERENCE_TOLERANCE:
            errors.append(
                f"gross ({self.gross:.2f}) != base + overtime + uplifts + allowances "
                f"({expected_gross:.2f})"
            )
        expected_total = self.gross - self.tax - self.ni
        if abs(self.total - expected_total) > COHERENCE_TOLERANCE:
            errors.append(f"total ({self.total:.2f}) != gross - tax - ni ({expected_total:.2f})")
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def display_amounts(self) -> dict:
        """Values rounded to 2 dp for display (not re-validated)."""
        return {k: to_money(v) for k, v in self.model_dump().items()}


class RateSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base: float = Field(..., ge=0)
    overtime: float = Field(..., ge=0, description="Effective overtime rate after tier rules")


class UpliftSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["multiplier", "fixed"]
    value: float


class NightSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base: HoursAndMinutes
    overtime: HoursAndMinutes
    uplift: Optional[UpliftSnapshot] = None


class CalcSnapshot(BaseModel):
    """Hours and rules actually used at calculation time."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    used_base: HoursAndMinutes
    used_overtime: HoursAndMinutes
    night: Optional[NightSnapshot] = None
    weekend: Optional[UpliftSnapshot] = None


class PayCalculationEntry(BaseModel):
    """A saved calculation. Created by an explicit save, never mutated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    input: PayCalculationInput
    calculated_pay: PayBreakdown
    rate_snapshot: RateSnapshot
    calc_snapshot: CalcSnapshot
    created_at: int
