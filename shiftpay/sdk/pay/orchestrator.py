"""Pay calculation orchestrator.

Resolves rates and hours for a PayCalculationInput, runs the rule and
deduction engines, and keeps the most recent result.

Recomputes can overlap (a settings change arriving while a user edit is
being computed). Each recompute takes a sequence number from begin() and
publishes through commit(); a result whose sequence is not newer than the
last committed one is dropped, so a slow stale computation never overwrites
a newer result.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..history import HistoryStore
from ..schemas import (
    AppSettings,
    CalcSnapshot,
    HoursAndMinutes,
    NightSnapshot,
    PayBreakdown,
    PayCalculationEntry,
    PayCalculationInput,
    RateSnapshot,
    UpliftSnapshot,
)
from ..settings_store import ProfileSettingsStore
from ..timeutil import epoch_ms
from .deductions import compute_deductions
from .hours import HourAllocation, HourAllocationDeriver, round_minutes
from .rules import GrossPay, compute_gross, effective_overtime_rate

logger = logging.getLogger(__name__)


class NotConfiguredError(Exception):
    """Raised when there is no usable base rate to price hours with."""


@dataclass(frozen=True)
class PayResult:
    """One computed breakdown and what it was computed from."""

    input: PayCalculationInput
    breakdown: PayBreakdown
    rates: RateSnapshot
    allocation: HourAllocation
    gross_pay: GrossPay

    def calc_snapshot(self) -> CalcSnapshot:
        alloc = self.allocation
        night = None
        if alloc.night_base or alloc.night_overtime or self.gross_pay.night_rule is not None:
            night = NightSnapshot(
                base=HoursAndMinutes.from_minutes(alloc.night_base),
                overtime=HoursAndMinutes.from_minutes(alloc.night_overtime),
                uplift=_uplift_snapshot(self.gross_pay.night_rule),
            )
        return CalcSnapshot(
            used_base=HoursAndMinutes.from_minutes(alloc.base),
            used_overtime=HoursAndMinutes.from_minutes(alloc.overtime),
            night=night,
            weekend=_uplift_snapshot(self.gross_pay.weekend_rule),
        )


def _uplift_snapshot(rule) -> Optional[UpliftSnapshot]:
    if rule is None:
        return None
    return UpliftSnapshot(kind=rule.kind, value=rule.value)


class PayCalculationOrchestrator:
    """Turns calculation inputs into breakdowns, live and saved."""

    def __init__(
        self,
        settings_store: ProfileSettingsStore,
        deriver: HourAllocationDeriver,
        history_store: Optional[HistoryStore] = None,
        clock: Callable[[], int] = epoch_ms,
    ):
        self._settings = settings_store
        self._deriver = deriver
        self._history = history_store
        self._clock = clock
        self._seq_lock = threading.Lock()
        self._next_seq = 0
        self._committed_seq = 0
        self._current: Optional[PayResult] = None
        self._last_input: Optional[PayCalculationInput] = None

    # Resolution

    def resolve_rates(self, calc_input: PayCalculationInput, settings: AppSettings) -> RateSnapshot:
        """Resolve R_b and the effective overtime rate R_o'.

        A manual base rate above zero overrides the saved rate. The overtime
        rate comes from a manual override, then the saved overtime rate,
        then the base rate; an active overtime tier with an uplift takes
        precedence over all of them.

        Raises:
            NotConfiguredError: If neither a saved nor a manual base rate is usable
        """
        base = None
        if calc_input.manual_base_rate is not None and calc_input.manual_base_rate > 0:
            base = calc_input.manual_base_rate
        else:
            saved = settings.find_rate(calc_input.hourly_rate_id)
            if saved is not None and saved.type != "overtime":
                base = saved.value
        if base is None:
            raise NotConfiguredError("no base rate: choose a saved rate or enter one manually")

        overtime = None
        if calc_input.manual_overtime_rate is not None and calc_input.manual_overtime_rate > 0:
            overtime = calc_input.manual_overtime_rate
        else:
            saved_ot = settings.find_rate(calc_input.overtime_rate_id)
            if saved_ot is not None and saved_ot.type != "base":
                overtime = saved_ot.value

        return RateSnapshot(
            base=base,
            overtime=effective_overtime_rate(base, overtime, settings.pay_rules.overtime),
        )

    def resolve_allocation(self, calc_input: PayCalculationInput, settings: AppSettings) -> HourAllocation:
        """Hours to price, after the rounding preference.

        Tracker mode derives the overtime split from tracked shifts unless
        overtime was entered, and derives night hours unless they were
        entered. Manual mode uses the entered hours verbatim.
        """
        base = calc_input.hours_worked.total_minutes
        overtime = calc_input.overtime_worked.total_minutes
        night_base = calc_input.night_base_hours.total_minutes if calc_input.night_base_hours else 0
        night_ot = calc_input.night_overtime_hours.total_minutes if calc_input.night_overtime_hours else 0

        if calc_input.mode == "tracker":
            if overtime == 0:
                split = self._deriver.derive_tracker_overtime_split_for_date(calc_input.date, settings)
                base, overtime = split.base, split.overtime
            if calc_input.night_base_hours is None and calc_input.night_overtime_hours is None:
                night = self._deriver.derive_tracker_night_allocation_for_date(calc_input.date, settings)
                night_base, night_ot = night.base, night.overtime

        rule = settings.preferences.rounding_rule
        base = round_minutes(base, rule)
        overtime = round_minutes(overtime, rule)

        return HourAllocation(
            base=base,
            overtime=overtime,
            night_base=min(night_base, base),
            night_overtime=min(night_ot, overtime),
        )

    # Computation

    def compute(
        self,
        calc_input: PayCalculationInput,
        settings: Optional[AppSettings] = None,
    ) -> Optional[PayResult]:
        """Compute a breakdown. Returns None when no base rate is configured."""
        settings = settings or self._settings.get_settings()
        try:
            rates = self.resolve_rates(calc_input, settings)
        except NotConfiguredError as e:
            logger.info(f"breakdown withheld for {calc_input.date}: {e}")
            return None

        allocation = self.resolve_allocation(calc_input, settings)
        gross_pay = compute_gross(
            allocation,
            rates.base,
            rates.overtime,
            settings.pay_rules,
            calc_input.date,
            stacking_rule=settings.preferences.stacking_rule,
            distance_km=calc_input.distance_km,
        )
        deductions = compute_deductions(gross_pay.gross, settings.pay_rules.tax, settings.pay_rules.ni)
        gross = gross_pay.gross
        breakdown = PayBreakdown(
            base=gross_pay.base,
            overtime=gross_pay.overtime,
            uplifts=gross_pay.uplifts,
            allowances=gross_pay.allowances,
            gross=gross,
            tax=deductions.tax,
            ni=deductions.ni,
            total=gross - deductions.tax - deductions.ni,
        )
        return PayResult(
            input=calc_input,
            breakdown=breakdown,
            rates=rates,
            allocation=allocation,
            gross_pay=gross_pay,
        )

    # Sequencing

    def begin(self) -> int:
        """Reserve the next recompute sequence number."""
        with self._seq_lock:
            self._next_seq += 1
            return self._next_seq

    def commit(self, seq: int, result: Optional[PayResult]) -> bool:
        """Publish a result unless a newer one was already committed."""
        with self._seq_lock:
            if seq <= self._committed_seq:
                logger.debug(f"discarding stale result {seq} (committed {self._committed_seq})")
                return False
            self._committed_seq = seq
            self._current = result
            return True

    @property
    def current(self) -> Optional[PayResult]:
        """Last committed result (None when withheld or never computed)."""
        with self._seq_lock:
            return self._current

    def recompute(
        self,
        calc_input: PayCalculationInput,
        settings: Optional[AppSettings] = None,
    ) -> Optional[PayResult]:
        """Compute and publish. Returns whatever is current afterwards."""
        seq = self.begin()
        self._last_input = calc_input
        self.commit(seq, self.compute(calc_input, settings))
        return self.current

    def watch_settings(self) -> Callable[[], None]:
        """Recompute the last input whenever settings change. Returns unsubscribe."""

        def on_change(settings: AppSettings) -> None:
            if self._last_input is not None:
                seq = self.begin()
                self.commit(seq, self.compute(self._last_input, settings))

        return self._settings.subscribe(on_change)

    # Saving

    def save(
        self,
        calc_input: PayCalculationInput,
        settings: Optional[AppSettings] = None,
    ) -> PayCalculationEntry:
        """Compute and save a snapshot to pay history.

        Raises:
            NotConfiguredError: If there is no usable base rate
            PersistenceError: If the history can't be written
        """
        result = self.compute(calc_input, settings)
        if result is None:
            raise NotConfiguredError("no base rate: nothing to save")
        now = self._clock()
        entry = PayCalculationEntry(
            id=hashlib.sha256(f"pay|{calc_input.date}|{now}".encode()).hexdigest()[:8],
            input=calc_input,
            calculated_pay=result.breakdown,
            rate_snapshot=result.rates,
            calc_snapshot=result.calc_snapshot(),
            created_at=now,
        )
        if self._history is not None:
            self._history.save_pay_calculation(entry)
        return entry
