"""Pay computation: hour allocation, rules, deductions and orchestration."""

from .deductions import Deductions, compute_deductions
from .hours import (
    HourAllocation,
    HourAllocationDeriver,
    NightAllocation,
    OvertimeSplit,
    allocate_night,
    clock_overlap_minutes,
    round_minutes,
    split_overtime,
)
from .orchestrator import NotConfiguredError, PayCalculationOrchestrator, PayResult
from .rules import GrossPay, compute_gross, effective_overtime_rate, uplift_per_hour
from .summary import PaySummary, entries_in_period, summarize_history

__all__ = [
    "Deductions",
    "GrossPay",
    "HourAllocation",
    "HourAllocationDeriver",
    "NightAllocation",
    "NotConfiguredError",
    "OvertimeSplit",
    "PayCalculationOrchestrator",
    "PayResult",
    "PaySummary",
    "allocate_night",
    "clock_overlap_minutes",
    "compute_deductions",
    "compute_gross",
    "effective_overtime_rate",
    "entries_in_period",
    "round_minutes",
    "split_overtime",
    "summarize_history",
    "uplift_per_hour",
]
