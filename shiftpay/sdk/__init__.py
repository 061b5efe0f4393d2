"""Shift Pay SDK - Shift timer and pay computation."""

from .config import (
    # Config architecture
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_profile_path,
    load_profile,
    save_profile,
    get_dotted,
    set_dotted,
    ConfigError,
    ProfileNotFoundError,
    configure_logging,
    # XDG paths
    get_data_path,
)

from .storage import PersistenceError

from .schemas import (
    AppSettings,
    HoursAndMinutes,
    PayBreakdown,
    PayCalculationEntry,
    PayCalculationInput,
    PayRate,
    Shift,
    Submission,
    SubmittedDay,
    TimerSession,
)

from .normalize import normalize_settings
from .settings_store import ProfileSettingsStore
from .shifts import JsonShiftStore, calculate_day_total
from .history import JsonHistoryStore
from .submissions import JsonSubmissionStore

from .timer import (
    BreakLedger,
    InvalidTransitionError,
    JsonTimerStore,
    TimerReading,
    TimerStateMachine,
    TimerTicker,
    read_timer,
)

from .pay import (
    HourAllocation,
    HourAllocationDeriver,
    NotConfiguredError,
    PayCalculationOrchestrator,
    PayResult,
    PaySummary,
    compute_deductions,
    compute_gross,
    split_overtime,
    summarize_history,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_profile_path",
    "load_profile",
    "save_profile",
    "get_dotted",
    "set_dotted",
    "ConfigError",
    "ProfileNotFoundError",
    "configure_logging",
    "get_data_path",
    # Storage
    "PersistenceError",
    "ProfileSettingsStore",
    "JsonShiftStore",
    "JsonHistoryStore",
    "JsonSubmissionStore",
    "JsonTimerStore",
    "calculate_day_total",
    "normalize_settings",
    # Schemas
    "AppSettings",
    "HoursAndMinutes",
    "PayBreakdown",
    "PayCalculationEntry",
    "PayCalculationInput",
    "PayRate",
    "Shift",
    "Submission",
    "SubmittedDay",
    "TimerSession",
    # Timer
    "BreakLedger",
    "InvalidTransitionError",
    "TimerReading",
    "TimerStateMachine",
    "TimerTicker",
    "read_timer",
    # Pay
    "HourAllocation",
    "HourAllocationDeriver",
    "NotConfiguredError",
    "PayCalculationOrchestrator",
    "PayResult",
    "PaySummary",
    "compute_deductions",
    "compute_gross",
    "split_overtime",
    "summarize_history",
]
