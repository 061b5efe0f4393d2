"""Shift timer: break ledger, state machine and persistence."""

from .ledger import BreakLedger
from .persistence import TIMER_FILENAME, JsonTimerStore, TimerPersistence
from .state_machine import (
    InvalidTransitionError,
    TimerReading,
    TimerStateMachine,
    TimerTicker,
    read_timer,
)

__all__ = [
    "BreakLedger",
    "InvalidTransitionError",
    "JsonTimerStore",
    "TIMER_FILENAME",
    "TimerPersistence",
    "TimerReading",
    "TimerStateMachine",
    "TimerTicker",
    "read_timer",
]
