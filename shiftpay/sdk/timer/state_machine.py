"""Shift timer state machine.

States and transitions:

    idle    --start-->           running
    running --pause-->           paused    (opens a break)
    paused  --resume-->          running   (closes the open break)
    paused  --undo_last_break--> running   (drops the open break entirely)
    running/paused --stop-->     idle      (emits a Shift)

Every transition runs under one lock as a read-modify-write of the
persisted session. The session is reloaded from the store, the new session is
written first, and only then does it become the in-memory state, so a failed
write leaves nothing half-applied. When two
transitions race, the loser sees the winner's state and is rejected with
InvalidTransitionError.

Display values (elapsed, current break, totals) are never stored. They are
recomputed by read_timer() from started_at, the break timestamps and the
current wall clock, so a restart reproduces the same numbers.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Callable, List, Optional

from ..schemas import Shift, ShiftBreak, TimerSession, TimerStatus
from ..shifts import JsonShiftStore
from ..timeutil import clock_time, epoch_ms, format_duration_text, local_date
from .ledger import BreakLedger
from .persistence import TimerPersistence

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


class InvalidTransitionError(Exception):
    """Raised when a timer action isn't valid in the current state."""

    def __init__(self, action: str, status: TimerStatus, detail: str = ""):
        self.action = action
        self.status = status
        message = f"Cannot {action} while timer is {status}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


def whole_minutes(ms: int) -> int:
    """Milliseconds to whole minutes, rounding half up."""
    return (max(0, ms) + MS_PER_MINUTE // 2) // MS_PER_MINUTE


@dataclass
class BreakReading:
    start: int
    end: Optional[int]
    duration_ms: int
    note: Optional[str] = None


@dataclass
class TimerReading:
    """Point-in-time view of the timer, derived from persisted timestamps."""

    status: TimerStatus
    started_at: Optional[int] = None
    elapsed_ms: int = 0
    current_break_ms: Optional[int] = None
    breaks: List[BreakReading] = field(default_factory=list)
    total_break_ms: int = 0

    @property
    def running(self) -> bool:
        return self.status != "idle"

    @property
    def paused(self) -> bool:
        return self.status == "paused"


def read_timer(session: Optional[TimerSession], now: int) -> TimerReading:
    """Compute the timer display state at now. Pure; safe to call any time."""
    if session is None:
        return TimerReading(status="idle")

    ledger = BreakLedger(session.breaks)
    total_break_ms = ledger.total_ms(now)
    elapsed_ms = max(0, now - session.started_at - total_break_ms)

    current_break_ms = None
    open_break = ledger.open
    if session.status == "paused" and open_break is not None:
        current_break_ms = open_break.duration_ms(now)

    return TimerReading(
        status=session.status,
        started_at=session.started_at,
        elapsed_ms=elapsed_ms,
        current_break_ms=current_break_ms,
        breaks=[BreakReading(b.start, b.end, b.duration_ms(now), b.note) for b in ledger],
        total_break_ms=total_break_ms,
    )


class TimerStateMachine:
    """Owns the single active TimerSession and its transitions."""

    def __init__(
        self,
        store: TimerPersistence,
        shift_store: Optional[JsonShiftStore] = None,
        clock: Callable[[], int] = epoch_ms,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            store: Where the active session is persisted
            shift_store: Where finished shifts are recorded (None to skip)
            clock: Returns the current time in epoch ms
            tz: Timezone for shift dates and clock times (local if None)
        """
        self._store = store
        self._shifts = shift_store
        self._clock = clock
        self._tz = tz
        self._lock = threading.RLock()
        self._session = store.get_running_timer()

    @property
    def status(self) -> TimerStatus:
        with self._lock:
            return self._session.status if self._session else "idle"

    @property
    def session(self) -> Optional[TimerSession]:
        with self._lock:
            return self._session.model_copy(deep=True) if self._session else None

    def refresh(self) -> None:
        """Reload the session from the store (another process may have changed it)."""
        with self._lock:
            self._reload()

    def read(self, now: Optional[int] = None) -> TimerReading:
        with self._lock:
            return read_timer(self._session, self._clock() if now is None else now)

    def _now(self, session: Optional[TimerSession]) -> int:
        # Never move backwards past the last recorded event.
        now = self._clock()
        if session is not None:
            now = max(now, session.last_updated_at)
        return now

    def _reload(self) -> Optional[TimerSession]:
        # Another process sharing the store may have moved the session on.
        self._session = self._store.get_running_timer()
        return self._session

    def _require(self, action: str, *allowed: str) -> TimerSession:
        self._reload()
        status = self._session.status if self._session else "idle"
        if self._session is None or status not in allowed:
            raise InvalidTransitionError(action, status)
        return self._session

    def _commit(self, session: Optional[TimerSession]) -> None:
        if session is None:
            self._store.clear_running_timer()
        else:
            self._store.save_running_timer(session)
        self._session = session

    def start(self, date: Optional[str] = None) -> TimerSession:
        """Start a new session. Valid only when idle.

        Args:
            date: Date to record the shift under (default: local start date)
        """
        with self._lock:
            current = self._reload()
            if current is not None:
                raise InvalidTransitionError("start", current.status)
            now = self._now(None)
            session = TimerSession(
                id=hashlib.sha256(f"timer|{now}".encode()).hexdigest()[:8],
                date=date or local_date(now, self._tz),
                started_at=now,
                status="running",
                breaks=[],
                last_updated_at=now,
            )
            self._commit(session)
            logger.info(f"timer {session.id} started for {session.date}")
            return session.model_copy(deep=True)

    def pause(self) -> TimerSession:
        """Open a break. Valid only when running."""
        with self._lock:
            session = self._require("pause", "running")
            now = self._now(session)
            ledger = BreakLedger(session.breaks)
            ledger.open_break(now)
            self._commit(session.model_copy(update={
                "status": "paused", "breaks": ledger.to_list(), "last_updated_at": now,
            }))
            logger.info(f"timer {session.id} paused (break {len(ledger)})")
            return self.session

    def resume(self) -> TimerSession:
        """Close the open break. Valid only when paused."""
        with self._lock:
            session = self._require("resume", "paused")
            now = self._now(session)
            ledger = BreakLedger(session.breaks)
            closed = ledger.close_latest(now)
            self._commit(session.model_copy(update={
                "status": "running", "breaks": ledger.to_list(), "last_updated_at": now,
            }))
            logger.info(f"timer {session.id} resumed after {closed.duration_ms(now) // 1000}s break")
            return self.session

    def undo_last_break(self) -> TimerSession:
        """Drop the open break as if pause had never been pressed.

        Valid only when paused. The timer returns to running, and elapsed
        time includes the discarded break interval again.
        """
        with self._lock:
            session = self._require("undo the last break", "paused")
            now = self._now(session)
            ledger = BreakLedger(session.breaks)
            ledger.remove_latest()
            self._commit(session.model_copy(update={
                "status": "running", "breaks": ledger.to_list(), "last_updated_at": now,
            }))
            logger.info(f"timer {session.id} break undone")
            return self.session

    def set_current_break_note(self, text: str) -> TimerSession:
        """Annotate the open break. Valid only while a break is open."""
        with self._lock:
            session = self._require("add a break note", "paused")
            ledger = BreakLedger(session.breaks)
            if ledger.open is None:
                raise InvalidTransitionError("add a break note", session.status, "no open break")
            ledger.set_latest_note(text.strip())
            self._commit(session.model_copy(update={
                "breaks": ledger.to_list(), "last_updated_at": self._now(session),
            }))
            return self.session

    def stop(self, include_breaks: bool = False) -> Optional[Shift]:
        """Finish the session and emit a Shift.

        Stopping while idle does nothing and returns None. A session whose
        reported duration rounds to zero minutes is discarded (None).

        Args:
            include_breaks: Report wall time (breaks folded in) as the
                duration instead of worked time; break_minutes is reported
                separately either way

        The shift id is derived from the session id, so retrying a stop whose
        session clear failed replaces the shift recorded by the first attempt.
        """
        with self._lock:
            session = self._reload()
            if session is None:
                logger.debug("stop ignored: timer is idle")
                return None

            now = self._now(session)
            ledger = BreakLedger(session.breaks)
            if ledger.open is not None:
                ledger.close_latest(now)

            total_break_ms = ledger.total_ms(now)
            wall_ms = max(0, now - session.started_at)
            elapsed_ms = max(0, wall_ms - total_break_ms)
            duration_minutes = whole_minutes(wall_ms if include_breaks else elapsed_ms)

            if duration_minutes <= 0:
                self._commit(None)
                logger.info(f"timer {session.id} discarded (no time recorded)")
                return None

            shift = Shift(
                id=hashlib.sha256(f"shift|{session.id}".encode()).hexdigest()[:8],
                start=clock_time(session.started_at, self._tz),
                end=clock_time(now, self._tz),
                duration_minutes=duration_minutes,
                duration_text=format_duration_text(duration_minutes),
                created_at=now,
                break_minutes=whole_minutes(total_break_ms),
                break_count=len(ledger),
                include_breaks=include_breaks,
                breaks=[
                    ShiftBreak(
                        start=b.start,
                        end=b.end,
                        duration_minutes=whole_minutes(b.end - b.start),
                        note=b.note,
                    )
                    for b in ledger
                    if b.end > b.start
                ],
            )

            if self._shifts is not None:
                self._shifts.append_shift(session.date, shift)
            self._commit(None)
            logger.info(f"timer {session.id} stopped: {shift.duration_text}")
            return shift


class TimerTicker:
    """Periodic "recompute now" trigger for timer displays.

    Holds no timer data: pausing or cancelling it never loses anything,
    because the numbers come from persisted timestamps.
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self._callback = callback
        self._interval = interval
        self._stopped = threading.Event()
        self._paused = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def start(self) -> None:
        if self.active:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name="timer-tick", daemon=True)
        self._thread.start()

    def tick(self) -> None:
        """Run the callback once, unless paused."""
        if self._paused.is_set():
            return
        try:
            self._callback()
        except Exception:
            logger.exception("timer tick failed")

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self.tick()

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def cancel(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval * 2)
        self._thread = None
