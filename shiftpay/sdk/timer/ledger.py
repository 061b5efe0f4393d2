"""Ordered pause/resume record for one timer session.

Breaks are ordered by start, never overlap, and only the last one may be
open. The ledger is append-only apart from closing or removing the tail.
"""

from typing import Iterable, List, Optional

from ..schemas import Break


class BreakLedger:
    """Tail-mutable list of breaks owned by a TimerStateMachine."""

    def __init__(self, breaks: Iterable[Break] = ()):
        self._breaks: List[Break] = [b.model_copy() for b in breaks]

    def __len__(self) -> int:
        return len(self._breaks)

    def __iter__(self):
        return iter(self._breaks)

    @property
    def latest(self) -> Optional[Break]:
        return self._breaks[-1] if self._breaks else None

    @property
    def open(self) -> Optional[Break]:
        """The open (unfinished) break, if any."""
        latest = self.latest
        return latest if latest is not None and latest.is_open else None

    def open_break(self, start: int, note: Optional[str] = None) -> Break:
        """Append a new open break.

        Raises:
            ValueError: If a break is already open or start precedes the
                previous break's end
        """
        if self.open is not None:
            raise ValueError("a break is already open")
        latest = self.latest
        if latest is not None and start < latest.end:
            raise ValueError(f"break start {start} overlaps previous break ending {latest.end}")
        new_break = Break(start=start, note=note)
        self._breaks.append(new_break)
        return new_break

    def close_latest(self, end: int) -> Break:
        """Close the open break at end.

        Raises:
            ValueError: If no break is open
        """
        current = self.open
        if current is None:
            raise ValueError("no open break to close")
        closed = current.model_copy(update={"end": max(end, current.start)})
        self._breaks[-1] = closed
        return closed

    def remove_latest(self) -> Break:
        """Remove the most recent break entirely, open or closed.

        Raises:
            ValueError: If the ledger is empty
        """
        if not self._breaks:
            raise ValueError("no break to remove")
        return self._breaks.pop()

    def set_latest_note(self, note: str) -> Break:
        """Set the note on the open break.

        Raises:
            ValueError: If no break is open
        """
        current = self.open
        if current is None:
            raise ValueError("no open break to annotate")
        updated = current.model_copy(update={"note": note})
        self._breaks[-1] = updated
        return updated

    def closed_total_ms(self) -> int:
        return sum(b.end - b.start for b in self._breaks if not b.is_open)

    def total_ms(self, now: int) -> int:
        """Total break time, counting an open break up to now."""
        return sum(b.duration_ms(now) for b in self._breaks)

    def to_list(self) -> List[Break]:
        return list(self._breaks)
