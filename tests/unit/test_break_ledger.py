"""Tests for BreakLedger (ordered pause/resume record of a timer session)."""

import pytest

from shiftpay.sdk.schemas import Break
from shiftpay.sdk.timer.ledger import BreakLedger


class TestBreakLedgerMutation:
    """Only the tail of the ledger can change."""

    def test_open_then_close(self):
        ledger = BreakLedger()
        ledger.open_break(1_000)
        assert ledger.open is not None

        closed = ledger.close_latest(61_000)

        assert closed.end == 61_000
        assert ledger.open is None
        assert ledger.closed_total_ms() == 60_000

    def test_cannot_open_while_one_is_open(self):
        ledger = BreakLedger([Break(start=1_000)])
        with pytest.raises(ValueError, match="already open"):
            ledger.open_break(2_000)

    def test_cannot_close_without_open_break(self):
        ledger = BreakLedger([Break(start=1_000, end=2_000)])
        with pytest.raises(ValueError, match="no open break"):
            ledger.close_latest(3_000)

    def test_new_break_cannot_overlap_previous(self):
        ledger = BreakLedger([Break(start=1_000, end=5_000)])
        with pytest.raises(ValueError, match="overlaps"):
            ledger.open_break(4_000)

    def test_remove_latest_drops_open_break(self):
        ledger = BreakLedger([Break(start=1_000, end=2_000), Break(start=3_000)])

        removed = ledger.remove_latest()

        assert removed.start == 3_000
        assert len(ledger) == 1
        assert ledger.open is None

    def test_remove_latest_on_empty_ledger(self):
        with pytest.raises(ValueError):
            BreakLedger().remove_latest()

    def test_note_only_on_open_break(self):
        ledger = BreakLedger([Break(start=1_000)])
        ledger.set_latest_note("lunch")
        assert ledger.latest.note == "lunch"

        ledger.close_latest(2_000)
        with pytest.raises(ValueError):
            ledger.set_latest_note("late")

    def test_input_breaks_are_not_mutated(self):
        original = [Break(start=1_000)]
        ledger = BreakLedger(original)
        ledger.close_latest(2_000)
        assert original[0].end is None


class TestBreakLedgerTotals:
    """Totals are computed from timestamps."""

    def test_open_break_counts_up_to_now(self):
        ledger = BreakLedger([Break(start=0, end=60_000), Break(start=120_000)])

        assert ledger.closed_total_ms() == 60_000
        assert ledger.total_ms(now=150_000) == 90_000

    def test_open_break_never_negative(self):
        ledger = BreakLedger([Break(start=10_000)])
        assert ledger.total_ms(now=5_000) == 0
