"""Rich renderer for the shift timer and finished shifts."""

from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from shiftpay.sdk import Shift, TimerReading

STATUS_STYLES = {
    "running": "green",
    "paused": "yellow",
    "idle": "dim",
}


def format_clock(ms: int) -> str:
    """Format a duration in ms as H:MM:SS."""
    seconds = max(0, int(ms)) // 1000
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def _wall_time(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%H:%M")


def timer_panel(reading: TimerReading) -> Panel:
    """Build the timer status panel (also used as a Live renderable)."""
    style = STATUS_STYLES.get(reading.status, "white")

    if not reading.running:
        return Panel("[dim]No timer running.[/dim]", title="Timer", border_style=style)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")
    table.add_row("Status", f"[{style}]{reading.status}[/{style}]")
    table.add_row("Started", _wall_time(reading.started_at))
    table.add_row("Worked", f"[bold]{format_clock(reading.elapsed_ms)}[/bold]")
    if reading.current_break_ms is not None:
        table.add_row("On break", f"[yellow]{format_clock(reading.current_break_ms)}[/yellow]")
    table.add_row("Breaks", f"{len(reading.breaks)} ({format_clock(reading.total_break_ms)})")

    for index, brk in enumerate(reading.breaks, start=1):
        end = _wall_time(brk.end) if brk.end is not None else "..."
        note = f"  [dim]{brk.note}[/dim]" if brk.note else ""
        table.add_row(f"  #{index}", f"{_wall_time(brk.start)}-{end} {format_clock(brk.duration_ms)}{note}")

    return Panel(table, title="Timer", border_style=style)


def render_timer(console: Console, reading: TimerReading) -> None:
    console.print(timer_panel(reading))


def render_shift(console: Console, shift: Shift, date: str) -> None:
    """Render a finished shift summary."""
    table = Table(show_header=False, box=box.ROUNDED, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")
    table.add_row("Date", date)
    table.add_row("Clock", f"{shift.start}-{shift.end}")
    label = "Duration (incl. breaks)" if shift.include_breaks else "Worked"
    table.add_row(label, f"[bold]{shift.duration_text}[/bold]")
    table.add_row("Breaks", f"{shift.break_count} ({shift.break_minutes}m)")
    if shift.note:
        table.add_row("Note", shift.note)
    console.print(Panel(table, title=f"Shift {shift.id}", border_style="green"))
