"""Rich renderer for pay breakdowns and pay history.

Transforms SDK results into formatted Rich tables. Amounts are shown as
plain 2 dp numbers with the currency code in the title.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich import box

from shiftpay.sdk import PayCalculationEntry, PayResult, PaySummary
from shiftpay.sdk.schemas import to_money
from shiftpay.sdk.timeutil import format_duration_text


def render_breakdown(console: Console, result: PayResult, currency: str = "GBP") -> None:
    """Render a computed breakdown with the hours and rates behind it.

    Args:
        console: Rich Console instance
        result: Orchestrator result
        currency: Currency code for the title
    """
    _render_inputs(console, result)

    amounts = result.breakdown.display_amounts()
    table = Table(title=f"Pay for {result.input.date} ({currency})", box=box.ROUNDED)
    table.add_column("Item")
    table.add_column("Amount", justify="right")

    table.add_row("Base", f"{amounts['base']:.2f}")
    table.add_row("Overtime", f"{amounts['overtime']:.2f}")
    if amounts["uplifts"]:
        table.add_row("Uplifts", f"{amounts['uplifts']:.2f}")
    if amounts["allowances"]:
        table.add_row("Allowances", f"{amounts['allowances']:.2f}")
    table.add_section()
    table.add_row("[bold]Gross[/bold]", f"[bold]{amounts['gross']:.2f}[/bold]")
    if amounts["tax"]:
        table.add_row("Tax", f"[red]-{amounts['tax']:.2f}[/red]")
    if amounts["ni"]:
        table.add_row("NI", f"[red]-{amounts['ni']:.2f}[/red]")
    table.add_section()
    table.add_row("[bold]Net[/bold]", f"[bold green]{amounts['total']:.2f}[/bold green]")

    console.print(table)


def _render_inputs(console: Console, result: PayResult) -> None:
    """Render hours and rates panel."""
    snapshot = result.calc_snapshot()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")

    table.add_row("Mode", result.input.mode)
    table.add_row("Base hours", f"{snapshot.used_base} @ {result.rates.base:.2f}")
    table.add_row("Overtime hours", f"{snapshot.used_overtime} @ {result.rates.overtime:.2f}")
    if snapshot.night is not None:
        uplift = _format_uplift(snapshot.night.uplift)
        table.add_row("Night hours", f"{snapshot.night.base} base, {snapshot.night.overtime} overtime{uplift}")
    if snapshot.weekend is not None:
        table.add_row("Weekend", _format_uplift(snapshot.weekend).strip())

    console.print(Panel(table, title="Hours", border_style="dim"))


def _format_uplift(uplift) -> str:
    if uplift is None:
        return ""
    if uplift.kind == "multiplier":
        return f" (x{uplift.value:g})"
    return f" (+{uplift.value:g}/h)"


def render_history(
    console: Console,
    entries: List[PayCalculationEntry],
    currency: str = "GBP",
    summary: Optional[PaySummary] = None,
) -> None:
    """Render saved calculations, newest first.

    With a summary, the table covers that period and ends with a totals row,
    followed by the period's amounts and goal progress.
    """
    title = f"Pay History ({currency})"
    if summary is not None and summary.start:
        title = f"Pay History {summary.start} to {summary.end} ({currency})"
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Mode")
    table.add_column("Hours", justify="right")
    table.add_column("Gross", justify="right")
    table.add_column("Net", justify="right")

    for entry in entries:
        amounts = entry.calculated_pay.display_amounts()
        snapshot = entry.calc_snapshot
        hours = f"{snapshot.used_base} + {snapshot.used_overtime}"
        table.add_row(
            entry.id,
            entry.input.date,
            entry.input.mode,
            hours,
            f"{amounts['gross']:.2f}",
            f"{amounts['total']:.2f}",
        )

    if summary is not None:
        table.add_section()
        table.add_row(
            "",
            "[bold]Total[/bold]",
            f"{summary.count} saved",
            format_duration_text(summary.minutes),
            f"[bold]{to_money(summary.gross):.2f}[/bold]",
            f"[bold green]{to_money(summary.total):.2f}[/bold green]",
        )

    console.print(table)
    if summary is not None:
        render_summary(console, summary, currency)


def render_summary(console: Console, summary: PaySummary, currency: str = "GBP") -> None:
    """Render period totals and progress towards the weekly or monthly goal."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value", justify="right")

    table.add_row("Standard pay", f"{to_money(summary.base):.2f}")
    table.add_row("Overtime pay", f"{to_money(summary.overtime):.2f}")
    if summary.uplifts:
        table.add_row("Uplifts", f"{to_money(summary.uplifts):.2f}")
    if summary.allowances:
        table.add_row("Allowances", f"{to_money(summary.allowances):.2f}")
    table.add_row("Tax", f"[red]-{to_money(summary.tax):.2f}[/red]")
    table.add_row("NI", f"[red]-{to_money(summary.ni):.2f}[/red]")
    table.add_row("Hours", format_duration_text(summary.minutes))
    table.add_row("Gross", f"{to_money(summary.gross):.2f}")
    table.add_row("Net", f"[bold green]{to_money(summary.total):.2f}[/bold green]")

    label = "Weekly" if summary.period == "week" else "Monthly"
    if summary.progress is not None:
        table.add_row(
            f"{label} goal",
            f"{to_money(summary.total):.2f} / {to_money(summary.goal):.2f} ({summary.progress:.0f}%)",
        )
        bar = ProgressBar(total=100, completed=min(100.0, summary.progress), width=40,
                          complete_style="green" if summary.progress >= 100 else "blue")
        table.add_row("", bar)
        if summary.remaining:
            table.add_row("", f"{to_money(summary.remaining):.2f} to go")
    elif summary.period in ("week", "month"):
        table.add_row(f"{label} goal", f"not set (shift-pay rules set preferences.{label.lower()}_goal 1000)")

    console.print(Panel(table, title=f"Totals ({currency})", border_style="dim"))
