"""Pay CLI commands for Shift Pay.

Computes a day's pay from tracked shifts or manually entered hours, and
manages saved calculations (pay_history.json).
"""

import json
from dataclasses import asdict
from datetime import date as date_type
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console

from shiftpay.sdk import (
    ConfigError,
    HourAllocationDeriver,
    JsonHistoryStore,
    JsonShiftStore,
    NotConfiguredError,
    PayCalculationInput,
    PayCalculationOrchestrator,
    PersistenceError,
    ProfileSettingsStore,
    summarize_history,
)
from shiftpay.sdk.pay import entries_in_period
from shiftpay.sdk.schemas import AppSettings, HoursAndMinutes
from shiftpay.sdk.timeutil import parse_date

from .renderers.breakdown_renderer import render_breakdown, render_history


def _orchestrator() -> PayCalculationOrchestrator:
    return PayCalculationOrchestrator(
        ProfileSettingsStore(),
        HourAllocationDeriver(JsonShiftStore()),
        JsonHistoryStore(),
    )


def _default_rate_id(settings: AppSettings) -> Optional[str]:
    """First saved rate usable as a base rate."""
    return next((r.id for r in settings.pay_rates if r.type != "overtime"), None)


def _hours(text: Optional[str]) -> Optional[HoursAndMinutes]:
    return HoursAndMinutes.parse(text) if text is not None else None


@click.group()
def pay():
    """Calculate pay and manage pay history.

    \b
    Examples:
      shift-pay pay calc                           # Today, from tracked shifts
      shift-pay pay calc 2025-09-08 --mode manual --hours 8 --overtime 1:30
      shift-pay pay calc --manual-rate 12.50 --save
      shift-pay pay history
      shift-pay pay history --period week      # This pay week, with totals and goal
    """
    pass


@pay.command("calc")
@click.argument("date", required=False)
@click.option("--mode", type=click.Choice(["tracker", "manual"]), default="tracker",
              show_default=True, help="Derive hours from tracked shifts or use entered hours.")
@click.option("--hours", help="Base hours (H:MM, '7h 30m' or 7.5).")
@click.option("--overtime", help="Overtime hours. In tracker mode, skips the automatic split.")
@click.option("--night-base", help="Night hours within base hours.")
@click.option("--night-overtime", help="Night hours within overtime hours.")
@click.option("--rate", "rate_id", help="Saved base rate ID (default: first saved base rate).")
@click.option("--overtime-rate", "overtime_rate_id", help="Saved overtime rate ID.")
@click.option("--manual-rate", help="Base rate override.")
@click.option("--manual-overtime-rate", help="Overtime rate override.")
@click.option("--distance", default="0", help="Distance in km for per-km allowances.")
@click.option("--save", is_flag=True, help="Save the calculation to pay history.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def pay_calc(date, mode, hours, overtime, night_base, night_overtime, rate_id,
             overtime_rate_id, manual_rate, manual_overtime_rate, distance, save, output_format):
    """Calculate pay for DATE (default: today)."""
    orchestrator = _orchestrator()
    try:
        settings = ProfileSettingsStore().get_settings()
        calc_input = PayCalculationInput(
            mode=mode,
            date=date or date_type.today().isoformat(),
            hourly_rate_id=rate_id or _default_rate_id(settings),
            overtime_rate_id=overtime_rate_id,
            hours_worked=_hours(hours) or HoursAndMinutes(),
            overtime_worked=_hours(overtime) or HoursAndMinutes(),
            night_base_hours=_hours(night_base),
            night_overtime_hours=_hours(night_overtime),
            manual_base_rate=manual_rate,
            manual_overtime_rate=manual_overtime_rate,
            distance_km=distance,
        )
        result = orchestrator.compute(calc_input, settings)
        entry = orchestrator.save(calc_input, settings) if save and result is not None else None
    except ValidationError as e:
        raise click.ClickException(f"Invalid input: {e}")
    except (PersistenceError, ConfigError, NotConfiguredError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        output = {
            "date": calc_input.date,
            "breakdown": result.breakdown.model_dump() if result else None,
            "rates": result.rates.model_dump() if result else None,
            "hours": result.calc_snapshot().model_dump(mode="json") if result else None,
            "saved_id": entry.id if entry else None,
        }
        click.echo(json.dumps(output, indent=2))
        return

    if result is None:
        click.echo("No base rate configured. Add one with 'shift-pay rates add' or pass --manual-rate.")
        if save:
            raise click.ClickException("Nothing to save.")
        return

    render_breakdown(Console(), result, settings.preferences.currency)
    if entry is not None:
        click.echo(f"Saved as {entry.id}.")


@pay.command("history")
@click.option("--limit", default=20, show_default=True, help="Maximum entries to show.")
@click.option("--period", type=click.Choice(["week", "month", "all"]), default=None,
              help="Only the pay week or month containing --date, with totals and goal progress.")
@click.option("--date", "anchor", help="Date inside the period (YYYY-MM-DD). Default: today.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def pay_history(limit: int, period: Optional[str], anchor: Optional[str], output_format: str):
    """List saved calculations, newest first.

    With --period, lists the calculations dated inside that week or month and
    adds period totals. JSON output is then an object with "summary" and
    "entries" instead of a plain list.
    """
    anchor = anchor or date_type.today().isoformat()
    try:
        parse_date(anchor)
    except ValueError:
        raise click.ClickException(f"Invalid date '{anchor}'. Expected YYYY-MM-DD.")

    summary = None
    try:
        entries = JsonHistoryStore().get_pay_history()
        settings = ProfileSettingsStore().get_settings()
        if period is not None:
            pay_period = settings.pay_rules.pay_period
            entries = entries_in_period(entries, period, anchor, pay_period)
            summary = summarize_history(entries, period, anchor, pay_period, settings.preferences)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    shown = entries[:limit]

    if output_format == "json":
        listed = [e.model_dump(mode="json") for e in shown]
        if summary is None:
            click.echo(json.dumps(listed, indent=2))
        else:
            output = {
                "summary": {**asdict(summary), "progress": summary.progress, "remaining": summary.remaining},
                "entries": listed,
            }
            click.echo(json.dumps(output, indent=2))
        return

    if not entries:
        click.echo("No saved calculations" + (" for this period." if summary else "."))
        click.echo("\nRun 'shift-pay pay calc --save' to save one.")
        return
    render_history(Console(), shown, settings.preferences.currency, summary)


@pay.command("delete")
@click.argument("entry_id")
def pay_delete(entry_id: str):
    """Delete a saved calculation by ID."""
    try:
        removed = JsonHistoryStore().delete_pay_calculation(entry_id)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Calculation not found: {entry_id}")
    click.echo(f"Deleted calculation {entry_id}.")
