"""Shift CLI commands for Shift Pay.

Lists, adds and removes tracked shifts in shifts.json, and submits a day's
shifts into days.json.
"""

import json
from datetime import date as date_type
from typing import Optional

import click

from shiftpay.sdk import (
    ConfigError,
    JsonShiftStore,
    JsonSubmissionStore,
    PersistenceError,
    ProfileSettingsStore,
    calculate_day_total,
)
from shiftpay.sdk.shifts import new_shift
from shiftpay.sdk.timeutil import epoch_ms, format_duration_text, week_bounds


def _today() -> str:
    return date_type.today().isoformat()


@click.group()
def shifts():
    """Manage tracked shifts.

    \b
    Examples:
      shift-pay shifts list                  # Today
      shift-pay shifts list 2025-09-08 --week
      shift-pay shifts add 2025-09-08 22:00 06:00 --note "night"
      shift-pay shifts remove 2025-09-08 abc12345
      shift-pay shifts submit 2025-09-08
      shift-pay shifts history --period week
      shift-pay shifts history --period custom --from 2025-09-01 --to 2025-09-30
    """
    pass


@shifts.command("list")
@click.argument("date", required=False)
@click.option("--week", is_flag=True, help="Show the whole pay week containing DATE.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def shifts_list(date: Optional[str], week: bool, output_format: str):
    """List shifts for DATE (default: today)."""
    date = date or _today()
    store = JsonShiftStore()
    try:
        if week:
            start_day = ProfileSettingsStore().get_settings().pay_rules.pay_period.start_day
            start, end = week_bounds(date, start_day)
            by_date = store.get_shifts_between(start.isoformat(), end.isoformat())
        else:
            by_date = {date: store.get_shifts_for_date(date)}
    except (ValueError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        output = {d: [s.model_dump(mode="json") for s in items] for d, items in by_date.items()}
        click.echo(json.dumps(output, indent=2))
        return

    grand_total = 0
    for day, items in by_date.items():
        if not items and week:
            continue
        total, total_text = calculate_day_total(items)
        grand_total += total
        click.echo(f"\n{day}")
        click.echo("-" * 60)
        if not items:
            click.echo("  No shifts recorded.")
            continue
        click.echo(f"{'ID':<10} {'START':<7} {'END':<7} {'WORKED':<10} {'BREAKS':<8} NOTE")
        for s in items:
            breaks = f"{s.break_minutes}m" if s.break_count else "-"
            click.echo(f"{s.id:<10} {s.start:<7} {s.end:<7} {s.duration_text:<10} {breaks:<8} {s.note or ''}")
        click.echo(f"Day total: {total_text}")

    if week:
        click.echo("-" * 60)
        click.echo(f"Week total: {format_duration_text(grand_total)}")


@shifts.command("add")
@click.argument("date")
@click.argument("start")
@click.argument("end")
@click.option("--note", help="Optional note.")
def shifts_add(date: str, start: str, end: str, note: Optional[str]):
    """Add a shift manually. START/END are HH:MM; END before START is overnight."""
    try:
        shift = JsonShiftStore().add_shift(date, start, end, note=note)
    except (ValueError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Added shift {shift.id} on {date}: {shift.start}-{shift.end} ({shift.duration_text})")


@shifts.command("remove")
@click.argument("date")
@click.argument("shift_id")
def shifts_remove(date: str, shift_id: str):
    """Remove a shift by ID."""
    try:
        removed = JsonShiftStore().remove_shift(date, shift_id)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Shift not found on {date}: {shift_id}")
    click.echo(f"Removed shift {shift_id}.")


@shifts.command("submit")
@click.argument("date", required=False)
def shifts_submit(date: Optional[str]):
    """Submit DATE's shifts (default: today) and clear them from the tracker."""
    date = date or _today()
    try:
        day = JsonSubmissionStore().submit_day(date, JsonShiftStore())
    except (ValueError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    submission = day.submissions[0]
    click.echo(f"Submitted {len(submission.shifts)} shift(s) on {date} as {submission.id} ({submission.total_text}).")
    if len(day.submissions) > 1:
        click.echo(f"Day total across {len(day.submissions)} submissions: {day.total_text}")


@shifts.command("history")
@click.option("--period", type=click.Choice(["week", "month", "all", "custom"]), default="all",
              show_default=True, help="Which submitted days to show.")
@click.option("--date", "anchor", help="Date inside the week or month (default: today).")
@click.option("--from", "start", help="First date of a custom period.")
@click.option("--to", "end", help="Last date of a custom period.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def shifts_history(period: str, anchor: Optional[str], start: Optional[str], end: Optional[str],
                   output_format: str):
    """List submitted days, newest first."""
    try:
        pay_period = ProfileSettingsStore().get_settings().pay_rules.pay_period
        days = JsonSubmissionStore().get_submitted_days(
            period, anchor=anchor, start=start, end=end, pay_period=pay_period,
        )
    except (ValueError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps([d.model_dump(mode="json") for d in days], indent=2))
        return

    if not days:
        click.echo("No submitted days.")
        click.echo("\nRun 'shift-pay shifts submit DATE' to submit one.")
        return

    for day in days:
        click.echo(f"\n{day.date}  ({day.total_text})")
        click.echo("-" * 60)
        for submission in day.submissions:
            click.echo(f"  Submission {submission.id}: {submission.total_text}")
            for s in submission.shifts:
                click.echo(f"    {s.id:<10} {s.start:<7} {s.end:<7} {s.duration_text:<10} {s.note or ''}")
    click.echo("-" * 60)
    total = sum(d.total_minutes for d in days)
    click.echo(f"Total: {format_duration_text(total)} over {len(days)} day(s)")


@shifts.command("edit-submission")
@click.argument("date")
@click.argument("submission_id")
@click.option("--remove", "remove_ids", multiple=True, help="Shift ID to drop (repeatable).")
@click.option("--add", "added", nargs=2, multiple=True, metavar="START END",
              help="Add a shift START END in HH:MM (repeatable).")
def shifts_edit_submission(date: str, submission_id: str, remove_ids, added):
    """Edit the shifts of a submitted day's submission."""
    if not remove_ids and not added:
        raise click.UsageError("Nothing to change. Pass --remove or --add.")
    store = JsonSubmissionStore()
    try:
        day = store.get_day(date)
        current = next((s for s in day.submissions if s.id == submission_id), None) if day else None
        if current is None:
            raise click.ClickException(f"Submission not found on {date}: {submission_id}")
        unknown = set(remove_ids) - {s.id for s in current.shifts}
        if unknown:
            raise click.ClickException(f"Shift not in submission: {', '.join(sorted(unknown))}")
        now = epoch_ms()
        shifts_list = [s for s in current.shifts if s.id not in remove_ids]
        shifts_list += [new_shift(date, start, end, now + i) for i, (start, end) in enumerate(added)]
        day = store.update_submission(date, submission_id, shifts_list)
    except (ValueError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Updated submission {submission_id}. Day total: {day.total_text}")


@shifts.command("delete-submission")
@click.argument("date")
@click.argument("submission_id")
def shifts_delete_submission(date: str, submission_id: str):
    """Delete one submission from a submitted day."""
    try:
        removed = JsonSubmissionStore().delete_submission(date, submission_id)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Submission not found on {date}: {submission_id}")
    click.echo(f"Deleted submission {submission_id}.")


@shifts.command("delete-day")
@click.argument("date")
def shifts_delete_day(date: str):
    """Delete every submission for a date."""
    try:
        removed = JsonSubmissionStore().delete_day(date)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Nothing submitted on {date}.")
    click.echo(f"Deleted submitted day {date}.")
