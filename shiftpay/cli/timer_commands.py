"""Timer CLI commands for Shift Pay.

Each command loads the active session from running_timer.json, applies one
transition and saves it, so the timer keeps counting between invocations
(and across restarts) from its persisted timestamps.
"""

import json
import time
from dataclasses import asdict
from typing import Optional

import click
from rich.console import Console
from rich.live import Live

from shiftpay.sdk import (
    ConfigError,
    InvalidTransitionError,
    JsonShiftStore,
    JsonTimerStore,
    PersistenceError,
    TimerStateMachine,
    TimerTicker,
)

from .renderers.timer_renderer import format_clock, render_shift, render_timer, timer_panel


def _machine() -> TimerStateMachine:
    try:
        return TimerStateMachine(JsonTimerStore(), shift_store=JsonShiftStore())
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))


def _apply(action):
    """Run a transition, converting rejections and I/O failures to CLI errors."""
    try:
        return action()
    except (InvalidTransitionError, PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))


@click.group()
def timer():
    """Track a shift with a start/pause/resume/stop timer.

    \b
    Examples:
      shift-pay timer start
      shift-pay timer pause        # start a break
      shift-pay timer note "lunch"
      shift-pay timer resume
      shift-pay timer stop
    """
    pass


@timer.command("start")
@click.option("--date", help="Record the shift under this date (YYYY-MM-DD). Default: today.")
def timer_start(date: Optional[str]):
    """Start the timer."""
    machine = _machine()
    session = _apply(lambda: machine.start(date=date))
    click.echo(f"Timer started for {session.date}.")


@timer.command("pause")
def timer_pause():
    """Pause the timer and start a break."""
    machine = _machine()
    session = _apply(machine.pause)
    click.echo(f"Paused. Break #{len(session.breaks)} started.")


@timer.command("resume")
def timer_resume():
    """End the current break and resume."""
    machine = _machine()
    _apply(machine.resume)
    reading = machine.read()
    click.echo(f"Resumed. Worked so far: {format_clock(reading.elapsed_ms)}")


@timer.command("undo-break")
def timer_undo_break():
    """Discard the current break as if pause was never pressed."""
    machine = _machine()
    _apply(machine.undo_last_break)
    reading = machine.read()
    click.echo(f"Break discarded. Worked so far: {format_clock(reading.elapsed_ms)}")


@timer.command("note")
@click.argument("text")
def timer_note(text: str):
    """Add a note to the current break."""
    machine = _machine()
    _apply(lambda: machine.set_current_break_note(text))
    click.echo("Break note saved.")


@timer.command("stop")
@click.option("--include-breaks", is_flag=True,
              help="Report wall time (breaks included) as the shift duration.")
def timer_stop(include_breaks: bool):
    """Stop the timer and record the shift."""
    machine = _machine()
    date = machine.session.date if machine.session else None
    if date is None:
        click.echo("No timer running.")
        return

    shift = _apply(lambda: machine.stop(include_breaks=include_breaks))
    if shift is None:
        click.echo("Timer stopped. Nothing recorded (under a minute).")
        return
    render_shift(Console(), shift, date)


@timer.command("status")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def timer_status(output_format: str):
    """Show the timer state."""
    reading = _machine().read()
    if output_format == "json":
        click.echo(json.dumps(asdict(reading), indent=2))
        return
    render_timer(Console(), reading)


@timer.command("watch")
@click.option("--interval", default=1.0, type=float, show_default=True,
              help="Seconds between refreshes.")
def timer_watch(interval: float):
    """Live timer display. Ctrl+C to exit (the timer keeps running)."""
    machine = _machine()
    if machine.status == "idle":
        click.echo("No timer running.")
        return

    console = Console()
    with Live(timer_panel(machine.read()), console=console, refresh_per_second=4) as live:
        def tick():
            machine.refresh()
            live.update(timer_panel(machine.read()))

        ticker = TimerTicker(tick, interval=interval)
        ticker.start()
        try:
            while machine.status != "idle":
                time.sleep(interval)
        except KeyboardInterrupt:
            pass
        finally:
            ticker.cancel()
