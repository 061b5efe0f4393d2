"""Settings CLI commands for Shift Pay.

Manages settings.json - data directory and profile location.
"""

import click
from pathlib import Path

from shiftpay.sdk import (
    ConfigError,
    JsonTimerStore,
    PersistenceError,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_settings_path,
    get_profile_path,
    get_data_path,
)


def _require_idle_timer() -> None:
    """Refuse to move the data directory while a timer session lives in it."""
    store = JsonTimerStore()
    try:
        session = store.get_running_timer()
    except PersistenceError as e:
        raise click.ClickException(str(e))
    if session is not None:
        raise click.ClickException(
            f"A timer is {session.status} in {store.path.parent}. "
            f"Stop it with 'shift-pay timer stop' before changing data_dir."
        )


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - data_dir: directory for the running timer, shifts and pay history
    - profile: path to profile.yaml (rates, rules, preferences)
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and effective paths."""
    settings_path = get_settings_path()
    try:
        current = load_settings()
    except ConfigError as e:
        raise click.ClickException(str(e))

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    suffix = "" if current.get("data_dir") else " (default)"
    click.echo()
    click.echo("Effective paths:")
    click.echo(f"  data_dir: {get_data_path()}{suffix}")
    click.echo(f"  profile: {get_profile_path()}")


@settings.command("data-dir")
@click.argument("path", required=False, type=click.Path())
@click.option("--clear", is_flag=True, help="Clear custom data_dir, revert to default")
def settings_data_dir(path, clear):
    """Set or clear the custom data directory.

    PATH is the directory where shift-pay stores the running timer,
    tracked shifts and pay history.

    Examples:
        shift-pay settings data-dir ~/Documents/shift-pay
        shift-pay settings data-dir --clear
    """
    try:
        current = load_settings()
    except ConfigError as e:
        raise click.ClickException(str(e))

    if clear:
        if "data_dir" in current:
            _require_idle_timer()
            del current["data_dir"]
            save_settings(current)
            click.echo("Cleared data_dir setting.")
            click.echo(f"Data directory is now: {get_data_path()} (default)")
        else:
            click.echo("data_dir was not set.")
        return

    if not path:
        current_data_dir = get_setting("data_dir")
        if current_data_dir:
            click.echo(f"Current data_dir: {current_data_dir}")
        else:
            click.echo(f"No custom data_dir set. Using default: {get_data_path()}")
        return

    _require_idle_timer()
    data_path = Path(path).expanduser().resolve()

    if data_path.exists():
        if not data_path.is_dir():
            raise click.ClickException(f"Path exists but is not a directory: {data_path}")
    else:
        try:
            data_path.mkdir(parents=True, exist_ok=True)
            click.echo(f"Created directory: {data_path}")
        except OSError as e:
            raise click.ClickException(f"Cannot create directory: {data_path}\n{e}")

    # Check it's writable
    test_file = data_path / ".write_test"
    try:
        test_file.touch()
        test_file.unlink()
    except OSError as e:
        raise click.ClickException(f"Directory is not writable: {data_path}\n{e}")

    set_setting("data_dir", str(data_path))
    click.echo(f"Set data_dir: {data_path}")
    click.echo(f"Saved to: {get_settings_path()}")
