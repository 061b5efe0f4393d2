"""Pay rate CLI commands for Shift Pay.

Manages saved hourly rates in profile.yaml.
"""

import json
from typing import Optional

import click
from pydantic import ValidationError

from shiftpay.sdk import ConfigError, PersistenceError, ProfileSettingsStore

RATE_TYPES = ["base", "overtime", "premium"]


@click.group()
def rates():
    """Manage saved pay rates.

    \b
    Examples:
      shift-pay rates add Standard 12.50
      shift-pay rates add "Sunday OT" 20 --type overtime
      shift-pay rates update abc12345 --value 13
      shift-pay rates remove abc12345
    """
    pass


@rates.command("list")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def rates_list(output_format: str):
    """List saved rates."""
    try:
        settings = ProfileSettingsStore().get_settings()
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps([r.model_dump() for r in settings.pay_rates], indent=2))
        return

    if not settings.pay_rates:
        click.echo("No pay rates saved.")
        click.echo("\nRun 'shift-pay rates add LABEL VALUE' to add one.")
        return

    currency = settings.preferences.currency
    click.echo(f"{'ID':<10} {'LABEL':<20} {'TYPE':<10} {'VALUE':>10}")
    click.echo("-" * 53)
    for rate in settings.pay_rates:
        click.echo(f"{rate.id:<10} {rate.label:<20} {rate.type:<10} {rate.value:>10.2f}")
    click.echo("-" * 53)
    click.echo(f"Total: {len(settings.pay_rates)} rate(s) ({currency}/hour)")


@rates.command("add")
@click.argument("label")
@click.argument("value", type=float)
@click.option("--type", "rate_type", type=click.Choice(RATE_TYPES), default="base",
              show_default=True, help="Rate type.")
def rates_add(label: str, value: float, rate_type: str):
    """Add a saved rate."""
    store = ProfileSettingsStore()
    try:
        rate = store.add_pay_rate(label, value, rate_type=rate_type)
    except ValidationError as e:
        raise click.ClickException(f"Invalid rate: {e}")
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Added rate {rate.id}: {rate.label} = {rate.value:.2f} ({rate.type})")
    click.echo(f"Saved to: {store.path}")


@rates.command("update")
@click.argument("rate_id")
@click.option("--label", help="New label.")
@click.option("--value", type=float, help="New hourly value.")
@click.option("--type", "rate_type", type=click.Choice(RATE_TYPES), help="New type.")
def rates_update(rate_id: str, label: Optional[str], value: Optional[float], rate_type: Optional[str]):
    """Update a saved rate."""
    updates = {k: v for k, v in {"label": label, "value": value, "type": rate_type}.items() if v is not None}
    if not updates:
        raise click.UsageError("Nothing to update. Pass --label, --value or --type.")
    try:
        rate = ProfileSettingsStore().update_pay_rate(rate_id, **updates)
    except ValidationError as e:
        raise click.ClickException(f"Invalid rate: {e}")
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if rate is None:
        raise click.ClickException(f"Rate not found: {rate_id}")
    click.echo(f"Updated rate {rate.id}: {rate.label} = {rate.value:.2f} ({rate.type})")


@rates.command("remove")
@click.argument("rate_id")
def rates_remove(rate_id: str):
    """Remove a saved rate."""
    try:
        removed = ProfileSettingsStore().delete_pay_rate(rate_id)
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Rate not found: {rate_id}")
    click.echo(f"Removed rate {rate_id}.")
