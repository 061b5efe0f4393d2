"""Pay rule CLI commands for Shift Pay.

Shows and edits pay_rules, preferences and notifications in profile.yaml
using dot-notation keys. Legacy rule shapes are migrated to the canonical
shape the first time anything is saved.
"""

import hashlib
import json

import click
import yaml
from pydantic import ValidationError

from shiftpay.sdk import ConfigError, PersistenceError, ProfileSettingsStore, get_dotted, set_dotted
from shiftpay.sdk.timeutil import epoch_ms

# Top-level sections addressable directly; anything else is under pay_rules.
SECTIONS = ("preferences", "notifications")


@click.group()
def rules():
    """Show and edit pay rules and preferences.

    \b
    Keys are dot-notation paths. Keys starting with 'preferences.' or
    'notifications.' edit those sections; all others edit pay_rules.

    \b
    Examples:
      shift-pay rules show
      shift-pay rules set overtime.daily.threshold 8
      shift-pay rules set overtime.daily.uplift "{kind: multiplier, multiplier: 1.5}"
      shift-pay rules set night.uplift "{kind: fixed, uplift: 0.5}"
      shift-pay rules set weekend.days "[Sat, Sun]"
      shift-pay rules set tax.percentage 20
      shift-pay rules set preferences.stacking_rule highest_only
    """
    pass


@rules.command("show")
@click.argument("key", required=False)
@click.option("--format", "output_format", type=click.Choice(["yaml", "json"]),
              default="yaml", help="Output format.")
def rules_show(key, output_format: str):
    """Show rules (or a single KEY) after normalization."""
    try:
        settings = ProfileSettingsStore().get_settings()
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))

    data = settings.model_dump(mode="json", exclude_none=True, exclude={"pay_rates"})
    if key:
        section, _, rest = key.partition(".")
        if section in SECTIONS:
            value = get_dotted(data[section], rest) if rest else data[section]
        else:
            value = get_dotted(data["pay_rules"], key)
        if value is None:
            raise click.ClickException(f"Not set: {key}")
        data = value

    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False).rstrip())


@rules.command("set")
@click.argument("key")
@click.argument("value")
def rules_set(key: str, value: str):
    """Set a rule value.

    VALUE is parsed as YAML, so numbers, booleans, lists and mappings work.
    """
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid value: {e}")

    store = ProfileSettingsStore()
    section, _, rest = key.partition(".")
    if section not in SECTIONS:
        section, rest = "pay_rules", key
    if not rest:
        raise click.UsageError(f"Key must name a field, e.g. '{section}.<field>'.")

    try:
        current = store.get_settings().model_dump(mode="json", exclude_none=True)[section]
        updated = set_dotted(current, rest, parsed)
        if section == "pay_rules":
            store.set_pay_rules(updated)
        elif section == "preferences":
            store.set_preferences(updated)
        else:
            store.set_notifications_prefs(updated)
    except ValidationError as e:
        raise click.ClickException(f"Invalid value for {key}: {e}")
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Set {key} = {parsed}")
    click.echo(f"Saved to: {store.path}")


@rules.command("add-allowance")
@click.argument("label")
@click.argument("value", type=float)
@click.option("--unit", type=click.Choice(["per_shift", "per_hour", "per_km"]),
              default="per_shift", show_default=True, help="How the value is applied.")
def rules_add_allowance(label: str, value: float, unit: str):
    """Add an allowance (e.g., Meal 5, Mileage 0.45 --unit per_km)."""
    store = ProfileSettingsStore()
    try:
        current = store.get_settings().pay_rules.allowances
        allowance_id = hashlib.sha256(f"allowance|{label}|{value}|{epoch_ms()}".encode()).hexdigest()[:8]
        items = [a.model_dump() for a in current]
        items.append({"id": allowance_id, "type": label, "value": value, "unit": unit})
        store.set_pay_rules({"allowances": items})
    except ValidationError as e:
        raise click.ClickException(f"Invalid allowance: {e}")
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Added allowance {allowance_id}: {label} {value:g} {unit}")


@rules.command("remove-allowance")
@click.argument("allowance_id")
def rules_remove_allowance(allowance_id: str):
    """Remove an allowance by ID."""
    store = ProfileSettingsStore()
    try:
        current = store.get_settings().pay_rules.allowances
        items = [a.model_dump() for a in current if a.id != allowance_id]
        if len(items) == len(current):
            raise click.ClickException(f"Allowance not found: {allowance_id}")
        store.set_pay_rules({"allowances": items})
    except (PersistenceError, ConfigError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Removed allowance {allowance_id}.")
