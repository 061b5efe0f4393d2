"""Shift Pay CLI - Command-line interface for the shift timer and pay calculator."""

import click

from shiftpay import __version__
from shiftpay.sdk import configure_logging

from .timer_commands import timer as timer_group
from .shifts_commands import shifts as shifts_group
from .pay_commands import pay as pay_group
from .rates_commands import rates as rates_group
from .rules_commands import rules as rules_group
from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="shift-pay")
def cli():
    """Shift Pay - Shift timer and pay calculator.

    Track shifts with a start/pause/resume/stop timer, then calculate a
    day's pay from your rates and rules (overtime, night and weekend
    uplifts, allowances, tax and NI).

    Configuration is loaded from (in order):

    \b
    1. SHIFT_PAY_CONFIG_PATH environment variable
    2. settings.json 'profile' key
    3. ~/.config/shift-pay/profile.yaml (XDG default)

    Set LOG_LEVEL=DEBUG for detailed calculation logs.
    """
    pass


cli.add_command(timer_group)
cli.add_command(shifts_group)
cli.add_command(pay_group)
cli.add_command(rates_group)
cli.add_command(rules_group)
cli.add_command(settings_group)


def main():
    """Entry point for the CLI."""
    configure_logging()
    cli()


if __name__ == "__main__":
    main()
