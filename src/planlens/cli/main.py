"""Main CLI entry point for PlanLens."""

import click
from .commands.analyze import analyze
from .commands.summary import summary
from .commands.version import version as version_command
from .. import __version__
from ..utils.logging import get_logger

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="planlens", message="%(prog)s version %(version)s")
def cli():
    """PlanLens - Terraform plan change analysis."""
    pass


cli.add_command(analyze)
cli.add_command(summary)
cli.add_command(version_command)
