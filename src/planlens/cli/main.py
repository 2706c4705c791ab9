"""Main CLI entry point for PlanLens."""

import click
from .commands.analyze import analyze
from .commands.version import version
from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="planlens", message="%(prog)s version %(version)s")
def cli():
    """PlanLens - Terraform plan change analysis."""
    pass


cli.add_command(analyze)
cli.add_command(version)
