"""Version command - show PlanLens version."""

import click
from ... import __version__


@click.command()
def version():
    """Show PlanLens version."""
    click.echo(f"planlens version {__version__}")
