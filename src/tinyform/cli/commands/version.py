"""Report the engine version and the state file format it reads and writes."""

import click
from ... import __version__
from ...state.models import STATE_FORMAT_VERSION


@click.command()
def version():
    """Show tinyform and state format versions."""
    click.echo(f"tinyform version {__version__} (state format v{STATE_FORMAT_VERSION})")
