"""Main CLI entry point for tinyform."""

import click
from .commands.apply import apply
from .commands.destroy import destroy
from .commands.force_unlock import force_unlock
from .commands.init import init
from .commands.output import output
from .commands.plan import plan
from .commands.version import version
from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="tinyform", message="%(prog)s version %(version)s")
def cli():
    """tinyform - provision the VPC/RDS/EC2 web stack in dependency order."""
    pass


cli.add_command(plan)
cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(output)
cli.add_command(init)
cli.add_command(force_unlock)
cli.add_command(version)
