"""Force-unlock command - remove a lock left behind by a crashed run."""

import click
from ..options import engine_options
from ..utils import build_settings, exit_fatal
from ...state.lock import force_unlock as force_unlock_state
from ...utils.errors import TinyformError


@click.command(name="force-unlock")
@engine_options
@click.confirmation_option(prompt='Remove the state lock? Only do this if no other run is active.')
def force_unlock(state, config_path, verbose):
    """Remove the state lock file."""
    try:
        settings = build_settings(config_path, state, verbose=verbose)
    except TinyformError as e:
        exit_fatal(e)
    
    if force_unlock_state(settings.engine.state_path):
        click.echo("State lock removed.")
    else:
        click.echo("State was not locked.")
