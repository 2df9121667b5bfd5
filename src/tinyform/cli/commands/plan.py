"""Plan command - show planned operations without calling the provider."""

import json
import click
from ..options import declaration_options, engine_options
from ..utils import build_settings, default_secrets_path, exit_fatal, resolve_file_path
from ...presentation.human_formatter import format_plan
from ...utils.errors import TinyformError
from ...utils.logging import get_logger

logger = get_logger("cli.plan")


@click.command()
@declaration_options
@engine_options
@click.option('--destroy', is_flag=True, help='Plan a destroy instead of an apply')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of text')
def plan(declaration, secrets, state, config_path, verbose, destroy, as_json):
    """Dry run: print planned operations in execution order."""
    from ... import plan as plan_core
    
    try:
        settings = build_settings(config_path, state, verbose=verbose)
        declaration_path = None if destroy else str(resolve_file_path(declaration))
        changes = plan_core(declaration_path, default_secrets_path(secrets), settings, destroy=destroy)
    except (TinyformError, FileNotFoundError) as e:
        exit_fatal(e)
    
    if as_json:
        click.echo(json.dumps([change.model_dump() for change in changes], indent=2))
    else:
        click.echo(format_plan(changes, "destroy" if destroy else "apply"))
