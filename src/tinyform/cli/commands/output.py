"""Output command - show named output values from the current state."""

import json
import sys
import click
from ..options import declaration_options, engine_options
from ..utils import EXIT_PARTIAL, build_settings, default_secrets_path, exit_fatal, format_error, resolve_file_path
from ...presentation.human_formatter import format_outputs, outputs_as_dict
from ...utils.errors import TinyformError


@click.command()
@click.argument('name', required=False)
@declaration_options
@engine_options
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of text')
def output(name, declaration, secrets, state, config_path, verbose, as_json):
    """Show outputs, or the raw value of a single output NAME."""
    from ... import outputs as outputs_core
    
    try:
        settings = build_settings(config_path, state, verbose=verbose)
        values, errors = outputs_core(
            str(resolve_file_path(declaration)), default_secrets_path(secrets), settings
        )
    except (TinyformError, FileNotFoundError) as e:
        exit_fatal(e)
    
    if name:
        if name in errors:
            click.echo(format_error(errors[name]), err=True)
            sys.exit(EXIT_PARTIAL)
        matches = [value for value in values if value.name == name]
        if not matches:
            click.echo(format_error(f"No output named '{name}'"), err=True)
            sys.exit(EXIT_PARTIAL)
        # Asking for one output by name prints it even when sensitive.
        click.echo(json.dumps(matches[0].value, default=str) if as_json else _plain(matches[0].value))
        return
    
    if as_json:
        click.echo(json.dumps({"outputs": outputs_as_dict(values), "errors": errors}, indent=2, default=str))
    else:
        click.echo(format_outputs(values, errors))
    if errors:
        sys.exit(EXIT_PARTIAL)


def _plain(value) -> str:
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)
