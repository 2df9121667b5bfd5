"""Apply command - create and update resources until they match the declaration."""

import json
import sys
import click
from ..options import declaration_options, engine_options
from ..utils import build_settings, default_secrets_path, exit_fatal, resolve_file_path
from ...presentation.human_formatter import format_outputs, format_report, outputs_as_dict
from ...utils.errors import TinyformError
from ...utils.logging import get_logger

logger = get_logger("cli.apply")


@click.command()
@declaration_options
@engine_options
@click.option('--parallelism', '-p', type=click.IntRange(min=1), help='Maximum concurrent provider operations')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of text')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def apply(declaration, secrets, state, config_path, verbose, parallelism, as_json, quiet):
    """
    Build the graph, plan, and execute creates/updates.
    
    Exit code 0 means every resource converged, 1 means some resources
    failed or were blocked, 2 means nothing was attempted.
    """
    from ... import apply as apply_core
    
    try:
        settings = build_settings(config_path, state, parallelism, verbose)
        declaration_path = resolve_file_path(declaration)
        if not quiet:
            click.echo(f"Applying {declaration_path} (state: {settings.engine.state_path})", err=True)
        result = apply_core(str(declaration_path), default_secrets_path(secrets), settings)
    except (TinyformError, FileNotFoundError) as e:
        exit_fatal(e)
    
    if as_json:
        click.echo(json.dumps({
            "report": result.report.model_dump(mode="json"),
            "outputs": outputs_as_dict(result.outputs),
            "output_errors": result.output_errors,
        }, indent=2))
    else:
        click.echo(format_report(result.report))
        if result.outputs or result.output_errors:
            click.echo("")
            click.echo(format_outputs(result.outputs, result.output_errors))
    
    sys.exit(result.report.exit_code)
