"""Destroy command - delete recorded resources in reverse apply order."""

import json
import sys
import click
from ..options import engine_options
from ..utils import build_settings, exit_fatal
from ...presentation.human_formatter import format_report
from ...utils.errors import TinyformError
from ...utils.logging import get_logger

logger = get_logger("cli.destroy")


@click.command()
@engine_options
@click.option('--parallelism', '-p', type=click.IntRange(min=1), help='Maximum concurrent provider operations')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of text')
def destroy(state, config_path, verbose, parallelism, as_json):
    """Delete everything in the state file, dependents first."""
    from ... import destroy as destroy_core
    
    try:
        settings = build_settings(config_path, state, parallelism, verbose)
        report = destroy_core(settings)
    except TinyformError as e:
        exit_fatal(e)
    
    if as_json:
        click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        click.echo(format_report(report))
    
    sys.exit(report.exit_code)
