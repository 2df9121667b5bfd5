"""Options shared by several commands."""

import click

DEFAULT_DECLARATION = "stack.yaml"


def declaration_options(command):
    """--file and --secrets."""
    command = click.option(
        '--secrets', type=click.Path(),
        help='Sensitive values file (default: secrets.yaml if present)'
    )(command)
    command = click.option(
        '--file', '-f', 'declaration', default=DEFAULT_DECLARATION, show_default=True,
        type=click.Path(), help='Declaration file (YAML or JSON)'
    )(command)
    return command


def engine_options(command):
    """--state, --config and --verbose."""
    command = click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')(command)
    command = click.option('--config', 'config_path', type=click.Path(), help='Extra config file')(command)
    command = click.option('--state', type=click.Path(), help='State file path (overrides config)')(command)
    return command
