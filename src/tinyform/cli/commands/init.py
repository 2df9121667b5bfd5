"""Init command - write the bundled web/database stack into a directory."""

import shutil
from pathlib import Path
import click
from ..options import DEFAULT_DECLARATION
from ..utils import format_error
from ...utils.logging import get_logger

logger = get_logger("cli.init")

TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent / "templates"

FILES = {
    "web_db_stack.yaml": DEFAULT_DECLARATION,
    "secrets.example.yaml": "secrets.yaml",
}


@click.command()
@click.argument('directory', type=click.Path(file_okay=False), default='.')
@click.option('--force', is_flag=True, help='Overwrite existing files')
def init(directory, force):
    """Write stack.yaml and secrets.yaml for the VPC/RDS/EC2 topology."""
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    
    written = 0
    for source_name, target_name in FILES.items():
        destination = target / target_name
        if destination.exists() and not force:
            click.echo(format_error(f"{destination} already exists", "Use --force to overwrite it."), err=True)
            continue
        shutil.copyfile(TEMPLATES_DIR / source_name, destination)
        logger.info(f"Wrote {destination}")
        click.echo(f"Wrote {destination}")
        written += 1
    
    if written:
        click.echo("Edit secrets.yaml, then run 'tinyform plan' and 'tinyform apply'.")
