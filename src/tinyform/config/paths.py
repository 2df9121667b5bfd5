"""Config path resolution for the layered config system."""

from pathlib import Path
from typing import Optional


def get_defaults_path() -> Path:
    """Get the packaged defaults file."""
    return Path(__file__).parent / "defaults.yaml"


def get_user_config_path() -> Path:
    """Get user config path: ~/.tinyform/config.yaml"""
    home = Path.home()
    return home / ".tinyform" / "config.yaml"


def get_project_config_path() -> Optional[Path]:
    """Get project config path: .tinyform/config.yaml (from current working directory)"""
    cwd = Path.cwd()
    project_config = cwd / ".tinyform" / "config.yaml"
    if project_config.exists():
        return project_config
    return None
