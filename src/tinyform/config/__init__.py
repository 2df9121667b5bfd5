"""Configuration module: layered settings for the engine."""

from .manager import load_config, load_settings
from .paths import get_defaults_path, get_user_config_path, get_project_config_path
from .settings import EngineSettings

__all__ = [
    "EngineSettings",
    "load_config",
    "load_settings",
    "get_defaults_path",
    "get_user_config_path",
    "get_project_config_path",
]
