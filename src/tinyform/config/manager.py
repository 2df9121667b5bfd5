"""Layered configuration manager (defaults, user, project, explicit file)."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from pydantic import ValidationError
from .paths import get_defaults_path, get_user_config_path, get_project_config_path
from .settings import EngineSettings
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load full config tree.
    
    Later layers override earlier ones: packaged defaults, user config,
    project config, then the explicit config file.
    
    Args:
        config_path: Optional explicit config file (must exist)
        
    Returns:
        Merged configuration dictionary
        
    Raises:
        ConfigError: If a file cannot be parsed or the explicit file is missing
    """
    config = _read_yaml(get_defaults_path())
    
    user_config_path = get_user_config_path()
    if user_config_path.exists():
        _deep_merge(config, _read_yaml(user_config_path))
        logger.debug(f"Merged user config from {user_config_path}")
    
    project_config_path = get_project_config_path()
    if project_config_path:
        _deep_merge(config, _read_yaml(project_config_path))
        logger.info(f"Loaded project config from {project_config_path}")
    
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        _deep_merge(config, _read_yaml(path))
        logger.info(f"Loaded config from {config_path}")
    
    return config


def load_settings(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> EngineSettings:
    """
    Load and validate engine settings.
    
    Args:
        config_path: Optional explicit config file
        overrides: Nested dict merged last (CLI flags)
        
    Returns:
        EngineSettings
        
    Raises:
        ConfigError: If the merged config fails validation
    """
    config = load_config(config_path)
    if overrides:
        _deep_merge(config, overrides)
    
    try:
        return EngineSettings(**config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
    except TypeError as e:
        raise ConfigError(f"Invalid configuration structure: {e}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping, treating an empty file as empty config."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a dictionary: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
