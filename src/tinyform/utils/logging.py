"""Structured logging setup for tinyform."""

import logging
import sys
from typing import Any, Dict, Iterable, Optional

MASK = "(sensitive)"


def setup_logging(level: int = logging.WARNING, format_string: Optional[str] = None) -> logging.Logger:
    """
    Set up structured logging for tinyform.
    
    Args:
        level: Logging level (default: WARNING)
        format_string: Custom format string (optional)
    
    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stderr,
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    
    logger = logging.getLogger("tinyform")
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"tinyform.{name}")


def mask_sensitive(attributes: Dict[str, Any], sensitive_keys: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of attributes with sensitive keys replaced by a mask."""
    sensitive = set(sensitive_keys)
    return {key: (MASK if key in sensitive else value) for key, value in attributes.items()}


def set_log_level(level_name: str) -> None:
    """Apply a level name such as 'INFO' to the tinyform logger tree."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.getLogger("tinyform").setLevel(level)
