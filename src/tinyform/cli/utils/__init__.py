"""CLI utilities package."""

import sys
from typing import Any, Dict, NoReturn, Optional
import click
from ...config import EngineSettings, load_settings
from ...utils.errors import (
    ConcurrentRunError,
    CycleError,
    DanglingReferenceError,
    DeclarationError,
    TinyformError,
)
from ...utils.logging import get_logger, set_log_level
from .file_resolver import resolve_file_path, default_secrets_path

logger = get_logger("cli.utils")

EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2

__all__ = [
    "EXIT_SUCCESS",
    "EXIT_PARTIAL",
    "EXIT_FATAL",
    "build_settings",
    "default_secrets_path",
    "exit_fatal",
    "format_error",
    "resolve_file_path",
]


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    error = f"❌ Error: {message}"
    if suggestion:
        error += f"\n💡 Tip: {suggestion}"
    return error


def _suggestion_for(error: Exception) -> Optional[str]:
    if isinstance(error, ConcurrentRunError):
        return "If no other run is active, remove the stale lock with 'tinyform force-unlock'."
    if isinstance(error, CycleError):
        return "Break the cycle by removing one of the references between these resources."
    if isinstance(error, DanglingReferenceError):
        return "Check the resource id, index and attribute spelling in the declaration."
    if isinstance(error, DeclarationError):
        return "Run 'tinyform init' to see a complete example declaration."
    return None


def exit_fatal(error: Exception) -> NoReturn:
    """Report a fatal, pre-execution error and exit with code 2."""
    if not isinstance(error, TinyformError):
        logger.error(f"Unexpected error: {error}", exc_info=True)
    click.echo(format_error(str(error), _suggestion_for(error)), err=True)
    sys.exit(EXIT_FATAL)


def build_settings(
    config_path: Optional[str] = None,
    state: Optional[str] = None,
    parallelism: Optional[int] = None,
    verbose: bool = False,
) -> EngineSettings:
    """
    Load settings with CLI flag overrides and apply the log level.
    
    Raises:
        ConfigError: If configuration is invalid
    """
    overrides: Dict[str, Any] = {"engine": {}}
    if state:
        overrides["engine"]["state_path"] = state
    if parallelism is not None:
        overrides["engine"]["parallelism"] = parallelism
    
    settings = load_settings(config_path, overrides)
    set_log_level("DEBUG" if verbose else settings.logging.level)
    return settings
