"""File path resolution utilities for CLI."""

from pathlib import Path
from typing import Optional


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a user-supplied file path against the current directory.
    
    Args:
        file_path: User-provided file path or name
        
    Returns:
        Resolved Path object
        
    Raises:
        FileNotFoundError: If the file does not exist or is not a file
    """
    path = Path(file_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    resolved_path = path.resolve()
    
    if not resolved_path.exists():
        raise FileNotFoundError(
            f"File not found: {file_path}. Please check the file path and try again."
        )
    
    if not resolved_path.is_file():
        raise FileNotFoundError(
            f"Path is not a file: {file_path}. Please provide a valid file path."
        )
    
    return resolved_path


def default_secrets_path(secrets: Optional[str]) -> Optional[str]:
    """Explicit secrets path, or secrets.yaml in the current directory when present."""
    if secrets:
        return str(resolve_file_path(secrets))
    candidate = Path.cwd() / "secrets.yaml"
    return str(candidate) if candidate.is_file() else None
