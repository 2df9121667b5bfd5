"""Exclusive lock file guarding the state store against concurrent runs."""

import json
import os
import socket
from pathlib import Path
from typing import Optional
from .models import utc_now
from ..utils.errors import ConcurrentRunError, StateError
from ..utils.logging import get_logger

logger = get_logger("state.lock")


def lock_path_for(state_path: Path) -> Path:
    """Lock file sitting next to the state file."""
    return state_path.with_name(state_path.name + ".lock")


class StateLock:
    """Lock file created with O_EXCL; held for a whole invocation."""
    
    def __init__(self, state_path: Path):
        self.path = lock_path_for(Path(state_path))
        self._held = False
    
    @property
    def held(self) -> bool:
        return self._held
    
    def acquire(self) -> None:
        """
        Create the lock file.
        
        Raises:
            ConcurrentRunError: If the lock file already exists
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise ConcurrentRunError(str(self.path), self.read_holder())
        except OSError as e:
            raise StateError(f"Failed to create lock file {self.path}: {e}")
        
        info = {"pid": os.getpid(), "host": socket.gethostname(), "created_at": utc_now()}
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(info, f)
        self._held = True
        logger.debug(f"Acquired state lock {self.path}")
    
    def release(self) -> None:
        """Remove the lock file if this object holds it."""
        if not self._held:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Lock file already removed: {self.path}")
        self._held = False
        logger.debug(f"Released state lock {self.path}")
    
    def read_holder(self) -> Optional[str]:
        """Describe the current holder, if the lock file is readable."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                info = json.load(f)
        except (OSError, ValueError):
            return None
        return f"pid {info.get('pid')} on {info.get('host')} since {info.get('created_at')}"
    
    def __enter__(self) -> "StateLock":
        self.acquire()
        return self
    
    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def force_unlock(state_path: Path) -> bool:
    """
    Remove a stale lock left behind by a crashed run.
    
    Returns:
        True if a lock file was removed
    """
    path = lock_path_for(Path(state_path))
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.warning(f"Force-removed state lock {path}")
    return True
