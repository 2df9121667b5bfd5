"""State tracking: realized resources persisted between invocations."""

from .lock import StateLock, force_unlock
from .models import StateDocument, StateRecord
from .store import StateStore

__all__ = [
    "StateDocument",
    "StateLock",
    "StateRecord",
    "StateStore",
    "force_unlock",
]
