"""Durable store of realized resources, flushed after every change."""

import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional
from pydantic import ValidationError
from .lock import StateLock
from .models import STATE_FORMAT_VERSION, StateDocument, StateRecord
from ..utils.errors import StateError
from ..utils.logging import MASK, get_logger

logger = get_logger("state.store")


class StateStore:
    """
    Maps each declared resource id to its realized provider identity.
    
    The store is the only owner of StateRecords: callers receive copies,
    and every put/remove is written to disk before returning.
    """
    
    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = StateLock(self.path)
        self._mutex = threading.RLock()
        self._document = StateDocument()
        self._loaded = False
    
    @property
    def lock(self) -> StateLock:
        return self._lock
    
    @property
    def serial(self) -> int:
        return self._document.serial
    
    def load(self) -> None:
        """
        Load the state file, or start empty if it does not exist.
        
        Raises:
            StateError: If the file is unreadable or invalid
        """
        with self._mutex:
            if not self.path.exists():
                logger.info(f"No state file at {self.path}; starting empty")
                self._document = StateDocument()
                self._loaded = True
                return
            
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise StateError(f"Invalid JSON in state file {self.path}: {e}")
            except OSError as e:
                raise StateError(f"Error reading state file {self.path}: {e}")
            
            try:
                document = StateDocument(**data)
            except (ValidationError, TypeError) as e:
                raise StateError(f"Invalid state file {self.path}: {e}")
            
            if document.version > STATE_FORMAT_VERSION:
                raise StateError(
                    f"State file {self.path} has format version {document.version}; "
                    f"this tinyform supports up to {STATE_FORMAT_VERSION}"
                )
            
            self._document = document
            self._loaded = True
            logger.info(
                f"Loaded state from {self.path} "
                f"(serial: {document.serial}, resources: {len(document.resources)})"
            )
    
    @contextmanager
    def locked(self) -> Iterator["StateStore"]:
        """Hold the state lock for the duration of a command and load the state."""
        self._lock.acquire()
        try:
            self.load()
            yield self
        finally:
            self._lock.release()
    
    def get(self, resource_id: str) -> Optional[StateRecord]:
        """Get a copy of the record for a resource, or None."""
        with self._mutex:
            record = self._document.resources.get(resource_id)
            return record.model_copy(deep=True) if record else None
    
    def put(self, resource_id: str, record: StateRecord) -> None:
        """Insert or replace a record and flush."""
        with self._mutex:
            stored = record.model_copy(deep=True)
            for key in stored.sensitive_attributes:
                if key in stored.attributes:
                    stored.attributes[key] = MASK
            self._document.resources[resource_id] = stored
            self.flush()
    
    def remove(self, resource_id: str) -> None:
        """Delete a record (if present) and flush."""
        with self._mutex:
            self._document.resources.pop(resource_id, None)
            self.flush()
    
    def snapshot_all(self) -> List[StateRecord]:
        """All records, ordered by the last apply order, then insertion order."""
        with self._mutex:
            resources = self._document.resources
            ordered = [resources[rid] for rid in self._document.apply_order if rid in resources]
            seen = set(self._document.apply_order)
            ordered.extend(record for rid, record in resources.items() if rid not in seen)
            return [record.model_copy(deep=True) for record in ordered]
    
    def resource_ids(self) -> List[str]:
        """Ids of every record, in snapshot order."""
        return [record.resource_id for record in self.snapshot_all()]
    
    def get_apply_order(self) -> List[str]:
        with self._mutex:
            return list(self._document.apply_order)
    
    def set_apply_order(self, order: List[str]) -> None:
        """Record the order used by an apply and flush."""
        with self._mutex:
            self._document.apply_order = list(order)
            self.flush()
    
    def flush(self) -> None:
        """
        Atomically write the state file.
        
        Raises:
            StateError: If the file cannot be written
        """
        with self._mutex:
            self._document.serial += 1
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            try:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    json.dump(self._document.model_dump(mode="json"), f, indent=2, sort_keys=False)
                os.replace(tmp_path, self.path)
            except (OSError, TypeError) as e:
                raise StateError(f"Failed to write state file {self.path}: {e}")
            logger.debug(f"Flushed state {self.path} (serial: {self._document.serial})")
