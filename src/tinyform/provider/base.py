"""Provider boundary: the only integration point with the cloud control plane."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple
from ..ingest.models import ResourceKind


class Provider(ABC):
    """
    Abstract capability interface for realizing resources.
    
    Implementations raise ProviderTransientError for failures worth retrying
    (rate limiting, propagation delays, timeouts) and ProviderFatalError for
    everything else. ResourceNotFoundError from delete means the resource is
    already gone.
    """
    
    def __init__(self, timeout: float = 60.0):
        """
        Args:
            timeout: Seconds allowed for a single operation
        """
        self.timeout = timeout
    
    @abstractmethod
    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """Create a resource; return (provider_id, computed outputs)."""
        pass
    
    @abstractmethod
    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Update a resource in place; return computed outputs."""
        pass
    
    @abstractmethod
    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        """Delete a resource."""
        pass
