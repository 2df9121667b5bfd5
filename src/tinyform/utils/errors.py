"""Custom exception classes for tinyform."""

from typing import List, Optional


class TinyformError(Exception):
    """Base exception for all tinyform errors."""
    pass


class DeclarationError(TinyformError):
    """Raised when a declaration or secrets document cannot be loaded or is invalid."""
    pass


class ConfigError(TinyformError):
    """Raised when configuration is invalid or missing."""
    pass


class GraphError(TinyformError):
    """Base for faults detected while building or ordering the resource graph."""
    
    def __init__(self, message: str, resource_ids: Optional[List[str]] = None):
        super().__init__(message)
        self.resource_ids = list(resource_ids or [])


class CycleError(GraphError):
    """Raised when resource references form a cycle."""
    
    def __init__(self, cycle: List[str]):
        path = " -> ".join(cycle + cycle[:1])
        super().__init__(f"Dependency cycle detected: {path}", cycle)
        self.cycle = cycle


class DanglingReferenceError(GraphError):
    """Raised when an attribute references a nonexistent resource, variable, secret or ordinal."""
    
    def __init__(self, resource_id: str, reference: str, reason: str):
        super().__init__(
            f"Resource '{resource_id}' has a dangling reference '{reference}': {reason}",
            [resource_id]
        )
        self.resource_id = resource_id
        self.reference = reference
        self.reason = reason


class UnreachableNodeError(GraphError):
    """Raised when the planner cannot schedule every node (internal consistency fault)."""
    
    def __init__(self, resource_ids: List[str]):
        super().__init__(
            f"Unable to schedule resources: {', '.join(resource_ids)}",
            resource_ids
        )


class StateError(TinyformError):
    """Raised when the state file cannot be read or written."""
    pass


class ConcurrentRunError(StateError):
    """Raised when another invocation holds the state lock."""
    
    def __init__(self, lock_path: str, holder: Optional[str] = None):
        message = f"State is locked by another run: {lock_path}"
        if holder:
            message += f" (held by {holder})"
        super().__init__(message)
        self.lock_path = lock_path
        self.holder = holder


class ProviderError(TinyformError):
    """Base exception for provider operation failures."""
    pass


class ProviderTransientError(ProviderError):
    """Provider failure worth retrying (rate limiting, propagation delay, timeout)."""
    pass


class ProviderFatalError(ProviderError):
    """Provider failure that must not be retried (validation, permission, conflict)."""
    pass


class ResourceNotFoundError(ProviderFatalError):
    """Raised by a provider when the addressed resource no longer exists."""
    pass


class OutputUnavailableError(TinyformError):
    """Raised when an output references a resource that was never realized."""
    
    def __init__(self, output_name: str, resource_id: str):
        super().__init__(
            f"Output '{output_name}' is unavailable: resource '{resource_id}' has not been applied"
        )
        self.output_name = output_name
        self.resource_id = resource_id


class InvalidTransitionError(TinyformError):
    """Raised when a plan node is moved backwards in its lifecycle."""
    pass
