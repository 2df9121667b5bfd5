"""Pydantic models for expanded resource instances."""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from ..ingest.models import ResourceKind


class ResourceInstance(BaseModel):
    """One graph node: a declaration, or one ordinal of a counted declaration."""
    id: str = Field(..., description="Instance address, e.g. 'web' or 'web[1]'")
    name: str = Field(..., description="Declaration id this instance was expanded from")
    kind: ResourceKind = Field(..., description="Resource kind")
    ordinal: Optional[int] = Field(default=None, description="Index within a counted declaration")
    position: int = Field(..., ge=0, description="Declaration order of the source declaration")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Unevaluated attribute templates")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependencies")
    
    @property
    def sort_key(self) -> Tuple[int, int]:
        """Declaration order, then ordinal."""
        return (self.position, self.ordinal if self.ordinal is not None else -1)


def instance_address(name: str, ordinal: Optional[int]) -> str:
    """Address of an instance: 'name' or 'name[ordinal]'."""
    return name if ordinal is None else f"{name}[{ordinal}]"
