"""Pydantic models for the persisted state file."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List
from pydantic import BaseModel, Field
from ..ingest.models import ResourceKind

STATE_FORMAT_VERSION = 1


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class StateRecord(BaseModel):
    """What the engine knows about one realized resource."""
    resource_id: str = Field(..., description="Instance address")
    kind: ResourceKind = Field(..., description="Resource kind")
    provider_id: str = Field(..., description="Identifier assigned by the provider")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Last-applied attributes (sensitive values masked)")
    sensitive_attributes: List[str] = Field(default_factory=list, description="Attribute names holding secret-derived values")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Computed values returned by the provider")
    declaration_hash: str = Field(..., description="Hash of kind and resolved attributes at last apply")
    dependencies: List[str] = Field(default_factory=list, description="Instance ids this resource depended on")
    created_at: str = Field(default_factory=utc_now, description="First successful realization")
    updated_at: str = Field(default_factory=utc_now, description="Last successful apply")


class StateDocument(BaseModel):
    """The whole state file."""
    version: int = Field(default=STATE_FORMAT_VERSION, description="State format version")
    serial: int = Field(default=0, ge=0, description="Incremented on every flush")
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Identity of this state history")
    apply_order: List[str] = Field(default_factory=list, description="Order used by the last apply")
    resources: Dict[str, StateRecord] = Field(default_factory=dict, description="Records by resource id")
