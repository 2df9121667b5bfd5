"""Pydantic models for declaration documents."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class ResourceKind(str, Enum):
    """Resource kinds the engine knows how to realize."""
    VPC = "Vpc"
    INTERNET_GATEWAY = "InternetGateway"
    SUBNET = "Subnet"
    ROUTE_TABLE = "RouteTable"
    ROUTE_TABLE_ASSOCIATION = "RouteTableAssociation"
    SECURITY_GROUP = "SecurityGroup"
    DB_SUBNET_GROUP = "DbSubnetGroup"
    DB_INSTANCE = "DbInstance"
    KEY_PAIR = "KeyPair"
    INSTANCE = "Instance"
    ELASTIC_IP = "ElasticIp"


class ResourceDecl(BaseModel):
    """A declared resource, possibly a template expanded by count."""
    id: str = Field(..., pattern=r"^[A-Za-z_][\w-]*$", description="Unique resource identifier")
    kind: ResourceKind = Field(..., description="Resource kind")
    count: Optional[Union[int, str]] = Field(default=None, description="Number of instances (int or ${var...})")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependencies by resource id")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Attribute values and ${...} references")


class OutputDecl(BaseModel):
    """A named value read off realized resources after apply."""
    name: str = Field(..., description="Output name")
    value: Any = Field(..., description="Expression or literal")
    description: Optional[str] = Field(default=None, description="Human-readable description")
    sensitive: bool = Field(default=False, description="Mask the value in display")


class Declaration(BaseModel):
    """A complete declaration document."""
    variables: Dict[str, Any] = Field(default_factory=dict, description="Named input values")
    resources: List[ResourceDecl] = Field(default_factory=list, description="Declared resources in order")
    outputs: List[OutputDecl] = Field(default_factory=list, description="Declared outputs")
    
    def get_resource(self, resource_id: str) -> Optional[ResourceDecl]:
        """Get a declaration by id."""
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return None
