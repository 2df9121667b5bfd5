"""Desired-versus-recorded comparison for a single resource."""

import hashlib
import json
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from .models import ChangeAction
from ..graph.models import ResourceInstance
from ..graph.resolver import ResolvedAttributes
from ..ingest.models import ResourceKind
from ..state.models import StateRecord

# Changing any of these cannot be done in place: the resource is deleted and recreated.
FORCE_NEW_ATTRIBUTES: Dict[ResourceKind, FrozenSet[str]] = {
    ResourceKind.VPC: frozenset({"cidr_block"}),
    ResourceKind.INTERNET_GATEWAY: frozenset({"vpc_id"}),
    ResourceKind.SUBNET: frozenset({"vpc_id", "cidr_block", "availability_zone"}),
    ResourceKind.ROUTE_TABLE: frozenset({"vpc_id"}),
    ResourceKind.ROUTE_TABLE_ASSOCIATION: frozenset({"subnet_id", "route_table_id"}),
    ResourceKind.SECURITY_GROUP: frozenset({"vpc_id", "name", "description"}),
    ResourceKind.DB_SUBNET_GROUP: frozenset({"name"}),
    ResourceKind.DB_INSTANCE: frozenset({"identifier", "engine", "db_name", "username", "db_subnet_group_name"}),
    ResourceKind.KEY_PAIR: frozenset({"key_name", "public_key"}),
    ResourceKind.INSTANCE: frozenset({"ami", "subnet_id", "key_name"}),
    ResourceKind.ELASTIC_IP: frozenset({"domain"}),
}


def canonical_json(value: Any) -> Any:
    """Normalize a value the way it looks after a JSON round trip."""
    return json.loads(json.dumps(value, sort_keys=True, default=str))


def declaration_hash(kind: ResourceKind, values: Dict[str, Any]) -> str:
    """SHA-256 of the kind and fully resolved attributes."""
    payload = json.dumps({"kind": kind.value, "attributes": values}, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def changed_attributes(resolved: ResolvedAttributes, record: StateRecord) -> List[str]:
    """Attribute names whose desired value differs from the recorded snapshot."""
    changed = set(resolved.unknown)
    for name, value in resolved.values.items():
        if name in resolved.unknown or name in resolved.sensitive or name in record.sensitive_attributes:
            continue
        if name not in record.attributes or canonical_json(value) != record.attributes[name]:
            changed.add(name)
    changed.update(name for name in record.attributes if name not in resolved.values)
    return sorted(changed)


def compute_change(
    instance: ResourceInstance,
    resolved: ResolvedAttributes,
    record: Optional[StateRecord],
) -> Tuple[ChangeAction, List[str]]:
    """
    Decide what the provider must do for one instance.
    
    Returns:
        (action, changed attribute names)
    """
    if record is None:
        return ChangeAction.CREATE, sorted(resolved.values)
    
    if record.kind != instance.kind:
        return ChangeAction.REPLACE, sorted(resolved.values)
    
    if resolved.is_known and declaration_hash(instance.kind, resolved.values) == record.declaration_hash:
        return ChangeAction.NO_OP, []
    
    changed = changed_attributes(resolved, record)
    if not changed:
        # Only secret-derived values can differ without showing in the snapshot.
        changed = sorted(resolved.sensitive | set(record.sensitive_attributes))
    
    if set(changed) & FORCE_NEW_ATTRIBUTES.get(instance.kind, frozenset()):
        return ChangeAction.REPLACE, changed
    return ChangeAction.UPDATE, changed
