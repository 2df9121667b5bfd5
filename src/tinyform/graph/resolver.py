"""Evaluate instance attributes against declared values and realized state."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple
from .dependency_graph import ResourceGraph, lookup_variable, resolve_index
from .models import ResourceInstance
from ..ingest.expressions import (
    COUNT_INDEX,
    SPLAT,
    TEMPLATE_PATTERN,
    CountIndexRef,
    Expression,
    ResourceRef,
    SecretRef,
    VariableRef,
    parse_expression,
    whole_template,
)
from ..state.store import StateStore
from ..utils.errors import DanglingReferenceError
from ..utils.logging import get_logger

logger = get_logger("graph.resolver")


class _Unknown:
    """Placeholder for a computed value that only exists after realization."""
    
    def __repr__(self) -> str:
        return "(known after apply)"
    
    def __str__(self) -> str:
        return "(known after apply)"


UNKNOWN = _Unknown()

# (value, sensitive, unknown)
Evaluated = Tuple[Any, bool, bool]


@dataclass
class ResolvedAttributes:
    """Attribute values for one instance, with sensitivity and unknown markers."""
    values: Dict[str, Any] = field(default_factory=dict)
    sensitive: Set[str] = field(default_factory=set)
    unknown: Set[str] = field(default_factory=set)
    
    @property
    def is_known(self) -> bool:
        return not self.unknown


class AttributeResolver:
    """
    Resolves ${...} references for graph instances.
    
    RES.id is the referent's provider id; attributes declared on the
    referent are evaluated from its declaration; anything else comes from
    the provider outputs recorded in the state store.
    """
    
    def __init__(
        self,
        graph: ResourceGraph,
        variables: Dict[str, Any],
        secrets: Dict[str, Any],
        store: StateStore,
        unknown_ids: Optional[Set[str]] = None,
    ):
        """
        Args:
            graph: Built resource graph
            variables: Declaration variables
            secrets: Sensitive values
            store: State store holding realized resources
            unknown_ids: Instances treated as not yet realized (planned create or replace)
        """
        self.graph = graph
        self.variables = variables
        self.secrets = secrets
        self.store = store
        self.unknown_ids = unknown_ids if unknown_ids is not None else set()
    
    def resolve(self, instance: ResourceInstance) -> ResolvedAttributes:
        """Evaluate every attribute of an instance."""
        resolved = ResolvedAttributes()
        for name, template in instance.attributes.items():
            value, sensitive, unknown = self.evaluate(template, instance)
            resolved.values[name] = value
            if sensitive:
                resolved.sensitive.add(name)
            if unknown:
                resolved.unknown.add(name)
        return resolved
    
    def evaluate(self, template: Any, instance: Optional[ResourceInstance], owner_id: Optional[str] = None) -> Evaluated:
        """
        Evaluate a template value in the context of an instance.
        
        Args:
            template: Literal, ${...} string, list or mapping
            instance: Instance providing count.index, or None (outputs)
            owner_id: Name used in error messages when instance is None
        """
        owner = instance.id if instance else (owner_id or "<output>")
        
        if isinstance(template, str):
            inner = whole_template(template)
            if inner is not None:
                return self._evaluate_expression(parse_expression(inner), instance, owner)
            return self._interpolate(template, instance, owner)
        
        if isinstance(template, dict):
            values, sensitive, unknown = {}, False, False
            for key, item in template.items():
                values[key], item_sensitive, item_unknown = self.evaluate(item, instance, owner)
                sensitive = sensitive or item_sensitive
                unknown = unknown or item_unknown
            return values, sensitive, unknown
        
        if isinstance(template, list):
            values, sensitive, unknown = [], False, False
            for item in template:
                value, item_sensitive, item_unknown = self.evaluate(item, instance, owner)
                values.append(value)
                sensitive = sensitive or item_sensitive
                unknown = unknown or item_unknown
            return values, sensitive, unknown
        
        return template, False, False
    
    def _interpolate(self, template: str, instance: Optional[ResourceInstance], owner: str) -> Evaluated:
        pieces: List[str] = []
        sensitive = unknown = False
        position = 0
        for match in TEMPLATE_PATTERN.finditer(template):
            pieces.append(template[position:match.start()])
            value, piece_sensitive, piece_unknown = self._evaluate_expression(
                parse_expression(match.group(1)), instance, owner
            )
            pieces.append(str(value))
            sensitive = sensitive or piece_sensitive
            unknown = unknown or piece_unknown
            position = match.end()
        pieces.append(template[position:])
        if unknown:
            return UNKNOWN, sensitive, True
        return "".join(pieces), sensitive, False
    
    def _evaluate_expression(self, expression: Expression, instance: Optional[ResourceInstance], owner: str) -> Evaluated:
        ordinal = instance.ordinal if instance else None
        
        if isinstance(expression, CountIndexRef):
            return resolve_index(COUNT_INDEX, ordinal, owner, str(expression)), False, False
        
        if isinstance(expression, VariableRef):
            return lookup_variable(self.variables, expression, ordinal, owner), False, False
        
        if isinstance(expression, SecretRef):
            if expression.name not in self.secrets:
                raise DanglingReferenceError(owner, str(expression), "unknown secret")
            return self.secrets[expression.name], True, False
        
        targets = self.graph.resolve_ref_targets(expression, ordinal, owner)
        if expression.index == SPLAT:
            values, sensitive, unknown = [], False, False
            for target in targets:
                value, target_sensitive, target_unknown = self._read_attribute(target, expression, owner)
                values.append(value)
                sensitive = sensitive or target_sensitive
                unknown = unknown or target_unknown
            return values, sensitive, unknown
        return self._read_attribute(targets[0], expression, owner)
    
    def _read_attribute(self, target_id: str, ref: ResourceRef, owner: str) -> Evaluated:
        target = self.graph.get_instance(target_id)
        record = None if target_id in self.unknown_ids else self.store.get(target_id)
        attribute = ref.attribute
        
        if attribute == "id":
            if record is None:
                return UNKNOWN, False, True
            return record.provider_id, False, False
        
        if target is not None and attribute in target.attributes:
            return self.evaluate(target.attributes[attribute], target)
        
        if record is None:
            return UNKNOWN, False, True
        
        if attribute in record.outputs:
            return record.outputs[attribute], False, False
        
        if attribute in record.attributes and attribute not in record.sensitive_attributes:
            return record.attributes[attribute], False, False
        
        raise DanglingReferenceError(owner, str(ref), f"'{target_id}' does not expose attribute '{attribute}'")
