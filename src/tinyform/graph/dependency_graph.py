"""Build the directed resource dependency graph from a declaration."""

import networkx as nx
from typing import Any, Dict, List, Optional, Set
from .models import ResourceInstance, instance_address
from ..ingest.expressions import (
    COUNT_INDEX,
    Expression,
    SPLAT,
    Index,
    ResourceRef,
    SecretRef,
    VariableRef,
    iter_expressions,
    parse_expression,
    whole_template,
)
from ..ingest.models import Declaration, ResourceDecl
from ..utils.errors import CycleError, DanglingReferenceError, DeclarationError
from ..utils.logging import get_logger

logger = get_logger("graph.dependency_graph")


def resolve_index(index: Index, ordinal: Optional[int], owner_id: str, reference: str) -> Index:
    """Turn count.index into the owner's ordinal."""
    if index != COUNT_INDEX:
        return index
    if ordinal is None:
        raise DanglingReferenceError(owner_id, reference, "count.index used outside a counted resource")
    return ordinal


def lookup_variable(variables: Dict[str, Any], ref: VariableRef, ordinal: Optional[int], owner_id: str) -> Any:
    """
    Read a variable value, following nested keys and an optional list index.
    
    Raises:
        DanglingReferenceError: If a key is missing or the index is out of range
    """
    reference = str(ref)
    value: Any = variables
    for key in ref.path:
        if not isinstance(value, dict) or key not in value:
            raise DanglingReferenceError(owner_id, reference, f"unknown variable key '{key}'")
        value = value[key]
    
    index = resolve_index(ref.index, ordinal, owner_id, reference)
    if index is None:
        return value
    if not isinstance(value, list):
        raise DanglingReferenceError(owner_id, reference, "indexed variable is not a list")
    if index >= len(value):
        raise DanglingReferenceError(
            owner_id, reference, f"ordinal {index} out of range (length {len(value)})"
        )
    return value[index]


class ResourceGraph:
    """Directed dependency graph: nodes=resource instances, edges=dependent -> dependency."""
    
    def __init__(self):
        self.graph = nx.DiGraph()
        self._instances: Dict[str, ResourceInstance] = {}
        self._groups: Dict[str, List[str]] = {}
        self._counted: Dict[str, bool] = {}
    
    def add_group(self, name: str, counted: bool) -> None:
        """Register a declaration, even when it expands to zero instances."""
        self._groups.setdefault(name, [])
        self._counted[name] = counted
    
    def add_instance(self, instance: ResourceInstance) -> None:
        """Add an expanded instance as a node."""
        self.graph.add_node(instance.id, instance=instance)
        self._instances[instance.id] = instance
        self._groups.setdefault(instance.name, []).append(instance.id)
    
    def add_dependency(self, dependent_id: str, dependency_id: str, attribute: Optional[str] = None) -> None:
        """Add edge dependent -> dependency, remembering which attributes were referenced."""
        if self.graph.has_edge(dependent_id, dependency_id):
            edge = self.graph.edges[dependent_id, dependency_id]
        else:
            self.graph.add_edge(dependent_id, dependency_id, attributes=set())
            edge = self.graph.edges[dependent_id, dependency_id]
            logger.debug(f"Added dependency edge: {dependent_id} -> {dependency_id}")
        if attribute:
            edge["attributes"].add(attribute)
    
    def has_group(self, name: str) -> bool:
        return name in self._groups
    
    def is_counted(self, name: str) -> bool:
        return self._counted.get(name, False)
    
    def get_group(self, name: str) -> List[str]:
        """Instance ids expanded from a declaration, in ordinal order."""
        return list(self._groups.get(name, []))
    
    def get_instance(self, instance_id: str) -> Optional[ResourceInstance]:
        """Get an instance by id."""
        return self._instances.get(instance_id)
    
    def get_all_instances(self) -> List[ResourceInstance]:
        """Get all instances in declaration order."""
        return sorted(self._instances.values(), key=lambda instance: instance.sort_key)
    
    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._instances
    
    def __len__(self) -> int:
        return len(self._instances)
    
    def get_dependencies(self, instance_id: str) -> Set[str]:
        """Direct dependencies of an instance."""
        if instance_id not in self.graph:
            return set()
        return set(self.graph.successors(instance_id))
    
    def get_dependents(self, instance_id: str) -> Set[str]:
        """Direct dependents of an instance."""
        if instance_id not in self.graph:
            return set()
        return set(self.graph.predecessors(instance_id))
    
    def get_downstream_resources(self, instance_id: str) -> Set[str]:
        """All instances that (transitively) depend on the given one."""
        if instance_id not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, instance_id))
    
    def get_upstream_resources(self, instance_id: str) -> Set[str]:
        """All instances the given one (transitively) depends on."""
        if instance_id not in self.graph:
            return set()
        return set(nx.descendants(self.graph, instance_id))
    
    def referenced_attributes(self, dependent_id: str, dependency_id: str) -> Set[str]:
        """Attribute names the dependent reads off the dependency."""
        if not self.graph.has_edge(dependent_id, dependency_id):
            return set()
        return set(self.graph.edges[dependent_id, dependency_id]["attributes"])
    
    def resolve_ref_targets(self, ref: ResourceRef, ordinal: Optional[int], owner_id: str) -> List[str]:
        """
        Map a resource reference to the instance ids it addresses.
        
        Raises:
            DanglingReferenceError: If the resource or ordinal does not exist
        """
        reference = str(ref)
        if not self.has_group(ref.resource):
            raise DanglingReferenceError(owner_id, reference, f"no resource named '{ref.resource}'")
        
        group = self.get_group(ref.resource)
        index = resolve_index(ref.index, ordinal, owner_id, reference)
        if index == SPLAT:
            return group
        
        if self.is_counted(ref.resource):
            if index is None:
                raise DanglingReferenceError(
                    owner_id, reference, f"'{ref.resource}' uses count; an index is required"
                )
            if index >= len(group):
                raise DanglingReferenceError(
                    owner_id, reference, f"ordinal {index} out of range (count {len(group)})"
                )
            return [group[index]]
        
        if index is not None:
            raise DanglingReferenceError(owner_id, reference, f"'{ref.resource}' does not use count")
        return group


class GraphBuilder:
    """Expand counted declarations and connect their references."""
    
    def __init__(self, declaration: Declaration, secrets: Optional[Dict[str, Any]] = None):
        """
        Args:
            declaration: Validated declaration document
            secrets: Sensitive values; when None, secret names are not checked
        """
        self.declaration = declaration
        self.secrets = secrets
    
    def expand_resources(self) -> List[ResourceInstance]:
        """Expand every declaration into its instances, in declaration order."""
        instances = []
        for position, resource in enumerate(self.declaration.resources):
            count = self._evaluate_count(resource)
            ordinals = [None] if count is None else list(range(count))
            for ordinal in ordinals:
                instances.append(ResourceInstance(
                    id=instance_address(resource.id, ordinal),
                    name=resource.id,
                    kind=resource.kind,
                    ordinal=ordinal,
                    position=position,
                    attributes=resource.attributes,
                    depends_on=resource.depends_on,
                ))
        return instances
    
    def _evaluate_count(self, resource: ResourceDecl) -> Optional[int]:
        """Count as int, or None when the declaration is not counted."""
        count = resource.count
        if count is None or isinstance(count, int):
            return count
        
        inner = whole_template(count)
        expression = parse_expression(inner) if inner is not None else None
        if not isinstance(expression, VariableRef):
            raise DeclarationError(f"Resource '{resource.id}': count must be an integer or ${{var...}}")
        
        value = lookup_variable(self.declaration.variables, expression, None, resource.id)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DeclarationError(
                f"Resource '{resource.id}': count must evaluate to a non-negative integer, got {value!r}"
            )
        return value
    
    def build(self) -> ResourceGraph:
        """
        Build the complete dependency graph.
        
        Returns:
            ResourceGraph with one node per expanded instance
            
        Raises:
            DanglingReferenceError: If a reference cannot be satisfied
            CycleError: If the references form a cycle
        """
        graph = ResourceGraph()
        for resource in self.declaration.resources:
            graph.add_group(resource.id, resource.count is not None)
        
        instances = self.expand_resources()
        for instance in instances:
            graph.add_instance(instance)
        
        for instance in instances:
            self._connect(graph, instance)
        
        self._check_outputs(graph)
        self._check_acyclic(graph)
        logger.info(
            f"Built dependency graph with {graph.graph.number_of_nodes()} nodes "
            f"and {graph.graph.number_of_edges()} edges"
        )
        return graph
    
    def _connect(self, graph: ResourceGraph, instance: ResourceInstance) -> None:
        for attribute, value in instance.attributes.items():
            for expression in iter_expressions(value):
                for target in self._check_expression(graph, expression, instance.ordinal, instance.id):
                    graph.add_dependency(instance.id, target, expression.attribute)
        
        for dependency in instance.depends_on:
            if dependency in graph:
                targets = [dependency]
            elif graph.has_group(dependency):
                targets = graph.get_group(dependency)
            else:
                raise DanglingReferenceError(instance.id, dependency, "no such resource in depends_on")
            for target in targets:
                graph.add_dependency(instance.id, target)
    
    def _check_outputs(self, graph: ResourceGraph) -> None:
        """Validate output expressions against the graph, owned by output.<name>."""
        for output in self.declaration.outputs:
            owner = f"output.{output.name}"
            for expression in iter_expressions(output.value):
                self._check_expression(graph, expression, None, owner)
    
    def _check_expression(self, graph: ResourceGraph, expression: Expression, ordinal: Optional[int], owner: str) -> List[str]:
        """
        Validate one expression.
        
        Returns:
            Instance ids a resource reference addresses (empty for other expressions)
        """
        if isinstance(expression, ResourceRef):
            return graph.resolve_ref_targets(expression, ordinal, owner)
        if isinstance(expression, VariableRef):
            lookup_variable(self.declaration.variables, expression, ordinal, owner)
        elif isinstance(expression, SecretRef):
            if self.secrets is not None and expression.name not in self.secrets:
                raise DanglingReferenceError(owner, str(expression), "unknown secret")
        else:
            resolve_index(COUNT_INDEX, ordinal, owner, str(expression))
        return []
    
    def _check_acyclic(self, graph: ResourceGraph) -> None:
        try:
            cycle_edges = nx.find_cycle(graph.graph)
        except nx.NetworkXNoCycle:
            return
        raise CycleError([edge[0] for edge in cycle_edges])


def build_graph(declaration: Declaration, secrets: Optional[Dict[str, Any]] = None) -> ResourceGraph:
    """Build a ResourceGraph from a declaration."""
    return GraphBuilder(declaration, secrets).build()
