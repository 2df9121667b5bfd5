"""Stable apply ordering, reverse destroy ordering, and dry-run diffs."""

import networkx as nx
from typing import Any, Dict, Iterable, List, Set
from .diff import compute_change
from .models import ChangeAction, Plan, PlanNode, PlanOperation, PlannedChange
from ..graph.dependency_graph import ResourceGraph
from ..graph.resolver import AttributeResolver
from ..state.store import StateStore
from ..utils.errors import UnreachableNodeError
from ..utils.logging import get_logger

logger = get_logger("planner.planner")


def plan_apply_order(graph: ResourceGraph) -> List[str]:
    """
    Topologically sort instances, dependencies first.
    
    Ties are broken by declaration order and then ordinal, so an unchanged
    graph always yields the same order.
    
    Raises:
        UnreachableNodeError: If some node cannot be scheduled
    """
    def sort_key(node_id: str):
        return graph.get_instance(node_id).sort_key
    
    try:
        order = list(nx.lexicographical_topological_sort(graph.graph.reverse(copy=False), key=sort_key))
    except nx.NetworkXUnfeasible:
        raise UnreachableNodeError(sorted(graph.graph.nodes))
    
    if len(order) != len(graph):
        missing = sorted(set(graph.graph.nodes) - set(order))
        raise UnreachableNodeError(missing)
    
    position = {node_id: index for index, node_id in enumerate(order)}
    for dependent, dependency in graph.graph.edges:
        if position[dependency] > position[dependent]:
            raise UnreachableNodeError([dependent, dependency])
    
    logger.debug(f"Apply order: {order}")
    return order


def plan_destroy_order(store: StateStore) -> List[str]:
    """
    Reverse of the last recorded apply order.
    
    Records missing from that order are appended, newest first. Ids in the
    order without a record stay in place and are destroyed as no-ops.
    """
    recorded = store.get_apply_order()
    order = list(reversed(recorded))
    seen = set(recorded)
    leftovers = [rid for rid in store.resource_ids() if rid not in seen]
    order.extend(reversed(leftovers))
    return order


def build_apply_plan(graph: ResourceGraph) -> Plan:
    """Plan nodes for every instance in apply order."""
    nodes = []
    for node_id in plan_apply_order(graph):
        instance = graph.get_instance(node_id)
        nodes.append(PlanNode(
            resource_id=node_id,
            kind=instance.kind,
            dependencies=graph.get_dependencies(node_id),
            instance=instance,
        ))
    plan = Plan(PlanOperation.APPLY, nodes)
    logger.info(f"Planned apply of {len(plan)} resources")
    return plan


def build_orphan_plan(graph: ResourceGraph, store: StateStore) -> Plan:
    """Destroy plan for records whose resource is no longer declared."""
    declared = set(graph.graph.nodes)
    return _destroy_plan_for(
        [
            rid for rid in plan_destroy_order(store)
            if rid not in declared and store.get(rid) is not None
        ],
        store,
    )


def build_destroy_plan(store: StateStore) -> Plan:
    """Destroy plan covering everything the store has seen applied."""
    plan = _destroy_plan_for(plan_destroy_order(store), store)
    logger.info(f"Planned destroy of {len(plan)} resources")
    return plan


def _destroy_plan_for(order: List[str], store: StateStore) -> Plan:
    nodes = []
    for resource_id in order:
        record = store.get(resource_id)
        if record is None:
            nodes.append(PlanNode(resource_id, kind=None, dependencies=set()))
        else:
            nodes.append(PlanNode(resource_id, kind=record.kind, dependencies=set(record.dependencies)))
    return Plan(PlanOperation.DESTROY, nodes)


def preview_apply(
    graph: ResourceGraph,
    variables: Dict[str, Any],
    secrets: Dict[str, Any],
    store: StateStore,
) -> List[PlannedChange]:
    """
    Dry-run diff of an apply without touching the provider.
    
    Instances planned for create or replace are treated as unrealized, so
    anything reading their computed attributes shows as unknown.
    
    Returns:
        Changes in apply order, followed by orphan deletions
    """
    pending: Set[str] = set()
    resolver = AttributeResolver(graph, variables, secrets, store, unknown_ids=pending)
    changes = []
    
    for node_id in plan_apply_order(graph):
        instance = graph.get_instance(node_id)
        resolved = resolver.resolve(instance)
        action, changed = compute_change(instance, resolved, store.get(node_id))
        if action in (ChangeAction.CREATE, ChangeAction.REPLACE):
            pending.add(node_id)
        changes.append(PlannedChange(
            resource_id=node_id,
            kind=instance.kind,
            action=action,
            changed_attributes=changed,
            unknown_attributes=sorted(resolved.unknown),
        ))
    
    for node in build_orphan_plan(graph, store):
        if node.kind is not None:
            changes.append(PlannedChange(resource_id=node.resource_id, kind=node.kind, action=ChangeAction.DELETE))
    
    return changes


def preview_destroy(store: StateStore) -> List[PlannedChange]:
    """Dry-run of a destroy: every recorded resource in destroy order."""
    return [
        PlannedChange(resource_id=node.resource_id, kind=node.kind, action=ChangeAction.DELETE)
        for node in build_destroy_plan(store)
        if node.kind is not None
    ]


def plan_replacements(
    graph: ResourceGraph,
    variables: Dict[str, Any],
    secrets: Dict[str, Any],
    store: StateStore,
) -> List[str]:
    """
    Declared instances an apply will delete and recreate, in apply order.
    
    Replacing an instance makes every id-derived value it hands out unknown,
    so dependents with force-new references are included as well.
    """
    return [
        change.resource_id
        for change in preview_apply(graph, variables, secrets, store)
        if change.action == ChangeAction.REPLACE
    ]


def build_teardown_plan(graph: ResourceGraph, store: StateStore, replacing: Iterable[str]) -> Plan:
    """
    Destroy plan run before the apply walk: orphans plus instances being replaced.
    
    It is ordered and scheduled like a destroy, so an orphan or replaced
    dependent is always deleted before the resource it depends on.
    """
    declared = set(graph.graph.nodes)
    replacing = set(replacing)
    plan = _destroy_plan_for(
        [
            rid for rid in plan_destroy_order(store)
            if store.get(rid) is not None and (rid not in declared or rid in replacing)
        ],
        store,
    )
    if len(plan):
        logger.info(f"Planned teardown of {len(plan)} resources before apply")
    return plan
