"""Plan nodes, their lifecycle, and planned changes."""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Set
from pydantic import BaseModel, Field
from ..graph.models import ResourceInstance
from ..ingest.models import ResourceKind
from ..utils.errors import InvalidTransitionError


class NodeState(str, Enum):
    """Lifecycle of a plan node within one run."""
    PENDING = "PENDING"
    READY = "READY"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    FAILED = "FAILED"
    BLOCKED = "BLOCKED"
    DESTROYED = "DESTROYED"


TERMINAL_STATES = {NodeState.DONE, NodeState.FAILED, NodeState.BLOCKED, NodeState.DESTROYED}

ALLOWED_TRANSITIONS: Dict[NodeState, Set[NodeState]] = {
    NodeState.PENDING: {NodeState.READY, NodeState.BLOCKED},
    NodeState.READY: {NodeState.IN_PROGRESS},
    NodeState.IN_PROGRESS: {NodeState.DONE, NodeState.FAILED, NodeState.DESTROYED},
    NodeState.DONE: set(),
    NodeState.FAILED: set(),
    NodeState.BLOCKED: set(),
    NodeState.DESTROYED: set(),
}


class ChangeAction(str, Enum):
    """What a node needs from the provider."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"
    DELETE = "DELETE"
    NO_OP = "NO_OP"


class PlanOperation(str, Enum):
    APPLY = "apply"
    DESTROY = "destroy"


class PlanNode:
    """A resource scheduled in a plan, with its run-local state."""
    
    def __init__(
        self,
        resource_id: str,
        kind: Optional[ResourceKind],
        dependencies: Set[str],
        instance: Optional[ResourceInstance] = None,
    ):
        self.resource_id = resource_id
        self.kind = kind
        self.dependencies = set(dependencies)
        self.instance = instance
        self.state = NodeState.PENDING
        self.action: Optional[ChangeAction] = None
        self.provider_id: Optional[str] = None
        self.error: Optional[str] = None
        self.attempts = 0
    
    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
    
    def transition(self, new_state: NodeState) -> None:
        """
        Move forward in the lifecycle.
        
        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"{self.resource_id}: cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state
    
    def __repr__(self) -> str:
        return f"PlanNode({self.resource_id}, {self.state.value})"


class Plan:
    """One topological ordering of plan nodes for an operation."""
    
    def __init__(self, operation: PlanOperation, nodes: List[PlanNode]):
        self.operation = operation
        self.nodes = list(nodes)
        self._by_id = {node.resource_id: node for node in self.nodes}
        self._prerequisites = self._compute_prerequisites()
    
    def _compute_prerequisites(self) -> Dict[str, Set[str]]:
        """Apply waits on dependencies; destroy waits on dependents."""
        ids = set(self._by_id)
        if self.operation == PlanOperation.APPLY:
            return {node.resource_id: node.dependencies & ids for node in self.nodes}
        
        waits: Dict[str, Set[str]] = {node.resource_id: set() for node in self.nodes}
        for node in self.nodes:
            for dependency in node.dependencies & ids:
                waits[dependency].add(node.resource_id)
        return waits
    
    @property
    def order(self) -> List[str]:
        return [node.resource_id for node in self.nodes]
    
    def get(self, resource_id: str) -> Optional[PlanNode]:
        return self._by_id.get(resource_id)
    
    def prerequisites(self, resource_id: str) -> Set[str]:
        """Nodes that must finish before this one may start."""
        return set(self._prerequisites.get(resource_id, set()))
    
    def waiting_on(self, resource_id: str) -> Set[str]:
        """Nodes that list this one as a prerequisite, transitively."""
        result: Set[str] = set()
        frontier = [resource_id]
        while frontier:
            current = frontier.pop()
            for node_id, prereqs in self._prerequisites.items():
                if current in prereqs and node_id not in result:
                    result.add(node_id)
                    frontier.append(node_id)
        return result
    
    def __iter__(self) -> Iterator[PlanNode]:
        return iter(self.nodes)
    
    def __len__(self) -> int:
        return len(self.nodes)


class PlannedChange(BaseModel):
    """One line of a dry-run plan."""
    resource_id: str = Field(..., description="Instance address")
    kind: ResourceKind = Field(..., description="Resource kind")
    action: ChangeAction = Field(..., description="Planned action")
    changed_attributes: List[str] = Field(default_factory=list, description="Attributes that differ from state")
    unknown_attributes: List[str] = Field(default_factory=list, description="Attributes known only after apply")
    
    class Config:
        """Pydantic config."""
        use_enum_values = True
