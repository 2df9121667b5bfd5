"""Pydantic models for the result of an apply or destroy run."""

from typing import List, Optional
from pydantic import BaseModel, Field
from ..ingest.models import ResourceKind
from ..planner.models import ChangeAction, NodeState, PlanNode, PlanOperation
from ..state.models import utc_now

SUCCESS_STATES = {NodeState.DONE, NodeState.DESTROYED}


class NodeResult(BaseModel):
    """Terminal (or last reached) state of one plan node."""
    resource_id: str = Field(..., description="Instance address")
    kind: Optional[ResourceKind] = Field(default=None, description="Resource kind, if known")
    action: Optional[ChangeAction] = Field(default=None, description="Action decided for the node")
    state: NodeState = Field(..., description="Final node state")
    provider_id: Optional[str] = Field(default=None, description="Provider identifier after the run")
    attempts: int = Field(default=0, ge=0, description="Provider call attempts made")
    error: Optional[str] = Field(default=None, description="Failure or blocking reason")
    
    @classmethod
    def from_node(cls, node: PlanNode) -> "NodeResult":
        return cls(
            resource_id=node.resource_id,
            kind=node.kind,
            action=node.action,
            state=node.state,
            provider_id=node.provider_id,
            attempts=node.attempts,
            error=node.error,
        )


class RunReport(BaseModel):
    """Final report of an invocation."""
    operation: PlanOperation = Field(..., description="apply or destroy")
    results: List[NodeResult] = Field(default_factory=list, description="Per-node results in plan order")
    cancelled: bool = Field(default=False, description="Whether the run was interrupted")
    started_at: str = Field(default_factory=utc_now, description="Run start time")
    finished_at: Optional[str] = Field(default=None, description="Run end time")
    
    @property
    def failed(self) -> List[NodeResult]:
        return [result for result in self.results if result.state == NodeState.FAILED]
    
    @property
    def blocked(self) -> List[NodeResult]:
        return [result for result in self.results if result.state == NodeState.BLOCKED]
    
    @property
    def succeeded(self) -> bool:
        """True when every node reached Done or Destroyed and the run was not cancelled."""
        return not self.cancelled and all(result.state in SUCCESS_STATES for result in self.results)
    
    @property
    def exit_code(self) -> int:
        """0 for full success, 1 for partial failure."""
        return 0 if self.succeeded else 1
    
    def count(self, action: ChangeAction) -> int:
        """Number of nodes that completed the given action."""
        return sum(
            1 for result in self.results
            if result.action == action and result.state in SUCCESS_STATES
        )
