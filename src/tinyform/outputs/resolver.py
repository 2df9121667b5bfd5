"""Named output values read off realized resources."""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from ..graph.dependency_graph import ResourceGraph
from ..graph.resolver import AttributeResolver
from ..ingest.expressions import find_resource_refs
from ..ingest.models import Declaration, OutputDecl
from ..state.store import StateStore
from ..utils.errors import GraphError, OutputUnavailableError
from ..utils.logging import get_logger

logger = get_logger("outputs.resolver")


class OutputValue(BaseModel):
    """A resolved output."""
    name: str = Field(..., description="Output name")
    value: Any = Field(default=None, description="Resolved value")
    sensitive: bool = Field(default=False, description="Mask in display")
    description: Optional[str] = Field(default=None, description="Human-readable description")


def resolve_output(output: OutputDecl, resolver: AttributeResolver) -> OutputValue:
    """
    Resolve one output against the state store.
    
    Raises:
        OutputUnavailableError: If a referenced resource has no state record
    """
    owner = f"output.{output.name}"
    for ref in find_resource_refs(output.value):
        for target in resolver.graph.resolve_ref_targets(ref, None, owner):
            if resolver.store.get(target) is None:
                raise OutputUnavailableError(output.name, target)
    
    value, sensitive, unknown = resolver.evaluate(output.value, None, owner)
    if unknown:
        raise OutputUnavailableError(output.name, owner)
    return OutputValue(
        name=output.name,
        value=value,
        sensitive=output.sensitive or sensitive,
        description=output.description,
    )


def collect_outputs(
    declaration: Declaration,
    graph: ResourceGraph,
    secrets: Dict[str, Any],
    store: StateStore,
) -> Tuple[List[OutputValue], Dict[str, str]]:
    """
    Resolve every declared output.
    
    Unavailable outputs are reported separately and never abort the others.
    
    Returns:
        (resolved outputs in declaration order, {output name: error message})
    """
    resolver = AttributeResolver(graph, declaration.variables, secrets, store)
    values: List[OutputValue] = []
    errors: Dict[str, str] = {}
    for output in declaration.outputs:
        try:
            values.append(resolve_output(output, resolver))
        except (OutputUnavailableError, GraphError) as e:
            logger.warning(str(e))
            errors[output.name] = str(e)
    return values, errors
