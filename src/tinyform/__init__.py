"""tinyform - dependency-ordered provisioning for a fixed AWS web/database topology."""

from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field
from .config import EngineSettings, load_settings
from .executor.executor import Executor
from .executor.models import RunReport
from .graph.dependency_graph import ResourceGraph, build_graph
from .ingest.declaration_loader import load_declaration, load_secrets
from .ingest.models import Declaration
from .outputs.resolver import OutputValue, collect_outputs
from .planner.models import PlannedChange
from .planner.planner import preview_apply, preview_destroy
from .provider import Provider, load_provider
from .state.store import StateStore
from .utils.logging import setup_logging, get_logger

__version__ = "0.1.0"

__all__ = ["plan", "apply", "destroy", "outputs", "load_stack", "ApplyResult"]

setup_logging()
logger = get_logger("tinyform")


class ApplyResult(BaseModel):
    """Report of an apply plus the outputs it made available."""
    report: RunReport = Field(..., description="Per-node results")
    outputs: List[OutputValue] = Field(default_factory=list, description="Resolved outputs")
    output_errors: Dict[str, str] = Field(default_factory=dict, description="Unavailable outputs")


def load_stack(declaration_path: str, secrets_path: Optional[str] = None) -> Tuple[Declaration, Dict[str, Any], ResourceGraph]:
    """
    Load a declaration and its secrets and build the dependency graph.
    
    Raises:
        DeclarationError, CycleError, DanglingReferenceError
    """
    declaration = load_declaration(declaration_path)
    secrets = load_secrets(secrets_path)
    graph = build_graph(declaration, secrets)
    return declaration, secrets, graph


def plan(
    declaration_path: Optional[str],
    secrets_path: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
    destroy: bool = False,
) -> List[PlannedChange]:
    """Dry run: planned operations without any provider call."""
    settings = settings or load_settings()
    store = StateStore(settings.engine.state_path)
    if destroy:
        with store.locked():
            return preview_destroy(store)
    
    declaration, secrets, graph = load_stack(declaration_path, secrets_path)
    with store.locked():
        return preview_apply(graph, declaration.variables, secrets, store)


def apply(
    declaration_path: str,
    secrets_path: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
    provider: Optional[Provider] = None,
) -> ApplyResult:
    """
    Build, plan and execute creates/updates; then resolve outputs.
    
    Graph faults are raised before the state lock is taken and before any
    provider call.
    """
    settings = settings or load_settings()
    declaration, secrets, graph = load_stack(declaration_path, secrets_path)
    provider = provider or load_provider(settings)
    store = StateStore(settings.engine.state_path)
    
    with store.locked():
        logger.info(f"Applying {declaration_path} with parallelism {settings.engine.parallelism}")
        report = Executor(provider, store, settings).apply(graph, declaration.variables, secrets)
        values, errors = collect_outputs(declaration, graph, secrets, store)
    
    return ApplyResult(report=report, outputs=values, output_errors=errors)


def destroy(settings: Optional[EngineSettings] = None, provider: Optional[Provider] = None) -> RunReport:
    """Delete every recorded resource in reverse of the last apply order."""
    settings = settings or load_settings()
    provider = provider or load_provider(settings)
    store = StateStore(settings.engine.state_path)
    with store.locked():
        return Executor(provider, store, settings).destroy()


def outputs(
    declaration_path: str,
    secrets_path: Optional[str] = None,
    settings: Optional[EngineSettings] = None,
) -> Tuple[List[OutputValue], Dict[str, str]]:
    """Resolve declared outputs from the current state without locking it."""
    settings = settings or load_settings()
    declaration, secrets, graph = load_stack(declaration_path, secrets_path)
    store = StateStore(settings.engine.state_path)
    store.load()
    return collect_outputs(declaration, graph, secrets, store)
