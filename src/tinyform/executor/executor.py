"""Walk a plan, driving the provider and recording every transition in the state store."""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Set
from .models import SUCCESS_STATES, NodeResult, RunReport
from .retry import call_with_retry
from ..config.settings import EngineSettings
from ..graph.dependency_graph import ResourceGraph
from ..graph.resolver import AttributeResolver
from ..planner.diff import canonical_json, compute_change, declaration_hash
from ..planner.models import ChangeAction, NodeState, Plan, PlanNode, PlanOperation
from ..planner.planner import build_apply_plan, build_destroy_plan, build_teardown_plan, plan_replacements
from ..provider.base import Provider
from ..state.models import StateRecord, utc_now
from ..state.store import StateStore
from ..utils.errors import ResourceNotFoundError, TinyformError, UnreachableNodeError
from ..utils.logging import get_logger, mask_sensitive

logger = get_logger("executor.executor")


class Executor:
    """
    Realizes plans against an injected provider.

    Independent branches run concurrently up to the configured parallelism.
    A node starts only when every prerequisite finished successfully; when a
    node fails, everything waiting on it is Blocked and never attempted
    while the rest of the graph keeps converging. Each node persists its
    outcome through the state store before it is reported finished.
    """

    def __init__(
        self,
        provider: Provider,
        store: StateStore,
        settings: Optional[EngineSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.store = store
        self.settings = settings or EngineSettings()
        self.sleep = sleep
        self._cancel = threading.Event()
        self._replacing: Set[str] = set()

    @property
    def parallelism(self) -> int:
        return self.settings.engine.parallelism

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop scheduling new nodes; in-flight provider calls finish on their own."""
        if not self._cancel.is_set():
            logger.warning("Cancellation requested: waiting for in-flight operations to finish")
        self._cancel.set()

    def apply(
        self,
        graph: ResourceGraph,
        variables: Dict[str, Any],
        secrets: Dict[str, Any],
    ) -> RunReport:
        """
        Converge realized state to the declared graph.

        Runs in two phases. First a teardown, scheduled like a destroy,
        deletes records no longer declared and instances that must be
        replaced, dependents before their dependencies. Then declared
        instances are created or updated in plan order. A teardown failure
        fails (or blocks) the matching declared node and everything
        waiting on it.

        The plan order is recorded as the apply order only when the whole
        run succeeds.

        Returns:
            RunReport covering declared nodes followed by orphan deletions
        """
        report = RunReport(operation=PlanOperation.APPLY)
        plan = build_apply_plan(graph)
        self._replacing = set(plan_replacements(graph, variables, secrets, self.store))
        teardown = build_teardown_plan(graph, self.store, self._replacing)

        if len(teardown):
            logger.info(f"Deleting {len(teardown)} resources that are replaced or no longer declared")
            self._run(teardown, self._destroy_node)
            self._carry_teardown_failures(plan, teardown)

        if not self.cancelled:
            resolver = AttributeResolver(graph, variables, secrets, self.store)
            self._run(plan, lambda node: self._apply_node(node, resolver))

        orphans = [node for node in teardown if node.resource_id not in graph]
        report.results = [NodeResult.from_node(node) for node in list(plan) + orphans]
        report = self._finish(report)
        if report.succeeded:
            self.store.set_apply_order(plan.order)
        return report

    def _carry_teardown_failures(self, plan: Plan, teardown: Plan) -> None:
        """A replaced instance whose old copy could not be deleted is not recreated."""
        for torn in teardown:
            node = plan.get(torn.resource_id)
            if node is None or node.state != NodeState.PENDING:
                continue
            if torn.state == NodeState.FAILED:
                node.transition(NodeState.READY)
                node.transition(NodeState.IN_PROGRESS)
                node.transition(NodeState.FAILED)
            elif torn.state == NodeState.BLOCKED:
                node.transition(NodeState.BLOCKED)
            else:
                continue
            node.action = ChangeAction.REPLACE
            node.attempts = torn.attempts
            node.error = torn.error
            logger.error(f"{node.resource_id} not replaced: {node.error}")
            self._block_waiting(plan, node)

    def destroy(self) -> RunReport:
        """
        Delete every recorded resource in reverse of the last apply order.

        Ids without a record are treated as already destroyed, so destroy
        can be re-run safely after a partial failure.
        """
        report = RunReport(operation=PlanOperation.DESTROY)
        plan = build_destroy_plan(self.store)
        self._run(plan, self._destroy_node)

        remaining = [rid for rid in self.store.get_apply_order() if self.store.get(rid) is not None]
        self.store.set_apply_order(remaining)

        report.results = [NodeResult.from_node(node) for node in plan]
        return self._finish(report)

    def _finish(self, report: RunReport) -> RunReport:
        report.cancelled = self.cancelled
        report.finished_at = utc_now()
        if report.succeeded:
            logger.info(f"{report.operation.value} complete: {len(report.results)} resources")
        else:
            logger.warning(
                f"{report.operation.value} finished with {len(report.failed)} failed, "
                f"{len(report.blocked)} blocked resources"
                + (" (cancelled)" if report.cancelled else "")
            )
        return report

    def _run(self, plan: Plan, work: Callable[[PlanNode], NodeState]) -> None:
        """Schedule plan nodes onto a bounded worker pool."""
        pending: List[str] = list(plan.order)
        in_flight: Dict[Future, PlanNode] = {}

        with ThreadPoolExecutor(max_workers=self.parallelism, thread_name_prefix="tinyform") as pool:
            while True:
                try:
                    if not self.cancelled:
                        self._submit_ready(plan, pending, in_flight, pool, work)

                    if not in_flight:
                        break

                    done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                    for future in done:
                        # Dropped only once recorded, so an interrupted completion is retried.
                        self._complete(plan, in_flight[future], future)
                        del in_flight[future]
                except KeyboardInterrupt:
                    self.cancel()

        if pending and not self.cancelled:
            raise UnreachableNodeError(pending)

    def _submit_ready(
        self,
        plan: Plan,
        pending: List[str],
        in_flight: Dict[Future, PlanNode],
        pool: ThreadPoolExecutor,
        work: Callable[[PlanNode], NodeState],
    ) -> None:
        """Submit, in plan order, every pending node whose prerequisites succeeded."""
        for node_id in list(pending):
            if len(in_flight) >= self.parallelism:
                return
            node = plan.get(node_id)
            if node.state != NodeState.PENDING:
                pending.remove(node_id)
                continue
            if all(plan.get(p).state in SUCCESS_STATES for p in plan.prerequisites(node_id)):
                pending.remove(node_id)
                node.transition(NodeState.READY)
                node.transition(NodeState.IN_PROGRESS)
                in_flight[pool.submit(work, node)] = node

    def _complete(self, plan: Plan, node: PlanNode, future: Future) -> None:
        """Record the outcome of a finished worker."""
        if node.is_terminal:
            return
        try:
            final_state = future.result()
        except TinyformError as e:
            node.error = str(e)
            final_state = NodeState.FAILED
        except Exception as e:
            logger.error(f"Unexpected error processing {node.resource_id}: {e}", exc_info=True)
            node.error = f"Unexpected error: {e}"
            final_state = NodeState.FAILED

        node.transition(final_state)
        if final_state == NodeState.FAILED:
            self.store.flush()
            logger.error(f"{node.resource_id} failed: {node.error}")
            self._block_waiting(plan, node)
        else:
            logger.info(f"{node.resource_id}: {final_state.value} ({node.action.value if node.action else 'n/a'})")

    def _block_waiting(self, plan: Plan, failed: PlanNode) -> None:
        for node_id in sorted(plan.waiting_on(failed.resource_id)):
            node = plan.get(node_id)
            if node.state == NodeState.PENDING:
                node.transition(NodeState.BLOCKED)
                node.error = f"Blocked by failed resource '{failed.resource_id}'"
                logger.warning(f"{node_id} blocked by {failed.resource_id}")

    def _call(self, node: PlanNode, description: str, operation: Callable[[], Any]) -> Any:
        def count_attempt(attempt: int) -> None:
            node.attempts += 1

        return call_with_retry(
            operation,
            self.settings.retry,
            f"{description} {node.resource_id}",
            on_attempt=count_attempt,
            sleep=self.sleep,
        )

    def _apply_node(self, node: PlanNode, resolver: AttributeResolver) -> NodeState:
        """Create, update, replace or skip one declared instance."""
        instance = node.instance
        resolved = resolver.resolve(instance)
        if not resolved.is_known:
            raise UnreachableNodeError([node.resource_id] + sorted(resolved.unknown))

        record = self.store.get(node.resource_id)
        action, changed = compute_change(instance, resolved, record)
        if action == ChangeAction.CREATE and node.resource_id in self._replacing:
            node.action = ChangeAction.REPLACE
        else:
            node.action = action
        values = resolved.values
        dependencies = sorted(node.dependencies)

        logger.debug(
            f"{node.resource_id}: {action.value} "
            f"{mask_sensitive(values, resolved.sensitive)}"
        )

        if action == ChangeAction.NO_OP:
            node.provider_id = record.provider_id
            if record.dependencies != dependencies:
                record.dependencies = dependencies
                self.store.put(node.resource_id, record)
            return NodeState.DONE

        if action == ChangeAction.UPDATE:
            outputs = self._call(
                node, "update",
                lambda: self.provider.update(instance.kind, record.provider_id, values),
            )
            provider_id = record.provider_id
            created_at = record.created_at
        else:
            if action == ChangeAction.REPLACE:
                logger.info(f"{node.resource_id}: replacing because of {changed}")
                self._delete(node, record)
                self.store.remove(node.resource_id)
            provider_id, outputs = self._call(
                node, "create",
                lambda: self.provider.create(instance.kind, values),
            )
            created_at = utc_now()

        node.provider_id = provider_id
        self.store.put(node.resource_id, StateRecord(
            resource_id=node.resource_id,
            kind=instance.kind,
            provider_id=provider_id,
            attributes=canonical_json(values),
            sensitive_attributes=sorted(resolved.sensitive),
            outputs=canonical_json(mask_sensitive(outputs or {}, resolved.sensitive)),
            declaration_hash=declaration_hash(instance.kind, values),
            dependencies=dependencies,
            created_at=created_at,
        ))
        return NodeState.DONE

    def _delete(self, node: PlanNode, record: StateRecord) -> None:
        try:
            self._call(node, "delete", lambda: self.provider.delete(record.kind, record.provider_id))
        except ResourceNotFoundError:
            logger.info(f"{node.resource_id}: {record.provider_id} already gone")

    def _destroy_node(self, node: PlanNode) -> NodeState:
        """Delete one recorded resource; absent records are already destroyed."""
        record = self.store.get(node.resource_id)
        if record is None:
            node.action = ChangeAction.NO_OP
            return NodeState.DESTROYED

        node.action = ChangeAction.DELETE
        node.provider_id = record.provider_id
        self._delete(node, record)
        self.store.remove(node.resource_id)
        return NodeState.DESTROYED
