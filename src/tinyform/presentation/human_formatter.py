"""Human-friendly output formatter - converts plans and run reports to readable text."""

import json
import os
from typing import Dict, List, Optional
from ..executor.models import RunReport
from ..outputs.resolver import OutputValue
from ..planner.models import ChangeAction, NodeState, PlannedChange
from ..utils.logging import MASK

ACTION_SYMBOLS = {
    ChangeAction.CREATE: "+",
    ChangeAction.UPDATE: "~",
    ChangeAction.REPLACE: "-/+",
    ChangeAction.DELETE: "-",
    ChangeAction.NO_OP: " ",
}

STATE_LABELS = {
    NodeState.DONE: ("✅", "[OK]"),
    NodeState.DESTROYED: ("✅", "[OK]"),
    NodeState.FAILED: ("❌", "[FAIL]"),
    NodeState.BLOCKED: ("⛔", "[BLOCKED]"),
    NodeState.PENDING: ("⏸", "[SKIPPED]"),
}


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("TINYFORM_ASCII", "").lower() in ("1", "true", "yes")


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def format_plan(changes: List[PlannedChange], operation: str = "apply") -> str:
    """
    Render a dry-run plan.
    
    Args:
        changes: Planned changes in execution order
        operation: "apply" or "destroy"
    """
    lines = _section(f"Plan: {operation}")
    if not changes:
        lines.append("No resources.")
        return "\n".join(lines)
    
    for change in changes:
        action = ChangeAction(change.action)
        symbol = ACTION_SYMBOLS[action]
        line = f"  {symbol:>3} {change.resource_id} ({change.kind})"
        if action != ChangeAction.NO_OP:
            line += f"  {action.value.lower().replace('_', '-')}"
        if action in (ChangeAction.UPDATE, ChangeAction.REPLACE) and change.changed_attributes:
            line += f"  [{', '.join(change.changed_attributes)}]"
        lines.append(line)
        for name in change.unknown_attributes:
            lines.append(f"        {name} = (known after apply)")
    
    counts = {action: 0 for action in ChangeAction}
    for change in changes:
        counts[ChangeAction(change.action)] += 1
    lines.append("")
    lines.append(
        f"Plan: {counts[ChangeAction.CREATE]} to create, "
        f"{counts[ChangeAction.UPDATE]} to update, "
        f"{counts[ChangeAction.REPLACE]} to replace, "
        f"{counts[ChangeAction.DELETE]} to delete, "
        f"{counts[ChangeAction.NO_OP]} unchanged."
    )
    return "\n".join(lines)


def format_report(report: RunReport, ascii_mode: Optional[bool] = None) -> str:
    """Render the final per-node report of an apply or destroy."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _section(f"{report.operation.value.capitalize()} report")
    
    for result in report.results:
        emoji, text = STATE_LABELS.get(result.state, ("", f"[{result.state.value}]"))
        label = text if ascii_mode else emoji
        action = result.action.value.lower().replace("_", "-") if result.action else "-"
        line = f"  {label} {result.resource_id}: {result.state.value.lower()} ({action})"
        if result.provider_id:
            line += f" [{result.provider_id}]"
        if result.attempts > 1:
            line += f" after {result.attempts} attempts"
        lines.append(line)
        if result.error:
            lines.append(f"      {result.error}")
    
    lines.append("")
    if report.succeeded:
        lines.append(f"{report.operation.value.capitalize()} complete.")
    else:
        summary = f"{len(report.failed)} failed, {len(report.blocked)} blocked"
        if report.cancelled:
            summary += ", run cancelled"
        lines.append(f"{report.operation.value.capitalize()} partially complete: {summary}.")
    return "\n".join(lines)


def format_outputs(values: List[OutputValue], errors: Dict[str, str]) -> str:
    """Render resolved outputs, masking sensitive ones."""
    lines = _section("Outputs")
    if not values and not errors:
        lines.append("No outputs.")
    for output in values:
        shown = MASK if output.sensitive else json.dumps(output.value, default=str)
        lines.append(f"  {output.name} = {shown}")
    for name, message in errors.items():
        lines.append(f"  {name} = (unavailable: {message})")
    return "\n".join(lines)


def outputs_as_dict(values: List[OutputValue]) -> Dict[str, object]:
    """Output values keyed by name with sensitive values masked."""
    return {output.name: (MASK if output.sensitive else output.value) for output in values}
