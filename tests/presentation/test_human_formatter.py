"""Tests for human-readable rendering."""

from tinyform.executor.models import NodeResult, RunReport
from tinyform.ingest.models import ResourceKind
from tinyform.outputs.resolver import OutputValue
from tinyform.planner.models import ChangeAction, NodeState, PlanOperation, PlannedChange
from tinyform.presentation import format_outputs, format_plan, format_report, outputs_as_dict


class TestFormatPlan:
    """Test format_plan."""
    
    def test_summary_and_unknowns(self):
        changes = [
            PlannedChange(resource_id="vpc", kind=ResourceKind.VPC, action=ChangeAction.NO_OP),
            PlannedChange(
                resource_id="subnet", kind=ResourceKind.SUBNET, action=ChangeAction.REPLACE,
                changed_attributes=["vpc_id"], unknown_attributes=["vpc_id"],
            ),
            PlannedChange(resource_id="old", kind=ResourceKind.ELASTIC_IP, action=ChangeAction.DELETE),
        ]
        output = format_plan(changes)
        
        assert "-/+ subnet (Subnet)  replace  [vpc_id]" in output
        assert "vpc_id = (known after apply)" in output
        assert "Plan: 0 to create, 0 to update, 1 to replace, 1 to delete, 1 unchanged." in output
    
    def test_empty(self):
        assert "No resources." in format_plan([], "destroy")


class TestFormatReport:
    """Test format_report."""
    
    def test_partial_report_ascii(self):
        report = RunReport(operation=PlanOperation.APPLY, results=[
            NodeResult(resource_id="vpc", state=NodeState.DONE, action=ChangeAction.CREATE, provider_id="vpc-1"),
            NodeResult(resource_id="web", state=NodeState.FAILED, action=ChangeAction.CREATE, attempts=3, error="throttled"),
            NodeResult(resource_id="eip", state=NodeState.BLOCKED, error="Blocked by failed resource 'web'"),
        ])
        output = format_report(report, ascii_mode=True)
        
        assert "[OK] vpc: done (create) [vpc-1]" in output
        assert "[FAIL] web: failed (create) after 3 attempts" in output
        assert "[BLOCKED] eip: blocked (-)" in output
        assert "Apply partially complete: 1 failed, 1 blocked." in output


class TestFormatOutputs:
    """Test output rendering."""
    
    def test_sensitive_values_masked(self):
        values = [
            OutputValue(name="db_port", value=3306),
            OutputValue(name="db_password", value="hunter2", sensitive=True),
        ]
        output = format_outputs(values, {"webserver_ips": "not applied"})
        
        assert "db_port = 3306" in output
        assert "hunter2" not in output
        assert "webserver_ips = (unavailable: not applied)" in output
        assert outputs_as_dict(values) == {"db_port": 3306, "db_password": "(sensitive)"}
