"""Tests for desired-versus-recorded diffs."""

from tinyform.graph.models import ResourceInstance
from tinyform.graph.resolver import UNKNOWN, ResolvedAttributes
from tinyform.ingest.models import ResourceKind
from tinyform.planner.diff import compute_change, declaration_hash
from tinyform.planner.models import ChangeAction
from tinyform.state.models import StateRecord


def instance(kind=ResourceKind.INSTANCE):
    return ResourceInstance(id="web", name="web", kind=kind, position=0)


def applied(values, kind=ResourceKind.INSTANCE, sensitive=()):
    return StateRecord(
        resource_id="web",
        kind=kind,
        provider_id="i-1",
        attributes={k: ("(sensitive)" if k in sensitive else v) for k, v in values.items()},
        sensitive_attributes=list(sensitive),
        declaration_hash=declaration_hash(kind, values),
    )


class TestComputeChange:
    """Test compute_change."""
    
    def test_create_without_record(self):
        action, changed = compute_change(instance(), ResolvedAttributes(values={"ami": "a"}), None)
        assert action == ChangeAction.CREATE
        assert changed == ["ami"]
    
    def test_no_op_when_hash_matches(self):
        values = {"ami": "a", "tags": {"Name": "web"}}
        action, changed = compute_change(instance(), ResolvedAttributes(values=dict(values)), applied(values))
        assert action == ChangeAction.NO_OP
        assert changed == []
    
    def test_update_for_mutable_attribute(self):
        record = applied({"ami": "a", "instance_type": "t2.micro"})
        resolved = ResolvedAttributes(values={"ami": "a", "instance_type": "t3.small"})
        assert compute_change(instance(), resolved, record) == (ChangeAction.UPDATE, ["instance_type"])
    
    def test_replace_for_force_new_attribute(self):
        record = applied({"ami": "a", "instance_type": "t2.micro"})
        resolved = ResolvedAttributes(values={"ami": "b", "instance_type": "t2.micro"})
        assert compute_change(instance(), resolved, record) == (ChangeAction.REPLACE, ["ami"])
    
    def test_replace_when_kind_changes(self):
        record = applied({"ami": "a"}, kind=ResourceKind.ELASTIC_IP)
        action, _ = compute_change(instance(), ResolvedAttributes(values={"ami": "a"}), record)
        assert action == ChangeAction.REPLACE
    
    def test_removed_attribute_is_a_change(self):
        record = applied({"ami": "a", "monitoring": True})
        resolved = ResolvedAttributes(values={"ami": "a"})
        assert compute_change(instance(), resolved, record) == (ChangeAction.UPDATE, ["monitoring"])
    
    def test_unknown_force_new_attribute_replaces(self):
        record = applied({"subnet_id": "subnet-1"})
        resolved = ResolvedAttributes(values={"subnet_id": UNKNOWN}, unknown={"subnet_id"})
        assert compute_change(instance(), resolved, record) == (ChangeAction.REPLACE, ["subnet_id"])
    
    def test_changed_secret_is_an_update(self):
        """A rotated secret only shows through the hash; the masked snapshot is not compared."""
        kind = ResourceKind.DB_INSTANCE
        record = applied({"identifier": "db", "password": "old"}, kind=kind, sensitive=["password"])
        resolved = ResolvedAttributes(values={"identifier": "db", "password": "new"}, sensitive={"password"})
        
        action, changed = compute_change(instance(kind), resolved, record)
        assert action == ChangeAction.UPDATE
        assert changed == ["password"]
    
    def test_hash_ignores_key_order(self):
        assert declaration_hash(ResourceKind.VPC, {"a": 1, "b": 2}) == declaration_hash(ResourceKind.VPC, {"b": 2, "a": 1})
