"""Shared fixtures: a recording fake provider and small declarations."""

import threading
from typing import Any, Dict, List, Optional, Set, Tuple
import pytest
from tinyform.config.settings import EngineSettings
from tinyform.ingest.declaration_loader import parse_declaration
from tinyform.ingest.models import ResourceKind
from tinyform.provider.base import Provider
from tinyform.state.store import StateStore
from tinyform.utils.errors import ProviderFatalError, ProviderTransientError


class FakeProvider(Provider):
    """
    Records every call. Resources are identified by their 'name' attribute,
    which tests set to the resource id.
    """
    
    def __init__(
        self,
        fatal: Optional[Set[str]] = None,
        transient: Optional[Dict[str, int]] = None,
        fail_delete: Optional[Set[str]] = None,
        timeouts: Optional[Set[str]] = None,
    ):
        super().__init__(timeout=5)
        self.fatal = set(fatal or ())
        self.transient = dict(transient or {})
        self.fail_delete = set(fail_delete or ())
        self.timeouts = set(timeouts or ())
        self.calls: List[Tuple[str, str]] = []
        self.live: Dict[str, Dict[str, Any]] = {}
        self._names: Dict[str, str] = {}
        self._counter = 0
        self._mutex = threading.Lock()
    
    def _maybe_fail(self, name: str) -> None:
        if name in self.timeouts:
            raise TimeoutError(f"{name}: timed out after {self.timeout}s")
        if name in self.fatal:
            raise ProviderFatalError(f"{name}: permission denied")
        if self.transient.get(name, 0) > 0:
            self.transient[name] -= 1
            raise ProviderTransientError(f"{name}: rate limited")
    
    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        name = attributes.get("name", kind.value)
        with self._mutex:
            self.calls.append(("create", name))
            self._maybe_fail(name)
            self._counter += 1
            provider_id = f"{kind.value.lower()}-{self._counter}"
            self.live[provider_id] = dict(attributes)
            self._names[provider_id] = name
        return provider_id, {"arn": f"arn:fake:{provider_id}", "public_ip": f"198.51.100.{self._counter}"}
    
    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        name = attributes.get("name", kind.value)
        with self._mutex:
            self.calls.append(("update", name))
            self._maybe_fail(name)
            self.live[provider_id] = dict(attributes)
        return {"arn": f"arn:fake:{provider_id}", "public_ip": "198.51.100.250"}
    
    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        with self._mutex:
            name = self._names.get(provider_id, provider_id)
            self.calls.append(("delete", name))
            if name in self.fail_delete:
                raise ProviderFatalError(f"{name}: dependency violation")
            self.live.pop(provider_id, None)
    
    def names(self, operation: str) -> List[str]:
        """Names passed to one operation, in call order."""
        return [name for op, name in self.calls if op == operation]


def resource(resource_id: str, kind: str, count=None, **attributes) -> Dict[str, Any]:
    """Declaration entry whose 'name' attribute is its id."""
    entry = {"id": resource_id, "kind": kind, "attributes": {"name": resource_id, **attributes}}
    if count is not None:
        entry["count"] = count
    return entry


@pytest.fixture
def settings(tmp_path):
    """Sequential, no-delay settings with state under tmp_path."""
    return EngineSettings(
        engine={"parallelism": 1, "state_path": str(tmp_path / "state.json")},
        retry={"attempts": 3, "base_delay_seconds": 0, "max_delay_seconds": 0},
    )


@pytest.fixture
def store(settings):
    state = StateStore(settings.engine.state_path)
    state.load()
    return state


@pytest.fixture
def vpc_subnet_instance():
    """V -> S1 -> I1 chain."""
    return parse_declaration({
        "resources": [
            resource("vpc", "Vpc", cidr_block="10.0.0.0/16"),
            resource("subnet", "Subnet", vpc_id="${vpc.id}", cidr_block="10.0.1.0/24"),
            resource("web", "Instance", ami="ami-1", instance_type="t2.micro", subnet_id="${subnet.id}"),
        ]
    })


@pytest.fixture
def two_branches():
    """VPC with a public branch and a private branch that share nothing else."""
    return parse_declaration({
        "resources": [
            resource("vpc", "Vpc", cidr_block="10.0.0.0/16"),
            resource("public_subnet", "Subnet", vpc_id="${vpc.id}", cidr_block="10.0.1.0/24"),
            resource("web", "Instance", ami="ami-1", instance_type="t2.micro", subnet_id="${public_subnet.id}"),
            resource("web_eip", "ElasticIp", instance="${web.id}"),
            resource("private_subnet", "Subnet", vpc_id="${vpc.id}", cidr_block="10.0.101.0/24"),
            resource("db_subnets", "DbSubnetGroup", subnet_ids=["${private_subnet.id}"]),
        ]
    })
