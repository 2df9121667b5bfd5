"""In-memory provider producing AWS-shaped identifiers and outputs."""

import hashlib
import threading
from typing import Any, Dict, List, Tuple
from .base import Provider
from ..ingest.models import ResourceKind
from ..utils.errors import ProviderFatalError
from ..utils.logging import get_logger

logger = get_logger("provider.simulated")

ID_PREFIXES: Dict[ResourceKind, str] = {
    ResourceKind.VPC: "vpc",
    ResourceKind.INTERNET_GATEWAY: "igw",
    ResourceKind.SUBNET: "subnet",
    ResourceKind.ROUTE_TABLE: "rtb",
    ResourceKind.ROUTE_TABLE_ASSOCIATION: "rtbassoc",
    ResourceKind.SECURITY_GROUP: "sg",
    ResourceKind.INSTANCE: "i",
    ResourceKind.ELASTIC_IP: "eipalloc",
}

REQUIRED_ATTRIBUTES: Dict[ResourceKind, List[str]] = {
    ResourceKind.VPC: ["cidr_block"],
    ResourceKind.INTERNET_GATEWAY: ["vpc_id"],
    ResourceKind.SUBNET: ["vpc_id", "cidr_block"],
    ResourceKind.ROUTE_TABLE: ["vpc_id"],
    ResourceKind.ROUTE_TABLE_ASSOCIATION: ["route_table_id", "subnet_id"],
    ResourceKind.SECURITY_GROUP: ["name", "vpc_id"],
    ResourceKind.DB_SUBNET_GROUP: ["name", "subnet_ids"],
    ResourceKind.DB_INSTANCE: ["identifier", "engine", "instance_class", "username", "password"],
    ResourceKind.KEY_PAIR: ["key_name", "public_key"],
    ResourceKind.INSTANCE: ["ami", "instance_type", "subnet_id"],
    ResourceKind.ELASTIC_IP: [],
}

MYSQL_PORT = 3306


class SimulatedProvider(Provider):
    """Realizes resources in memory; used for dry runs of the CLI and for demos."""
    
    def __init__(self, timeout: float = 60.0, region: str = "us-east-1"):
        super().__init__(timeout)
        self.region = region
        self.resources: Dict[str, Dict[str, Any]] = {}
        self._counter = 0
        self._mutex = threading.Lock()
    
    def _next_suffix(self) -> str:
        with self._mutex:
            self._counter += 1
            seed = f"{self.region}:{self._counter}"
        return hashlib.sha256(seed.encode()).hexdigest()[:17]
    
    def _validate(self, kind: ResourceKind, attributes: Dict[str, Any]) -> None:
        missing = [name for name in REQUIRED_ATTRIBUTES.get(kind, []) if attributes.get(name) in (None, "")]
        if missing:
            raise ProviderFatalError(f"{kind.value}: missing required attributes {missing}")
    
    def _provider_id(self, kind: ResourceKind, attributes: Dict[str, Any]) -> str:
        if kind == ResourceKind.DB_INSTANCE:
            return str(attributes["identifier"])
        if kind == ResourceKind.DB_SUBNET_GROUP:
            return str(attributes["name"])
        if kind == ResourceKind.KEY_PAIR:
            return str(attributes["key_name"])
        return f"{ID_PREFIXES[kind]}-{self._next_suffix()}"
    
    def _outputs(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        digest = hashlib.sha256(provider_id.encode()).digest()
        outputs: Dict[str, Any] = {"arn": f"arn:aws:{self.region}:{kind.value.lower()}/{provider_id}"}
        if kind == ResourceKind.INSTANCE:
            outputs["private_ip"] = f"10.0.{digest[0] % 4}.{digest[1] % 250 + 4}"
        elif kind == ResourceKind.ELASTIC_IP:
            public_ip = f"54.{digest[0]}.{digest[1]}.{digest[2] % 254 + 1}"
            outputs["public_ip"] = public_ip
            outputs["public_dns"] = f"ec2-{public_ip.replace('.', '-')}.compute-1.amazonaws.com"
        elif kind == ResourceKind.DB_INSTANCE:
            address = f"{provider_id}.c{digest.hex()[:12]}.{self.region}.rds.amazonaws.com"
            port = attributes.get("port", MYSQL_PORT)
            outputs.update({"address": address, "port": port, "endpoint": f"{address}:{port}"})
        return outputs
    
    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        self._validate(kind, attributes)
        provider_id = self._provider_id(kind, attributes)
        with self._mutex:
            if provider_id in self.resources:
                raise ProviderFatalError(f"{kind.value} '{provider_id}' already exists")
            self.resources[provider_id] = {"kind": kind, "attributes": dict(attributes)}
        logger.debug(f"Created {kind.value} {provider_id}")
        return provider_id, self._outputs(kind, provider_id, attributes)
    
    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._validate(kind, attributes)
        with self._mutex:
            if provider_id not in self.resources:
                self.resources[provider_id] = {"kind": kind, "attributes": {}}
            self.resources[provider_id]["attributes"] = dict(attributes)
        logger.debug(f"Updated {kind.value} {provider_id}")
        return self._outputs(kind, provider_id, attributes)
    
    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        # Resources realized by an earlier process are unknown here; deleting them succeeds.
        with self._mutex:
            self.resources.pop(provider_id, None)
        logger.debug(f"Deleted {kind.value} {provider_id}")
