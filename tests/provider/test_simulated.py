"""Tests for the built-in simulated provider and provider selection."""

import pytest
from tinyform.config.settings import EngineSettings
from tinyform.ingest.models import ResourceKind
from tinyform.provider import SimulatedProvider, load_provider
from tinyform.utils.errors import ConfigError, ProviderFatalError


class TestSimulatedProvider:
    """Test SimulatedProvider class."""
    
    def test_ids_use_aws_prefixes(self):
        provider = SimulatedProvider()
        vpc_id, outputs = provider.create(ResourceKind.VPC, {"cidr_block": "10.0.0.0/16"})
        
        assert vpc_id.startswith("vpc-")
        assert outputs["arn"].endswith(vpc_id)
        assert vpc_id in provider.resources
    
    def test_named_resources_keep_their_name(self):
        provider = SimulatedProvider()
        db_id, outputs = provider.create(ResourceKind.DB_INSTANCE, {
            "identifier": "tutorial-database",
            "engine": "mysql",
            "instance_class": "db.t3.micro",
            "username": "admin",
            "password": "secret",
        })
        
        assert db_id == "tutorial-database"
        assert outputs["port"] == 3306
        assert outputs["endpoint"] == f"{outputs['address']}:3306"
    
    def test_elastic_ip_outputs(self):
        _, outputs = SimulatedProvider().create(ResourceKind.ELASTIC_IP, {"domain": "vpc"})
        assert outputs["public_dns"].startswith("ec2-" + outputs["public_ip"].replace(".", "-"))
    
    def test_missing_required_attribute(self):
        with pytest.raises(ProviderFatalError, match="cidr_block"):
            SimulatedProvider().create(ResourceKind.SUBNET, {"vpc_id": "vpc-1"})
    
    def test_duplicate_named_resource(self):
        provider = SimulatedProvider()
        attributes = {"key_name": "kp", "public_key": "ssh-ed25519 AAAA"}
        provider.create(ResourceKind.KEY_PAIR, attributes)
        with pytest.raises(ProviderFatalError, match="already exists"):
            provider.create(ResourceKind.KEY_PAIR, attributes)
    
    def test_delete_unknown_resource_succeeds(self):
        provider = SimulatedProvider()
        provider.delete(ResourceKind.VPC, "vpc-from-another-process")
        assert provider.resources == {}


class TestLoadProvider:
    """Test load_provider."""
    
    def test_builtin(self):
        settings = EngineSettings(provider={"region": "eu-west-1", "timeout_seconds": 5})
        provider = load_provider(settings)
        
        assert isinstance(provider, SimulatedProvider)
        assert provider.region == "eu-west-1"
        assert provider.timeout == 5
    
    def test_factory(self):
        settings = EngineSettings(provider={"factory": "tinyform.provider.simulated:SimulatedProvider"})
        assert isinstance(load_provider(settings), SimulatedProvider)
    
    def test_unknown_name(self):
        with pytest.raises(ConfigError, match="Unknown provider"):
            load_provider(EngineSettings(provider={"name": "gcp"}))
    
    def test_bad_factory(self):
        with pytest.raises(ConfigError):
            load_provider(EngineSettings(provider={"factory": "no_such_module:make"}))
        with pytest.raises(ConfigError, match="module:callable"):
            load_provider(EngineSettings(provider={"factory": "missing-colon"}))
