"""Tests for layered configuration."""

import pytest
import yaml
from tinyform.config import load_config, load_settings
from tinyform.utils.errors import ConfigError


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the real user and project config out of these tests."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return home


class TestLoadSettings:
    """Test load_settings and its layers."""
    
    def test_defaults(self):
        settings = load_settings()
        
        assert settings.engine.parallelism == 4
        assert settings.engine.state_path == "tinyform.state.json"
        assert settings.retry.attempts == 3
        assert settings.provider.name == "simulated"
        assert settings.logging.level == "WARNING"
    
    def test_layers_override_in_order(self, isolated_home, tmp_path):
        """User config, then project config, then explicit file, then overrides."""
        user = isolated_home / ".tinyform"
        user.mkdir()
        (user / "config.yaml").write_text(yaml.safe_dump({"engine": {"parallelism": 2}, "retry": {"attempts": 5}}))
        project = tmp_path / "work" / ".tinyform"
        project.mkdir()
        (project / "config.yaml").write_text(yaml.safe_dump({"engine": {"parallelism": 3}}))
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text(yaml.safe_dump({"provider": {"region": "eu-west-1"}}))
        
        settings = load_settings(str(explicit), {"engine": {"state_path": "other.json"}})
        
        assert settings.engine.parallelism == 3
        assert settings.retry.attempts == 5
        assert settings.retry.base_delay_seconds == 1.0
        assert settings.provider.region == "eu-west-1"
        assert settings.engine.state_path == "other.json"
    
    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))
    
    def test_invalid_value(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(overrides={"engine": {"parallelism": 0}})
    
    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="dictionary"):
            load_config(str(path))
