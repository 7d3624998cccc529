"""Tests for runtime settings — env-driven via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from soloconf.config import SoloConfig


class TestSoloConfig:
    def test_defaults(self):
        config = SoloConfig(_env_file=None)
        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.remote_configmap_name == "solo-remote-config"
        assert config.remote_config_data_key == "remote-config-data"
        assert config.max_command_history == 50
        assert config.strict_modify is False

    def test_is_production(self):
        assert SoloConfig(_env_file=None).is_production is False
        assert SoloConfig(_env_file=None, environment="production").is_production is True

    def test_default_local_config_path(self):
        config = SoloConfig(_env_file=None)
        assert config.local_config_path == Path.home() / ".solo" / "local-config.yaml"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SOLOCONF_STRICT_MODIFY", "true")
        monkeypatch.setenv("SOLOCONF_MAX_COMMAND_HISTORY", "10")
        monkeypatch.setenv("SOLOCONF_RELEASE_TAG", "v0.60.0")
        config = SoloConfig(_env_file=None)
        assert config.strict_modify is True
        assert config.max_command_history == 10
        assert config.release_tag == "v0.60.0"

    def test_history_cap_must_be_positive(self):
        with pytest.raises(ValidationError):
            SoloConfig(_env_file=None, max_command_history=0)
