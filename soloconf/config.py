"""Runtime settings — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``SOLOCONF_*`` environment variables.

Examples
--------
Override via environment::

    export SOLOCONF_LOG_LEVEL=DEBUG
    export SOLOCONF_LOCAL_CONFIG_PATH=/home/me/.solo/local-config.yaml
    export SOLOCONF_STRICT_MODIFY=true
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SoloConfig(BaseSettings):
    """Settings shared by the manager, the validator and the CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SOLOCONF_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Local deployment registry
    local_config_path: Path = Path.home() / ".solo" / "local-config.yaml"

    # Remote config storage
    remote_configmap_name: str = "solo-remote-config"
    remote_config_data_key: str = "remote-config-data"
    remote_configmap_labels: dict[str, str] = Field(
        default_factory=lambda: {"solo.hedera.com/type": "remote-config"}
    )
    max_command_history: int = Field(default=50, ge=1)

    # Manager behaviour
    strict_modify: bool = False  # raise instead of no-op when modifying an unloaded config
    validator_max_workers: int = Field(default=8, ge=1)

    # kubectl adapter
    kubectl_binary: str = "kubectl"
    kubectl_timeout_seconds: int = Field(default=30, ge=1)

    # Default versions used to back-fill metadata when a flag is not passed
    solo_chart_version: str = "0.44.0"
    release_tag: str = "v0.58.3"
    mirror_node_version: str = "v0.122.0"
    hedera_explorer_version: str = "24.12.0"
    relay_release_tag: str = "v0.63.2"

    # DNS defaults for newly created clusters
    dns_base_domain: str = "cluster.local"
    dns_consensus_node_pattern: str = "network-{nodeAlias}-svc.{namespace}.svc"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level default: import as `from soloconf.config import config`
config = SoloConfig()
