"""Local deployment registry — the operator's ``local-config.yaml``.

The file maps deployment names to a namespace and the cluster references
the deployment spans, and cluster references to kube contexts::

    userEmailAddress: ops@example.com
    soloVersion: 0.35.0
    deployments:
      testnet:
        namespace: testnet
        clusters: [clusterA]
    clusterRefs:
      clusterA: kind-solo
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from soloconf.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class DeploymentEntry(BaseModel):
    """One deployment known to the local registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = Field(min_length=1)
    clusters: list[str] = Field(default_factory=list)


class LocalConfig(BaseModel):
    """Operator identity plus deployment and cluster-reference membership."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    user_email_address: str = Field(min_length=1, alias="userEmailAddress")
    solo_version: str = Field(default="0.0.0", alias="soloVersion")
    deployments: dict[str, DeploymentEntry] = Field(default_factory=dict)
    cluster_refs: dict[str, str] = Field(default_factory=dict, alias="clusterRefs")

    @classmethod
    def from_file(cls, path: Path) -> LocalConfig:
        """Load the registry from a YAML file.

        Raises
        ------
        ConfigurationError
            If the file is missing, is not valid YAML, or does not match the
            expected structure.
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigurationError(
                f"Local config not found at {path}", path=str(path)
            )
        try:
            raw: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Local config at {path} is not valid YAML", path=str(path)
            ) from exc
        try:
            local_config = cls.model_validate(raw)
        except PydanticValidationError as exc:
            raise ConfigurationError(
                f"Local config at {path} is malformed: {exc}", path=str(path)
            ) from exc
        logger.debug(
            "Loaded local config from %s (%d deployment(s)).",
            path, len(local_config.deployments),
        )
        return local_config

    # -- Lookup -------------------------------------------------------------

    def deployment(self, name: str) -> DeploymentEntry:
        """Return the deployment entry for *name* or raise ``ConfigurationError``."""
        entry = self.deployments.get(name)
        if entry is None:
            raise ConfigurationError(
                f"Selected deployment name is not set in local config - {name}",
                deployment=name,
            )
        return entry

    def context_for(self, cluster_ref: str) -> str | None:
        """Return the kube context mapped to *cluster_ref*, if any."""
        return self.cluster_refs.get(cluster_ref)

    def contexts_for_deployment(self, name: str) -> list[str]:
        """Return the kube contexts of every cluster the deployment spans.

        Raises ``ConfigurationError`` if the deployment or one of its cluster
        references is unknown.
        """
        entry = self.deployment(name)
        if not entry.clusters:
            raise ConfigurationError(
                f"Deployment {name} has no clusters in local config", deployment=name
            )
        contexts: list[str] = []
        for cluster_ref in entry.clusters:
            context = self.cluster_refs.get(cluster_ref)
            if not context:
                raise ConfigurationError(
                    f"Cluster-ref {cluster_ref} of deployment {name} has no context",
                    deployment=name,
                    cluster=cluster_ref,
                )
            contexts.append(context)
        return contexts
