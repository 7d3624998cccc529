"""The remote config document — everything stored for one deployment.

A document aggregates the metadata, the cluster map, the component registry,
a bounded command history and the persisted common flags.  It is stored as
YAML under a single data key of the ``solo-remote-config`` ConfigMap.

The document itself is mutable (the manager edits a draft copy inside a
transaction); every mutator re-runs ``validate`` before returning.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml

from soloconf.core.common_flags import CommonFlags
from soloconf.core.component_registry import ComponentRegistry
from soloconf.core.errors import SchemaError
from soloconf.models.cluster import Cluster, clusters_from_object, clusters_to_object
from soloconf.models.metadata import RemoteConfigMetadata
from soloconf.models.versioning import REMOTE_CONFIG_SCHEMA_VERSION, is_semver

logger = logging.getLogger(__name__)

DEFAULT_MAX_COMMAND_HISTORY = 50
REMOTE_CONFIG_DATA_KEY = "remote-config-data"

_REQUIRED_KEYS = (
    "version",
    "metadata",
    "clusters",
    "components",
    "commandHistory",
    "lastExecutedCommand",
    "flags",
)


class RemoteConfigDocument:
    """Whole-document container with validation and (de)serialization.

    Parameters
    ----------
    metadata:
        Deployment identity and version fields.
    clusters:
        Cluster entries keyed by cluster reference.
    components:
        The component registry.
    command_history:
        Previously executed commands, oldest first.
    last_executed_command:
        The most recent history entry.
    flags:
        Persisted common CLI flag values.
    version:
        Document schema version.
    max_history:
        Cap on ``command_history``; oldest entries are evicted first.
    """

    def __init__(
        self,
        metadata: RemoteConfigMetadata,
        clusters: dict[str, Cluster],
        components: ComponentRegistry,
        command_history: list[str] | None = None,
        last_executed_command: str = "",
        flags: CommonFlags | None = None,
        version: str = REMOTE_CONFIG_SCHEMA_VERSION,
        max_history: int = DEFAULT_MAX_COMMAND_HISTORY,
    ) -> None:
        self.version = version
        self.metadata = metadata
        self.clusters = dict(clusters)
        self.components = components
        self.command_history = list(command_history or [])
        self.last_executed_command = last_executed_command
        self.flags = flags or CommonFlags()
        self.max_history = max_history
        self.validate()

    # -- Modifiers ----------------------------------------------------------

    def add_command_to_history(self, command: str) -> None:
        """Append *command*, evicting the oldest entries beyond the cap."""
        self.command_history.append(command)
        self.last_executed_command = command
        overflow = len(self.command_history) - self.max_history
        if overflow > 0:
            del self.command_history[:overflow]
            logger.debug("Evicted %d command history entr(y/ies).", overflow)
        self.validate()

    def add_cluster(self, cluster_ref: str, cluster: Cluster) -> None:
        self.clusters[cluster_ref] = cluster
        self.validate()

    # -- Validation ---------------------------------------------------------

    def validate(self) -> None:
        """Check the whole document, raising ``SchemaError`` on the first problem."""
        if not is_semver(self.version):
            raise SchemaError(f"Invalid remote config version: {self.version!r}")

        if not isinstance(self.metadata, RemoteConfigMetadata):
            raise SchemaError(
                f"Invalid remote config metadata: {type(self.metadata).__name__}"
            )
        self.metadata.validate()

        for cluster_ref, cluster in self.clusters.items():
            if not cluster_ref or not isinstance(cluster_ref, str):
                raise SchemaError(f"Invalid remote config cluster-ref: {cluster_ref!r}")
            if not isinstance(cluster, Cluster) or not cluster.name or not cluster.namespace:
                raise SchemaError(
                    f"Invalid remote config cluster entry for {cluster_ref}",
                    cluster=cluster_ref,
                )

        if not self.last_executed_command or not isinstance(self.last_executed_command, str):
            raise SchemaError(
                f"Invalid remote config last executed command: {self.last_executed_command!r}"
            )

        if not isinstance(self.command_history, list) or not all(
            isinstance(entry, str) for entry in self.command_history
        ):
            raise SchemaError("Invalid remote config command history")
        if len(self.command_history) > self.max_history:
            raise SchemaError(
                f"Command history holds {len(self.command_history)} entries, "
                f"cap is {self.max_history}"
            )

        if not isinstance(self.components, ComponentRegistry):
            raise SchemaError(
                f"Invalid remote config components: {type(self.components).__name__}"
            )
        self.components.validate()

        if not isinstance(self.flags, CommonFlags):
            raise SchemaError(f"Invalid remote config flags: {type(self.flags).__name__}")

    # -- Serialization ------------------------------------------------------

    def to_object(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "metadata": self.metadata.to_object(),
            "clusters": clusters_to_object(self.clusters),
            "components": self.components.to_object(),
            "commandHistory": list(self.command_history),
            "lastExecutedCommand": self.last_executed_command,
            "flags": self.flags.to_object(),
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_object(), sort_keys=False)

    def to_config_map_data(self) -> dict[str, str]:
        return {REMOTE_CONFIG_DATA_KEY: self.to_yaml()}

    @classmethod
    def from_object(
        cls, data: Any, *, max_history: int = DEFAULT_MAX_COMMAND_HISTORY
    ) -> RemoteConfigDocument:
        """Rebuild a document from its stored form.

        A stored history longer than *max_history* (written with a larger cap)
        is trimmed to its newest entries rather than rejected.
        """
        if not isinstance(data, dict):
            raise SchemaError(f"Remote config document must be a mapping, got {data!r}")
        missing = [key for key in _REQUIRED_KEYS if key not in data]
        if missing:
            raise SchemaError(f"Remote config document is missing {', '.join(missing)}")

        history = data["commandHistory"]
        if not isinstance(history, list):
            raise SchemaError("Invalid remote config command history")
        if not isinstance(data["flags"], dict):
            raise SchemaError(f"Invalid remote config flags: {data['flags']!r}")
        if len(history) > max_history:
            history = history[-max_history:]

        return cls(
            metadata=RemoteConfigMetadata.from_object(data["metadata"]),
            clusters=clusters_from_object(data["clusters"]),
            components=ComponentRegistry.from_object(data["components"]),
            command_history=history,
            last_executed_command=data["lastExecutedCommand"],
            flags=CommonFlags.from_object(data["flags"]),
            version=data["version"],
            max_history=max_history,
        )

    @classmethod
    def from_yaml(
        cls, text: str, *, max_history: int = DEFAULT_MAX_COMMAND_HISTORY
    ) -> RemoteConfigDocument:
        return cls.from_object(parse_yaml(text), max_history=max_history)

    @classmethod
    def from_config_map(
        cls,
        data: dict[str, str],
        *,
        data_key: str = REMOTE_CONFIG_DATA_KEY,
        max_history: int = DEFAULT_MAX_COMMAND_HISTORY,
    ) -> RemoteConfigDocument:
        """Rebuild a document from ConfigMap ``data``."""
        return cls.from_yaml(config_map_payload(data, data_key), max_history=max_history)

    def clone(self) -> RemoteConfigDocument:
        return RemoteConfigDocument.from_object(self.to_object(), max_history=self.max_history)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteConfigDocument):
            return NotImplemented
        return self.to_object() == other.to_object()

    def __repr__(self) -> str:
        return (
            f"RemoteConfigDocument(version={self.version!r}, "
            f"namespace={self.metadata.namespace!r}, clusters={sorted(self.clusters)}, "
            f"components={self.components!r}, history={len(self.command_history)})"
        )

    # -- Comparison ---------------------------------------------------------

    @staticmethod
    def compare_clusters(a: RemoteConfigDocument, b: RemoteConfigDocument) -> bool:
        """``True`` if both documents declare the same cluster references."""
        return set(a.clusters) == set(b.clusters)


def config_map_payload(data: dict[str, str] | None, data_key: str = REMOTE_CONFIG_DATA_KEY) -> str:
    """Return the YAML text stored under *data_key*, or raise ``SchemaError``."""
    text = (data or {}).get(data_key)
    if not text:
        raise SchemaError(f"Remote config ConfigMap has no {data_key!r} entry")
    return text


def parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Remote config data is not valid YAML: {exc}") from exc
