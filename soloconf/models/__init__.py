"""soloconf data models — Pydantic v2, frozen (immutable)."""

from soloconf.models.cluster import Cluster, clusters_from_object, clusters_to_object
from soloconf.models.components import (
    COMPONENT_TYPE_MAP,
    BaseComponent,
    Component,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeState,
    EnvoyProxyComponent,
    HaProxyComponent,
    MirrorNodeComponent,
    MirrorNodeExplorerComponent,
    RelayComponent,
    make_component,
    node_id_from_alias,
)
from soloconf.models.invocation import CommandInvocation
from soloconf.models.local_config import DeploymentEntry, LocalConfig
from soloconf.models.metadata import DeploymentState, Migration, RemoteConfigMetadata
from soloconf.models.versioning import (
    LEGACY_SCHEMA_VERSION,
    REMOTE_CONFIG_SCHEMA_VERSION,
    is_semver,
    parse_semver,
)

__all__ = [
    # components
    "ComponentType",
    "ConsensusNodeState",
    "BaseComponent",
    "Component",
    "ConsensusNodeComponent",
    "HaProxyComponent",
    "EnvoyProxyComponent",
    "MirrorNodeComponent",
    "MirrorNodeExplorerComponent",
    "RelayComponent",
    "COMPONENT_TYPE_MAP",
    "make_component",
    "node_id_from_alias",
    # clusters
    "Cluster",
    "clusters_from_object",
    "clusters_to_object",
    # metadata
    "DeploymentState",
    "Migration",
    "RemoteConfigMetadata",
    # versioning
    "REMOTE_CONFIG_SCHEMA_VERSION",
    "LEGACY_SCHEMA_VERSION",
    "is_semver",
    "parse_semver",
    # local registry and invocation
    "DeploymentEntry",
    "LocalConfig",
    "CommandInvocation",
]
