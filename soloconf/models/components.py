"""Deployment component models — a closed set of six frozen variants.

Each variant is a frozen Pydantic model.  ``COMPONENT_TYPE_MAP`` ties every
``ComponentType`` to exactly one model class; adding a variant means adding an
enum member *and* a map entry, and ``make_component`` is the only factory
that turns raw fields into a component.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from soloconf.core.errors import SchemaError


class ComponentType(str, Enum):
    """Component groups.  Values are the group keys of the stored document."""

    CONSENSUS_NODE = "consensusNodes"
    HA_PROXY = "haProxies"
    ENVOY_PROXY = "envoyProxies"
    MIRROR_NODE = "mirrorNodes"
    MIRROR_NODE_EXPLORER = "mirrorNodeExplorers"
    RELAY = "relays"


class ConsensusNodeState(str, Enum):
    """Lifecycle of a consensus node, in deployment order."""

    NON_DEPLOYED = "non-deployed"
    INITIALIZED = "initialized"
    SETUP = "setup"
    STARTED = "started"
    FROZEN = "frozen"


class BaseComponent(BaseModel):
    """Fields shared by every component variant.

    ``cluster`` is a cluster *reference* (a key of the document's cluster
    map), never a raw kube context.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    component_type: ClassVar[ComponentType]
    display_name: ClassVar[str]

    name: str = Field(min_length=1)
    cluster: str = Field(min_length=1)
    namespace: str = Field(min_length=1)

    def to_object(self) -> dict[str, Any]:
        """Plain-dict form used inside the stored document."""
        return self.model_dump(mode="json", by_alias=True)


class ConsensusNodeComponent(BaseComponent):
    component_type: ClassVar[ComponentType] = ComponentType.CONSENSUS_NODE
    display_name: ClassVar[str] = "Consensus node"

    node_id: int = Field(alias="nodeId", ge=0)
    state: ConsensusNodeState = ConsensusNodeState.NON_DEPLOYED


class HaProxyComponent(BaseComponent):
    component_type: ClassVar[ComponentType] = ComponentType.HA_PROXY
    display_name: ClassVar[str] = "HaProxy"


class EnvoyProxyComponent(BaseComponent):
    component_type: ClassVar[ComponentType] = ComponentType.ENVOY_PROXY
    display_name: ClassVar[str] = "Envoy proxy"


class MirrorNodeComponent(BaseComponent):
    component_type: ClassVar[ComponentType] = ComponentType.MIRROR_NODE
    display_name: ClassVar[str] = "Mirror node"


class MirrorNodeExplorerComponent(BaseComponent):
    component_type: ClassVar[ComponentType] = ComponentType.MIRROR_NODE_EXPLORER
    display_name: ClassVar[str] = "Mirror node explorer"


class RelayComponent(BaseComponent):
    """JSON-RPC relay serving one or more consensus nodes."""

    component_type: ClassVar[ComponentType] = ComponentType.RELAY
    display_name: ClassVar[str] = "Relay"

    consensus_node_aliases: tuple[str, ...] = Field(
        default=(), alias="consensusNodeAliases"
    )


Component = Union[
    ConsensusNodeComponent,
    HaProxyComponent,
    EnvoyProxyComponent,
    MirrorNodeComponent,
    MirrorNodeExplorerComponent,
    RelayComponent,
]


COMPONENT_TYPE_MAP: dict[ComponentType, type[BaseComponent]] = {
    ComponentType.CONSENSUS_NODE: ConsensusNodeComponent,
    ComponentType.HA_PROXY: HaProxyComponent,
    ComponentType.ENVOY_PROXY: EnvoyProxyComponent,
    ComponentType.MIRROR_NODE: MirrorNodeComponent,
    ComponentType.MIRROR_NODE_EXPLORER: MirrorNodeExplorerComponent,
    ComponentType.RELAY: RelayComponent,
}

_unmapped = set(ComponentType) - set(COMPONENT_TYPE_MAP)
if _unmapped:
    raise RuntimeError(f"Component types without a model: {sorted(t.value for t in _unmapped)}")


def make_component(component_type: ComponentType | str, **fields: Any) -> Component:
    """Build a component of *component_type* from raw fields.

    Accepts both the Python field names (``node_id``) and the stored aliases
    (``nodeId``).

    Raises
    ------
    SchemaError
        If the type is unknown or the fields do not validate.

    Examples
    --------
    >>> node = make_component("consensusNodes", name="node1", cluster="c1",
    ...                       namespace="ns", nodeId=0)
    >>> node.state.value
    'non-deployed'
    """
    try:
        ctype = ComponentType(component_type)
    except ValueError as exc:
        raise SchemaError(
            f"Unknown component type: {component_type!r}",
            component_type=str(component_type),
        ) from exc

    model_cls = COMPONENT_TYPE_MAP[ctype]
    try:
        return model_cls.model_validate(fields)  # type: ignore[return-value]
    except PydanticValidationError as exc:
        raise SchemaError(
            f"Invalid {model_cls.display_name.lower()} {fields.get('name')!r}: {exc}",
            component_type=ctype.value,
            name=fields.get("name"),
        ) from exc


_ALIAS_INDEX = re.compile(r"(\d+)$")


def node_id_from_alias(node_alias: str) -> int:
    """Derive the zero-based node id from a node alias (``node3`` -> ``2``)."""
    match = _ALIAS_INDEX.search(node_alias)
    if match is None or match.start() == 0:
        raise ValueError(f"Can't get node id from node alias {node_alias!r}")
    return int(match.group(1)) - 1
