"""Component registry — typed, grouped storage of deployment components.

One group per ``ComponentType``, each keyed by component name.  Components
are frozen models, so values handed out by ``get``/``list`` are already
immutable snapshots; ``clone`` produces an independent registry for draft
edits inside a manager transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from soloconf.core.errors import (
    ComponentNotFoundError,
    DuplicateComponentError,
    SchemaError,
)
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

logger = logging.getLogger(__name__)


class ComponentRegistry:
    """Grouped component storage with CRUD, validation and (de)serialization.

    Examples
    --------
    >>> registry = ComponentRegistry.initialize_with_nodes(["node1"], "c1", "ns")
    >>> registry.get(ComponentType.CONSENSUS_NODE, "node1").node_id
    0
    """

    def __init__(
        self, groups: Mapping[ComponentType, Mapping[str, BaseComponent]] | None = None
    ) -> None:
        self._groups: dict[ComponentType, dict[str, BaseComponent]] = {
            ctype: {} for ctype in ComponentType
        }
        for ctype, group in (groups or {}).items():
            self._groups[ComponentType(ctype)] = dict(group)
        self.validate()

    # -- Factories ----------------------------------------------------------

    @classmethod
    def initialize_empty(cls) -> ComponentRegistry:
        return cls()

    @classmethod
    def initialize_with_nodes(
        cls,
        node_aliases: Iterable[str],
        cluster_ref: str,
        namespace: str,
    ) -> ComponentRegistry:
        """Seed a registry with NON_DEPLOYED consensus nodes, one per alias."""
        nodes: dict[str, BaseComponent] = {}
        for alias in node_aliases:
            try:
                node_id = node_id_from_alias(alias)
            except ValueError as exc:
                raise SchemaError(str(exc), name=alias) from exc
            nodes[alias] = make_component(
                ComponentType.CONSENSUS_NODE,
                name=alias,
                cluster=cluster_ref,
                namespace=namespace,
                node_id=node_id,
                state=ConsensusNodeState.NON_DEPLOYED,
            )
        return cls({ComponentType.CONSENSUS_NODE: nodes})

    # -- Modifiers ----------------------------------------------------------

    def add(self, component: BaseComponent) -> None:
        """Add *component* to its group.

        Raises ``DuplicateComponentError`` if the name is already taken in
        that group.
        """
        group = self._group_for(component)
        if component.name in group:
            raise DuplicateComponentError(
                f"Component exists: {component.component_type.value}/{component.name}",
                component_type=component.component_type.value,
                name=component.name,
                cluster=component.cluster,
                namespace=component.namespace,
            )
        group[component.name] = component
        self.validate()
        logger.debug("Added %s %s.", component.component_type.value, component.name)

    def edit(self, component: BaseComponent) -> None:
        """Replace the stored component with the same name and type."""
        group = self._group_for(component)
        if component.name not in group:
            raise ComponentNotFoundError(
                f"Component doesn't exist, name: {component.name}",
                component_type=component.component_type.value,
                name=component.name,
            )
        group[component.name] = component
        self.validate()

    def remove(self, name: str, component_type: ComponentType) -> None:
        group = self._group(component_type)
        if name not in group:
            raise ComponentNotFoundError(
                f"Component {name} of type {ComponentType(component_type).value} "
                "not found while attempting to remove",
                component_type=ComponentType(component_type).value,
                name=name,
            )
        del group[name]
        self.validate()
        logger.debug("Removed %s %s.", ComponentType(component_type).value, name)

    # -- Lookup -------------------------------------------------------------

    def get(self, component_type: ComponentType, name: str) -> Component:
        group = self._group(component_type)
        if name not in group:
            raise ComponentNotFoundError(
                f"Component {name} of type {ComponentType(component_type).value} "
                "not found while attempting to read",
                component_type=ComponentType(component_type).value,
                name=name,
            )
        return group[name]  # type: ignore[return-value]

    def list(self, component_type: ComponentType) -> Mapping[str, Component]:
        """Read-only view of one group, keyed by name."""
        return MappingProxyType(dict(self._group(component_type)))  # type: ignore[arg-type]

    def all_components(self) -> list[BaseComponent]:
        """Every component, in group order then insertion order."""
        return [c for ctype in ComponentType for c in self._groups[ctype].values()]

    def __len__(self) -> int:
        return sum(len(group) for group in self._groups.values())

    @property
    def consensus_nodes(self) -> Mapping[str, ConsensusNodeComponent]:
        return self.list(ComponentType.CONSENSUS_NODE)  # type: ignore[return-value]

    @property
    def ha_proxies(self) -> Mapping[str, HaProxyComponent]:
        return self.list(ComponentType.HA_PROXY)  # type: ignore[return-value]

    @property
    def envoy_proxies(self) -> Mapping[str, EnvoyProxyComponent]:
        return self.list(ComponentType.ENVOY_PROXY)  # type: ignore[return-value]

    @property
    def mirror_nodes(self) -> Mapping[str, MirrorNodeComponent]:
        return self.list(ComponentType.MIRROR_NODE)  # type: ignore[return-value]

    @property
    def mirror_node_explorers(self) -> Mapping[str, MirrorNodeExplorerComponent]:
        return self.list(ComponentType.MIRROR_NODE_EXPLORER)  # type: ignore[return-value]

    @property
    def relays(self) -> Mapping[str, RelayComponent]:
        return self.list(ComponentType.RELAY)  # type: ignore[return-value]

    # -- Validation ---------------------------------------------------------

    def validate(self) -> None:
        """Check that every group holds only its own variant, keyed by name."""
        for ctype, group in self._groups.items():
            expected = COMPONENT_TYPE_MAP[ctype]
            for name, component in group.items():
                if not name or not isinstance(name, str):
                    raise SchemaError(
                        f"Invalid component service name {name!r}",
                        component_type=ctype.value,
                    )
                if type(component) is not expected:
                    raise SchemaError(
                        f"Invalid component type, service name: {name}, "
                        f"expected {expected.__name__}, "
                        f"actual: {type(component).__name__}",
                        component_type=ctype.value,
                        name=name,
                    )
                if component.name != name:
                    raise SchemaError(
                        f"Component stored under {name!r} is named {component.name!r}",
                        component_type=ctype.value,
                        name=name,
                    )

    # -- Serialization ------------------------------------------------------

    def to_object(self) -> dict[str, dict[str, dict[str, Any]]]:
        return {
            ctype.value: {name: c.to_object() for name, c in self._groups[ctype].items()}
            for ctype in ComponentType
        }

    @classmethod
    def from_object(cls, data: Any) -> ComponentRegistry:
        """Rebuild a registry from its stored form.

        Missing groups are treated as empty; unknown groups or malformed
        entries raise ``SchemaError``.
        """
        if not isinstance(data, dict):
            raise SchemaError(f"Invalid remote config components: {data!r}")

        groups: dict[ComponentType, dict[str, BaseComponent]] = {}
        for group_key, entries in data.items():
            try:
                ctype = ComponentType(group_key)
            except ValueError as exc:
                raise SchemaError(
                    f"Unknown component type {group_key!r}", component_type=str(group_key)
                ) from exc
            if entries is None:
                entries = {}
            if not isinstance(entries, dict):
                raise SchemaError(
                    f"Component group {ctype.value} must be a mapping",
                    component_type=ctype.value,
                )
            group: dict[str, BaseComponent] = {}
            for name, fields in entries.items():
                if not isinstance(fields, dict) or not all(isinstance(k, str) for k in fields):
                    raise SchemaError(
                        f"Invalid component entry {ctype.value}/{name}",
                        component_type=ctype.value,
                        name=name,
                    )
                group[name] = make_component(ctype, **fields)
            groups[ctype] = group
        return cls(groups)

    def clone(self) -> ComponentRegistry:
        return ComponentRegistry.from_object(self.to_object())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentRegistry):
            return NotImplemented
        return self.to_object() == other.to_object()

    def __repr__(self) -> str:
        sizes = ", ".join(f"{c.value}={len(g)}" for c, g in self._groups.items() if g)
        return f"ComponentRegistry({sizes})"

    # -- Internal helpers ---------------------------------------------------

    def _group(self, component_type: ComponentType | str) -> dict[str, BaseComponent]:
        try:
            return self._groups[ComponentType(component_type)]
        except ValueError as exc:
            raise SchemaError(
                f"Invalid component type {component_type!r}",
                component_type=str(component_type),
            ) from exc

    def _group_for(self, component: BaseComponent) -> dict[str, BaseComponent]:
        if not isinstance(component, BaseComponent):
            raise SchemaError(
                f"Component must be a BaseComponent, got {type(component).__name__}"
            )
        ctype = getattr(type(component), "component_type", None)
        if ctype is None or type(component) is not COMPONENT_TYPE_MAP[ctype]:
            raise SchemaError(
                f"Component {component.name!r} has no registered component group",
                name=component.name,
            )
        return self._groups[ctype]
