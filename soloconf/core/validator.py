"""Drift detection — checks declared components against live pods.

Every component recorded in the remote config must be backed by at least one
pod matching its label selector in the deployment namespace.  Checks run
concurrently; the first failing check fails the whole pass.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed

from soloconf.core.component_registry import ComponentRegistry
from soloconf.core.errors import ValidationError
from soloconf.kube.client import ClusterClient, label_selector
from soloconf.models.components import (
    BaseComponent,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeState,
)
from soloconf.models.local_config import LocalConfig

logger = logging.getLogger(__name__)

RELAY_LABELS = {"app": "hedera-json-rpc-relay"}
EXPLORER_LABELS = {"app.kubernetes.io/component": "hedera-explorer"}
MIRROR_IMPORTER_LABELS = {
    "app.kubernetes.io/component": "importer",
    "app.kubernetes.io/instance": "mirror",
}

# One selector builder per component type; a missing entry fails at import.
LABEL_SELECTORS: dict[ComponentType, Callable[[BaseComponent], dict[str, str]]] = {
    ComponentType.CONSENSUS_NODE: lambda c: {"app": f"network-{c.name}"},
    ComponentType.HA_PROXY: lambda c: {"app": c.name},
    ComponentType.ENVOY_PROXY: lambda c: {"app": c.name},
    ComponentType.MIRROR_NODE: lambda c: dict(MIRROR_IMPORTER_LABELS),
    ComponentType.MIRROR_NODE_EXPLORER: lambda c: dict(EXPLORER_LABELS),
    ComponentType.RELAY: lambda c: dict(RELAY_LABELS),
}

_missing = set(ComponentType) - set(LABEL_SELECTORS)
if _missing:
    raise RuntimeError(f"No label selector for component types: {sorted(_missing)}")


def labels_for(component: BaseComponent) -> dict[str, str]:
    """Return the pod labels that back *component*."""
    return LABEL_SELECTORS[component.component_type](component)


class RemoteConfigValidator:
    """Validates a component registry against a live cluster.

    Parameters
    ----------
    client:
        Cluster API client used to list pods.
    local_config:
        Maps each component's cluster reference to a kube context.
    max_workers:
        Size of the thread pool the checks run on.
    """

    def __init__(
        self,
        client: ClusterClient,
        local_config: LocalConfig,
        max_workers: int = 8,
    ) -> None:
        self.client = client
        self.local_config = local_config
        self.max_workers = max_workers

    def validate_components(
        self,
        namespace: str,
        components: ComponentRegistry,
        *,
        skip_consensus_nodes: bool = False,
    ) -> None:
        """Raise ``ValidationError`` if any declared component has no pod.

        Consensus nodes are skipped when *skip_consensus_nodes* is set, and
        always skipped while still ``NON_DEPLOYED``.
        """
        targets = [
            c for c in components.all_components()
            if self._should_check(c, skip_consensus_nodes)
        ]
        if not targets:
            return

        logger.debug("Validating %d component(s) in namespace %s.", len(targets), namespace)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._check, namespace, component): component
                for component in targets
            }
            try:
                for future in as_completed(futures):
                    future.result()
            except ValidationError:
                for pending in futures:
                    pending.cancel()
                raise

    # -- Internal helpers ---------------------------------------------------

    @staticmethod
    def _should_check(component: BaseComponent, skip_consensus_nodes: bool) -> bool:
        if not isinstance(component, ConsensusNodeComponent):
            return True
        if skip_consensus_nodes:
            return False
        return component.state != ConsensusNodeState.NON_DEPLOYED

    def _check(self, namespace: str, component: BaseComponent) -> None:
        context = self.local_config.context_for(component.cluster)
        labels = labels_for(component)
        try:
            pods = self.client.list_pods(namespace, labels, context=context)
        except Exception as exc:
            raise self._failure(component, namespace, labels) from exc
        if not pods:
            raise self._failure(component, namespace, labels)

    @staticmethod
    def _failure(
        component: BaseComponent, namespace: str, labels: dict[str, str]
    ) -> ValidationError:
        return ValidationError(
            f"{component.display_name} in remote config with name {component.name} "
            f"was not found in namespace: {component.namespace}, cluster: {component.cluster}",
            component_type=component.component_type.value,
            name=component.name,
            namespace=component.namespace,
            cluster=component.cluster,
            labels=label_selector(labels),
            searched_namespace=namespace,
        )
