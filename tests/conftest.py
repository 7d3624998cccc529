"""Shared test fixtures for soloconf."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from soloconf.config import SoloConfig
from soloconf.core.component_registry import ComponentRegistry
from soloconf.core.document import RemoteConfigDocument
from soloconf.core.errors import ConflictError, NotFoundError, WriteError
from soloconf.core.manager import RemoteConfigManager
from soloconf.kube.client import ConfigMap, Pod
from soloconf.models.cluster import Cluster
from soloconf.models.components import BaseComponent, ComponentType, make_component
from soloconf.models.invocation import CommandInvocation
from soloconf.models.local_config import LocalConfig
from soloconf.models.metadata import DeploymentState, RemoteConfigMetadata

OPERATOR_EMAIL = "ops@example.com"


# ---------------------------------------------------------------------------
# In-memory cluster client
# ---------------------------------------------------------------------------


class FakeClusterClient:
    """``ClusterClient`` backed by dictionaries, one store per kube context.

    ``calls`` records every method invocation so tests can assert that
    nothing was read; contexts in ``failing_writes`` reject writes.
    """

    def __init__(self, current_context: str | None = "kind-solo") -> None:
        self.config_maps: dict[tuple[str | None, str, str], ConfigMap] = {}
        self.pods: list[tuple[str | None, Pod]] = []
        self.failing_writes: set[str | None] = set()
        self.calls: list[tuple[str, Any]] = []
        self._current_context = current_context

    # -- ClusterClient ------------------------------------------------------

    def read_config_map(self, namespace: str, name: str, context: str | None = None) -> ConfigMap:
        self.calls.append(("read_config_map", (namespace, name, context)))
        key = (context, namespace, name)
        if key not in self.config_maps:
            raise NotFoundError(f"ConfigMap {name} not found", namespace=namespace, context=context)
        return self.config_maps[key]

    def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        self.calls.append(("create_config_map", (namespace, name, context)))
        key = (context, namespace, name)
        if key in self.config_maps:
            raise ConflictError(f"ConfigMap {name} already exists", namespace=namespace)
        if context in self.failing_writes:
            raise WriteError("simulated write failure", context=context)
        self.config_maps[key] = ConfigMap(
            name=name, namespace=namespace, labels=dict(labels), data=dict(data)
        )

    def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        self.calls.append(("replace_config_map", (namespace, name, context)))
        key = (context, namespace, name)
        if context in self.failing_writes:
            raise WriteError("simulated write failure", context=context)
        if key not in self.config_maps:
            raise NotFoundError(f"ConfigMap {name} not found", namespace=namespace, context=context)
        self.config_maps[key] = ConfigMap(
            name=name, namespace=namespace, labels=dict(labels), data=dict(data)
        )

    def list_pods(
        self, namespace: str, labels: dict[str, str], context: str | None = None
    ) -> list[Pod]:
        self.calls.append(("list_pods", (namespace, dict(labels), context)))
        return [
            pod
            for pod_context, pod in self.pods
            if pod_context == context
            and pod.namespace == namespace
            and all(pod.labels.get(k) == v for k, v in labels.items())
        ]

    def current_context(self) -> str | None:
        return self._current_context

    def current_cluster(self, context: str | None = None) -> str:
        return f"cluster-of-{context or self._current_context}"

    # -- Test helpers -------------------------------------------------------

    def add_pod(
        self, namespace: str, labels: dict[str, str], context: str | None = "kind-solo"
    ) -> None:
        name = "-".join(labels.values()) + f"-{len(self.pods)}"
        self.pods.append(
            (context, Pod(name=name, namespace=namespace, labels=labels, phase="Running"))
        )

    def stored_yaml(
        self,
        namespace: str = "testnet",
        context: str | None = "kind-solo",
        name: str = "solo-remote-config",
    ) -> str:
        return self.config_maps[(context, namespace, name)].data["remote-config-data"]

    def reads(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] == "read_config_map"]


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_client() -> FakeClusterClient:
    """Provide an empty in-memory cluster whose current context is kind-solo."""
    return FakeClusterClient()


@pytest.fixture
def settings() -> SoloConfig:
    """Provide settings isolated from any .env file."""
    return SoloConfig(_env_file=None, validator_max_workers=4)


@pytest.fixture
def local_config() -> LocalConfig:
    """Provide a local registry with one deployment 'testnet' on 'clusterA'."""
    return LocalConfig.model_validate(
        {
            "userEmailAddress": OPERATOR_EMAIL,
            "soloVersion": "0.35.0",
            "deployments": {"testnet": {"namespace": "testnet", "clusters": ["clusterA"]}},
            "clusterRefs": {"clusterA": "kind-solo"},
        }
    )


@pytest.fixture
def multi_local_config() -> LocalConfig:
    """Provide a registry with two deployments, one spanning two clusters."""
    return LocalConfig.model_validate(
        {
            "userEmailAddress": OPERATOR_EMAIL,
            "deployments": {
                "testnet": {"namespace": "testnet", "clusters": ["clusterA", "clusterB"]},
                "previewnet": {"namespace": "previewnet", "clusters": ["clusterA"]},
            },
            "clusterRefs": {"clusterA": "kind-solo", "clusterB": "kind-solo-b"},
        }
    )


@pytest.fixture
def make_manager(
    fake_client: FakeClusterClient, local_config: LocalConfig, settings: SoloConfig
) -> Callable[..., RemoteConfigManager]:
    """Factory fixture: build a manager wired to the fake cluster."""

    def _factory(**overrides: Any) -> RemoteConfigManager:
        kwargs: dict[str, Any] = {
            "client": fake_client,
            "local_config": local_config,
            "settings": settings,
            "invocation": CommandInvocation(
                command=("node", "setup"), flags={"deployment": "testnet"}
            ),
        }
        kwargs.update(overrides)
        return RemoteConfigManager(**kwargs)

    return _factory


@pytest.fixture
def manager(make_manager: Callable[..., RemoteConfigManager]) -> RemoteConfigManager:
    return make_manager()


@pytest.fixture
def created_manager(manager: RemoteConfigManager) -> RemoteConfigManager:
    """A manager that has just created the testnet remote config with two nodes."""
    manager.create(
        CommandInvocation(command=("deployment", "create"), flags={"deployment": "testnet"}),
        DeploymentState.REQUESTED,
        ["node1", "node2"],
        namespace="testnet",
        deployment="testnet",
        cluster_ref="clusterA",
        context="kind-solo",
    )
    return manager


# ---------------------------------------------------------------------------
# Model factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_metadata() -> Callable[..., RemoteConfigMetadata]:
    """Factory fixture: build RemoteConfigMetadata with sensible defaults."""

    def _factory(**overrides: Any) -> RemoteConfigMetadata:
        defaults: dict[str, Any] = {
            "namespace": "testnet",
            "deployment_name": "testnet",
            "state": DeploymentState.REQUESTED,
            "last_update_by": OPERATOR_EMAIL,
            "solo_version": "0.35.0",
        }
        defaults.update(overrides)
        return RemoteConfigMetadata(**defaults)

    return _factory


@pytest.fixture
def make_test_component() -> Callable[..., BaseComponent]:
    """Factory fixture: build a component of any type in testnet/clusterA."""

    def _factory(
        component_type: ComponentType = ComponentType.RELAY,
        name: str = "relay",
        **overrides: Any,
    ) -> BaseComponent:
        fields: dict[str, Any] = {"name": name, "cluster": "clusterA", "namespace": "testnet"}
        if component_type == ComponentType.CONSENSUS_NODE:
            fields["node_id"] = 0
        fields.update(overrides)
        return make_component(component_type, **fields)

    return _factory


@pytest.fixture
def make_document(
    make_metadata: Callable[..., RemoteConfigMetadata],
) -> Callable[..., RemoteConfigDocument]:
    """Factory fixture: build a valid RemoteConfigDocument."""

    def _factory(**overrides: Any) -> RemoteConfigDocument:
        defaults: dict[str, Any] = {
            "metadata": make_metadata(),
            "clusters": {
                "clusterA": Cluster(name="clusterA", namespace="testnet", deployment="testnet")
            },
            "components": ComponentRegistry.initialize_with_nodes(
                ["node1", "node2"], "clusterA", "testnet"
            ),
            "command_history": ["deployment create"],
            "last_executed_command": "deployment create",
        }
        defaults.update(overrides)
        return RemoteConfigDocument(**defaults)

    return _factory
