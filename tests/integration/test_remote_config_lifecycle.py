"""End-to-end lifecycle tests — create, load, record, mutate and re-load.

These tests exercise RemoteConfigManager, RemoteConfigDocument,
ComponentRegistry, CommonFlags, version back-fill and the validator working
together against the in-memory cluster.
"""

from __future__ import annotations

import pytest
import yaml

from soloconf.core.document import RemoteConfigDocument
from soloconf.core.errors import ConfigurationError, ConflictError
from soloconf.models.components import ComponentType, ConsensusNodeState
from soloconf.models.invocation import CommandInvocation
from soloconf.models.metadata import DeploymentState


class TestTestnetScenario:
    """Deployment "testnet" on one cluster "clusterA" with two consensus nodes."""

    def test_create_yields_two_non_deployed_nodes(self, created_manager):
        document = created_manager.get()
        nodes = document.components.consensus_nodes
        assert len(document.components) == 2
        assert sorted(nodes) == ["node1", "node2"]
        assert {n.state for n in nodes.values()} == {ConsensusNodeState.NON_DEPLOYED}
        assert list(document.clusters) == ["clusterA"]
        cluster = document.clusters["clusterA"]
        assert (cluster.name, cluster.namespace) == ("clusterA", "testnet")

    def test_stored_document_round_trips(self, created_manager, fake_client):
        stored = RemoteConfigDocument.from_yaml(fake_client.stored_yaml())
        assert stored == created_manager.get()

    def test_create_twice_conflicts(self, created_manager):
        with pytest.raises(ConflictError):
            created_manager.create(
                CommandInvocation(command=("deployment", "create")),
                DeploymentState.REQUESTED,
                ["node1", "node2"],
                namespace="testnet",
                deployment="testnet",
                cluster_ref="clusterA",
                context="kind-solo",
            )


class TestDeploymentLifecycle:
    """A sequence of commands as an operator would run them."""

    def test_full_lifecycle(
        self, created_manager, make_manager, fake_client, make_test_component, settings
    ):
        # network deploy: versions back-filled, node states advanced
        deploy = make_manager()
        deploy.load_and_validate(
            CommandInvocation(
                command=("network", "deploy"),
                flags={"deployment": "testnet", "releaseTag": "v0.58.3"},
            )
        )

        def start_nodes(doc: RemoteConfigDocument) -> None:
            for node in list(doc.components.consensus_nodes.values()):
                doc.components.edit(node.model_copy(update={"state": ConsensusNodeState.STARTED}))

        deploy.modify(start_nodes)
        for alias in ("node1", "node2"):
            fake_client.add_pod("testnet", {"app": f"network-{alias}"})

        # relay deploy: the relay pod appears, consensus nodes are checked too
        relay = make_manager()
        relay.load_and_validate(
            CommandInvocation(command=("relay", "deploy"), flags={"deployment": "testnet"}),
            skip_consensus_validation=False,
        )
        relay.modify(
            lambda doc: doc.components.add(make_test_component(ComponentType.RELAY, "relay"))
        )
        fake_client.add_pod("testnet", {"app": "hedera-json-rpc-relay"})

        # a fresh invocation sees everything and inherits the release tag
        final = make_manager()
        resolved = final.load_and_validate(
            CommandInvocation(command=("node", "logs"), flags={"deployment": "testnet"}),
            skip_consensus_validation=False,
        )
        assert resolved.get_flag("releaseTag") == "v0.58.3"

        document = final.get()
        assert "relay" in document.components.relays
        assert {n.state for n in document.components.consensus_nodes.values()} == {
            ConsensusNodeState.STARTED
        }
        assert document.metadata.hedera_platform_version == "v0.58.3"
        assert document.metadata.solo_chart_version == settings.solo_chart_version
        assert document.metadata.hedera_json_rpc_relay_chart_version == settings.relay_release_tag
        assert [entry.split(":")[1].split()[:2] for entry in document.command_history[1:]] == [
            ["network", "deploy"],
            ["relay", "deploy"],
            ["node", "logs"],
        ]

        saved = yaml.safe_load(fake_client.stored_yaml())
        assert saved["lastExecutedCommand"] == document.last_executed_command

    def test_history_is_capped_across_invocations(self, created_manager, make_manager, settings):
        capped = settings.model_copy(update={"max_command_history": 3})
        for index in range(5):
            manager = make_manager(settings=capped)
            manager.load_and_validate(
                CommandInvocation(
                    command=("node", "states"), flags={"deployment": "testnet", "run": index}
                )
            )
        history = manager.get_command_history()
        assert len(history) == 3
        assert [entry.rsplit(" ", 1)[-1] for entry in history] == ["2", "3", "4"]

    def test_unresolvable_target_reads_nothing(
        self, make_manager, multi_local_config, fake_client
    ):
        manager = make_manager(local_config=multi_local_config, invocation=CommandInvocation())
        with pytest.raises(ConfigurationError):
            manager.load_and_validate(CommandInvocation(command=("node", "start")))
        assert fake_client.reads() == []
