"""Unit tests for the CLI — Typer command registration and command behavior.

The kubectl client is replaced by the in-memory fake through
``soloconf.cli.common.make_client``.
"""

from __future__ import annotations

import pytest
import yaml
from typer.testing import CliRunner

import soloconf
from soloconf import __version__
from soloconf.cli import common as cli_common
from soloconf.cli.app import app
from soloconf.cli.commands.touch import parse_flag_values
from soloconf.core.errors import ConfigurationError
from soloconf.models.components import ComponentType

runner = CliRunner()


@pytest.fixture
def local_config_file(tmp_path):
    path = tmp_path / "local-config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "userEmailAddress": "ops@example.com",
                "soloVersion": "0.35.0",
                "deployments": {"testnet": {"namespace": "testnet", "clusters": ["clusterA"]}},
                "clusterRefs": {"clusterA": "kind-solo"},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture(autouse=True)
def wired_client(monkeypatch, fake_client):
    monkeypatch.setattr(cli_common, "make_client", lambda: fake_client)
    return fake_client


@pytest.fixture
def created(local_config_file):
    result = runner.invoke(
        app, ["create", "-d", "testnet", "-i", "node1,node2", "--local-config", local_config_file]
    )
    assert result.exit_code == 0, result.output
    return result


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("create", "show", "validate", "history", "touch", "version"):
            assert name in result.output

    @pytest.mark.parametrize("command", ["create", "show", "validate", "history", "touch"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cli_subpackage_reachable_from_package_root(self):
        assert soloconf.cli.common is cli_common
        assert soloconf.cli.common.make_client is cli_common.make_client


# ---------------------------------------------------------------------------
# Test: commands
# ---------------------------------------------------------------------------


class TestCreateCommand:
    def test_creates_config_map(self, created, wired_client):
        assert "Remote config created!" in created.output
        saved = yaml.safe_load(wired_client.stored_yaml())
        assert sorted(saved["components"]["consensusNodes"]) == ["node1", "node2"]
        assert saved["flags"] == {"nodeAliasesUnparsed": "node1,node2"}

    def test_second_create_fails(self, created, local_config_file):
        result = runner.invoke(
            app, ["create", "-d", "testnet", "-i", "node1", "--local-config", local_config_file]
        )
        assert result.exit_code == 1
        assert "ConflictError" in result.output

    def test_unknown_deployment(self, local_config_file):
        result = runner.invoke(
            app, ["create", "-d", "mainnet", "-i", "node1", "--local-config", local_config_file]
        )
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_missing_local_config(self, tmp_path):
        missing = str(tmp_path / "nope.yaml")
        result = runner.invoke(
            app, ["create", "-d", "testnet", "-i", "node1", "--local-config", missing]
        )
        assert result.exit_code == 1
        assert "Local config not found" in result.output


class TestShowAndValidate:
    def test_show(self, created, local_config_file):
        result = runner.invoke(app, ["show", "-d", "testnet", "--local-config", local_config_file])
        assert result.exit_code == 0, result.output
        assert "Remote config" in result.output
        assert "node1" in result.output

    def test_validate_clean(self, created, local_config_file):
        result = runner.invoke(
            app, ["validate", "-d", "testnet", "--local-config", local_config_file]
        )
        assert result.exit_code == 0, result.output
        assert "No drift" in result.output

    def test_validate_detects_drift(
        self, created, local_config_file, make_manager, make_test_component
    ):
        manager = make_manager()
        assert manager.load()
        manager.modify(
            lambda doc: doc.components.add(make_test_component(ComponentType.RELAY, "relay"))
        )
        result = runner.invoke(
            app, ["validate", "-d", "testnet", "--local-config", local_config_file]
        )
        assert result.exit_code == 1
        assert "RemoteConfigIsInvalid" in result.output

    def test_show_without_remote_config(self, local_config_file):
        result = runner.invoke(app, ["show", "-d", "testnet", "--local-config", local_config_file])
        assert result.exit_code == 1
        assert "NotFoundError" in result.output


class TestHistoryCommand:
    def test_history(self, created, local_config_file):
        result = runner.invoke(
            app, ["history", "-d", "testnet", "--local-config", local_config_file]
        )
        assert result.exit_code == 0, result.output
        assert "deployment create" in result.output
        assert "1 entry shown." in result.output


class TestTouchCommand:
    def test_records_command(self, created, local_config_file, wired_client):
        result = runner.invoke(
            app,
            [
                "touch", "relay", "deploy",
                "-d", "testnet",
                "-f", "relayReleaseTag=v0.70.0",
                "--no-validate",
                "--local-config", local_config_file,
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Recorded:" in result.output
        saved = yaml.safe_load(wired_client.stored_yaml())
        assert saved["lastExecutedCommand"].startswith("Executed by ops@example.com: relay deploy")
        assert saved["flags"]["relayReleaseTag"] == "v0.70.0"
        assert saved["metadata"]["hederaJsonRpcRelayChartVersion"] == "v0.70.0"

    def test_validation_failure_exits(
        self, created, local_config_file, make_manager, make_test_component
    ):
        manager = make_manager()
        assert manager.load()
        manager.modify(
            lambda doc: doc.components.add(make_test_component(ComponentType.RELAY, "relay"))
        )
        result = runner.invoke(
            app, ["touch", "relay", "upgrade", "-d", "testnet", "--local-config", local_config_file]
        )
        assert result.exit_code == 1
        assert "ValidationError" in result.output


class TestParseFlagValues:
    def test_pairs_and_switches(self):
        assert parse_flag_values(["releaseTag=v0.58.3", "--dev", "empty="]) == {
            "releaseTag": "v0.58.3",
            "dev": True,
            "empty": "",
        }

    def test_none(self):
        assert parse_flag_values(None) == {}

    def test_rejects_nameless_flag(self):
        with pytest.raises(ConfigurationError):
            parse_flag_values(["=value"])
