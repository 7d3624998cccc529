"""``soloconf touch COMMAND...`` — run the pre-command hook for a command path.

Loads the remote config, optionally checks it against the cluster, records
the command in the history, back-fills versions, merges the persisted common
flags and saves.  Useful for wrapping external tooling that acts on a
deployment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from soloconf.cli.common import build_manager, console, fail, target_flags
from soloconf.core.errors import ConfigurationError, RemoteConfigError
from soloconf.models.invocation import CommandInvocation


def parse_flag_values(values: list[str] | None) -> dict[str, Any]:
    """Turn ``["releaseTag=v0.58.3", "dev"]`` into ``{"releaseTag": "v0.58.3", "dev": True}``."""
    flags: dict[str, Any] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        name = name.strip().lstrip("-")
        if not name:
            raise ConfigurationError(f"Invalid flag: {item!r}")
        flags[name] = value if sep else True
    return flags


def touch_cmd(
    command: list[str] = typer.Argument(..., help="Command path, e.g. 'relay deploy'."),
    flag: list[str] = typer.Option(
        None, "--flag", "-f", help="Flag of the command as NAME=VALUE (repeatable)."
    ),
    deployment: str = typer.Option(None, "--deployment", "-d", help="Deployment name."),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace override."),
    context: str = typer.Option(None, "--context", help="Kube context override."),
    validate: bool = typer.Option(
        True, "--validate/--no-validate", help="Check components against the cluster."
    ),
    validate_consensus_nodes: bool = typer.Option(
        False, "--validate-consensus-nodes", help="Also check consensus node pods."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Never prompt."),
    local_config_path: Path = typer.Option(
        None, "--local-config", help="Path to local-config.yaml."
    ),
) -> None:
    """Record COMMAND in the remote config as if it had just run."""
    try:
        flags = parse_flag_values(flag)
        flags.update(target_flags(namespace, deployment, context))
        if quiet:
            flags["quiet"] = True
        invocation = CommandInvocation(command=tuple(command), flags=flags)

        manager = build_manager(local_config_path, invocation, interactive=not quiet)
        resolved = manager.load_and_validate(
            invocation,
            validate=validate,
            skip_consensus_validation=not validate_consensus_nodes,
        )
    except RemoteConfigError as exc:
        raise fail(exc) from exc

    console.print(f"[bold green]Recorded:[/bold green] {manager.get_command_history()[-1]}")
    table = Table(title="Resolved flags")
    table.add_column("Flag", style="cyan")
    table.add_column("Value")
    for name in sorted(resolved.flags):
        table.add_row(name, str(resolved.flags[name]))
    console.print(table)
