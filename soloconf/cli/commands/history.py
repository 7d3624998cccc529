"""``soloconf history`` — print the command history of a deployment."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from soloconf.cli.common import build_manager, console, fail, target_flags
from soloconf.core.errors import NotFoundError, RemoteConfigError
from soloconf.core.resolvers import resolve_namespace_and_deployment
from soloconf.models.invocation import CommandInvocation


def history_cmd(
    deployment: str = typer.Option(None, "--deployment", "-d", help="Deployment name."),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace override."),
    context: str = typer.Option(None, "--context", help="Kube context override."),
    limit: int = typer.Option(0, "--limit", min=0, help="Show only the newest N entries."),
    local_config_path: Path = typer.Option(
        None, "--local-config", help="Path to local-config.yaml."
    ),
) -> None:
    """Print the recorded command history, oldest first."""
    invocation = CommandInvocation(
        command=("remote-config", "history"),
        flags=target_flags(namespace, deployment, context),
    )
    try:
        manager = build_manager(local_config_path, invocation)
        manager.invocation = resolve_namespace_and_deployment(
            invocation, manager.local_config, manager.prompt
        )
        if not manager.load(context=context):
            raise NotFoundError(
                "Remote config not found",
                namespace=manager.invocation.get_flag("namespace"),
                context=context,
            )
        entries = manager.get_command_history()
    except RemoteConfigError as exc:
        raise fail(exc) from exc

    if limit:
        entries = entries[-limit:]
    if not entries:
        console.print("[dim]No commands recorded.[/dim]")
        return

    table = Table(title="Command history")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Command")
    shown = len(entries)
    for offset, entry in enumerate(entries):
        table.add_row(str(offset + 1), entry)
    console.print(table)
    console.print(f"[dim]{shown} entr{'y' if shown == 1 else 'ies'} shown.[/dim]")
