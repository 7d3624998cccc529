"""``soloconf validate`` — drift check only; exits 1 when drift is found."""

from __future__ import annotations

from pathlib import Path

import typer

from soloconf.cli.common import build_manager, console, fail, target_flags
from soloconf.core.errors import RemoteConfigError
from soloconf.models.invocation import CommandInvocation


def validate_cmd(
    deployment: str = typer.Option(None, "--deployment", "-d", help="Deployment name."),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace override."),
    context: str = typer.Option(None, "--context", help="Kube context override."),
    skip_consensus_nodes: bool = typer.Option(
        False, "--skip-consensus-nodes", help="Do not check consensus node pods."
    ),
    local_config_path: Path = typer.Option(
        None, "--local-config", help="Path to local-config.yaml."
    ),
) -> None:
    """Check that every declared component has a running pod."""
    invocation = CommandInvocation(
        command=("remote-config", "validate"),
        flags=target_flags(namespace, deployment, context),
    )
    try:
        manager = build_manager(local_config_path, invocation, interactive=False)
        document = manager.get(context, skip_consensus_nodes=skip_consensus_nodes)
    except RemoteConfigError as exc:
        raise fail(exc) from exc

    console.print(
        f"[bold green]No drift:[/bold green] {len(document.components)} "
        "component(s) declared in the remote config."
    )
