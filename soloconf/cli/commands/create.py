"""``soloconf create`` — create the remote config for a deployment.

Seeds the document with one consensus node per alias (all NON_DEPLOYED) in
the deployment's first cluster and writes it to that cluster's context.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from soloconf.cli.common import build_manager, console, fail
from soloconf.core.errors import ConfigurationError, RemoteConfigError
from soloconf.models.invocation import CommandInvocation
from soloconf.models.metadata import DeploymentState


def create_cmd(
    deployment: str = typer.Option(..., "--deployment", "-d", help="Deployment name."),
    node_aliases: str = typer.Option(
        ..., "--node-aliases", "-i", help="Comma-separated consensus node aliases."
    ),
    cluster_ref: str = typer.Option(
        None, "--cluster-ref", "-c", help="Cluster reference (default: first of the deployment)."
    ),
    context: str = typer.Option(None, "--context", help="Kube context (default: from local config)."),
    state: DeploymentState = typer.Option(
        DeploymentState.REQUESTED, "--state", help="Initial deployment state."
    ),
    release_tag: str = typer.Option(None, "--release-tag", help="Consensus node release tag."),
    dns_base_domain: str = typer.Option(None, "--dns-base-domain", help="Cluster DNS base domain."),
    dns_consensus_node_pattern: str = typer.Option(
        None, "--dns-consensus-node-pattern", help="Consensus node DNS pattern."
    ),
    local_config_path: Path = typer.Option(
        None, "--local-config", help="Path to local-config.yaml."
    ),
) -> None:
    """Create the remote config for a deployment."""
    aliases = [alias.strip() for alias in node_aliases.split(",") if alias.strip()]
    invocation = CommandInvocation(
        command=("deployment", "create"),
        flags={
            "deployment": deployment,
            "nodeAliasesUnparsed": ",".join(aliases),
            "releaseTag": release_tag,
        },
    )

    try:
        manager = build_manager(local_config_path, invocation)
        entry = manager.local_config.deployment(deployment)
        cluster_ref = cluster_ref or (entry.clusters[0] if entry.clusters else None)
        if not cluster_ref:
            raise ConfigurationError(
                f"Deployment {deployment} has no clusters in local config",
                deployment=deployment,
            )
        context = context or manager.local_config.context_for(cluster_ref)
        manager.create(
            invocation,
            state,
            aliases,
            namespace=entry.namespace,
            deployment=deployment,
            cluster_ref=cluster_ref,
            context=context,
            dns_base_domain=dns_base_domain,
            dns_consensus_node_pattern=dns_consensus_node_pattern,
        )
    except RemoteConfigError as exc:
        raise fail(exc) from exc

    console.print(
        Panel(
            "\n".join([
                "[bold green]Remote config created![/bold green]",
                "",
                f"[bold]Deployment:[/bold]  {deployment}",
                f"[bold]Namespace:[/bold]   {entry.namespace}",
                f"[bold]Cluster:[/bold]     {cluster_ref}",
                f"[bold]Context:[/bold]     {context or '(current)'}",
                f"[bold]Nodes:[/bold]       {', '.join(aliases)}",
            ]),
            title="[bold]soloconf[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
