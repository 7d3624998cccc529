"""``soloconf show`` — load the remote config, check it and print a summary."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel
from rich.table import Table

from soloconf.cli.common import build_manager, console, fail, target_flags
from soloconf.core.document import RemoteConfigDocument
from soloconf.core.errors import RemoteConfigError
from soloconf.models.components import ConsensusNodeComponent, RelayComponent
from soloconf.models.invocation import CommandInvocation


def show_cmd(
    deployment: str = typer.Option(None, "--deployment", "-d", help="Deployment name."),
    namespace: str = typer.Option(None, "--namespace", "-n", help="Namespace override."),
    context: str = typer.Option(None, "--context", help="Kube context override."),
    local_config_path: Path = typer.Option(
        None, "--local-config", help="Path to local-config.yaml."
    ),
) -> None:
    """Show the remote config after checking it against the cluster."""
    invocation = CommandInvocation(
        command=("remote-config", "show"),
        flags=target_flags(namespace, deployment, context),
    )
    try:
        manager = build_manager(local_config_path, invocation)
        document = manager.get(context)
    except RemoteConfigError as exc:
        raise fail(exc) from exc

    render_document(document)


def render_document(document: RemoteConfigDocument) -> None:
    meta = document.metadata
    versions = [
        ("Solo chart", meta.solo_chart_version),
        ("Platform", meta.hedera_platform_version),
        ("Mirror node", meta.hedera_mirror_node_chart_version),
        ("Explorer", meta.hedera_explorer_chart_version),
        ("Relay", meta.hedera_json_rpc_relay_chart_version),
    ]
    lines = [
        f"[bold]Deployment:[/bold]   {meta.deployment_name}",
        f"[bold]Namespace:[/bold]    {meta.namespace}",
        f"[bold]State:[/bold]        {meta.state.value}",
        f"[bold]Schema:[/bold]       {document.version}",
        f"[bold]Updated:[/bold]      {meta.last_updated_at.isoformat()} by {meta.last_update_by}",
        f"[bold]Tool version:[/bold] {meta.solo_version}",
    ]
    lines += [f"[bold]{label}:[/bold] {value}" for label, value in versions if value]
    if meta.migration is not None:
        lines.append(
            f"[dim]Migrated from {meta.migration.from_version} by "
            f"{meta.migration.migrated_by} at {meta.migration.migrated_at.isoformat()}[/dim]"
        )
    console.print(Panel("\n".join(lines), title="[bold]Remote config[/bold]", border_style="cyan"))

    clusters = Table(title="Clusters")
    clusters.add_column("Ref", style="cyan")
    clusters.add_column("Namespace")
    clusters.add_column("DNS base domain")
    for ref, cluster in document.clusters.items():
        clusters.add_row(ref, cluster.namespace, cluster.dns_base_domain)
    console.print(clusters)

    components = Table(title="Components")
    components.add_column("Type", style="cyan")
    components.add_column("Name", style="green")
    components.add_column("Cluster")
    components.add_column("Namespace")
    components.add_column("Details")
    for component in document.components.all_components():
        details = ""
        if isinstance(component, ConsensusNodeComponent):
            details = f"id={component.node_id} state={component.state.value}"
        elif isinstance(component, RelayComponent):
            details = "nodes=" + ",".join(component.consensus_node_aliases)
        components.add_row(
            component.display_name,
            component.name,
            component.cluster,
            component.namespace,
            details,
        )
    console.print(components)
