"""Helpers shared by the CLI commands: wiring, prompts and error output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from soloconf.config import config
from soloconf.core.errors import RemoteConfigError
from soloconf.core.manager import RemoteConfigManager
from soloconf.kube.client import ClusterClient, KubectlClusterClient
from soloconf.models.invocation import CommandInvocation
from soloconf.models.local_config import LocalConfig

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def make_client() -> ClusterClient:
    return KubectlClusterClient(config.kubectl_binary, config.kubectl_timeout_seconds)


def prompt_for_deployment(names: list[str]) -> str:
    return typer.prompt(f"Select a deployment ({', '.join(names)})")


def choose_flag_value(flag: str, stored: str, new: str) -> str:
    return typer.prompt(
        f"Value of {flag} differs from the remote config ({stored}); value to keep",
        default=stored,
    )


def build_manager(
    local_config_path: Path | None,
    invocation: CommandInvocation,
    *,
    interactive: bool = True,
) -> RemoteConfigManager:
    """Load the local registry and build a manager for one command."""
    local_config = LocalConfig.from_file(local_config_path or config.local_config_path)
    return RemoteConfigManager(
        make_client(),
        local_config,
        config,
        invocation=invocation,
        prompt=prompt_for_deployment if interactive else None,
        flag_chooser=choose_flag_value if interactive else None,
    )


def target_flags(
    namespace: str | None, deployment: str | None, context: str | None
) -> dict[str, Any]:
    flags: dict[str, Any] = {}
    if namespace:
        flags["namespace"] = namespace
    if deployment:
        flags["deployment"] = deployment
    if context:
        flags["context"] = context
    return flags


def fail(exc: RemoteConfigError) -> typer.Exit:
    """Print *exc* and return the exit to raise."""
    logger.debug("Command failed", exc_info=exc)
    err_console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
    for key, value in exc.context.items():
        err_console.print(f"  [dim]{key}:[/dim] {value}")
    return typer.Exit(code=1)
