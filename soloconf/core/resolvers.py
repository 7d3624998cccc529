"""Default namespace, deployment and context resolution.

Commands may omit ``--namespace``, ``--deployment`` and ``--context``.  The
resolvers fill them in from the local deployment registry and the kube
config, returning an updated ``CommandInvocation``.  Resolution happens
before anything is read from a cluster; when nothing can be inferred a
``ConfigurationError`` is raised.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from soloconf.core.errors import ConfigurationError
from soloconf.kube.client import ClusterClient
from soloconf.models.invocation import CommandInvocation
from soloconf.models.local_config import LocalConfig

logger = logging.getLogger(__name__)

NAMESPACE_FLAG = "namespace"
DEPLOYMENT_FLAG = "deployment"
CONTEXT_FLAG = "context"

# Receives the known deployment names, returns the chosen one.
DeploymentPrompt = Callable[[list[str]], str]


def resolve_namespace_and_deployment(
    invocation: CommandInvocation,
    local_config: LocalConfig,
    prompt: DeploymentPrompt | None = None,
) -> CommandInvocation:
    """Return *invocation* with ``namespace`` and ``deployment`` set.

    Order: explicit ``--namespace`` wins.  Otherwise the deployment comes from
    ``--deployment``, the only deployment in the local registry, or *prompt*;
    its namespace is then taken from the registry.

    Raises
    ------
    ConfigurationError
        If no deployment can be chosen or the chosen one is unknown.
    """
    if invocation.has_flag(NAMESPACE_FLAG):
        return invocation

    deployment = invocation.get_flag(DEPLOYMENT_FLAG)
    if not deployment:
        deployment = _choose_deployment(local_config, prompt)
        logger.warning(
            "Deployment name not found in flags, setting it to: %s", deployment
        )
        invocation = invocation.with_flag(DEPLOYMENT_FLAG, deployment)

    namespace = local_config.deployment(deployment).namespace
    logger.warning("Namespace not found in flags, setting it to: %s", namespace)
    return invocation.with_flag(NAMESPACE_FLAG, namespace)


def resolve_context(
    invocation: CommandInvocation,
    local_config: LocalConfig,
    client: ClusterClient,
) -> CommandInvocation:
    """Return *invocation* with ``context`` set.

    Order: explicit ``--context``, then the context of the deployment's first
    cluster, then the current kube context.
    """
    if invocation.has_flag(CONTEXT_FLAG):
        return invocation

    context = first_cluster_context(invocation.get_flag(DEPLOYMENT_FLAG), local_config)
    if not context:
        context = client.current_context()
    if not context:
        raise ConfigurationError("Context is not passed and default one can't be acquired")

    logger.warning("Context not found in flags, setting it to: %s", context)
    return invocation.with_flag(CONTEXT_FLAG, context)


def resolve_namespace(invocation: CommandInvocation, local_config: LocalConfig) -> str:
    """Return the namespace for *invocation* without prompting."""
    namespace = invocation.get_flag(NAMESPACE_FLAG)
    if namespace:
        return namespace
    deployment = invocation.get_flag(DEPLOYMENT_FLAG)
    if not deployment:
        raise ConfigurationError("Namespace is not set and no deployment was selected")
    return local_config.deployment(deployment).namespace


def first_cluster_context(deployment: str | None, local_config: LocalConfig) -> str | None:
    if not deployment or deployment not in local_config.deployments:
        return None
    clusters = local_config.deployments[deployment].clusters
    if not clusters:
        return None
    context = local_config.context_for(clusters[0])
    logger.debug(
        "Using context %s for cluster %s for deployment %s", context, clusters[0], deployment
    )
    return context


def _choose_deployment(local_config: LocalConfig, prompt: DeploymentPrompt | None) -> str:
    names = sorted(local_config.deployments)
    if len(names) == 1:
        return names[0]
    if prompt is None:
        raise ConfigurationError(
            "Deployment is not set and cannot be inferred; pass --deployment",
            deployments=", ".join(names) or None,
        )
    choice = prompt(names)
    if not choice:
        raise ConfigurationError("No deployment was selected")
    return choice
