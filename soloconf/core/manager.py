"""Remote config manager — load, validate, mutate and persist the document.

The manager is constructed once per CLI invocation with its collaborators
(cluster client, local deployment registry, settings, optional prompts).  It
owns at most one loaded ``RemoteConfigDocument``; every mutation goes through
``modify``, which applies the change to a draft copy and only commits the
draft after it validated and was saved.

State machine::

    UNLOADED --create / load--> LOADED --unload--> UNLOADED

Example::

    manager = RemoteConfigManager(KubectlClusterClient(), local_config)
    invocation = manager.load_and_validate(invocation)
    manager.modify(lambda doc: doc.components.add(relay))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from soloconf import __version__
from soloconf.config import SoloConfig
from soloconf.config import config as default_config
from soloconf.core.common_flags import CommonFlags, FlagChooser
from soloconf.core.component_registry import ComponentRegistry
from soloconf.core.document import RemoteConfigDocument, config_map_payload, parse_yaml
from soloconf.core.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    NotLoadedError,
    RemoteConfigError,
    RemoteConfigIsInvalid,
    SchemaError,
    ValidationError,
    WriteError,
)
from soloconf.core.resolvers import (
    CONTEXT_FLAG,
    DEPLOYMENT_FLAG,
    NAMESPACE_FLAG,
    DeploymentPrompt,
    first_cluster_context,
    resolve_context,
    resolve_namespace,
    resolve_namespace_and_deployment,
)
from soloconf.core.schema_migration import migrate_document
from soloconf.core.validator import RemoteConfigValidator
from soloconf.core.version_backfill import populate_versions
from soloconf.kube.client import ClusterClient
from soloconf.models.cluster import Cluster
from soloconf.models.components import ConsensusNodeComponent
from soloconf.models.invocation import CommandInvocation
from soloconf.models.local_config import LocalConfig
from soloconf.models.metadata import DeploymentState, RemoteConfigMetadata

logger = logging.getLogger(__name__)


class ManagerState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


class ConsensusNodeInfo(BaseModel):
    """A consensus node joined with its cluster's context and DNS data."""

    model_config = ConfigDict(frozen=True)

    alias: str
    node_id: int
    namespace: str
    cluster: str
    context: str | None
    dns_base_domain: str
    dns_consensus_node_pattern: str


class RemoteConfigManager:
    """Lifecycle owner of the remote config for one deployment.

    Parameters
    ----------
    client:
        Cluster API client used for ConfigMap and pod access.
    local_config:
        The operator's local deployment registry.
    settings:
        Runtime settings; defaults to the module-level ``config``.
    invocation:
        The command being executed.  Its ``namespace``, ``deployment`` and
        ``context`` flags steer where the document is read from and written to.
    prompt:
        Called with the known deployment names when none can be inferred.
    flag_chooser:
        Called when a passed common flag differs from the stored value.
    validator:
        Drift checker; built from *client* and *local_config* when omitted.
    """

    def __init__(
        self,
        client: ClusterClient,
        local_config: LocalConfig,
        settings: SoloConfig | None = None,
        *,
        invocation: CommandInvocation | None = None,
        prompt: DeploymentPrompt | None = None,
        flag_chooser: FlagChooser | None = None,
        validator: RemoteConfigValidator | None = None,
    ) -> None:
        self.client = client
        self.local_config = local_config
        self.settings = settings or default_config
        self.invocation = invocation or CommandInvocation()
        self.prompt = prompt
        self.flag_chooser = flag_chooser
        self.validator = validator or RemoteConfigValidator(
            client, local_config, max_workers=self.settings.validator_max_workers
        )
        self._document: RemoteConfigDocument | None = None

    # -- State --------------------------------------------------------------

    @property
    def state(self) -> ManagerState:
        return ManagerState.LOADED if self._document is not None else ManagerState.UNLOADED

    def is_loaded(self) -> bool:
        return self._document is not None

    @property
    def components(self) -> ComponentRegistry:
        """Independent copy of the loaded component registry."""
        return self._require_loaded().components.clone()

    @property
    def clusters(self) -> dict[str, Cluster]:
        """Copy of the loaded cluster map (entries are frozen)."""
        return dict(self._require_loaded().clusters)

    @property
    def current_cluster(self) -> str:
        return self.client.current_cluster(self.invocation.get_flag(CONTEXT_FLAG))

    # -- Lifecycle ----------------------------------------------------------

    def create(
        self,
        invocation: CommandInvocation,
        state: DeploymentState,
        node_aliases: Iterable[str],
        namespace: str,
        deployment: str,
        cluster_ref: str,
        context: str | None,
        dns_base_domain: str | None = None,
        dns_consensus_node_pattern: str | None = None,
    ) -> None:
        """Create and store the remote config for a new deployment.

        Raises
        ------
        ConflictError
            If a remote config already exists in *namespace*.
        """
        if self._config_map_exists(namespace, context):
            raise ConflictError(
                f"Remote config already exists in namespace {namespace}",
                namespace=namespace,
                context=context,
            )

        email = self.local_config.user_email_address
        try:
            clusters = {
                cluster_ref: Cluster(
                    name=cluster_ref,
                    namespace=namespace,
                    deployment=deployment,
                    dns_base_domain=dns_base_domain or self.settings.dns_base_domain,
                    dns_consensus_node_pattern=(
                        dns_consensus_node_pattern or self.settings.dns_consensus_node_pattern
                    ),
                )
            }
            metadata = RemoteConfigMetadata(
                namespace=namespace,
                deployment_name=deployment,
                state=state,
                last_update_by=email,
                solo_version=__version__,
            )
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Invalid remote config for deployment {deployment}: {exc}",
                namespace=namespace,
            ) from exc

        flags, invocation = CommonFlags().merge(invocation, chooser=self.flag_chooser)
        current_command = invocation.command_line

        document = RemoteConfigDocument(
            metadata=metadata,
            clusters=clusters,
            components=ComponentRegistry.initialize_with_nodes(
                node_aliases, cluster_ref, namespace
            ),
            command_history=[current_command],
            last_executed_command=current_command,
            flags=flags,
            max_history=self.settings.max_command_history,
        )

        self.invocation = (
            invocation.with_flag(NAMESPACE_FLAG, namespace)
            .with_flag(DEPLOYMENT_FLAG, deployment)
            .with_flag(CONTEXT_FLAG, context)
        )
        self._write_new(document, namespace, context)
        self._document = document
        logger.info(
            "Created remote config for deployment %s in namespace %s.", deployment, namespace
        )

    def load(self, namespace: str | None = None, context: str | None = None) -> bool:
        """Load the document, returning ``False`` if the ConfigMap is absent.

        A no-op returning ``True`` when already loaded.  Read failures other
        than absence raise ``ReadError``; malformed documents ``SchemaError``.
        """
        if self._document is not None:
            return True

        namespace = namespace or resolve_namespace(self.invocation, self.local_config)
        context = context or self._default_context()
        try:
            config_map = self.client.read_config_map(
                namespace, self.settings.remote_configmap_name, context=context
            )
        except NotFoundError:
            logger.warning(
                "Remote config not found for namespace %s, context %s.", namespace, context
            )
            return False

        raw = parse_yaml(
            config_map_payload(config_map.data, self.settings.remote_config_data_key)
        )
        raw, migrated = migrate_document(
            raw,
            author=self.local_config.user_email_address,
            tool_version=__version__,
            dns_base_domain=self.settings.dns_base_domain,
            dns_consensus_node_pattern=self.settings.dns_consensus_node_pattern,
        )
        self._document = RemoteConfigDocument.from_object(
            raw, max_history=self.settings.max_command_history
        )
        if migrated:
            logger.info("Remote config was migrated; it will be rewritten on next save.")
        logger.debug("Remote config loaded from namespace %s.", namespace)
        return True

    def unload(self) -> None:
        self._document = None

    def get(
        self, context: str | None = None, *, skip_consensus_nodes: bool = False
    ) -> RemoteConfigDocument:
        """Load the document, check it against the cluster and return a copy.

        The namespace comes from the invocation, the only deployment in the
        local registry, or the deployment prompt, in that order.

        Raises
        ------
        NotFoundError
            If no remote config exists.
        RemoteConfigIsInvalid
            If a declared component has no backing pod.
        """
        self.invocation = resolve_namespace_and_deployment(
            self.invocation, self.local_config, self.prompt
        )
        namespace = self.invocation.get_flag(NAMESPACE_FLAG)
        if not self.load(namespace, context):
            raise NotFoundError(
                f"Remote config not found for namespace {namespace}",
                namespace=namespace,
                context=context,
            )
        document = self._require_loaded()
        try:
            self.validator.validate_components(
                namespace, document.components, skip_consensus_nodes=skip_consensus_nodes
            )
        except ValidationError as exc:
            cluster = self._cluster_name(context or self._default_context())
            raise RemoteConfigIsInvalid(
                f"The remote configuration is invalid for cluster {cluster}: {exc}",
                cluster=cluster,
                namespace=namespace,
            ) from exc
        return document.clone()

    def modify(self, callback: Callable[[RemoteConfigDocument], Any]) -> None:
        """Apply *callback* to a draft, validate, save, then commit.

        When nothing is loaded this is a no-op with a warning, or a
        ``NotLoadedError`` if ``strict_modify`` is enabled.  If the callback,
        validation or the save fails, the loaded document is unchanged.
        """
        if self._document is None:
            if self.settings.strict_modify:
                raise NotLoadedError("Attempting to modify remote config without loading it first")
            logger.warning("Remote config is not loaded; modification skipped.")
            return

        draft = self._document.clone()
        callback(draft)
        draft.validate()
        self.replace_config_map(draft)
        self._document = draft

    def load_and_validate(
        self,
        invocation: CommandInvocation,
        validate: bool = True,
        skip_consensus_validation: bool = True,
    ) -> CommandInvocation:
        """Pre-command hook: resolve, load, check, record and save.

        Returns the invocation with namespace, deployment, context and
        inherited common flags filled in.  Nothing is saved if any step fails.
        """
        invocation = resolve_namespace_and_deployment(invocation, self.local_config, self.prompt)
        invocation = resolve_context(invocation, self.local_config, self.client)
        self.invocation = invocation

        namespace = invocation.get_flag(NAMESPACE_FLAG)
        context = invocation.get_flag(CONTEXT_FLAG)
        if not self.load(namespace, context):
            raise NotFoundError(
                "Failed to load remote config from cluster",
                namespace=namespace,
                context=context,
            )
        logger.info("Remote config loaded")

        document = self._require_loaded()
        if validate:
            self.validator.validate_components(
                namespace,
                document.components,
                skip_consensus_nodes=skip_consensus_validation,
            )

        email = self.local_config.user_email_address
        draft = document.clone()
        draft.add_command_to_history(
            f"Executed by {email}: {invocation.command_line} {invocation.stringify_flags()}".strip()
        )
        draft.metadata = populate_versions(draft.metadata, invocation, self.settings).with_update(
            last_updated_at=datetime.now(timezone.utc),
            last_update_by=email,
        )
        draft.flags, invocation = draft.flags.merge(invocation, chooser=self.flag_chooser)
        draft.validate()

        self.invocation = invocation
        self.replace_config_map(draft)
        self._document = draft
        return invocation

    # -- Persistence --------------------------------------------------------

    def create_config_map(self, context: str | None = None) -> None:
        """Write the loaded document as a new ConfigMap in one context."""
        document = self._require_loaded()
        namespace = self.invocation.get_flag(NAMESPACE_FLAG) or document.metadata.namespace
        self._write_new(document, namespace, context)

    def replace_config_map(self, document: RemoteConfigDocument | None = None) -> None:
        """Overwrite the ConfigMap in every cluster of the deployment.

        Writes run concurrently.  Partial failure is not rolled back; it is
        logged and raised as ``WriteError`` listing which contexts failed and
        which succeeded.
        """
        document = document or self._require_loaded()
        namespace = self.invocation.get_flag(NAMESPACE_FLAG) or document.metadata.namespace
        deployment = self.invocation.get_flag(DEPLOYMENT_FLAG) or document.metadata.deployment_name
        if not deployment:
            raise ConfigurationError("Failed to get deployment")
        contexts = self.local_config.contexts_for_deployment(deployment)

        name = self.settings.remote_configmap_name
        labels = dict(self.settings.remote_configmap_labels)
        data = {self.settings.remote_config_data_key: document.to_yaml()}

        failures: dict[str, RemoteConfigError] = {}
        with ThreadPoolExecutor(max_workers=len(contexts)) as executor:
            futures = {
                context: executor.submit(
                    self.client.replace_config_map, namespace, name, labels, data, context
                )
                for context in contexts
            }
            for context, future in futures.items():
                try:
                    future.result()
                except RemoteConfigError as exc:
                    failures[context] = exc

        if failures:
            succeeded = [c for c in contexts if c not in failures]
            logger.warning(
                "Remote config replaced in %s but failed in %s; clusters are out of sync.",
                succeeded or "no context", sorted(failures),
            )
            raise WriteError(
                f"Failed to replace remote config in context(s): {', '.join(sorted(failures))}",
                namespace=namespace,
                failed=sorted(failures),
                succeeded=succeeded,
            ) from next(iter(failures.values()))

    # -- Utilities ----------------------------------------------------------

    def delete_components(self) -> None:
        def _clear(document: RemoteConfigDocument) -> None:
            document.components = ComponentRegistry.initialize_empty()

        self.modify(_clear)

    def get_command_history(self) -> list[str]:
        return list(self._require_loaded().command_history)

    def get_consensus_nodes(self) -> list[ConsensusNodeInfo]:
        document = self._require_loaded()
        nodes: list[ConsensusNodeInfo] = []
        for node in document.components.consensus_nodes.values():
            cluster = document.clusters.get(node.cluster)
            nodes.append(self._node_info(node, cluster))
        return nodes

    def get_contexts(self) -> list[str]:
        """Unique contexts of all consensus nodes, in node order."""
        contexts: list[str] = []
        for node in self.get_consensus_nodes():
            if node.context and node.context not in contexts:
                contexts.append(node.context)
        return contexts

    def get_cluster_refs(self) -> dict[str, str | None]:
        refs: dict[str, str | None] = {}
        for node in self.get_consensus_nodes():
            refs.setdefault(node.cluster, node.context)
        return refs

    # -- Internal helpers ---------------------------------------------------

    def _require_loaded(self) -> RemoteConfigDocument:
        if self._document is None:
            raise NotLoadedError("Remote configuration is not loaded, and was expected to be loaded")
        return self._document

    def _default_context(self) -> str | None:
        context = self.invocation.get_flag(CONTEXT_FLAG)
        if context:
            return context
        return first_cluster_context(
            self.invocation.get_flag(DEPLOYMENT_FLAG), self.local_config
        )

    def _cluster_name(self, context: str | None) -> str | None:
        """Cluster behind *context*, or the context name if the lookup fails."""
        try:
            return self.client.current_cluster(context)
        except RemoteConfigError as exc:
            logger.warning("Could not resolve cluster for context %s: %s", context, exc)
            return context

    def _config_map_exists(self, namespace: str, context: str | None) -> bool:
        try:
            self.client.read_config_map(
                namespace, self.settings.remote_configmap_name, context=context
            )
        except NotFoundError:
            return False
        return True

    def _write_new(
        self, document: RemoteConfigDocument, namespace: str, context: str | None
    ) -> None:
        self.client.create_config_map(
            namespace,
            self.settings.remote_configmap_name,
            dict(self.settings.remote_configmap_labels),
            {self.settings.remote_config_data_key: document.to_yaml()},
            context=context,
        )

    def _node_info(
        self, node: ConsensusNodeComponent, cluster: Cluster | None
    ) -> ConsensusNodeInfo:
        return ConsensusNodeInfo(
            alias=f"node{node.node_id + 1}",
            node_id=node.node_id,
            namespace=node.namespace,
            cluster=node.cluster,
            context=self.local_config.context_for(node.cluster),
            dns_base_domain=cluster.dns_base_domain if cluster else self.settings.dns_base_domain,
            dns_consensus_node_pattern=(
                cluster.dns_consensus_node_pattern
                if cluster
                else self.settings.dns_consensus_node_pattern
            ),
        )
