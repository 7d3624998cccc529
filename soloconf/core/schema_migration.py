"""Upgrades stored remote config documents to the current schema.

Documents saved before the ``version`` key existed used a flat layout::

    metadata: {name: <namespace>, lastUpdatedAt: ..., lastUpdateBy: ...}
    clusters: {<cluster-ref>: <namespace>}
    components: {...}

``migrate_document`` rewrites such a document into the ``1.0.0`` layout and
stamps it with a ``Migration`` record.  Documents from a newer major version
are refused.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any

from soloconf.core.errors import SchemaError
from soloconf.models.metadata import DeploymentState, Migration
from soloconf.models.versioning import (
    LEGACY_SCHEMA_VERSION,
    REMOTE_CONFIG_SCHEMA_VERSION,
    is_semver,
    parse_semver,
)

logger = logging.getLogger(__name__)


def needs_migration(raw: dict[str, Any]) -> bool:
    """Whether *raw* predates the versioned document layout."""
    return "version" not in raw


def migrate_document(
    raw: dict[str, Any],
    *,
    author: str,
    tool_version: str,
    dns_base_domain: str = "cluster.local",
    dns_consensus_node_pattern: str = "network-{nodeAlias}-svc.{namespace}.svc",
) -> tuple[dict[str, Any], bool]:
    """Return ``(document, migrated)`` for a freshly parsed document.

    The input is never mutated.  ``migrated`` is ``True`` when the legacy
    layout was rewritten; the caller persists the result on its next save.

    Raises
    ------
    SchemaError
        If the document is not a mapping, carries an invalid version, or was
        written by a newer major schema version.
    """
    if not isinstance(raw, dict):
        raise SchemaError(f"Remote config document must be a mapping, got {type(raw).__name__}")

    if not needs_migration(raw):
        version = raw.get("version")
        if not is_semver(version):
            raise SchemaError(f"Invalid remote config version: {version!r}", version=version)
        supported_major = parse_semver(REMOTE_CONFIG_SCHEMA_VERSION)[0]
        if parse_semver(version)[0] > supported_major:
            raise SchemaError(
                f"Remote config version {version} is newer than the supported "
                f"{REMOTE_CONFIG_SCHEMA_VERSION}; upgrade the tool",
                version=version,
            )
        return raw, False

    return _migrate_v0(
        copy.deepcopy(raw),
        author=author,
        tool_version=tool_version,
        dns_base_domain=dns_base_domain,
        dns_consensus_node_pattern=dns_consensus_node_pattern,
    ), True


def _migrate_v0(
    doc: dict[str, Any],
    *,
    author: str,
    tool_version: str,
    dns_base_domain: str,
    dns_consensus_node_pattern: str,
) -> dict[str, Any]:
    old_meta = doc.get("metadata")
    if not isinstance(old_meta, dict):
        raise SchemaError("Legacy remote config has no metadata block")

    namespace = old_meta.get("namespace") or old_meta.get("name")
    if not namespace:
        raise SchemaError("Legacy remote config metadata has no namespace")
    deployment = old_meta.get("deploymentName") or namespace

    migration = Migration(
        migrated_at=datetime.now(timezone.utc),
        migrated_by=author,
        from_version=LEGACY_SCHEMA_VERSION,
    )

    metadata: dict[str, Any] = {
        "namespace": namespace,
        "deploymentName": deployment,
        "state": old_meta.get("state", DeploymentState.DEPLOYED.value),
        "lastUpdatedAt": old_meta.get("lastUpdatedAt") or migration.migrated_at.isoformat(),
        "lastUpdateBy": old_meta.get("lastUpdateBy") or author,
        "soloVersion": old_meta.get("soloVersion") or tool_version,
        "migration": migration.model_dump(mode="json", by_alias=True),
    }
    for key in (
        "soloChartVersion",
        "hederaPlatformVersion",
        "hederaMirrorNodeChartVersion",
        "hederaExplorerChartVersion",
        "hederaJsonRpcRelayChartVersion",
    ):
        if old_meta.get(key):
            metadata[key] = old_meta[key]

    old_clusters = doc.get("clusters") or {}
    if not isinstance(old_clusters, dict):
        raise SchemaError(
            f"Legacy remote config clusters must be a mapping, got {old_clusters!r}",
            namespace=namespace,
        )
    clusters: dict[str, Any] = {}
    for cluster_ref, value in old_clusters.items():
        if isinstance(value, dict):
            clusters[cluster_ref] = value
            continue
        clusters[cluster_ref] = {
            "name": cluster_ref,
            "namespace": value or namespace,
            "deployment": deployment,
            "dnsBaseDomain": dns_base_domain,
            "dnsConsensusNodePattern": dns_consensus_node_pattern,
        }

    history = doc.get("commandHistory") or []
    if not isinstance(history, list):
        raise SchemaError("Legacy remote config command history must be a list", namespace=namespace)
    last_command = doc.get("lastExecutedCommand") or (history[-1] if history else "migrate")

    logger.info(
        "Migrated remote config for namespace %s from schema %s to %s.",
        namespace, LEGACY_SCHEMA_VERSION, REMOTE_CONFIG_SCHEMA_VERSION,
    )
    return {
        "version": REMOTE_CONFIG_SCHEMA_VERSION,
        "metadata": metadata,
        "clusters": clusters,
        "components": doc.get("components") or {},
        "commandHistory": list(history),
        "lastExecutedCommand": last_command,
        "flags": doc.get("flags") or {},
    }
