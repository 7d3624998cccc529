"""Cluster registry entries — keyed by cluster reference inside the document."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from soloconf.core.errors import SchemaError


class Cluster(BaseModel):
    """Connection and DNS metadata for one cluster of a deployment.

    The DNS fields are stored for whoever renders consensus-node hostnames;
    nothing in this package renders them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str = Field(min_length=1)
    namespace: str = Field(min_length=1)
    deployment: str = Field(min_length=1)
    dns_base_domain: str = Field(default="cluster.local", alias="dnsBaseDomain")
    dns_consensus_node_pattern: str = Field(
        default="network-{nodeAlias}-svc.{namespace}.svc",
        alias="dnsConsensusNodePattern",
    )

    def to_object(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def clusters_from_object(data: Any) -> dict[str, Cluster]:
    """Rebuild the cluster map from its stored form.

    Raises ``SchemaError`` if *data* is not a mapping of non-empty cluster
    references to valid cluster entries.
    """
    if not isinstance(data, dict):
        raise SchemaError(f"Invalid remote config clusters: {data!r}")

    clusters: dict[str, Cluster] = {}
    for cluster_ref, entry in data.items():
        if not cluster_ref or not isinstance(cluster_ref, str):
            raise SchemaError(f"Invalid remote config cluster-ref: {cluster_ref!r}")
        if not isinstance(entry, dict):
            raise SchemaError(
                f"No cluster info is found for cluster-ref: {cluster_ref}",
                cluster=cluster_ref,
            )
        try:
            clusters[cluster_ref] = Cluster.model_validate(entry)
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Invalid cluster entry for cluster-ref {cluster_ref}: {exc}",
                cluster=cluster_ref,
            ) from exc
    return clusters


def clusters_to_object(clusters: dict[str, Cluster]) -> dict[str, dict[str, Any]]:
    return {cluster_ref: cluster.to_object() for cluster_ref, cluster in clusters.items()}
