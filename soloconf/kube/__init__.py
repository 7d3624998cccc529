"""Cluster API client protocol and the kubectl-backed adapter."""

from soloconf.kube.client import (
    ClusterClient,
    ConfigMap,
    KubectlClusterClient,
    Pod,
    label_selector,
)

__all__ = ["ClusterClient", "ConfigMap", "KubectlClusterClient", "Pod", "label_selector"]
