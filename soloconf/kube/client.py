"""Cluster API client — the manager's and validator's view of Kubernetes.

Defines the ``ClusterClient`` Protocol that any backend must satisfy, plus
``KubectlClusterClient``, which shells out to ``kubectl`` and parses its JSON
output.

Every method takes an optional ``context``; ``None`` means the current kube
context.  Failures surface as ``ReadError`` / ``WriteError``; a missing
ConfigMap on read is a ``NotFoundError``.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field

from soloconf.core.errors import (
    ConflictError,
    NotFoundError,
    ReadError,
    RemoteConfigError,
    WriteError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class ConfigMap(BaseModel):
    """The parts of a ConfigMap this package reads and writes."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)
    data: dict[str, str] = Field(default_factory=dict)


class Pod(BaseModel):
    """Minimal pod view returned by label-selector listings."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)
    phase: str = ""


def label_selector(labels: dict[str, str]) -> str:
    """Render ``{"a": "1", "b": "2"}`` as ``"a=1,b=2"``."""
    return ",".join(f"{key}={value}" for key, value in labels.items())


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ClusterClient(Protocol):
    """Protocol for cluster API backends.

    Any object providing these methods satisfies the protocol; the test suite
    ships an in-memory implementation.
    """

    def read_config_map(
        self, namespace: str, name: str, context: str | None = None
    ) -> ConfigMap:
        """Return the ConfigMap or raise ``NotFoundError`` / ``ReadError``."""
        ...

    def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        """Create a ConfigMap; ``ConflictError`` if it exists, ``WriteError`` otherwise."""
        ...

    def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        """Replace a ConfigMap's labels and data; ``WriteError`` on failure."""
        ...

    def list_pods(
        self, namespace: str, labels: dict[str, str], context: str | None = None
    ) -> list[Pod]:
        """Return the pods matching every label in *labels*."""
        ...

    def current_context(self) -> str | None:
        """Return the current kube context name, if one is configured."""
        ...

    def current_cluster(self, context: str | None = None) -> str:
        """Return the cluster name behind *context* (or the current context)."""
        ...


# ---------------------------------------------------------------------------
# kubectl adapter
# ---------------------------------------------------------------------------


class KubectlClusterClient:
    """``ClusterClient`` backed by the ``kubectl`` binary.

    Parameters
    ----------
    binary:
        Path or name of the kubectl executable.
    timeout:
        Per-call timeout in seconds.
    """

    def __init__(self, binary: str = "kubectl", timeout: int = 30) -> None:
        self.binary = binary
        self.timeout = timeout

    # -- ConfigMaps ---------------------------------------------------------

    def read_config_map(
        self, namespace: str, name: str, context: str | None = None
    ) -> ConfigMap:
        result = self._run(
            ["get", "configmap", name, "-n", namespace, "-o", "json"],
            context=context,
            error=ReadError,
        )
        if result.returncode != 0:
            if "NotFound" in result.stderr:
                raise NotFoundError(
                    f"ConfigMap {name} not found",
                    namespace=namespace,
                    context=context,
                )
            raise ReadError(
                f"Failed to read ConfigMap {name}: {result.stderr.strip()}",
                namespace=namespace,
                context=context,
            )
        raw = self._parse_json(result.stdout, error=ReadError)
        metadata = raw.get("metadata") or {}
        return ConfigMap(
            name=metadata.get("name", name),
            namespace=metadata.get("namespace", namespace),
            labels=metadata.get("labels") or {},
            data=raw.get("data") or {},
        )

    def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        manifest = self._manifest(namespace, name, labels, data)
        result = self._run(
            ["create", "-f", "-"], context=context, error=WriteError, stdin=manifest
        )
        if result.returncode != 0:
            if "AlreadyExists" in result.stderr:
                raise ConflictError(
                    f"ConfigMap {name} already exists",
                    namespace=namespace,
                    context=context,
                )
            raise WriteError(
                f"Failed to create ConfigMap {name}: {result.stderr.strip()}",
                namespace=namespace,
                context=context,
            )
        logger.info("Created ConfigMap %s in %s (context %s).", name, namespace, context)

    def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        context: str | None = None,
    ) -> None:
        manifest = self._manifest(namespace, name, labels, data)
        result = self._run(
            ["replace", "-f", "-"], context=context, error=WriteError, stdin=manifest
        )
        if result.returncode != 0:
            raise WriteError(
                f"Failed to replace ConfigMap {name}: {result.stderr.strip()}",
                namespace=namespace,
                context=context,
            )
        logger.debug("Replaced ConfigMap %s in %s (context %s).", name, namespace, context)

    # -- Pods ---------------------------------------------------------------

    def list_pods(
        self, namespace: str, labels: dict[str, str], context: str | None = None
    ) -> list[Pod]:
        result = self._run(
            ["get", "pods", "-n", namespace, "-l", label_selector(labels), "-o", "json"],
            context=context,
            error=ReadError,
        )
        if result.returncode != 0:
            raise ReadError(
                f"Failed to list pods: {result.stderr.strip()}",
                namespace=namespace,
                context=context,
                labels=label_selector(labels),
            )
        raw = self._parse_json(result.stdout, error=ReadError)
        pods: list[Pod] = []
        for item in raw.get("items", []):
            metadata = item.get("metadata") or {}
            pods.append(
                Pod(
                    name=metadata.get("name", ""),
                    namespace=metadata.get("namespace", namespace),
                    labels=metadata.get("labels") or {},
                    phase=(item.get("status") or {}).get("phase", ""),
                )
            )
        return pods

    # -- Contexts -----------------------------------------------------------

    def current_context(self) -> str | None:
        result = self._run(["config", "current-context"], context=None, error=ReadError)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def current_cluster(self, context: str | None = None) -> str:
        result = self._run(
            ["config", "view", "--minify", "-o", "jsonpath={.clusters[0].name}"],
            context=context,
            error=ReadError,
        )
        if result.returncode != 0 or not result.stdout.strip():
            raise ReadError(
                f"Cannot determine current cluster: {result.stderr.strip()}",
                context=context,
            )
        return result.stdout.strip()

    # -- Internal helpers ---------------------------------------------------

    def _run(
        self,
        args: list[str],
        *,
        context: str | None,
        error: type[RemoteConfigError],
        stdin: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        cmd = [self.binary]
        if context:
            cmd += ["--context", context]
        cmd += args
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise error(f"kubectl {args[0]} timed out", context=context) from exc
        except FileNotFoundError as exc:
            raise error(f"{self.binary} not found in PATH", context=context) from exc

    @staticmethod
    def _manifest(
        namespace: str, name: str, labels: dict[str, str], data: dict[str, str]
    ) -> str:
        return yaml.safe_dump(
            {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {"name": name, "namespace": namespace, "labels": dict(labels)},
                "data": dict(data),
            },
            sort_keys=False,
        )

    @staticmethod
    def _parse_json(text: str, *, error: type[RemoteConfigError]) -> dict[str, Any]:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise error(f"kubectl returned invalid JSON: {exc}") from exc
