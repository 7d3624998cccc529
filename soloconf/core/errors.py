"""Error taxonomy for the remote configuration subsystem.

Every error carries a ``context`` dict with the identifying details of the
failure (namespace, cluster, component name, ...).  Wrapping is done with
``raise NewError(...) from exc`` so the original cause is kept on
``__cause__``.

Only ``NotFoundError`` raised while *loading* the remote config is treated as
soft by the manager; everything else aborts the calling command.
"""

from __future__ import annotations

from typing import Any


class RemoteConfigError(RuntimeError):
    """Base class for all remote configuration failures."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = {
            key: value for key, value in context.items() if value is not None
        }


class NotFoundError(RemoteConfigError):
    """Raised when the backing ConfigMap (or another entity) does not exist."""


class ReadError(RemoteConfigError):
    """Raised when reading from the cluster control plane fails."""


class WriteError(RemoteConfigError):
    """Raised when writing to the cluster control plane fails."""


class ValidationError(RemoteConfigError):
    """Raised when declared components diverge from what the cluster reports."""


class RemoteConfigIsInvalid(ValidationError):
    """Raised by ``RemoteConfigManager.get`` when the loaded config has drifted."""


class ConflictError(RemoteConfigError):
    """Raised when creating something that already exists."""


class SchemaError(RemoteConfigError):
    """Raised when a stored document or a model instance is malformed."""


class ConfigurationError(RemoteConfigError):
    """Raised when namespace, deployment or context cannot be resolved."""


class NotLoadedError(RemoteConfigError):
    """Raised when a strict manager is asked to modify an unloaded config."""


class DuplicateComponentError(ConflictError):
    """Raised when adding a component whose name already exists in its group."""


class ComponentNotFoundError(NotFoundError):
    """Raised when a component is missing from its group."""
