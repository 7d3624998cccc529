"""Remote config metadata and migration records."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from soloconf.core.errors import SchemaError
from soloconf.models.versioning import is_semver

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+$")


class DeploymentState(str, Enum):
    """Lifecycle of the deployment as a whole."""

    REQUESTED = "requested"
    DEPLOYED = "deployed"


class Migration(BaseModel):
    """Immutable record of the most recent schema migration."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    migrated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="migratedAt"
    )
    migrated_by: str = Field(min_length=1, alias="migratedBy")
    from_version: str = Field(min_length=1, alias="fromVersion")


class RemoteConfigMetadata(BaseModel):
    """Deployment identity, lifecycle state and per-subsystem versions.

    Frozen: every change goes through ``with_update`` or ``make_migration``,
    both of which return a new, re-validated instance.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    namespace: str = Field(min_length=1)
    deployment_name: str = Field(min_length=1, alias="deploymentName")
    state: DeploymentState = DeploymentState.REQUESTED
    last_updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="lastUpdatedAt"
    )
    last_update_by: str = Field(alias="lastUpdateBy")
    solo_version: str = Field(alias="soloVersion")
    solo_chart_version: str = Field(default="", alias="soloChartVersion")
    hedera_platform_version: str = Field(default="", alias="hederaPlatformVersion")
    hedera_mirror_node_chart_version: str = Field(
        default="", alias="hederaMirrorNodeChartVersion"
    )
    hedera_explorer_chart_version: str = Field(
        default="", alias="hederaExplorerChartVersion"
    )
    hedera_json_rpc_relay_chart_version: str = Field(
        default="", alias="hederaJsonRpcRelayChartVersion"
    )
    migration: Migration | None = None

    @field_validator("last_update_by")
    @classmethod
    def _check_author(cls, value: str) -> str:
        if not _EMAIL.match(value):
            raise ValueError(f"Invalid lastUpdateBy: {value!r}")
        return value

    @field_validator("solo_version")
    @classmethod
    def _check_tool_version(cls, value: str) -> str:
        if not is_semver(value):
            raise ValueError(f"Invalid soloVersion: {value!r}")
        return value

    # -- Construction -------------------------------------------------------

    @classmethod
    def from_object(cls, data: Any) -> RemoteConfigMetadata:
        """Rebuild metadata from its stored form, raising ``SchemaError``."""
        if not isinstance(data, dict):
            raise SchemaError(f"Invalid remote config metadata: {data!r}")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Invalid remote config metadata: {exc}",
                namespace=data.get("namespace"),
            ) from exc

    def to_object(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    # -- Modifiers ----------------------------------------------------------

    def with_update(self, **changes: Any) -> RemoteConfigMetadata:
        """Return a copy with *changes* applied (Python field names).

        ``model_copy`` skips validation, so the result is re-validated here.
        """
        data = self.model_dump()
        data.update(changes)
        try:
            return type(self).model_validate(data)
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Invalid remote config metadata update: {exc}",
                namespace=self.namespace,
            ) from exc

    def make_migration(self, author: str, from_version: str) -> RemoteConfigMetadata:
        """Return a copy carrying a fresh migration record.

        Only the most recent migration is tracked; any previous record is
        replaced.
        """
        try:
            migration = Migration(migrated_by=author, from_version=from_version)
        except PydanticValidationError as exc:
            raise SchemaError(f"Invalid migration: {exc}") from exc
        return self.with_update(migration=migration)

    def validate(self) -> None:
        """Re-run validation over the current values."""
        try:
            type(self).model_validate(self.model_dump())
        except PydanticValidationError as exc:
            raise SchemaError(
                f"Invalid remote config metadata: {exc}", namespace=self.namespace
            ) from exc
