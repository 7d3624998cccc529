"""Common CLI flags persisted in the remote config.

Values such as the release tag are stored once and inherited by later
commands that do not pass them.  When a command passes a value that differs
from the stored one, the operator chooses which to keep.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from soloconf.core.errors import SchemaError
from soloconf.models.invocation import CommandInvocation

logger = logging.getLogger(__name__)

# Flag names as they appear on the command line and in the stored document.
COMMON_FLAGS: tuple[str, ...] = (
    "releaseTag",
    "chartDirectory",
    "relayReleaseTag",
    "soloChartVersion",
    "mirrorNodeVersion",
    "nodeAliasesUnparsed",
    "hederaExplorerVersion",
)

# (flag name, stored value, new value) -> the value to keep
FlagChooser = Callable[[str, str, str], str]


class CommonFlags(BaseModel):
    """Persisted flag values.  ``None`` means never set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    releaseTag: str | None = None
    chartDirectory: str | None = None
    relayReleaseTag: str | None = None
    soloChartVersion: str | None = None
    mirrorNodeVersion: str | None = None
    nodeAliasesUnparsed: str | None = None
    hederaExplorerVersion: str | None = None

    @classmethod
    def from_object(cls, data: Any) -> CommonFlags:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise SchemaError(f"Invalid remote config flags: {data!r}")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise SchemaError(f"Invalid remote config flags: {exc}") from exc

    def to_object(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)

    def merge(
        self,
        invocation: CommandInvocation,
        *,
        chooser: FlagChooser | None = None,
    ) -> tuple[CommonFlags, CommandInvocation]:
        """Reconcile stored values with the flags of *invocation*.

        Rules, per common flag:

        * passed, nothing stored -> store the passed value;
        * passed, stored differs -> with ``quiet``/``force`` keep both as they
          are; otherwise ask *chooser*.  Choosing the stored value rewrites the
          invocation, choosing the new one updates the store.  Without a
          chooser the stored value is kept and a warning is logged;
        * not passed, stored -> the invocation inherits the stored value.

        Returns the updated flags and the updated invocation.
        """
        stored = self.model_dump()
        silent = bool(invocation.get_flag("quiet")) or bool(invocation.get_flag("force"))

        for flag in COMMON_FLAGS:
            old_value = stored.get(flag)
            if invocation.has_flag(flag):
                new_value = str(invocation.get_flag(flag))
                if not old_value:
                    stored[flag] = new_value
                elif old_value != new_value and not silent:
                    if chooser is None:
                        logger.warning(
                            "Flag %s=%s differs from remote config value %s; keeping %s.",
                            flag, new_value, old_value, old_value,
                        )
                        answer = old_value
                    else:
                        answer = chooser(flag, old_value, new_value)
                    if answer == new_value:
                        stored[flag] = new_value
                    else:
                        invocation = invocation.with_flag(flag, old_value)
            elif old_value:
                invocation = invocation.with_flag(flag, old_value)

        return CommonFlags.model_validate(stored), invocation
