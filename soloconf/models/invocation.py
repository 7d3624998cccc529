"""The command invocation vector: command path plus flag values."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Flags whose values never reach the command history.
SENSITIVE_FLAG_MARKERS: tuple[str, ...] = ("key", "secret", "password", "token")
REDACTED = "******"


class CommandInvocation(BaseModel):
    """A single CLI invocation, e.g. ``node add --releaseTag v0.58.3``.

    Frozen: resolution steps return updated copies via ``with_flag``.

    Examples
    --------
    >>> inv = CommandInvocation(command=("network", "deploy"),
    ...                         flags={"releaseTag": "v0.58.3"})
    >>> inv.command_line
    'network deploy'
    >>> inv.stringify_flags()
    '--releaseTag v0.58.3'
    """

    model_config = ConfigDict(frozen=True)

    command: tuple[str, ...] = ()
    flags: dict[str, Any] = Field(default_factory=dict)

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    @property
    def main_command(self) -> str:
        return self.command[0] if self.command else ""

    @property
    def subcommand(self) -> str:
        return self.command[1] if len(self.command) > 1 else ""

    def has_flag(self, name: str) -> bool:
        """A flag counts as set when present with a value other than None or ""."""
        value = self.flags.get(name)
        return value is not None and value != ""

    def get_flag(self, name: str, default: Any = None) -> Any:
        if self.has_flag(name):
            return self.flags[name]
        return default

    def with_flag(self, name: str, value: Any) -> CommandInvocation:
        flags = dict(self.flags)
        flags[name] = value
        return self.model_copy(update={"flags": flags})

    def stringify_flags(self) -> str:
        """Render flags as ``--name value`` pairs with secrets redacted.

        ``None``/``False``/empty values are omitted; ``True`` renders as a
        bare ``--name``.
        """
        parts: list[str] = []
        for name in sorted(self.flags):
            value = self.flags[name]
            if value is None or value is False or value == "":
                continue
            if value is True:
                parts.append(f"--{name}")
                continue
            if any(marker in name.lower() for marker in SENSITIVE_FLAG_MARKERS):
                value = REDACTED
            elif isinstance(value, (list, tuple)):
                value = ",".join(str(v) for v in value)
            parts.append(f"--{name} {value}")
        return " ".join(parts)
