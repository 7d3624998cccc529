"""Back-fill of per-subsystem version fields in the metadata.

Each rule ties a version flag to a metadata field.  An explicit flag value
always wins; otherwise commands that deploy the subsystem record the default
version from the settings.  Commands that touch none of the rules leave the
field as it is.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from soloconf.config import SoloConfig
from soloconf.models.invocation import CommandInvocation
from soloconf.models.metadata import RemoteConfigMetadata

logger = logging.getLogger(__name__)

ANY_SUBCOMMAND = "*"


class VersionRule(BaseModel):
    """Which flag feeds which metadata field, and for which commands.

    ``commands`` holds ``(command, subcommand)`` pairs; a subcommand of
    ``"*"`` matches every subcommand not listed in ``excluded_subcommands``.
    """

    model_config = ConfigDict(frozen=True)

    flag: str
    metadata_field: str
    default_setting: str
    commands: frozenset[tuple[str, str]]
    excluded_subcommands: frozenset[str] = frozenset()

    def applies_to(self, invocation: CommandInvocation) -> bool:
        command, subcommand = invocation.main_command, invocation.subcommand
        if (command, subcommand) in self.commands:
            return True
        return (
            (command, ANY_SUBCOMMAND) in self.commands
            and subcommand not in self.excluded_subcommands
        )


VERSION_RULES: tuple[VersionRule, ...] = (
    VersionRule(
        flag="soloChartVersion",
        metadata_field="solo_chart_version",
        default_setting="solo_chart_version",
        commands=frozenset({
            ("network", "deploy"),
            ("network", "refresh"),
            ("node", "update"),
            ("node", "update-execute"),
            ("node", "add"),
            ("node", "add-execute"),
            ("node", "delete"),
            ("node", "delete-execute"),
        }),
    ),
    VersionRule(
        flag="releaseTag",
        metadata_field="hedera_platform_version",
        default_setting="release_tag",
        commands=frozenset({("node", ANY_SUBCOMMAND), ("network", "deploy")}),
        excluded_subcommands=frozenset({"keys", "logs", "states"}),
    ),
    VersionRule(
        flag="mirrorNodeVersion",
        metadata_field="hedera_mirror_node_chart_version",
        default_setting="mirror_node_version",
        commands=frozenset({("mirror-node", "deploy")}),
    ),
    VersionRule(
        flag="hederaExplorerVersion",
        metadata_field="hedera_explorer_chart_version",
        default_setting="hedera_explorer_version",
        commands=frozenset({("explorer", "deploy")}),
    ),
    VersionRule(
        flag="relayReleaseTag",
        metadata_field="hedera_json_rpc_relay_chart_version",
        default_setting="relay_release_tag",
        commands=frozenset({("relay", "deploy")}),
    ),
)


def populate_versions(
    metadata: RemoteConfigMetadata,
    invocation: CommandInvocation,
    settings: SoloConfig,
    rules: tuple[VersionRule, ...] = VERSION_RULES,
) -> RemoteConfigMetadata:
    """Return *metadata* with version fields updated for *invocation*.

    Examples
    --------
    A ``relay deploy`` without ``--relayReleaseTag`` records the default
    relay version; the same command with the flag records the flag value.
    """
    changes: dict[str, str] = {}
    for rule in rules:
        if invocation.has_flag(rule.flag):
            changes[rule.metadata_field] = str(invocation.get_flag(rule.flag))
        elif rule.applies_to(invocation):
            changes[rule.metadata_field] = getattr(settings, rule.default_setting)

    if not changes:
        return metadata
    logger.debug("Back-filling metadata versions: %s", changes)
    return metadata.with_update(**changes)
