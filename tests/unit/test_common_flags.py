"""Tests for CommonFlags merging between the stored document and an invocation."""

from __future__ import annotations

import pytest

from soloconf.core.common_flags import CommonFlags
from soloconf.core.errors import SchemaError
from soloconf.models.invocation import CommandInvocation


def _invocation(**flags) -> CommandInvocation:
    return CommandInvocation(command=("node", "add"), flags=flags)


class TestCommonFlagsMerge:
    def test_stores_new_value_when_empty(self):
        flags, inv = CommonFlags().merge(_invocation(releaseTag="v0.58.3"))
        assert flags.releaseTag == "v0.58.3"
        assert inv.get_flag("releaseTag") == "v0.58.3"

    def test_inherits_stored_value(self):
        stored = CommonFlags(releaseTag="v0.58.3", chartDirectory="/charts")
        flags, inv = stored.merge(_invocation())
        assert flags == stored
        assert inv.get_flag("releaseTag") == "v0.58.3"
        assert inv.get_flag("chartDirectory") == "/charts"

    def test_chooser_keeps_new_value(self):
        stored = CommonFlags(releaseTag="v0.58.3")
        asked = []

        def chooser(flag, old, new):
            asked.append((flag, old, new))
            return new

        flags, inv = stored.merge(_invocation(releaseTag="v0.59.0"), chooser=chooser)
        assert asked == [("releaseTag", "v0.58.3", "v0.59.0")]
        assert flags.releaseTag == "v0.59.0"
        assert inv.get_flag("releaseTag") == "v0.59.0"

    def test_chooser_keeps_old_value_rewrites_invocation(self):
        stored = CommonFlags(releaseTag="v0.58.3")
        flags, inv = stored.merge(
            _invocation(releaseTag="v0.59.0"), chooser=lambda flag, old, new: old
        )
        assert flags.releaseTag == "v0.58.3"
        assert inv.get_flag("releaseTag") == "v0.58.3"

    @pytest.mark.parametrize("silencer", ["quiet", "force"])
    def test_quiet_or_force_keeps_both(self, silencer):
        stored = CommonFlags(releaseTag="v0.58.3")

        def chooser(flag, old, new):
            raise AssertionError("must not prompt")

        flags, inv = stored.merge(
            _invocation(releaseTag="v0.59.0", **{silencer: True}), chooser=chooser
        )
        assert flags.releaseTag == "v0.58.3"
        assert inv.get_flag("releaseTag") == "v0.59.0"

    def test_without_chooser_keeps_stored_value(self, caplog):
        stored = CommonFlags(releaseTag="v0.58.3")
        with caplog.at_level("WARNING", logger="soloconf.core.common_flags"):
            flags, inv = stored.merge(_invocation(releaseTag="v0.59.0"))
        assert flags.releaseTag == "v0.58.3"
        assert inv.get_flag("releaseTag") == "v0.58.3"
        assert "releaseTag" in caplog.text

    def test_non_common_flags_untouched(self):
        flags, inv = CommonFlags().merge(_invocation(namespace="testnet"))
        assert flags.to_object() == {}
        assert inv.flags == {"namespace": "testnet"}


class TestCommonFlagsSerialization:
    def test_to_object_skips_unset(self):
        assert CommonFlags(relayReleaseTag="v0.63.2").to_object() == {
            "relayReleaseTag": "v0.63.2"
        }

    def test_from_object(self):
        assert CommonFlags.from_object(None) == CommonFlags()
        assert CommonFlags.from_object({"releaseTag": "v1.0.0"}).releaseTag == "v1.0.0"

    def test_from_object_rejects_unknown_flag(self):
        with pytest.raises(SchemaError):
            CommonFlags.from_object({"bogus": "x"})
        with pytest.raises(SchemaError):
            CommonFlags.from_object(["releaseTag"])
