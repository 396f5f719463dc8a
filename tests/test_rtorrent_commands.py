import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from rtorrent_commands import (
    BatchCommand,
    full_command,
    multicall_method,
    strip_namespace,
    to_key,
)


def test_full_command_appends_getter_delimiter():
    assert full_command("d.", "hash") == "d.hash="
    assert full_command("t.", "is_enabled") == "t.is_enabled="


def test_full_command_keeps_literal_arguments():
    assert full_command("d.", "custom=icon") == "d.custom=icon"


@pytest.mark.parametrize("field, key", [
    ("hash", "hash"),
    ("hash=", "hash"),
    ("down.rate", "downRate"),
    ("is_active", "isActive"),
    ("timestamp.started", "timestampStarted"),
    ("custom=icon", "customIcon"),
    ("custom1", "custom1"),
    ("Size_Bytes", "sizeBytes"),
    ("custom=,url", "customUrl"),
    ("a  b", "aB"),
    ("", ""),
])
def test_to_key(field, key):
    assert to_key(field) == key


def test_strip_namespace():
    assert strip_namespace("d.tracker.send_scrape") == "tracker.send_scrape"
    assert strip_namespace("multicall") == "multicall"


def test_multicall_method():
    assert multicall_method("d.") == "d.multicall2"
    assert multicall_method("t.") == "t.multicall"
    assert multicall_method("p.") == "p.multicall"


class TestBatchCommand:
    def test_parse_getter_with_target(self):
        cmd = BatchCommand.parse("d.name=ABC")
        assert cmd.method == "d.name"
        assert cmd.target == "ABC"
        assert cmd.args == ()
        assert cmd.params == ["ABC"]
        assert cmd.key == "name"

    def test_parse_with_extra_arguments(self):
        cmd = BatchCommand.parse("d.custom=ABC,url")
        assert cmd.params == ["ABC", "url"]
        assert cmd.key == "customUrl"
        assert cmd.call_spec() == {"methodName": "d.custom", "params": ["ABC", "url"]}

    def test_selector_is_positional_not_pattern_matched(self):
        # Short and non-hex selectors are stripped just the same.
        assert BatchCommand.parse("d.custom=x,comment").key == "customComment"
        assert BatchCommand.parse("d.tracker.send_scrape=ABC,0").key == "trackerSendScrape0"

    def test_parse_without_parameters(self):
        cmd = BatchCommand.parse("system.client_version")
        assert cmd.target is None
        assert cmd.params == []
        assert cmd.key == "clientVersion"
        assert str(cmd) == "system.client_version"

    def test_parse_empty_target(self):
        cmd = BatchCommand.parse("d.name=")
        assert cmd.params == [""]
        assert str(cmd) == "d.name="

    def test_nested_multicall(self):
        cmd = BatchCommand.parse("t.multicall=H,,t.url=,t.is_enabled=")
        assert cmd.is_multicall
        assert cmd.key == "multicall"
        assert cmd.subcommands == ["t.url=", "t.is_enabled="]
        assert cmd.subkeys == ["url", "isEnabled"]
        assert cmd.params == ["H", "", "t.url=", "t.is_enabled="]

    def test_d_multicall2_counts_as_multicall(self):
        cmd = BatchCommand.parse("d.multicall2=,main,d.hash=,d.custom=icon")
        assert cmd.is_multicall
        assert cmd.key == "multicall2"
        assert cmd.subkeys == ["hash", "customIcon"]

    @pytest.mark.parametrize("text", ["system.multicall=,x", "foo.multicall=H,,a=", "multicall=H,,d.name="])
    def test_non_entity_multicall_is_plain(self, text):
        cmd = BatchCommand.parse(text)
        assert not cmd.is_multicall
        assert cmd.subcommands == []

    def test_plain_command_has_no_subcommands(self):
        assert BatchCommand.parse("d.name=H").subcommands == []

    def test_str_round_trips_wire_form(self):
        text = "t.multicall=H,,t.url="
        assert str(BatchCommand.parse(text)) == text
        assert str(BatchCommand("f.priority.set", "H:f0", (1,))) == "f.priority.set=H:f0,1"

    def test_coerce(self):
        cmd = BatchCommand("d.name", "H")
        assert BatchCommand.coerce(cmd) is cmd
        assert BatchCommand.coerce("d.name=H") == cmd
        with pytest.raises(TypeError):
            BatchCommand.coerce(42)
