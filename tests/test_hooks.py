"""Tests for hook conversion."""

import json

import pytest

from plugbridge.exceptions import FormatError
from plugbridge.hooks import convert_hooks
from plugbridge.models import HookSet
from plugbridge.substitution import plugin_root_tokens

from conftest import TOKEN, write, write_json


class TestConvertHooks:
    """Tests for convert_hooks."""

    def test_copies_and_substitutes(self, upstream, tmp_path):
        source = upstream / "anthropics__claude-code" / "plugins" / "ralph-wiggum" / "hooks"
        extension = tmp_path / "extensions" / "ralph-wiggum"
        extension.mkdir(parents=True)

        hooks = convert_hooks(source, extension, plugin_root_tokens(extension))

        root = str(extension.resolve())
        assert hooks.event_names == ["Stop"]
        assert hooks.commands() == [f"{root}/hooks/stop-hook.sh"]
        assert TOKEN not in (extension / "hooks" / "stop-hook.sh").read_text()
        # binary files are copied untouched
        assert (extension / "hooks" / "icon.png").read_bytes() == (source / "icon.png").read_bytes()
        # the source tree is left alone
        assert TOKEN in (source / "hooks.json").read_text()

    def test_same_directory_only_substitutes(self, tmp_path):
        extension = tmp_path / "ext"
        write_json(extension / "hooks" / "hooks.json", {
            "hooks": {"SessionStart": [{"hooks": [{"type": "command", "command": f"{TOKEN}/a.sh"}]}]}
        })

        hooks = convert_hooks(extension / "hooks", extension, {TOKEN: "/root"})

        assert hooks.commands() == ["/root/a.sh"]

    def test_replaces_previous_copy(self, upstream, tmp_path):
        source = upstream / "anthropics__claude-code" / "plugins" / "ralph-wiggum" / "hooks"
        extension = tmp_path / "ext"
        write(extension / "hooks" / "stale.sh", "old\n")

        convert_hooks(source, extension, {TOKEN: "/root"})

        assert not (extension / "hooks" / "stale.sh").exists()

    def test_missing_hooks_dir(self, tmp_path):
        assert convert_hooks(tmp_path / "nope", tmp_path / "ext", {}).is_empty


class TestHookSet:
    """Tests for HookSet loading."""

    def test_matcher_and_order(self):
        hooks = HookSet.from_dict({
            "hooks": {
                "PreToolUse": [
                    {"matcher": "Edit|Write", "hooks": [{"type": "command", "command": "a"}]},
                    {"hooks": [{"type": "command", "command": "b"}]},
                ],
                "Stop": [{"hooks": [{"type": "command", "command": "c"}]}],
            }
        })
        assert hooks.event_names == ["PreToolUse", "Stop"]
        assert hooks.commands() == ["a", "b", "c"]
        assert hooks.events["PreToolUse"][0].matcher == "Edit|Write"
        assert hooks.events["PreToolUse"][1].matcher is None

    def test_invalid_json(self, tmp_path):
        write(tmp_path / "hooks" / "hooks.json", "{broken")
        with pytest.raises(FormatError, match="invalid JSON"):
            HookSet.from_directory(tmp_path / "hooks")

    def test_event_must_be_list(self, tmp_path):
        write(tmp_path / "hooks" / "hooks.json", json.dumps({"hooks": {"Stop": "nope"}}))
        with pytest.raises(FormatError, match="must be a list"):
            HookSet.from_directory(tmp_path / "hooks")
