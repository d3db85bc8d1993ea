"""Tests for platform descriptors."""

import pytest

from plugbridge.exceptions import UnknownPlatformError
from plugbridge.platforms import Platform, describe


class TestPlatformParse:
    """Tests for Platform.parse."""

    @pytest.mark.parametrize("value,expected", [
        ("claude", Platform.CLAUDE),
        ("CODEX", Platform.CODEX),
        (" gemini ", Platform.GEMINI),
        (Platform.GEMINI, Platform.GEMINI),
    ])
    def test_parse(self, value, expected):
        assert Platform.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(UnknownPlatformError) as exc_info:
            Platform.parse("cursor")
        assert exc_info.value.supported == ["claude", "codex", "gemini"]


class TestDescribe:
    """Tests for describe()."""

    def test_claude(self, home):
        descriptor = describe(Platform.CLAUDE, home)
        assert descriptor.root == home / ".claude"
        assert descriptor.install_path("code-review") == home / ".claude" / "plugins" / "code-review"
        assert descriptor.marketplaces_dir == home / ".claude" / "plugins" / "marketplaces"
        assert descriptor.cache_dir == home / ".claude" / "plugins" / "cache"
        assert [p.name for p in descriptor.registry_files] == [
            "known_marketplaces.json",
            "installed_plugins.json",
            "settings.json",
        ]
        assert descriptor.supports_hooks
        assert descriptor.supports_marketplace
        assert descriptor.supports_raw_plugins

    def test_codex(self, home):
        descriptor = describe("codex", home)
        assert descriptor.install_path("x") == home / ".codex" / "skills" / "x"
        assert descriptor.registry_files == ()
        assert not descriptor.supports_hooks
        assert not descriptor.supports_marketplace

    def test_gemini(self, home):
        descriptor = describe("gemini", home)
        assert descriptor.install_path("x") == home / ".gemini" / "extensions" / "x"
        assert descriptor.registry_files == (
            home / ".gemini" / "extensions" / "extension-enablement.json",
        )
        assert descriptor.marketplaces_dir == home / ".gemini" / "marketplaces"
        assert descriptor.supports_hooks
        assert not descriptor.supports_raw_plugins

    def test_default_home_from_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr("plugbridge.config.USER_HOME", tmp_path)
        assert describe("codex").root == tmp_path / ".codex"
