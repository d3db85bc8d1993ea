"""
platforms:
    Target platform descriptors for Claude Code, Codex and Gemini CLI.

The three platforms are a closed set of tagged variants. Each variant is a
plain data record built by ``describe()``; callers dispatch with ``match``
on ``Platform`` rather than through subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import plugbridge.config as config
from plugbridge.exceptions import UnknownPlatformError


class Platform(str, Enum):
    """Supported AI CLI hosts."""

    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: "str | Platform") -> "Platform":
        """Resolve a platform from its value or member name."""
        if isinstance(value, Platform):
            return value
        normalized = value.strip().lower()
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        raise UnknownPlatformError(value, [member.value for member in cls])


@dataclass(frozen=True)
class PlatformDescriptor:
    """Per-platform constants: config root, registries and capabilities."""

    platform: Platform
    display_name: str
    root: Path
    install_dir_name: str
    registry_files: tuple[Path, ...]
    supports_hooks: bool
    supports_marketplace: bool
    supports_raw_plugins: bool

    @property
    def install_root(self) -> Path:
        return self.root / self.install_dir_name

    def install_path(self, name: str) -> Path:
        return self.install_root / name

    @property
    def marketplaces_dir(self) -> Path:
        if self.platform is Platform.CLAUDE:
            return self.root / "plugins" / "marketplaces"
        return self.root / "marketplaces"

    @property
    def cache_dir(self) -> Path:
        """Version cache for marketplace plugins (Claude layout)."""
        return self.root / "plugins" / "cache"

    @property
    def skills_dir(self) -> Path:
        return self.root / "skills"


def describe(platform: Platform | str, home: Optional[Path] = None) -> PlatformDescriptor:
    """Build the descriptor for a platform rooted at ``home``."""
    platform = Platform.parse(platform)
    home = Path(home) if home is not None else config.USER_HOME

    match platform:
        case Platform.CLAUDE:
            root = home / ".claude"
            return PlatformDescriptor(
                platform=platform,
                display_name="Anthropic Claude",
                root=root,
                install_dir_name="plugins",
                registry_files=(
                    root / "plugins" / "known_marketplaces.json",
                    root / "plugins" / "installed_plugins.json",
                    root / "settings.json",
                ),
                supports_hooks=True,
                supports_marketplace=True,
                supports_raw_plugins=True,
            )
        case Platform.CODEX:
            return PlatformDescriptor(
                platform=platform,
                display_name="OpenAI Codex",
                root=home / ".codex",
                install_dir_name="skills",
                registry_files=(),
                supports_hooks=False,
                supports_marketplace=False,
                supports_raw_plugins=False,
            )
        case Platform.GEMINI:
            root = home / ".gemini"
            return PlatformDescriptor(
                platform=platform,
                display_name="Google Gemini",
                root=root,
                install_dir_name="extensions",
                registry_files=(root / "extensions" / "extension-enablement.json",),
                supports_hooks=True,
                supports_marketplace=True,
                supports_raw_plugins=False,
            )
    raise UnknownPlatformError(str(platform), [member.value for member in Platform])
