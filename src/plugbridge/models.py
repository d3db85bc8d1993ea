"""
models:
    Data models for extensions, documents, hooks and installations
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

import plugbridge.config as config
from plugbridge.exceptions import FormatError, IoError
from plugbridge.platforms import Platform


class ConversionMethod(str, Enum):
    """How an extension's source is turned into a per-platform artifact."""

    SKILL_SUBDIRECTORY = "skill-subdirectory-path"
    COMMAND_FILE = "command-file-path"
    NONE = "none"


@dataclass(frozen=True)
class MarketplaceDescriptor:
    """Third-party repository installed as a whole marketplace."""

    name: str
    plugin_path: str
    version: str


@dataclass(frozen=True)
class ExtensionDefinition:
    """One catalog entry.

    ``conversion_path`` holds the skill subdirectory or the command file,
    relative to ``source_path``, depending on ``conversion``.
    """

    name: str
    display_name_key: str
    source_repo: str
    source_path: str
    platforms: frozenset[Platform]
    conversion: ConversionMethod = ConversionMethod.NONE
    conversion_path: Optional[str] = None
    has_hooks: bool = False
    marketplace: Optional[MarketplaceDescriptor] = None

    def supports(self, platform: Platform) -> bool:
        return platform in self.platforms

    @property
    def is_marketplace(self) -> bool:
        return self.marketplace is not None

    @property
    def skill_subpath(self) -> Optional[str]:
        if self.conversion is ConversionMethod.SKILL_SUBDIRECTORY:
            return self.conversion_path
        return None

    @property
    def command_file(self) -> Optional[str]:
        if self.conversion is ConversionMethod.COMMAND_FILE:
            return self.conversion_path
        return None

    @property
    def version(self) -> Optional[str]:
        return self.marketplace.version if self.marketplace else None

    @property
    def kind(self) -> str:
        """Display label: skill-only extensions vs full plugins."""
        if self.conversion is ConversionMethod.SKILL_SUBDIRECTORY:
            return "Skill"
        return "Plugin"


@dataclass
class SkillDocument:
    """Markdown document with a YAML frontmatter block.

    ``frontmatter_text`` is the block as written, before YAML folding.
    """

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    source: Optional[str] = None
    frontmatter_text: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        value = self.metadata.get("name")
        return str(value) if value is not None else None

    @property
    def description(self) -> Optional[str]:
        value = self.metadata.get("description")
        return str(value) if value is not None else None

    def render(self) -> str:
        """Serialize back to ``---`` delimited frontmatter plus body."""
        if not self.metadata:
            return self.body
        frontmatter_str = yaml.dump(
            self.metadata,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            width=float("inf"),
        ).rstrip()
        return f"---\n{frontmatter_str}\n---\n{self.body}"


def _escape_basic(value: str) -> str:
    """Escape a string for a TOML basic (single-line) string."""
    out = []
    for char in value.replace("\\", "\\\\").replace('"', '\\"'):
        if char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        elif char != "\t" and (ord(char) < 0x20 or ord(char) == 0x7F):
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


def _escape_multiline(value: str) -> str:
    """Escape a string for a TOML multi-line basic string."""
    out = []
    # """ sequences would close the string early
    for char in value.replace("\\", "\\\\").replace('"""', '""\\"'):
        if char not in "\t\n\r" and (ord(char) < 0x20 or ord(char) == 0x7F):
            out.append(f"\\u{ord(char):04X}")
        else:
            out.append(char)
    return "".join(out)


@dataclass(frozen=True)
class TomlCommand:
    """Gemini CLI command: a description and a prompt."""

    description: str
    prompt: str

    def render(self) -> str:
        lines = [
            f'description = "{_escape_basic(self.description)}"',
            'prompt = """',
            _escape_multiline(self.prompt),
            '"""',
        ]
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class HookEntry:
    """One command bound to a hook event."""

    event: str
    command: str
    matcher: Optional[str] = None


@dataclass
class HookSet:
    """Hook commands grouped by event name, in file order."""

    events: dict[str, list[HookEntry]] = field(default_factory=dict)

    @property
    def event_names(self) -> list[str]:
        return list(self.events.keys())

    @property
    def is_empty(self) -> bool:
        return not any(self.events.values())

    def commands(self) -> list[str]:
        return [entry.command for entries in self.events.values() for entry in entries]

    @classmethod
    def from_dict(cls, data: dict, source: Optional[Path] = None) -> "HookSet":
        """Load from the Claude ``hooks.json`` structure."""
        hooks = data.get("hooks", {})
        if not isinstance(hooks, dict):
            raise FormatError(source, "'hooks' must be an object keyed by event name")

        events: dict[str, list[HookEntry]] = {}
        for event, groups in hooks.items():
            if not isinstance(groups, list):
                raise FormatError(source, f"hook event '{event}' must be a list")
            entries = events.setdefault(event, [])
            for group in groups:
                matcher = group.get("matcher") if isinstance(group, dict) else None
                for hook in (group.get("hooks", []) if isinstance(group, dict) else []):
                    command = hook.get("command") if isinstance(hook, dict) else None
                    if command:
                        entries.append(HookEntry(event=event, command=command, matcher=matcher))
        return cls(events=events)

    @classmethod
    def from_directory(cls, hooks_dir: Path) -> "HookSet":
        """Load ``hooks.json`` from a hooks directory; empty if absent."""
        hooks_file = hooks_dir / config.HOOKS_FILE
        if not hooks_file.exists():
            return cls()
        try:
            data = json.loads(hooks_file.read_text())
        except json.JSONDecodeError as e:
            raise FormatError(hooks_file, f"invalid JSON: {e}")
        except OSError as e:
            raise IoError(hooks_file, e)
        if not isinstance(data, dict):
            raise FormatError(hooks_file, "top level must be an object")
        return cls.from_dict(data, hooks_file)


def utc_now() -> str:
    """Timestamp format used in registry entries."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class InstallationRecord:
    """The fact that an extension is installed for a platform."""

    extension: str
    platform: Platform
    install_path: Path
    version: Optional[str] = None
    marketplace: Optional[str] = None
    installed_at: str = field(default_factory=utc_now)
    updated_at: Optional[str] = None

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.installed_at

    @property
    def key(self) -> str:
        if self.marketplace:
            return f"{self.extension}@{self.marketplace}"
        return self.extension


@dataclass
class InstallationOutcome:
    """What an install call produced."""

    extension: str
    platform: Platform
    install_path: Path
    version: Optional[str] = None
    substituted: list[Path] = field(default_factory=list)
    toml_commands: list[Path] = field(default_factory=list)
    hook_events: list[str] = field(default_factory=list)
    package_manager: Optional[str] = None


class MarketplaceState(str, Enum):
    """Steps of a marketplace install."""

    NOT_CLONED = "not-cloned"
    CLONING = "cloning"
    CLONED = "cloned"
    LINKING = "linking"
    DEPENDENCIES_INSTALLING = "dependencies-installing"
    READY = "ready"
    FAILED = "failed"
