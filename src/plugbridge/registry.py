"""
registry:
    Read, merge and rewrite each platform's JSON bookkeeping files.

Every operation reads all the files it touches, computes their new
contents in memory and only then writes them, one after the other in a
fixed order. Each file is replaced atomically. A crash between two files
can leave them out of step, which the next ``upsert``/``remove`` repairs:
both operations are idempotent.

Entries belonging to other extensions, and any keys this module does not
know about, are always carried over untouched.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from plugbridge.exceptions import IoError, RegistryCorruption
from plugbridge.models import InstallationRecord, utc_now
from plugbridge.platforms import Platform, PlatformDescriptor


@dataclass(frozen=True)
class JsonRegistryFile:
    """One JSON registry file and the shape it has when empty."""

    path: Path
    default: dict

    def read(self) -> dict:
        """Load the file, or the empty shape if it does not exist yet.

        Raises:
            RegistryCorruption: If the file is not UTF-8 encoded JSON holding an object
        """
        if not self.path.exists():
            return copy.deepcopy(self.default)
        try:
            content = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise RegistryCorruption(self.path, f"not valid UTF-8: {e}")
        except OSError as e:
            raise IoError(self.path, e)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RegistryCorruption(self.path, f"invalid JSON: {e}")
        if not isinstance(data, dict):
            raise RegistryCorruption(self.path, "top level is not a JSON object")
        return data

    def is_empty(self, data: dict) -> bool:
        return data == self.default

    @staticmethod
    def render(data: dict) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def commit(changes: list[tuple[JsonRegistryFile, Optional[dict]]]) -> list[Path]:
    """
    Write a batch of registry updates in the given order.

    Args:
        changes: Pairs of (file, new data); ``None`` deletes the file

    Returns:
        Paths that were actually rewritten or deleted

    Raises:
        IoError: If a write fails. Files written earlier in the batch stay
            written; re-running the same operation completes the batch.
    """
    # Render everything before touching the disk. A file whose parsed
    # content is unchanged is left alone, whatever its formatting.
    planned: list[tuple[Path, Optional[str]]] = []
    for registry, data in changes:
        if data is not None and registry.path.exists() and registry.read() == data:
            continue
        planned.append((registry.path, None if data is None else registry.render(data)))

    written = []
    for path, content in planned:
        try:
            if content is None:
                if path.exists():
                    path.unlink()
                    written.append(path)
                continue
            _atomic_write(path, content)
            written.append(path)
        except OSError as e:
            raise IoError(path, e)
    return written


def _or_delete(registry: JsonRegistryFile, data: dict, original: dict) -> Optional[dict]:
    # An untouched file stays, even when it already holds the empty shape
    if data == original and registry.path.exists():
        return data
    return None if registry.is_empty(data) else data


class ClaudeRegistry:
    """Claude's marketplace bookkeeping.

    An installed marketplace plugin appears in three files:
    ``known_marketplaces.json`` (where the marketplace came from),
    ``installed_plugins.json`` (install path and version) and
    ``settings.json`` (the enabled flag). They are always written in that
    order.
    """

    def __init__(self, descriptor: PlatformDescriptor):
        if descriptor.platform is not Platform.CLAUDE:
            raise ValueError(f"ClaudeRegistry needs the Claude descriptor, got {descriptor.platform}")
        known, installed, settings = descriptor.registry_files
        self.known_marketplaces = JsonRegistryFile(known, {})
        self.installed_plugins = JsonRegistryFile(installed, {"version": 2, "plugins": {}})
        self.settings = JsonRegistryFile(settings, {})

    @property
    def files(self) -> tuple[JsonRegistryFile, ...]:
        return (self.known_marketplaces, self.installed_plugins, self.settings)

    def _plugins(self, installed: dict, create: bool = True) -> dict:
        plugins = installed.setdefault("plugins", {}) if create else installed.get("plugins", {})
        if not isinstance(plugins, dict):
            raise RegistryCorruption(self.installed_plugins.path, "'plugins' is not an object")
        return plugins

    def get(self, key: str) -> Optional[dict]:
        """Installed-plugin entry for ``name@marketplace``, if any."""
        installed = self.installed_plugins.read()
        entries = self._plugins(installed).get(key)
        if isinstance(entries, list) and entries:
            return entries[0]
        return None

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def upsert(self, record: InstallationRecord, source_repo: str, install_location: Path) -> list[Path]:
        """
        Register a marketplace plugin in all three files.

        ``installedAt`` survives a re-install; ``lastUpdated`` moves.
        """
        if not record.marketplace:
            raise ValueError(f"'{record.extension}' has no marketplace")

        known = self.known_marketplaces.read()
        installed = self.installed_plugins.read()
        settings = self.settings.read()

        now = record.updated_at or utc_now()
        known[record.marketplace] = {
            "source": {"source": "github", "repo": source_repo},
            "installLocation": str(install_location),
            "lastUpdated": now,
        }

        plugins = self._plugins(installed)
        installed.setdefault("version", 2)
        previous = plugins.get(record.key)
        installed_at = record.installed_at
        if isinstance(previous, list) and previous and isinstance(previous[0], dict):
            installed_at = previous[0].get("installedAt", installed_at)
        plugins[record.key] = [{
            "scope": "user",
            "installPath": str(record.install_path),
            "version": record.version,
            "installedAt": installed_at,
            "lastUpdated": now,
            "isLocal": True,
        }]

        enabled = settings.setdefault("enabledPlugins", {})
        if not isinstance(enabled, dict):
            raise RegistryCorruption(self.settings.path, "'enabledPlugins' is not an object")
        enabled[record.key] = True

        return commit([
            (self.known_marketplaces, known),
            (self.installed_plugins, installed),
            (self.settings, settings),
        ])

    def remove(self, key: str) -> list[Path]:
        """
        Unregister ``name@marketplace``.

        The marketplace entry goes too once no other installed plugin comes
        from it. Removing an unknown key changes nothing.
        """
        known = self.known_marketplaces.read()
        installed = self.installed_plugins.read()
        settings = self.settings.read()
        original = copy.deepcopy((known, installed, settings))

        plugins = self._plugins(installed, create=False)
        plugins.pop(key, None)

        enabled = settings.get("enabledPlugins")
        if isinstance(enabled, dict) and key in enabled:
            del enabled[key]
            if not enabled:
                del settings["enabledPlugins"]

        marketplace = key.partition("@")[2]
        still_used = any(other.partition("@")[2] == marketplace for other in plugins)
        if marketplace and not still_used:
            known.pop(marketplace, None)

        # Reverse order: the plugin entry disappears before its source
        return commit([
            (self.installed_plugins, _or_delete(self.installed_plugins, installed, original[1])),
            (self.settings, _or_delete(self.settings, settings, original[2])),
            (self.known_marketplaces, _or_delete(self.known_marketplaces, known, original[0])),
        ])

    def marketplace_in_use(self, marketplace: str, exclude: Optional[str] = None) -> bool:
        """Whether any installed plugin other than ``exclude`` uses ``marketplace``."""
        plugins = self._plugins(self.installed_plugins.read())
        return any(
            key.partition("@")[2] == marketplace and key != exclude
            for key in plugins
        )


class GeminiRegistry:
    """Gemini's ``extension-enablement.json``.

    Each installed extension is enabled for every path under the user's
    home directory through a single wildcard override.
    """

    def __init__(self, descriptor: PlatformDescriptor, home: Path):
        if descriptor.platform is not Platform.GEMINI:
            raise ValueError(f"GeminiRegistry needs the Gemini descriptor, got {descriptor.platform}")
        self.enablement = JsonRegistryFile(descriptor.registry_files[0], {})
        self.home = home

    @property
    def files(self) -> tuple[JsonRegistryFile, ...]:
        return (self.enablement,)

    def override_scope(self) -> str:
        return f"{self.home}/*"

    def contains(self, name: str) -> bool:
        return name in self.enablement.read()

    def upsert(self, record: InstallationRecord) -> list[Path]:
        data = self.enablement.read()
        data[record.extension] = {"overrides": [self.override_scope()]}
        return commit([(self.enablement, data)])

    def remove(self, name: str) -> list[Path]:
        data = self.enablement.read()
        if name not in data:
            return []
        original = copy.deepcopy(data)
        del data[name]
        return commit([(self.enablement, _or_delete(self.enablement, data, original))])
