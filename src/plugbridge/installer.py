"""
installer:
    Install and remove catalog extensions for one platform at a time.

This module provides:
- Installer, the per-(extension, platform) orchestrator
- install/remove/list_available/is_installed shortcuts on a default Installer

Install order is always: materialize the tree, convert documents, resolve
placeholders, then write registries. Removal runs the other way round, so
a half-removed extension is never reported as installed.
"""

from __future__ import annotations

import shutil
import threading
from pathlib import Path
from typing import Optional, Protocol

import plugbridge.config as config
from plugbridge import catalog, ui
from plugbridge import frontmatter as fm
from plugbridge.converters import (
    command_to_skill,
    gemini_context,
    gemini_manifest,
    render_manifest,
    to_codex_frontmatter,
    to_toml_command,
)
from plugbridge.exceptions import FormatError, IoError, UnsupportedPlatformError
from plugbridge.hooks import convert_hooks
from plugbridge.marketplace import MarketplaceInstaller
from plugbridge.models import (
    ConversionMethod,
    ExtensionDefinition,
    InstallationOutcome,
    InstallationRecord,
    SkillDocument,
)
from plugbridge.platforms import Platform, PlatformDescriptor, describe
from plugbridge.registry import ClaudeRegistry, GeminiRegistry
from plugbridge.runner import Finder, Runner, find_tool, run_command
from plugbridge.sources import GitSourceFetcher
from plugbridge.substitution import plugin_root_tokens, substitute_tokens


class SourceFetcher(Protocol):
    """Anything that can hand out a local copy of a path in a repository."""

    def resolve(self, repo: str, path: str) -> Path:
        ...


# =============================================================================
# Filesystem helpers
# =============================================================================


def _remove_tree(path: Path) -> bool:
    """Delete a file, symlink or directory. Returns True if something was removed."""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
            return True
        if path.exists():
            shutil.rmtree(path)
            return True
    except OSError as e:
        raise IoError(path, e)
    return False


def _replace_tree(source: Path, dest: Path) -> None:
    """Make ``dest`` an exact copy of ``source``."""
    _remove_tree(dest)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, dest, symlinks=True, ignore=shutil.ignore_patterns(".git"))
    except OSError as e:
        raise IoError(dest, e)


def _read_text(path: Path) -> str:
    try:
        return path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise IoError(path, e)


def _write_text(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    except OSError as e:
        raise IoError(path, e)
    return path


# =============================================================================
# Installer
# =============================================================================


class Installer:
    """Orchestrates installs and removals against one home directory."""

    def __init__(
        self,
        home: Optional[Path] = None,
        fetcher: Optional[SourceFetcher] = None,
        run: Runner = run_command,
        find: Finder = find_tool,
        package_managers: Optional[tuple[str, ...]] = None,
        verbose: bool = False,
    ):
        self.home = Path(home) if home is not None else config.USER_HOME
        self.fetcher = fetcher or GitSourceFetcher(run=run)
        self.run = run
        self.find = find
        self.package_managers = package_managers
        self.verbose = verbose
        # Serializes read-modify-write of each platform's registries
        self._locks = {platform: threading.Lock() for platform in Platform}

    def descriptor(self, platform: Platform | str) -> PlatformDescriptor:
        return describe(platform, self.home)

    def _marketplace_installer(self, descriptor: PlatformDescriptor) -> MarketplaceInstaller:
        return MarketplaceInstaller(
            descriptor,
            run=self.run,
            find=self.find,
            package_managers=self.package_managers,
            verbose=self.verbose,
        )

    def _resolve(self, name: str, platform: Platform | str) -> tuple[ExtensionDefinition, Platform]:
        platform = Platform.parse(platform)
        ext = catalog.get_extension(name)
        if ext not in catalog.list_for(platform):
            raise UnsupportedPlatformError(name, platform.value)
        return ext, platform

    def _fetch(self, ext: ExtensionDefinition, subpath: Optional[str] = None) -> Path:
        path = ext.source_path if subpath is None else f"{ext.source_path}/{subpath}"
        ui.step(f"fetching {ext.source_repo}/{path}", self.verbose)
        return self.fetcher.resolve(ext.source_repo, path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_available(self, platform: Platform | str) -> list[ExtensionDefinition]:
        return catalog.list_for(platform)

    def install_path(self, ext: ExtensionDefinition, platform: Platform | str) -> Path:
        """Where ``ext`` lives on disk once installed for ``platform``."""
        descriptor = self.descriptor(platform)
        if descriptor.platform is Platform.CLAUDE and ext.is_marketplace:
            return self._marketplace_installer(descriptor).version_link(ext)
        return descriptor.install_path(ext.name)

    def is_installed(self, name: str, platform: Platform | str) -> bool:
        platform = Platform.parse(platform)
        ext = catalog.get_extension(name)
        if ext not in catalog.list_for(platform):
            return False

        descriptor = self.descriptor(platform)
        match platform:
            case Platform.CLAUDE:
                if ext.is_marketplace:
                    key = f"{ext.name}@{ext.marketplace.name}"
                    return ClaudeRegistry(descriptor).contains(key)
                return descriptor.install_path(ext.name).is_dir()
            case Platform.CODEX:
                return (descriptor.install_path(ext.name) / config.SKILL_FILE).is_file()
            case Platform.GEMINI:
                manifest = descriptor.install_path(ext.name) / config.GEMINI_MANIFEST_FILE
                return GeminiRegistry(descriptor, self.home).contains(ext.name) and manifest.is_file()
        return False

    def list_installed(self, platform: Platform | str) -> list[str]:
        """Names of installed catalog extensions, in catalog order."""
        return [ext.name for ext in catalog.list_for(platform) if self.is_installed(ext.name, platform)]

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(self, name: str, platform: Platform | str) -> InstallationOutcome:
        """
        Install ``name`` for ``platform``. Safe to call again after a
        failure or on an already installed extension.

        Raises:
            UnsupportedPlatformError: The extension is not available there
            FormatError, IoError, RegistryCorruption, ExternalCommandError,
            DependencyInstallError: See plugbridge.exceptions
        """
        ext, platform = self._resolve(name, platform)
        descriptor = self.descriptor(platform)

        with self._locks[platform]:
            match platform:
                case Platform.CLAUDE:
                    return self._install_claude(ext, descriptor)
                case Platform.CODEX:
                    return self._install_codex(ext, descriptor)
                case Platform.GEMINI:
                    return self._install_gemini(ext, descriptor)
        raise UnsupportedPlatformError(name, str(platform))

    def _install_claude(self, ext: ExtensionDefinition, descriptor: PlatformDescriptor) -> InstallationOutcome:
        if ext.is_marketplace:
            result = self._marketplace_installer(descriptor).install(ext)
            record = InstallationRecord(
                extension=ext.name,
                platform=Platform.CLAUDE,
                install_path=result.install_path,
                version=result.version,
                marketplace=ext.marketplace.name,
            )
            ClaudeRegistry(descriptor).upsert(record, ext.source_repo, result.clone_dir)
            return InstallationOutcome(
                extension=ext.name,
                platform=Platform.CLAUDE,
                install_path=result.install_path,
                version=result.version,
                package_manager=result.package_manager,
            )

        # Claude hosts the plugin as published; the directory is the record
        dest = descriptor.install_path(ext.name)
        _replace_tree(self._fetch(ext), dest)
        return InstallationOutcome(extension=ext.name, platform=Platform.CLAUDE, install_path=dest)

    def _install_codex(self, ext: ExtensionDefinition, descriptor: PlatformDescriptor) -> InstallationOutcome:
        dest = descriptor.install_path(ext.name)
        skill_file = dest / config.SKILL_FILE

        match ext.conversion:
            case ConversionMethod.SKILL_SUBDIRECTORY:
                source = self._fetch(ext, ext.skill_subpath)
                if not (source / config.SKILL_FILE).is_file():
                    raise FormatError(source, f"missing {config.SKILL_FILE}")
                skill = to_codex_frontmatter(fm.parse_file(source / config.SKILL_FILE))
                _replace_tree(source, dest)
            case ConversionMethod.COMMAND_FILE:
                source = self._fetch(ext, ext.command_file)
                skill = to_codex_frontmatter(command_to_skill(fm.parse_file(source), ext.name))
                _remove_tree(dest)
            case _:
                raise UnsupportedPlatformError(ext.name, Platform.CODEX.value)

        if not skill.name:
            skill.metadata = {"name": ext.name, **skill.metadata}
        _write_text(skill_file, skill.render())
        ui.step(f"wrote {skill_file}", self.verbose)
        return InstallationOutcome(extension=ext.name, platform=Platform.CODEX, install_path=dest)

    def _install_gemini(self, ext: ExtensionDefinition, descriptor: PlatformDescriptor) -> InstallationOutcome:
        dest = descriptor.install_path(ext.name)
        outcome = InstallationOutcome(
            extension=ext.name,
            platform=Platform.GEMINI,
            install_path=dest,
            version=ext.version,
        )

        if ext.conversion is ConversionMethod.SKILL_SUBDIRECTORY:
            outcome.toml_commands = self._gemini_from_skill(ext, dest)
        elif ext.conversion is ConversionMethod.COMMAND_FILE:
            outcome.toml_commands = self._gemini_from_command(ext, dest)
        else:
            if ext.is_marketplace:
                result = self._marketplace_installer(descriptor).install(ext, dest)
                plugin_source = result.plugin_dir
                outcome.package_manager = result.package_manager
            else:
                plugin_source = self._fetch(ext)
                _replace_tree(plugin_source, dest)
            outcome.toml_commands = self._gemini_from_plugin(ext, dest)
            if ext.has_hooks:
                hooks = convert_hooks(
                    plugin_source / config.HOOKS_DIR, dest, plugin_root_tokens(dest)
                )
                outcome.hook_events = hooks.event_names

        outcome.substituted = substitute_tokens(dest, plugin_root_tokens(dest))

        GeminiRegistry(descriptor, self.home).upsert(
            InstallationRecord(
                extension=ext.name,
                platform=Platform.GEMINI,
                install_path=dest,
                version=ext.version,
            )
        )
        return outcome

    # ------------------------------------------------------------------
    # Gemini conversions
    # ------------------------------------------------------------------

    def _write_gemini_extension(
        self,
        ext: ExtensionDefinition,
        dest: Path,
        context: str,
        command: Optional[SkillDocument] = None,
        fallback_description: str = "Command",
    ) -> list[Path]:
        """Write manifest, context file and the invoke command."""
        _write_text(dest / config.GEMINI_MANIFEST_FILE, render_manifest(gemini_manifest(ext.name, ext.version)))
        _write_text(dest / config.GEMINI_CONTEXT_FILE, context)
        if command is None:
            return []
        toml_path = dest / config.COMMANDS_DIR / ext.name / f"{config.GEMINI_INVOKE_COMMAND}.toml"
        _write_text(toml_path, to_toml_command(command, fallback_description).render())
        return [toml_path]

    def _gemini_from_skill(self, ext: ExtensionDefinition, dest: Path) -> list[Path]:
        source = self._fetch(ext, ext.skill_subpath)
        skill_source = source / config.SKILL_FILE
        if not skill_source.is_file():
            raise FormatError(source, f"missing {config.SKILL_FILE}")
        doc = fm.parse_file(skill_source)
        description = doc.description or f"{ext.name} extension"

        # Supporting files (scripts, references) travel with the extension
        _replace_tree(source, dest)
        _remove_tree(dest / config.SKILL_FILE)

        return self._write_gemini_extension(
            ext,
            dest,
            gemini_context(ext.name, description, doc.body),
            command=doc,
            fallback_description=f"{ext.name} extension",
        )

    def _gemini_from_command(self, ext: ExtensionDefinition, dest: Path) -> list[Path]:
        source = self._fetch(ext, ext.command_file)
        doc = fm.parse_file(source)
        description = doc.description or f"{ext.name} command"

        _remove_tree(dest)
        return self._write_gemini_extension(
            ext,
            dest,
            gemini_context(ext.name, description),
            command=doc,
            fallback_description=f"{ext.name} command",
        )

    def _gemini_from_plugin(self, ext: ExtensionDefinition, dest: Path) -> list[Path]:
        """Turn a copied Claude plugin tree into a Gemini extension in place."""
        context_file = dest / config.GEMINI_CONTEXT_FILE
        if context_file.exists():
            context = _read_text(context_file)
        elif (dest / "README.md").is_file():
            context = _read_text(dest / "README.md")
        else:
            context = gemini_context(ext.name, "Extension for Gemini CLI.")

        self._write_gemini_extension(ext, dest, context)
        toml_paths = self._convert_plugin_commands(ext, dest)

        if not toml_paths:
            doc = SkillDocument(metadata={"description": f"{ext.name} extension"}, body=context)
            toml_path = dest / config.COMMANDS_DIR / ext.name / f"{config.GEMINI_INVOKE_COMMAND}.toml"
            _write_text(toml_path, to_toml_command(doc).render())
            toml_paths = [toml_path]
        return toml_paths

    def _convert_plugin_commands(self, ext: ExtensionDefinition, dest: Path) -> list[Path]:
        """commands/<cmd>.md -> commands/<extension>/<cmd>.toml, sources removed."""
        commands_dir = dest / config.COMMANDS_DIR
        if not commands_dir.is_dir():
            return []

        toml_paths = []
        for command_file in sorted(commands_dir.glob("*.md")):
            doc = fm.parse_file(command_file)
            toml_path = commands_dir / ext.name / f"{command_file.stem}.toml"
            _write_text(toml_path, to_toml_command(doc).render())
            _remove_tree(command_file)
            toml_paths.append(toml_path)
            ui.step(f"converted {command_file.name} -> {toml_path}", self.verbose)
        return toml_paths

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove(self, name: str, platform: Platform | str) -> None:
        """
        Remove ``name`` from ``platform``. Registries go first, then files.
        Removing something that is not installed does nothing.
        """
        ext, platform = self._resolve(name, platform)
        descriptor = self.descriptor(platform)

        with self._locks[platform]:
            match platform:
                case Platform.CLAUDE:
                    if ext.is_marketplace:
                        registry = ClaudeRegistry(descriptor)
                        registry.remove(f"{ext.name}@{ext.marketplace.name}")
                        keep_clone = registry.marketplace_in_use(ext.marketplace.name)
                        self._marketplace_installer(descriptor).remove(ext, keep_clone=keep_clone)
                    else:
                        _remove_tree(descriptor.install_path(ext.name))
                case Platform.CODEX:
                    _remove_tree(descriptor.install_path(ext.name))
                case Platform.GEMINI:
                    GeminiRegistry(descriptor, self.home).remove(ext.name)
                    _remove_tree(descriptor.install_path(ext.name))
                    if ext.is_marketplace:
                        self._marketplace_installer(descriptor).remove(ext)
        ui.step(f"removed {ext.name} from {descriptor.display_name}", self.verbose)


# =============================================================================
# Module-level shortcuts
# =============================================================================


_default: Optional[Installer] = None
_default_lock = threading.Lock()


def default_installer() -> Installer:
    """
    The Installer behind the shortcuts below, created on first use.

    Every caller shares it, and with it the per-platform locks, so
    concurrent installs into one platform from different threads are
    serialized.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = Installer()
        return _default


def install(name: str, platform: Platform | str) -> InstallationOutcome:
    return default_installer().install(name, platform)


def remove(name: str, platform: Platform | str) -> None:
    default_installer().remove(name, platform)


def list_available(platform: Platform | str) -> list[ExtensionDefinition]:
    return catalog.list_for(platform)


def is_installed(name: str, platform: Platform | str) -> bool:
    return default_installer().is_installed(name, platform)
