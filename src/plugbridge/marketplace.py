"""
marketplace:
    Install third-party plugins that need their whole repository.

A marketplace install walks a small state machine:

    NOT_CLONED -> CLONING -> CLONED -> LINKING -> DEPENDENCIES_INSTALLING -> READY

and drops to FAILED from any step, remembering which one. On Claude the
LINKING step points ``cache/<marketplace>/<plugin>/<version>`` at the plugin
directory inside the clone with a symlink; on Gemini it copies the plugin
directory into the extension directory instead.

Re-running an install is safe: an existing clone is updated in place and
every later step overwrites its output.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import plugbridge.config as config
from plugbridge import ui
from plugbridge.exceptions import DependencyInstallError, IoError, PlugbridgeError
from plugbridge.models import ExtensionDefinition, MarketplaceState
from plugbridge.platforms import Platform, PlatformDescriptor
from plugbridge.runner import Finder, Runner, find_tool, first_available, run_command
from plugbridge.sources import clone_or_update, repo_url


@dataclass
class MarketplaceResult:
    """Paths and tools involved in a finished marketplace install."""

    clone_dir: Path
    plugin_dir: Path
    install_path: Path
    version: str
    cloned: bool
    package_manager: Optional[str] = None


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


class MarketplaceInstaller:
    """Clone, link and prepare one marketplace plugin for a platform."""

    def __init__(
        self,
        descriptor: PlatformDescriptor,
        run: Runner = run_command,
        find: Finder = find_tool,
        package_managers: Optional[tuple[str, ...]] = None,
        verbose: bool = False,
    ):
        if not descriptor.supports_marketplace:
            raise ValueError(f"{descriptor.display_name} does not support marketplace installs")
        self.descriptor = descriptor
        self.run = run
        self.find = find
        self.package_managers = package_managers or config.PACKAGE_MANAGERS
        self.verbose = verbose
        self.state = MarketplaceState.NOT_CLONED
        self.failed_step: Optional[MarketplaceState] = None
        self.error: Optional[PlugbridgeError] = None

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def clone_dir(self, ext: ExtensionDefinition) -> Path:
        return self.descriptor.marketplaces_dir / ext.marketplace.name

    def plugin_cache_dir(self, ext: ExtensionDefinition) -> Path:
        return self.descriptor.cache_dir / ext.marketplace.name / ext.name

    def version_link(self, ext: ExtensionDefinition) -> Path:
        return self.plugin_cache_dir(ext) / ext.marketplace.version

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _step(self, state: MarketplaceState, action: Callable, *args):
        self.state = state
        try:
            return action(*args)
        except PlugbridgeError as e:
            self._fail(state, e)
            raise
        except OSError as e:
            error = IoError(getattr(e, "filename", None) or self.descriptor.root, e)
            self._fail(state, error)
            raise error from e

    def _fail(self, state: MarketplaceState, error: PlugbridgeError) -> None:
        self.state = MarketplaceState.FAILED
        self.failed_step = state
        self.error = error
        error.step = state.value

    def install(self, ext: ExtensionDefinition, dest: Optional[Path] = None) -> MarketplaceResult:
        """
        Run every step for ``ext``.

        Args:
            ext: Catalog entry with a marketplace descriptor
            dest: Gemini only, the extension directory to copy the plugin to

        Raises:
            ExternalCommandError: git failed (CLONING)
            IoError: filesystem failure (LINKING and others)
            DependencyInstallError: package manager returned non-zero
        """
        if ext.marketplace is None:
            raise ValueError(f"'{ext.name}' is not a marketplace plugin")
        if self.descriptor.platform is Platform.GEMINI and dest is None:
            raise ValueError("Gemini marketplace installs need a destination directory")

        self.state = MarketplaceState.NOT_CLONED
        self.failed_step = None
        self.error = None

        clone_dir = self.clone_dir(ext)
        ui.step(f"cloning {ext.source_repo} into {clone_dir}", self.verbose)
        cloned = self._step(
            MarketplaceState.CLONING, clone_or_update, repo_url(ext.source_repo), clone_dir, self.run
        )
        self.state = MarketplaceState.CLONED

        plugin_dir = clone_dir / ext.marketplace.plugin_path
        install_path = self._step(MarketplaceState.LINKING, self._link, ext, plugin_dir, dest)

        package_manager = self._step(
            MarketplaceState.DEPENDENCIES_INSTALLING, self._install_dependencies, install_path
        )

        self.state = MarketplaceState.READY
        return MarketplaceResult(
            clone_dir=clone_dir,
            plugin_dir=plugin_dir,
            install_path=install_path,
            version=ext.marketplace.version,
            cloned=cloned,
            package_manager=package_manager,
        )

    def _link(self, ext: ExtensionDefinition, plugin_dir: Path, dest: Optional[Path]) -> Path:
        if not plugin_dir.is_dir():
            raise IoError(plugin_dir, f"plugin path '{ext.marketplace.plugin_path}' missing in clone")

        match self.descriptor.platform:
            case Platform.CLAUDE:
                link = self.version_link(ext)
                ui.step(f"linking {link} -> {plugin_dir}", self.verbose)
                link.parent.mkdir(parents=True, exist_ok=True)
                _remove_path(link)
                link.symlink_to(plugin_dir, target_is_directory=True)
                return link
            case Platform.GEMINI:
                ui.step(f"copying {plugin_dir} -> {dest}", self.verbose)
                _remove_path(dest)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(plugin_dir, dest, ignore=shutil.ignore_patterns(".git"))
                return dest
        raise ValueError(f"{self.descriptor.display_name} does not support marketplace installs")

    def _install_dependencies(self, plugin_dir: Path) -> Optional[str]:
        if not (plugin_dir / config.DEPENDENCY_MANIFEST).exists():
            return None

        package_manager = first_available(self.package_managers, self.find)
        if package_manager is None:
            ui.warning(
                f"No package manager found ({', '.join(self.package_managers)}); "
                f"skipping dependency install in {plugin_dir}"
            )
            return None

        ui.step(f"{package_manager} install in {plugin_dir}", self.verbose)
        args = [package_manager, "install"]
        result = self.run(args, cwd=plugin_dir)
        if not result.ok:
            raise DependencyInstallError(args, result.returncode, result.output)
        return package_manager

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, ext: ExtensionDefinition, keep_clone: bool = False) -> None:
        """Delete the version cache entry and, unless kept, the clone."""
        if ext.marketplace is None:
            raise ValueError(f"'{ext.name}' is not a marketplace plugin")
        try:
            if self.descriptor.platform is Platform.CLAUDE:
                cache = self.plugin_cache_dir(ext)
                _remove_path(cache)
                marketplace_cache = cache.parent
                if marketplace_cache.is_dir() and not any(marketplace_cache.iterdir()):
                    marketplace_cache.rmdir()
            if not keep_clone:
                _remove_path(self.clone_dir(ext))
        except OSError as e:
            raise IoError(getattr(e, "filename", None) or self.descriptor.root, e)
        self.state = MarketplaceState.NOT_CLONED
