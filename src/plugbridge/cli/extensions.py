"""
Extension CLI commands.

Commands for listing, installing and removing catalog extensions.
"""

import click

from plugbridge import ui
from plugbridge.exceptions import PlugbridgeError
from plugbridge.installer import Installer
from plugbridge.platforms import Platform

PLATFORM_CHOICES = [platform.value for platform in Platform]


def platform_option(func):
    return click.option(
        '-p', '--platform',
        type=click.Choice(PLATFORM_CHOICES),
        required=True,
        help='Target AI CLI'
    )(func)


def get_installer(verbose: bool = False) -> Installer:
    return Installer(verbose=verbose)


def _report_failure(name: str, err: PlugbridgeError) -> None:
    ui.error(f"{name}: {err}")
    if err.step:
        ui.hint(f"Failed during step '{err.step}'; fix the cause and re-run")


@click.command(name='list')
@platform_option
def list_cmd(platform: str):
    """
    List catalog extensions available for a platform.

    \b
    Examples:
        plugbridge list -p claude
        plugbridge list -p codex
    """
    installer = get_installer()
    try:
        rows = [
            (ext.name, ext.kind, installer.is_installed(ext.name, platform))
            for ext in installer.list_available(platform)
        ]
    except PlugbridgeError as e:
        ui.error(str(e))
        raise SystemExit(1)

    ui.header(f"Extensions for {installer.descriptor(platform).display_name}")
    if not rows:
        ui.dim("  No extensions available")
        return
    ui.extension_table(rows)


@click.command(name='install')
@click.argument('names', nargs=-1, required=True)
@platform_option
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Show each installation step'
)
def install_cmd(names: tuple[str, ...], platform: str, verbose: bool):
    """
    Install one or more extensions for a platform.

    Re-installing an installed extension refreshes it in place.

    \b
    Examples:
        plugbridge install code-review -p gemini
        plugbridge install frontend-design writing-rules -p codex -v
    """
    installer = get_installer(verbose)
    display = installer.descriptor(platform).display_name

    ui.header(f"Installing {ui.Icons.ARROW} {display}")
    ui.blank()

    failed = 0
    for name in names:
        try:
            outcome = installer.install(name, platform)
        except PlugbridgeError as e:
            _report_failure(name, e)
            failed += 1
            continue

        ui.success(f"{ui.extension_name(name, outcome.version)} {ui.path(str(outcome.install_path))}")
        if verbose:
            if outcome.toml_commands:
                ui.kv("commands", str(len(outcome.toml_commands)))
            if outcome.hook_events:
                ui.kv("hooks", ", ".join(outcome.hook_events))
            if outcome.package_manager:
                ui.kv("dependencies", outcome.package_manager)

    ui.blank()
    if failed:
        ui.error(f"{failed} of {len(names)} extension{'s' if len(names) != 1 else ''} failed")
        raise SystemExit(1)
    ui.success(f"Installed {len(names)} extension{'s' if len(names) != 1 else ''}")


@click.command(name='remove')
@click.argument('names', nargs=-1, required=True)
@platform_option
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Show each removal step'
)
def remove_cmd(names: tuple[str, ...], platform: str, verbose: bool):
    """
    Remove one or more extensions from a platform.

    Removing an extension that is not installed does nothing.

    \b
    Examples:
        plugbridge remove code-review -p gemini
    """
    installer = get_installer(verbose)

    failed = 0
    for name in names:
        try:
            was_installed = installer.is_installed(name, platform)
            installer.remove(name, platform)
        except PlugbridgeError as e:
            _report_failure(name, e)
            failed += 1
            continue

        if was_installed:
            ui.success(f"Removed {ui.extension_name(name)}")
        else:
            ui.dim(f"  {ui.Icons.SKIP} {name} was not installed")

    if failed:
        raise SystemExit(1)


@click.command(name='status')
@platform_option
def status_cmd(platform: str):
    """
    Show which catalog extensions are installed for a platform.
    """
    installer = get_installer()
    try:
        installed = installer.list_installed(platform)
    except PlugbridgeError as e:
        ui.error(str(e))
        raise SystemExit(1)

    descriptor = installer.descriptor(platform)
    ui.header(f"{descriptor.display_name} {ui.path(str(descriptor.root))}")
    if not installed:
        ui.dim("  No extensions installed")
        ui.hint(f"Use 'plugbridge list -p {platform}' to see what is available")
        return

    for name in installed:
        ui.console.print(f"  {ui.Icons.BULLET} {ui.extension_name(name)}")
    ui.blank()
    ui.info(f"{len(installed)} installed")

