"""
main:
    Main CLI entry point for plugbridge
"""

import click
from rich.console import Console

from plugbridge import __version__
from plugbridge.cli import install_cmd, list_cmd, remove_cmd, status_cmd

console = Console()


def ver():
    """Show version."""
    console.print(f"plugbridge {__version__}")


@click.group(invoke_without_command=True, no_args_is_help=True)
@click.option("-v", "--version", is_flag=True, help="Show version")
@click.pass_context
def main(ctx, version):
    """
    plugbridge - AI CLI Extension Installer

    Install Claude Code plugins, skills and commands into Claude Code,
    OpenAI Codex and Gemini CLI, converting formats where needed.

    \b
    Quick start:
        plugbridge list -p gemini                  List extensions
        plugbridge install code-review -p codex    Install an extension
        plugbridge status -p codex                 Show installed ones

    \b
    For more help on any command:
        plugbridge [command] --help
    """
    ctx.ensure_object(dict)
    if version:
        ver()


main.add_command(list_cmd)
main.add_command(install_cmd)
main.add_command(remove_cmd)
main.add_command(status_cmd)


if __name__ == "__main__":
    main()
