"""
runner:
    Run external commands and detect available tools.

Commands run to completion with their output captured; nothing is
streamed and nothing is retried.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from plugbridge.exceptions import ExternalCommandError


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


Runner = Callable[..., CommandResult]
Finder = Callable[[str], Optional[str]]


def run_command(args: list[str], cwd: Optional[Path] = None) -> CommandResult:
    """
    Run a command and capture stdout, stderr and the exit code.

    Raises:
        ExternalCommandError: If the executable cannot be started
    """
    try:
        result = subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise ExternalCommandError(args, None, f"Unable to execute: {e}")
    return CommandResult(
        args=tuple(args),
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


def find_tool(name: str) -> Optional[str]:
    """Full path of an executable on PATH, or None."""
    return shutil.which(name)


def first_available(candidates: Iterable[str], find: Finder = find_tool) -> Optional[str]:
    """First tool from a preference-ordered list that is installed."""
    for name in candidates:
        if find(name):
            return name
    return None


def check(result: CommandResult) -> CommandResult:
    """Raise ExternalCommandError unless the command succeeded."""
    if not result.ok:
        raise ExternalCommandError(list(result.args), result.returncode, result.output)
    return result
