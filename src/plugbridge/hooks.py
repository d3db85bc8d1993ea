"""
hooks:
    Move a plugin's hook scripts into a Gemini extension.

Gemini's hook events use the same names as Claude's, so the hook tree is
copied verbatim; only the plugin-root placeholder inside it is resolved.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Mapping

import plugbridge.config as config
from plugbridge.exceptions import IoError
from plugbridge.models import HookSet
from plugbridge.substitution import substitute_tokens


def convert_hooks(
    source_hooks_dir: Path,
    extension_dir: Path,
    replacements: Mapping[str, str],
) -> HookSet:
    """
    Copy ``source_hooks_dir`` to ``<extension_dir>/hooks`` and resolve tokens.

    Any previous copy is replaced. When source and destination are the same
    directory (the plugin was copied whole) only the substitution runs.

    Returns:
        The hooks declared in the copied ``hooks.json``
    """
    dest = extension_dir / config.HOOKS_DIR
    if not source_hooks_dir.is_dir():
        return HookSet()

    try:
        if source_hooks_dir.resolve() != dest.resolve():
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(source_hooks_dir, dest, symlinks=True)
    except OSError as e:
        raise IoError(dest, e)

    substitute_tokens(dest, replacements)
    return HookSet.from_directory(dest)
