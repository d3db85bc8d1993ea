"""
substitution:
    Replace placeholder tokens with concrete paths across a file tree.

Only files whose suffix is in the allow-list are touched; everything else
(images, archives, compiled files, unknown suffixes) is left alone. Running
the substitution twice is a no-op the second time because the tokens are
gone after the first pass.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional

import plugbridge.config as config
from plugbridge.exceptions import IoError

TEXT_EXTENSIONS = config.SUBSTITUTION_EXTENSIONS


def plugin_root_tokens(dest: Path) -> dict[str, str]:
    """Token map resolving the plugin-root placeholder to ``dest``."""
    return {config.PLUGIN_ROOT_TOKEN: str(dest.resolve())}


def iter_candidate_files(
    root: Path,
    extensions: Iterable[str] = TEXT_EXTENSIONS,
) -> Iterator[Path]:
    """Yield regular files under ``root`` with a recognized suffix, sorted."""
    allowed = {ext.lower() for ext in extensions}
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_symlink() or not path.is_file():
                continue
            if path.suffix.lower() in allowed:
                yield path


def substitute_file(path: Path, replacements: Mapping[str, str]) -> bool:
    """Rewrite one file. Returns True if its content changed."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise IoError(path, e)

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        # Not text despite the suffix
        return False

    updated = content
    for token, value in replacements.items():
        updated = updated.replace(token, value)

    if updated == content:
        return False

    try:
        path.write_bytes(updated.encode("utf-8"))
    except OSError as e:
        raise IoError(path, e)
    return True


def substitute_tokens(
    root: Path,
    replacements: Mapping[str, str],
    extensions: Optional[Iterable[str]] = None,
) -> list[Path]:
    """
    Replace every literal token occurrence in the text files under ``root``.

    Args:
        root: Directory to walk (a single file is accepted too)
        replacements: Mapping of placeholder token to replacement string
        extensions: Suffix allow-list, defaults to TEXT_EXTENSIONS

    Returns:
        Files whose content changed, in walk order

    Raises:
        IoError: On the first file that cannot be read or written. Files
            rewritten before the failure keep their new content.
    """
    replacements = {token: value for token, value in replacements.items() if token}
    if not replacements or not root.exists():
        return []

    allowed = extensions if extensions is not None else TEXT_EXTENSIONS
    if root.is_file():
        candidates: Iterable[Path] = [root] if root.suffix.lower() in allowed else []
    else:
        candidates = iter_candidate_files(root, allowed)

    changed = []
    for path in candidates:
        if substitute_file(path, replacements):
            changed.append(path)
    return changed
