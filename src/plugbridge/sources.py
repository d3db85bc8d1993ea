"""
sources:
    Fetch extension source trees from their upstream git repositories.

Each repository is kept as a shallow clone under SOURCES_DIR and brought
up to date on the next fetch, so repeated installs reuse the checkout.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import plugbridge.config as config
from plugbridge.exceptions import IoError
from plugbridge.runner import Runner, check, run_command


def validate_repo(repo: str) -> str:
    """
    Validate an ``owner/name`` repository reference.

    Raises:
        ValueError: If the reference is malformed or could escape the cache
    """
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Invalid repository '{repo}' (expected owner/name)")
    for part in parts:
        if part in (".", "..") or part.startswith(".") or "\\" in part:
            raise ValueError(f"Invalid repository '{repo}' (path traversal not allowed)")
        if any(ord(c) < 32 for c in part):
            raise ValueError(f"Invalid repository '{repo}' (control characters not allowed)")
    return repo


def repo_url(repo: str) -> str:
    return config.GITHUB_URL_TEMPLATE.format(repo=repo)


def clone_or_update(url: str, dest: Path, run: Runner = run_command) -> bool:
    """
    Shallow-clone ``url`` into ``dest``, or update an existing clone.

    Returns:
        True if a fresh clone was made, False if an existing one was updated

    Raises:
        ExternalCommandError: If git fails
        IoError: If a leftover directory cannot be cleared
    """
    if (dest / ".git").exists():
        check(run(["git", "-C", str(dest), "fetch", "--depth", "1", "origin"]))
        check(run(["git", "-C", str(dest), "reset", "--hard", "FETCH_HEAD"]))
        return False

    try:
        if dest.exists():
            # Leftover from an interrupted clone
            shutil.rmtree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoError(dest, e)
    check(run(["git", "clone", "--depth", "1", url, str(dest)]))
    return True


class GitSourceFetcher:
    """Source trees from shallow git clones of upstream repositories."""

    def __init__(self, cache_dir: Optional[Path] = None, run: Runner = run_command):
        self.cache_dir = cache_dir or config.SOURCES_DIR
        self.run = run
        self._fetched: set[str] = set()

    def checkout_dir(self, repo: str) -> Path:
        try:
            owner, name = validate_repo(repo).split("/")
        except ValueError as e:
            raise IoError(self.cache_dir, e)
        return self.cache_dir / f"{owner}__{name}"

    def fetch(self, repo: str) -> Path:
        """Clone or update ``repo`` once per fetcher and return its checkout."""
        dest = self.checkout_dir(repo)
        if repo not in self._fetched:
            clone_or_update(repo_url(repo), dest, self.run)
            self._fetched.add(repo)
        return dest

    def resolve(self, repo: str, path: str) -> Path:
        """
        Path of ``path`` inside the checkout of ``repo``.

        Raises:
            IoError: If the path does not exist upstream
        """
        checkout = self.fetch(repo)
        target = (checkout / path).resolve()
        if checkout.resolve() not in target.parents and target != checkout.resolve():
            raise IoError(checkout / path, "path escapes the repository checkout")
        if not target.exists():
            raise IoError(checkout / path, f"not found in {repo}")
        return target
