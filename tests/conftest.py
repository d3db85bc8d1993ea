"""Shared pytest fixtures for plugbridge tests."""

import json
import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from plugbridge.exceptions import IoError
from plugbridge.installer import Installer
from plugbridge.runner import CommandResult


TOKEN = "${CLAUDE_PLUGIN_ROOT}"


@pytest.fixture
def cli_runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def home(tmp_path):
    """Empty user home holding the platform config roots."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


def write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def write_json(path: Path, data) -> Path:
    return write(path, json.dumps(data, indent=2) + "\n")


def snapshot(root: Path) -> dict:
    """Relative path -> bytes (or link target) for every file under root."""
    result = {}
    if not root.exists():
        return result
    for path in sorted(root.rglob("*")):
        rel = str(path.relative_to(root))
        if path.is_symlink():
            result[rel] = f"-> {path.readlink()}"
        elif path.is_file():
            result[rel] = path.read_bytes()
    return result


def _claude_code_repo(repo: Path) -> None:
    plugins = repo / "plugins"

    # code-review: command file conversion
    write_json(plugins / "code-review" / ".claude-plugin" / "plugin.json", {
        "name": "code-review",
        "description": "Automated code review for pull requests",
    })
    write(plugins / "code-review" / "README.md", "# Code Review\n\nReviews pull requests.\n")
    write(plugins / "code-review" / "commands" / "code-review.md", """---
allowed-tools: Bash(git diff:*), Bash(gh pr view:*)
description: Code review a pull request
argument-hint: "[pr-number]"
---

Review the pull request $ARGUMENTS.

Report only high-signal issues.
""")

    write(plugins / "pr-review-toolkit" / "commands" / "review-pr.md", """---
description: Comprehensive PR review using specialized agents
---

Run every review agent over $ARGUMENTS.
""")
    write(plugins / "commit-commands" / "commands" / "commit.md", """---
description: Create a git commit
---

Create a single commit for the staged changes.
""")

    # frontend-design: skill subdirectory with a multi-line description
    skill = plugins / "frontend-design" / "skills" / "frontend-design"
    write(skill / "SKILL.md", """---
name: frontend-design
description: |
  Create distinctive frontend interfaces.
  Use when building web components or pages.
license: Complete terms in LICENSE.txt
---

# Frontend Design

Commit to a bold aesthetic direction.
""")
    write(skill / "LICENSE.txt", "Apache License 2.0\n")

    write(plugins / "hookify" / "skills" / "writing-rules" / "SKILL.md", """---
name: writing-rules
description: Write hookify rules
---

# Writing Rules

Rules live in .claude/hookify.*.local.md files.
""")

    # ralph-wiggum: hooks, commands and scripts referencing the plugin root
    ralph = plugins / "ralph-wiggum"
    write_json(ralph / ".claude-plugin" / "plugin.json", {
        "name": "ralph-wiggum",
        "description": "Iterative self-referential loops",
    })
    write(ralph / "README.md", "# Ralph Wiggum\n\nRun Claude in a loop until the task is done.\n")
    write(ralph / "commands" / "ralph-loop.md", f"""---
description: Start a Ralph loop
argument-hint: "PROMPT [--max-iterations N]"
---

Execute the setup script:

```!
"{TOKEN}/scripts/setup-ralph-loop.sh" $ARGUMENTS
```
""")
    write(ralph / "commands" / "cancel-ralph.md", """---
description: Cancel the active Ralph loop
---

Remove the loop state file.
""")
    write_json(ralph / "hooks" / "hooks.json", {
        "description": "Ralph Wiggum stop hook",
        "hooks": {
            "Stop": [
                {"hooks": [{"type": "command", "command": f"{TOKEN}/hooks/stop-hook.sh"}]}
            ]
        },
    })
    write(ralph / "hooks" / "stop-hook.sh", f'#!/bin/bash\nexec "{TOKEN}/scripts/setup-ralph-loop.sh"\n')
    write(ralph / "hooks" / "icon.png", b"\x89PNG\r\n" + TOKEN.encode())
    write(ralph / "scripts" / "setup-ralph-loop.sh", f'#!/bin/bash\necho "{TOKEN}"\n')

    # security-guidance: hooks only, no README and no commands
    security = plugins / "security-guidance"
    write_json(security / "hooks" / "hooks.json", {
        "hooks": {
            "PreToolUse": [
                {
                    "matcher": "Edit|Write",
                    "hooks": [
                        {"type": "command", "command": f"python3 {TOKEN}/hooks/security_reminder_hook.py"}
                    ],
                }
            ]
        },
    })
    write(security / "hooks" / "security_reminder_hook.py", f'ROOT = "{TOKEN}"\n')


def _claude_mem_repo(repo: Path) -> None:
    write(repo / "README.md", "# claude-mem\n\nPersistent memory for Claude Code.\n")
    plugin = repo / "plugin"
    write_json(plugin / ".claude-plugin" / "plugin.json", {"name": "claude-mem", "version": "9.0.12"})
    write_json(plugin / "package.json", {"name": "claude-mem-plugin", "dependencies": {}})
    write_json(plugin / "hooks" / "hooks.json", {
        "hooks": {
            "SessionStart": [
                {"hooks": [{"type": "command", "command": f"node {TOKEN}/scripts/start.js"}]}
            ]
        },
    })
    write(plugin / "scripts" / "start.js", f'const root = "{TOKEN}";\n')


@pytest.fixture
def upstream(tmp_path):
    """Fake checkouts of upstream repositories, named owner__repo."""
    root = tmp_path / "upstream"
    _claude_code_repo(root / "anthropics__claude-code")
    _claude_mem_repo(root / "thedotmack__claude-mem")
    return root


class FakeFetcher:
    """Source fetcher backed by the ``upstream`` fixture tree."""

    def __init__(self, root: Path):
        self.root = root
        self.calls = []

    def resolve(self, repo: str, path: str) -> Path:
        self.calls.append((repo, path))
        target = self.root / repo.replace("/", "__") / path
        if not target.exists():
            raise IoError(target, f"not found in {repo}")
        return target


class FakeRunner:
    """
    Scripted command runner.

    ``git clone`` copies the matching upstream checkout into place; every
    other command succeeds unless its program name is in ``fail``.
    """

    def __init__(self, upstream: Path):
        self.upstream = upstream
        self.calls = []
        self.fail = {}

    def __call__(self, args, cwd=None):
        args = list(args)
        self.calls.append((args, cwd))

        key = args[0] if args[0] != "git" else f"git {self._git_verb(args)}"
        if key in self.fail:
            return CommandResult(tuple(args), self.fail[key], "", f"{key} failed")

        if args[:2] == ["git", "clone"]:
            url, dest = args[-2], Path(args[-1])
            repo = url.removeprefix("https://github.com/").removesuffix(".git")
            shutil.copytree(self.upstream / repo.replace("/", "__"), dest)
            (dest / ".git").mkdir()
        return CommandResult(tuple(args), 0, "", "")

    @staticmethod
    def _git_verb(args):
        rest = args[1:]
        if rest[:1] == ["-C"]:
            rest = rest[2:]
        return rest[0] if rest else ""

    def commands(self):
        return [args for args, _ in self.calls]


@pytest.fixture
def fetcher(upstream):
    return FakeFetcher(upstream)


@pytest.fixture
def runner(upstream):
    return FakeRunner(upstream)


@pytest.fixture
def tools():
    """Names the fake PATH lookup reports as installed."""
    return {"bun", "npm"}


@pytest.fixture
def find(tools):
    return lambda name: f"/usr/bin/{name}" if name in tools else None


@pytest.fixture
def installer(home, fetcher, runner, find):
    """Installer wired to the fake home, upstream and runner."""
    return Installer(
        home=home,
        fetcher=fetcher,
        run=runner,
        find=find,
        package_managers=("bun", "npm"),
    )
