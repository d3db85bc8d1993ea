"""
config:
    Configuration and paths for plugbridge
"""

from pathlib import Path
import os

# Home directory holding the platform config roots (~/.claude, ~/.codex, ~/.gemini)
USER_HOME = Path(os.environ.get("PLUGBRIDGE_USER_HOME", Path.home()))

# Base plugbridge directory
PLUGBRIDGE_HOME = Path(os.environ.get("PLUGBRIDGE_HOME", Path.home() / ".plugbridge"))

# Shallow clones of upstream extension repositories
SOURCES_DIR = PLUGBRIDGE_HOME / "sources"

# Package managers tried in order for marketplace dependency installs
PACKAGE_MANAGERS = tuple(
    name.strip()
    for name in os.environ.get("PLUGBRIDGE_PACKAGE_MANAGERS", "bun,npm").split(",")
    if name.strip()
)

GITHUB_URL_TEMPLATE = "https://github.com/{repo}.git"

# Skill definition filename
SKILL_FILE = "SKILL.md"

# Gemini extension layout
GEMINI_MANIFEST_FILE = "gemini-extension.json"
GEMINI_CONTEXT_FILE = "GEMINI.md"
GEMINI_INVOKE_COMMAND = "invoke"

# Claude plugin layout
PLUGIN_MANIFEST_FILE = ".claude-plugin/plugin.json"
HOOKS_DIR = "hooks"
HOOKS_FILE = "hooks.json"
COMMANDS_DIR = "commands"

# Placeholder Claude plugins use to reference their own install location
PLUGIN_ROOT_TOKEN = "${CLAUDE_PLUGIN_ROOT}"

# File types rewritten by the substitution engine
SUBSTITUTION_EXTENSIONS = frozenset({
    ".sh", ".bash", ".zsh",
    ".py", ".js", ".mjs", ".cjs", ".ts",
    ".json", ".toml", ".yaml", ".yml",
    ".md", ".txt", ".html",
})

# Presence of this file triggers a dependency install for marketplace plugins
DEPENDENCY_MANIFEST = "package.json"

# Version written to generated Gemini manifests when the catalog has none
DEFAULT_EXTENSION_VERSION = "1.0.0"
