"""
catalog:
    Static, read-only table of installable extensions.

The table is built once at import time and validated against the platform
descriptors. Order is insertion order so listings and tests are stable.
"""

import re

from plugbridge.exceptions import CatalogError, UnknownExtensionError
from plugbridge.models import ConversionMethod, ExtensionDefinition, MarketplaceDescriptor
from plugbridge.platforms import Platform, describe

CLAUDE_CODE_REPO = "anthropics/claude-code"

_ALL = frozenset({Platform.CLAUDE, Platform.CODEX, Platform.GEMINI})
_HOOK_HOSTS = frozenset({Platform.CLAUDE, Platform.GEMINI})

_NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


EXTENSIONS: tuple[ExtensionDefinition, ...] = (
    # Plugins with hooks: full plugin on Claude, migrated plugin on Gemini
    ExtensionDefinition(
        name="ralph-wiggum",
        display_name_key="skill.ralph_wiggum",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/ralph-wiggum",
        platforms=_HOOK_HOSTS,
        has_hooks=True,
    ),
    ExtensionDefinition(
        name="security-guidance",
        display_name_key="skill.security_guidance",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/security-guidance",
        platforms=_HOOK_HOSTS,
        has_hooks=True,
    ),
    # Plugins whose main command converts to a skill
    ExtensionDefinition(
        name="code-review",
        display_name_key="skill.code_review",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/code-review",
        platforms=_ALL,
        conversion=ConversionMethod.COMMAND_FILE,
        conversion_path="commands/code-review.md",
    ),
    ExtensionDefinition(
        name="pr-review-toolkit",
        display_name_key="skill.pr_review_toolkit",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/pr-review-toolkit",
        platforms=_ALL,
        conversion=ConversionMethod.COMMAND_FILE,
        conversion_path="commands/review-pr.md",
    ),
    ExtensionDefinition(
        name="commit-commands",
        display_name_key="skill.commit_commands",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/commit-commands",
        platforms=_ALL,
        conversion=ConversionMethod.COMMAND_FILE,
        conversion_path="commands/commit.md",
    ),
    # Plugins with an extractable skill directory
    ExtensionDefinition(
        name="frontend-design",
        display_name_key="skill.frontend_design",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/frontend-design",
        platforms=_ALL,
        conversion=ConversionMethod.SKILL_SUBDIRECTORY,
        conversion_path="skills/frontend-design",
    ),
    ExtensionDefinition(
        name="writing-rules",
        display_name_key="skill.writing_rules",
        source_repo=CLAUDE_CODE_REPO,
        source_path="plugins/hookify",
        platforms=_ALL,
        conversion=ConversionMethod.SKILL_SUBDIRECTORY,
        conversion_path="skills/writing-rules",
    ),
    # Third-party plugins whose scripts expect the whole marketplace checkout
    ExtensionDefinition(
        name="claude-mem",
        display_name_key="skill.claude_mem",
        source_repo="thedotmack/claude-mem",
        source_path="plugin",
        platforms=_HOOK_HOSTS,
        has_hooks=True,
        marketplace=MarketplaceDescriptor(
            name="thedotmack",
            plugin_path="plugin",
            version="9.0.12",
        ),
    ),
)


def _validate(extensions: tuple[ExtensionDefinition, ...]) -> None:
    """Check catalog invariants against the platform descriptors."""
    seen: set[str] = set()
    for ext in extensions:
        if not _NAME_PATTERN.match(ext.name):
            raise CatalogError(f"'{ext.name}' is not a kebab-case name")
        if ext.name in seen:
            raise CatalogError(f"duplicate extension '{ext.name}'")
        seen.add(ext.name)

        if (ext.conversion is ConversionMethod.NONE) != (ext.conversion_path is None):
            raise CatalogError(
                f"'{ext.name}': conversion path must be set exactly when a conversion method is"
            )

        for platform in ext.platforms:
            descriptor = describe(platform)
            if ext.is_marketplace and not descriptor.supports_marketplace:
                raise CatalogError(
                    f"'{ext.name}' is a marketplace plugin but {platform.value} "
                    "has no marketplace support"
                )
            if (
                ext.conversion is ConversionMethod.NONE
                and not ext.has_hooks
                and not ext.is_marketplace
                and not descriptor.supports_raw_plugins
            ):
                raise CatalogError(
                    f"'{ext.name}' needs raw plugin installation, unsupported on {platform.value}"
                )


_validate(EXTENSIONS)


def all_extensions() -> list[ExtensionDefinition]:
    return list(EXTENSIONS)


def list_for(platform: Platform | str) -> list[ExtensionDefinition]:
    """Extensions installable on a platform, in catalog order.

    Extensions with hooks are dropped for platforms that cannot host hooks,
    whatever their declared platform set says.
    """
    platform = Platform.parse(platform)
    descriptor = describe(platform)
    return [
        ext
        for ext in EXTENSIONS
        if ext.supports(platform) and (descriptor.supports_hooks or not ext.has_hooks)
    ]


def get_extension(name: str) -> ExtensionDefinition:
    """Look up an extension by name.

    Raises:
        UnknownExtensionError: If the name is not in the catalog.
    """
    for ext in EXTENSIONS:
        if ext.name == name:
            return ext
    raise UnknownExtensionError(name)
