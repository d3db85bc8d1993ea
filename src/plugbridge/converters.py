"""
converters:
    Convert skill and command documents between AI CLI formats.

All functions here are pure: they take parsed documents (or strings) and
return new ones. Reading and writing files is left to the installer.
"""

import json
import re
from typing import Optional

import plugbridge.config as config
from plugbridge.models import SkillDocument, TomlCommand

# Fields Codex recognizes in SKILL.md frontmatter
CODEX_FIELDS = ("name", "description")

GEMINI_NAME_MAX = 64


def first_line(text: str) -> str:
    """Return the first non-empty line of ``text``, stripped."""
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _source_first_line(frontmatter_text: str, key: str) -> Optional[str]:
    """
    First physical line of a top-level ``key`` written as a plain or quoted
    scalar continued on indented lines. None when the value fits on its
    key line or is a block scalar (``|``, ``>``), whose newlines YAML keeps.
    """
    lines = frontmatter_text.splitlines()
    pattern = re.compile(rf"^{re.escape(key)}\s*:(?:\s+(?P<value>.*))?$")
    for index, line in enumerate(lines):
        match = pattern.match(line)
        if match is None:
            continue
        value = (match.group("value") or "").strip()
        if not value or value[0] in "|>":
            return None
        following = lines[index + 1] if index + 1 < len(lines) else ""
        if not following.strip() or not following[0].isspace():
            return None
        return value.strip("'\"").strip()
    return None


def description_line(doc: SkillDocument) -> str:
    """The one-line description: first line as written, or of the parsed value."""
    if doc.frontmatter_text:
        written = _source_first_line(doc.frontmatter_text, "description")
        if written:
            return written
    return first_line(doc.description or "")


def to_codex_frontmatter(doc: SkillDocument) -> SkillDocument:
    """
    Reduce a Claude skill document to the Codex two-field subset.

    Only ``name`` and ``description`` survive; a description spread over
    several lines is cut down to its first line. The body is kept as-is.
    """
    metadata = {}
    for key in CODEX_FIELDS:
        if key in doc.metadata and doc.metadata[key] is not None:
            if key == "description":
                metadata[key] = description_line(doc)
            else:
                metadata[key] = str(doc.metadata[key]).strip()
    return SkillDocument(metadata=metadata, body=doc.body, source=doc.source)


def command_to_skill(doc: SkillDocument, extension_name: str) -> SkillDocument:
    """
    Turn a Claude command document into a skill document.

    ``name`` becomes the extension name, ``description`` is carried over
    and every other field (allowed-tools, argument-hint, ...) is dropped.
    """
    description = doc.description or f"{extension_name} skill"
    return SkillDocument(
        metadata={"name": extension_name, "description": description},
        body=doc.body,
        source=doc.source,
        frontmatter_text=doc.frontmatter_text,
    )


def to_toml_command(doc: SkillDocument, fallback_description: str = "Command") -> TomlCommand:
    """Build a Gemini TOML command from a skill or command document."""
    description = description_line(doc) or fallback_description
    return TomlCommand(description=description, prompt=doc.body.strip("\r\n"))


def to_gemini_name(name: str) -> str:
    """Gemini skill names are lowercase, dash separated, at most 64 chars."""
    return name.strip().lower().replace(" ", "-")[:GEMINI_NAME_MAX]


def gemini_manifest(name: str, version: Optional[str] = None) -> dict:
    """Content of ``gemini-extension.json``."""
    return {
        "name": to_gemini_name(name),
        "version": version or config.DEFAULT_EXTENSION_VERSION,
        "contextFileName": config.GEMINI_CONTEXT_FILE,
    }


def render_manifest(manifest: dict) -> str:
    return json.dumps(manifest, indent=2) + "\n"


def gemini_context(name: str, description: str, body: Optional[str] = None) -> str:
    """Content of ``GEMINI.md`` for converted skills and commands."""
    parts = [f"# {name}", description.strip()]
    if body and body.strip():
        parts.append(body.strip())
    return "\n\n".join(parts) + "\n"
