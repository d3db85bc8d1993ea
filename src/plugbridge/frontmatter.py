"""
Centralized frontmatter parsing using python-frontmatter library.

Unlike a lenient reader, parsing here is strict: a document that opens a
frontmatter block must close it, and the block must be a YAML mapping.
The body is returned exactly as it appears after the closing delimiter
line, so rewriting only the frontmatter leaves the body byte-identical.
"""

import re
from pathlib import Path
from typing import Optional

import yaml
from frontmatter.default_handlers import YAMLHandler

from plugbridge.exceptions import FormatError, IoError
from plugbridge.models import SkillDocument

_handler = YAMLHandler()

# Opening delimiter, frontmatter text, closing delimiter line (with its EOL)
_BLOCK = re.compile(
    r"\A-{3,}[ \t]*\r?\n(?P<fm>.*?)^-{3,}[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def parse(content: str, source: Optional[Path | str] = None) -> SkillDocument:
    """
    Parse YAML frontmatter from markdown content.

    Args:
        content: Full file content (markdown with optional frontmatter)
        source: File the content came from, used in error messages

    Returns:
        SkillDocument with metadata and verbatim body

    Raises:
        FormatError: If the frontmatter is unclosed or not a YAML mapping
    """
    source_str = str(source) if source is not None else None
    if not _handler.detect(content):
        return SkillDocument(metadata={}, body=content, source=source_str)

    match = _BLOCK.match(content)
    if match is None:
        raise FormatError(source, "unclosed frontmatter (missing closing '---')")

    try:
        metadata = _handler.load(match.group("fm"))
    except yaml.YAMLError as e:
        raise FormatError(source, f"invalid YAML frontmatter - {e}")

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FormatError(source, "frontmatter must be a mapping of key: value pairs")

    return SkillDocument(
        metadata=dict(metadata),
        body=content[match.end():],
        source=source_str,
        frontmatter_text=match.group("fm"),
    )


def parse_file(file_path: Path) -> SkillDocument:
    """
    Parse YAML frontmatter from a markdown file.

    Raises:
        IoError: If the file cannot be read
        FormatError: If the frontmatter is malformed
    """
    try:
        content = file_path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise IoError(file_path, e)
    return parse(content, file_path)


def get_description(file_path: Path) -> Optional[str]:
    """Get the description field from a file's frontmatter."""
    return parse_file(file_path).description
