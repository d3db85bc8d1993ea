"""Tests for format converters."""

import json
import tomllib

import pytest

from plugbridge import frontmatter as fm
from plugbridge.converters import (
    command_to_skill,
    first_line,
    gemini_context,
    gemini_manifest,
    render_manifest,
    to_codex_frontmatter,
    to_gemini_name,
    to_toml_command,
)
from plugbridge.models import SkillDocument, TomlCommand


SKILL = """---
name: frontend-design
description: |
  Create distinctive frontend interfaces.
  Use when building web components.
license: Complete terms in LICENSE.txt
allowed-tools: Read, Write
---

# Frontend Design

Be bold.
"""


class TestFirstLine:
    """Tests for first_line."""

    @pytest.mark.parametrize("text,expected", [
        ("one line", "one line"),
        ("\n\n  second \nthird", "second"),
        ("", ""),
        ("   \n  ", ""),
    ])
    def test_first_line(self, text, expected):
        assert first_line(text) == expected


class TestCodexConversion:
    """Tests for Codex frontmatter reduction."""

    def test_keeps_only_name_and_description(self):
        doc = to_codex_frontmatter(fm.parse(SKILL))
        assert list(doc.metadata) == ["name", "description"]
        assert doc.metadata["description"] == "Create distinctive frontend interfaces."

    def test_body_unchanged(self):
        source = fm.parse(SKILL)
        assert to_codex_frontmatter(source).body == source.body

    def test_rendered_output(self):
        rendered = to_codex_frontmatter(fm.parse(SKILL)).render()
        assert rendered == (
            "---\n"
            "name: frontend-design\n"
            "description: Create distinctive frontend interfaces.\n"
            "---\n"
            "\n# Frontend Design\n\nBe bold.\n"
        )

    def test_deterministic(self):
        first = to_codex_frontmatter(fm.parse(SKILL)).render()
        second = to_codex_frontmatter(fm.parse(first)).render()
        assert first == second

    def test_plain_scalar_over_several_lines_keeps_first(self):
        doc = fm.parse("---\nname: x\ndescription: Line one\n  Line two\n  Line three\n---\nbody\n")
        assert doc.description == "Line one Line two Line three"
        assert to_codex_frontmatter(doc).metadata["description"] == "Line one"

    def test_quoted_scalar_over_several_lines_keeps_first(self):
        doc = fm.parse('---\ndescription: "Line one\n  Line two"\n---\n')
        assert to_codex_frontmatter(doc).metadata["description"] == "Line one"

    def test_single_line_quoted_description(self):
        doc = fm.parse('---\ndescription: "Review: a PR"\nname: x\n---\n')
        assert to_codex_frontmatter(doc).metadata["description"] == "Review: a PR"

    def test_folded_block_scalar_keeps_first_line(self):
        doc = fm.parse("---\ndescription: >\n  Line one\n  Line two\n---\n")
        assert doc.description == "Line one Line two\n"
        assert to_codex_frontmatter(doc).metadata["description"] == "Line one Line two"

    def test_command_description_over_several_lines(self):
        doc = fm.parse("---\ndescription: Review a\n  pull request\n---\nDo it.\n")
        skill = to_codex_frontmatter(command_to_skill(doc, "code-review"))
        assert skill.metadata == {"name": "code-review", "description": "Review a"}

    def test_missing_fields_stay_missing(self):
        doc = to_codex_frontmatter(SkillDocument(metadata={"license": "MIT"}, body="x"))
        assert doc.metadata == {}
        assert doc.render() == "x"


class TestCommandToSkill:
    """Tests for command_to_skill."""

    def test_command_to_skill(self):
        doc = fm.parse("---\nallowed-tools: Bash(git:*)\ndescription: Review a PR\n---\n\nDo it.\n")
        skill = command_to_skill(doc, "code-review")
        assert skill.metadata == {"name": "code-review", "description": "Review a PR"}
        assert skill.body == "\nDo it.\n"

    def test_missing_description(self):
        skill = command_to_skill(SkillDocument(body="Do it.\n"), "commit-commands")
        assert skill.description == "commit-commands skill"


class TestTomlCommand:
    """Tests for Gemini TOML command output."""

    def test_parses_with_tomllib(self):
        doc = fm.parse("---\ndescription: Review code\n---\n\nReview $ARGUMENTS.\n")
        parsed = tomllib.loads(to_toml_command(doc).render())
        assert parsed["description"] == "Review code"
        assert parsed["prompt"] == "Review $ARGUMENTS.\n"

    def test_escapes_quotes_and_backslashes(self):
        command = TomlCommand(
            description='Say "hi" \\ bye',
            prompt='Use """triple""" quotes and C:\\path\nand a tab\there',
        )
        parsed = tomllib.loads(command.render())
        assert parsed["description"] == 'Say "hi" \\ bye'
        assert parsed["prompt"] == 'Use """triple""" quotes and C:\\path\nand a tab\there\n'

    def test_control_characters(self):
        parsed = tomllib.loads(TomlCommand(description="a\x01b", prompt="c\x7fd").render())
        assert parsed["description"] == "a\x01b"
        assert parsed["prompt"] == "c\x7fd\n"

    def test_multiline_description_uses_first_line(self):
        doc = fm.parse("---\ndescription: |\n  First.\n  Second.\n---\nBody\n")
        assert to_toml_command(doc).description == "First."

    def test_plain_multiline_description_uses_first_line(self):
        doc = fm.parse("---\ndescription: First.\n  Second.\n---\nBody\n")
        assert to_toml_command(doc).description == "First."

    def test_fallback_description(self):
        command = to_toml_command(SkillDocument(body="Body\n"), "code-review command")
        assert command.description == "code-review command"


class TestGemini:
    """Tests for Gemini manifest and context generation."""

    @pytest.mark.parametrize("name,expected", [
        ("Frontend Design", "frontend-design"),
        ("code-review", "code-review"),
        ("x" * 80, "x" * 64),
    ])
    def test_gemini_name(self, name, expected):
        assert to_gemini_name(name) == expected

    def test_manifest(self):
        manifest = gemini_manifest("code-review")
        assert manifest == {"name": "code-review", "version": "1.0.0", "contextFileName": "GEMINI.md"}
        assert json.loads(render_manifest(manifest)) == manifest
        assert render_manifest(manifest).endswith("}\n")

    def test_manifest_version(self):
        assert gemini_manifest("claude-mem", "9.0.12")["version"] == "9.0.12"

    def test_context_with_body(self):
        assert gemini_context("demo", "A demo.", "\n# Body\n") == "# demo\n\nA demo.\n\n# Body\n"

    def test_context_without_body(self):
        assert gemini_context("demo", "A demo.") == "# demo\n\nA demo.\n"
