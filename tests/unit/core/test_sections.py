"""Unit tests for core/sections.py"""

import pytest

from jknm.core.models import MarkdownSection
from jknm.core.sections import join_sections, split_sections


def test_split_two_headings():
    """Each level-1/level-2 heading opens a section holding its own source lines."""
    sections = split_sections("# T1\nbody1\n## T2\nbody2")
    assert sections == [
        MarkdownSection(heading_text="T1", content_markdown="# T1\nbody1"),
        MarkdownSection(heading_text="T2", content_markdown="## T2\nbody2"),
    ]


def test_split_preamble_gets_empty_heading():
    sections = split_sections("Intro text.\n\n# First\n\nBody.\n")
    assert [s.heading_text for s in sections] == ["", "First"]
    assert sections[0].content_markdown == "Intro text."


def test_split_no_headings_single_section():
    sections = split_sections("Just a paragraph.\n\nAnd another.\n")
    assert len(sections) == 1
    assert sections[0].heading_text == ""
    assert sections[0].content_markdown == "Just a paragraph.\n\nAnd another."


def test_split_empty_document():
    assert split_sections("") == []
    assert split_sections("   \n\n") == []


def test_deeper_headings_stay_in_section(sample_md):
    """h3 does not open a section; it stays in the enclosing h2 section."""
    sections = split_sections(sample_md)
    assert [s.heading_text for s in sections] == ["", "Jama pod Krnom", "Oprema", "Zaključek"]
    oprema = sections[2].content_markdown
    assert oprema.startswith("## Oprema")
    assert "### Podrobnosti" in oprema
    assert "Globoko v sekciji." in oprema


def test_frontmatter_is_dropped(sample_md):
    sections = split_sections(sample_md)
    assert all("title: Ignored" not in s.content_markdown for s in sections)
    assert sections[0].content_markdown == "Uvodni odstavek."


def test_heading_text_is_plain():
    sections = split_sections("# Jama *pod* `Krnom`\n\ntext\n")
    assert sections[0].heading_text == "Jama pod Krnom"


def test_heading_inside_code_fence_is_not_a_boundary():
    md = "# Real\n\n```\n# not a heading\n```\n"
    sections = split_sections(md)
    assert len(sections) == 1
    assert "# not a heading" in sections[0].content_markdown


def test_join_sections_round_trip(sample_md):
    """Splitting the joined sections yields the same sections again."""
    sections = split_sections(sample_md)
    assert split_sections(join_sections(sections)) == sections


@pytest.mark.parametrize("separator", ["\u2028", "\x85", "\x0c", "\x0b", "\x1e"])
def test_unicode_line_separators_do_not_shift_sections(separator):
    """Only \\n counts as a line break when slicing section source."""
    sections = split_sections(f"# T1\nbody{separator}one\n## T2\nbody2\n## T3\nbody3")
    assert sections == [
        MarkdownSection(heading_text="T1", content_markdown=f"# T1\nbody{separator}one"),
        MarkdownSection(heading_text="T2", content_markdown="## T2\nbody2"),
        MarkdownSection(heading_text="T3", content_markdown="## T3\nbody3"),
    ]


def test_crlf_line_endings():
    sections = split_sections("# T1\r\nbody1\r\n## T2\r\nbody2\r\n")
    assert [s.content_markdown for s in sections] == ["# T1\nbody1", "## T2\nbody2"]
