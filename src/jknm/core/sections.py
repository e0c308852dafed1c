"""Markdown sectioning: split a document at level-1 and level-2 headings"""

import re

from jknm.core.models import MarkdownSection
from jknm.core.parse import make_parser, split_frontmatter
from jknm.core.utils.tokens import heading_level, inline_text


SECTION_DEPTH = 2
NEWLINE_RE = re.compile(r'\r\n?')


def _top_level_blocks(tokens: list) -> list[tuple[int, object]]:
    """Return (index, token) for every top-level block that maps to source lines."""
    return [
        (i, tok) for i, tok in enumerate(tokens)
        if tok.level == 0 and tok.nesting >= 0 and tok.map
    ]


def split_sections(markdown: str, parser_config: str = 'gfm-like') -> list[MarkdownSection]:
    """Split markdown into sections, each starting at a heading of depth <= 2.

    A section's content is the source of its heading line through the line
    before the next such heading, trimmed. Content before the first heading
    forms a leading section with an empty heading_text. Frontmatter is dropped.
    """
    _, body = split_frontmatter(markdown)
    body = NEWLINE_RE.sub('\n', body)
    tokens = make_parser(parser_config).parse(body)
    # token.map counts '\n' line breaks only
    lines = body.split('\n')

    sections: list[MarkdownSection] = []
    title = ''
    start: int | None = None

    def _flush(end: int) -> None:
        content = '\n'.join(lines[start:end]).strip()
        if content:
            sections.append(MarkdownSection(heading_text=title, content_markdown=content))

    for i, tok in _top_level_blocks(tokens):
        level = heading_level(tok)
        if level is not None and level <= SECTION_DEPTH:
            if start is not None:
                _flush(tok.map[0])
            start = tok.map[0]
            title = inline_text(tokens[i + 1]).strip()
        elif start is None:
            start = tok.map[0]

    if start is not None:
        _flush(len(lines))
    return sections


def join_sections(sections: list[MarkdownSection]) -> str:
    """Serialize sections back into one Markdown document."""
    return '\n\n'.join(s.content_markdown for s in sections)
