"""Markdown parsing helpers: frontmatter handling, markdown-it setup, block extraction"""

import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from jknm.core.models import LegacyBlockDocument, RawBlock
from jknm.core.utils.tokens import heading_level, inline_text


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*(?:\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx'}


def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def split_frontmatter(text: str) -> tuple[str, str]:
    """Return (raw_yaml_header, body); the header is '' when absent."""
    m = FRONTMATTER_RE.match(text)
    if m:
        return m.group(1), text[m.end():]
    return '', text


def strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    header, body = split_frontmatter(text)
    if not header:
        return {}, body
    try:
        fm = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    return fm, body


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md/.mdx files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def markdown_to_document(markdown: str, parser_config: str = 'gfm-like') -> LegacyBlockDocument:
    """Project Markdown onto header/paragraph/list blocks for metadata derivation.

    Only the text is carried over; inline markup is flattened. Nested lists
    are collected as flat items of their outermost list.
    """
    _, body = split_frontmatter(markdown)
    tokens = make_parser(parser_config).parse(body)
    blocks: list[RawBlock] = []
    list_depth = 0
    items: list[str] = []
    style = 'unordered'

    for i, tok in enumerate(tokens):
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if tok.type in ('bullet_list_open', 'ordered_list_open'):
            if list_depth == 0:
                items = []
                style = 'ordered' if tok.type == 'ordered_list_open' else 'unordered'
            list_depth += 1
        elif tok.type in ('bullet_list_close', 'ordered_list_close'):
            list_depth -= 1
            if list_depth == 0:
                blocks.append(RawBlock(type='list', data={'style': style, 'items': items}))
        elif tok.type == 'heading_open':
            blocks.append(RawBlock(type='header', data={'text': inline_text(nxt), 'level': heading_level(tok)}))
        elif tok.type == 'paragraph_open':
            text = inline_text(nxt)
            if list_depth:
                items.append(text)
            else:
                blocks.append(RawBlock(type='paragraph', data={'text': text}))

    return LegacyBlockDocument(blocks=blocks)
