"""Derived article metadata: reading time, content length, excerpt, meta description"""

import math
import re
from typing import Iterator

from jknm.core.blocks import iter_blocks
from jknm.core.models import HeaderBlock, LegacyBlockDocument, ListBlock, ListItem, ParagraphBlock


WORDS_PER_MINUTE = 200
EXCERPT_MAX = 500
META_DESCRIPTION_MAX = 160
ELLIPSIS = '...'

TAG_RE = re.compile(r'<[^>]+>')
BR_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)


def strip_tags(html: str) -> str:
    """Remove HTML tags; &nbsp; and <br> become spaces."""
    return TAG_RE.sub('', BR_RE.sub(' ', html.replace('&nbsp;', ' ')))


def truncate(text: str | None, limit: int) -> str | None:
    """Cut text to limit chars (ellipsis included) when it is longer than limit."""
    if text is None or len(text) <= limit:
        return text
    return text[:limit - len(ELLIPSIS)] + ELLIPSIS


def _text_blocks(doc: LegacyBlockDocument) -> Iterator[str]:
    """Tag-stripped text of every header and paragraph, in order."""
    for block in iter_blocks(doc):
        if isinstance(block, (HeaderBlock, ParagraphBlock)):
            yield strip_tags(block.data.text)


def _list_texts(items: list[str | ListItem]) -> Iterator[str]:
    for item in items:
        if isinstance(item, str):
            yield strip_tags(item)
        else:
            yield strip_tags(item.content)
            yield from _list_texts(item.items)


def _list_item_texts(doc: LegacyBlockDocument) -> Iterator[str]:
    for block in iter_blocks(doc):
        if isinstance(block, ListBlock):
            yield from _list_texts(block.data.items)


def word_count(doc: LegacyBlockDocument) -> int:
    """Words across headers, paragraphs, and all (nested) list items."""
    texts = list(_text_blocks(doc)) + list(_list_item_texts(doc))
    return sum(len(t.split()) for t in texts)


def reading_time(doc: LegacyBlockDocument) -> int:
    """Minutes at 200 wpm, rounded up, never below 1 (an empty document reads as 1)."""
    return max(1, math.ceil(word_count(doc) / WORDS_PER_MINUTE))


def content_length(doc: LegacyBlockDocument) -> int:
    """Character count of header and paragraph text; list items are not counted."""
    return sum(len(t) for t in _text_blocks(doc))


def excerpt(doc: LegacyBlockDocument) -> str | None:
    """First non-empty header or paragraph text, trimmed and capped at 500 chars."""
    for text in _text_blocks(doc):
        text = text.strip()
        if text:
            return truncate(text, EXCERPT_MAX)
    return None


def meta_description(excerpt_text: str | None) -> str | None:
    """Excerpt capped at 160 chars for the SEO description."""
    return truncate(excerpt_text, META_DESCRIPTION_MAX)
