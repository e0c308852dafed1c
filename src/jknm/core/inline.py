"""Inline-markup parsing: legacy HTML-ish strings to styled text runs and link nodes"""

import re

from jknm.core.models import LINK_TYPE, Node


TAG_TO_MARK: dict[str, str] = {
    'b':      'bold',
    'strong': 'bold',
    'i':      'italic',
    'em':     'italic',
    'u':      'underline',
    'sup':    'superscript',
    'sub':    'subscript',
}

NBSP_RE = re.compile(r'&nbsp;')
BR_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)
ANCHOR_RE = re.compile(r'(<a\s+href="[^"]*"[^>]*>.*?</a>)', re.IGNORECASE | re.DOTALL)
ANCHOR_PARTS_RE = re.compile(r'<a\s+href="([^"]*)"[^>]*>(.*?)</a>', re.IGNORECASE | re.DOTALL)
# A lone '<' that does not open a tag is kept as text.
FRAGMENT_RE = re.compile(r'</?[A-Za-z][^<>]*>|[^<]+|<')
TAG_NAME_RE = re.compile(r'</?([A-Za-z][A-Za-z0-9]*)')


def normalize(html: str) -> str:
    """Replace &nbsp; with a space and <br> variants with a newline."""
    return BR_RE.sub('\n', NBSP_RE.sub(' ', html))


def _is_text(node: Node) -> bool:
    return 'text' in node and 'type' not in node


def _marks(node: Node) -> frozenset:
    return frozenset(k for k, v in node.items() if k != 'text' and v)


def merge_runs(nodes: list[Node]) -> list[Node]:
    """Merge adjacent text runs that carry identical mark sets."""
    merged: list[Node] = []
    for node in nodes:
        prev = merged[-1] if merged else None
        if prev is not None and _is_text(prev) and _is_text(node) and _marks(prev) == _marks(node):
            prev['text'] += node['text']
        else:
            merged.append(dict(node))
    return merged


def parse_marks(text: str) -> list[Node]:
    """Scan text for the fixed mark tags and emit one text run per plain-text fragment.

    Unknown tags are dropped; a closing mark tag clears only its own mark.
    """
    runs: list[Node] = []
    active: list[str] = []

    for fragment in FRAGMENT_RE.findall(text):
        if fragment.startswith('<') and len(fragment) > 1:
            name = TAG_NAME_RE.match(fragment).group(1).lower()
            mark = TAG_TO_MARK.get(name)
            if mark is None:
                continue
            if fragment.startswith('</'):
                if mark in active:
                    del active[len(active) - 1 - active[::-1].index(mark)]
            elif mark not in active:
                active.append(mark)
            continue
        run: Node = {'text': fragment}
        for mark in active:
            run[mark] = True
        runs.append(run)

    return merge_runs(runs)


def parse_inline(html: str | None) -> list[Node]:
    """Convert a legacy inline string into text runs and link elements.

    Anchors are extracted first (they never nest), then mark tags are parsed
    inside and around them. Never returns an empty list.
    """
    if not html:
        return [{'text': ''}]

    nodes: list[Node] = []
    for part in ANCHOR_RE.split(normalize(html)):
        if not part:
            continue
        m = ANCHOR_PARTS_RE.fullmatch(part)
        if m:
            href, inner = m.groups()
            nodes.append({
                'type': LINK_TYPE,
                'url': href,
                'children': parse_marks(inner) or [{'text': ''}],
            })
        else:
            nodes.extend(parse_marks(part))

    return merge_runs(nodes) or [{'text': ''}]


def plain_text(nodes: list[Node]) -> str:
    """Concatenate the text of every run, descending into element children."""
    parts = []
    for node in nodes:
        if 'children' in node:
            parts.append(plain_text(node['children']))
        else:
            parts.append(node.get('text', ''))
    return ''.join(parts)
