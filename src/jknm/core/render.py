"""Document tree to Markdown rendering"""

import re

from jknm.core.models import LINK_TYPE, DocumentTree, Node


MARK_WRAPPERS: list[tuple[str, str, str]] = [
    ('subscript',   '<sub>', '</sub>'),
    ('superscript', '<sup>', '</sup>'),
    ('underline',   '<u>',   '</u>'),
    ('italic',      '_',     '_'),
    ('bold',        '**',    '**'),
]
ESCAPE_RE = re.compile(r'([\\*_\[\]`])')
# paragraph line starts that Markdown would read as block markers
BLOCK_START_RE = re.compile(
    r'^( {0,3})(#{1,6}(?=[ \t]|$)|[-=]+(?=[ \t]|$)|\+(?=[ \t]|$)|>|\d{1,9}(?=[.)](?:[ \t]|$)))', re.M
)
LIST_INDENT = '   '


def _escape(text: str) -> str:
    return ESCAPE_RE.sub(r'\\\1', text)


def _escape_line_starts(text: str) -> str:
    def _sub(match: re.Match) -> str:
        indent, marker = match.groups()
        if marker[0].isdigit():
            return f"{indent}{marker}\\"
        return f"{indent}\\{marker}"
    return BLOCK_START_RE.sub(_sub, text)


def _render_run(node: Node) -> str:
    """Render one text run; whitespace is kept outside of emphasis markers."""
    text = node.get('text', '')
    core = text.strip()
    if not core:
        return text.replace('\n', '  \n')
    lead = text[:len(text) - len(text.lstrip())]
    trail = text[len(text.rstrip()):]
    out = _escape(core)
    for mark, opener, closer in MARK_WRAPPERS:
        if node.get(mark):
            out = f"{opener}{out}{closer}"
    return f"{lead}{out}{trail}".replace('\n', '  \n')


def render_inline(nodes: list[Node]) -> str:
    """Render inline nodes (text runs and links) to Markdown."""
    parts = []
    for node in nodes:
        if 'text' in node and 'type' not in node:
            parts.append(_render_run(node))
        elif node.get('type') == LINK_TYPE:
            parts.append(f"[{render_inline(node.get('children', []))}]({node.get('url', '')})")
        else:
            parts.append(render_inline(node.get('children', [])))
    return ''.join(parts)


def _list_item(node: Node, counters: dict[int, int]) -> str:
    indent = int(node.get('indent') or 1)
    for level in [k for k in counters if k > indent]:
        del counters[level]
    prefix = LIST_INDENT * (indent - 1)
    text = _escape_line_starts(render_inline(node.get('children', [])).strip())
    if node.get('listStyleType') == 'decimal':
        number = node.get('listRestart') or node.get('listStart') or counters.get(indent, 0) + 1
        counters[indent] = number
        return f"{prefix}{number}. {text}"
    counters[indent] = counters.get(indent, 0) + 1
    return f"{prefix}- {text}"


def _block(node: Node) -> str:
    kind = node.get('type', '')
    if len(kind) == 2 and kind[0] == 'h' and kind[1].isdigit():
        return f"{'#' * int(kind[1])} {render_inline(node.get('children', [])).strip()}"
    if kind == 'img':
        caption = render_inline(node['caption']).strip() if node.get('caption') else ''
        return f"![{caption}]({node.get('url', '')})"
    if kind == 'media_embed':
        caption = render_inline(node['caption']).strip() if node.get('caption') else ''
        return f"[{caption or node.get('url', '')}]({node.get('url', '')})"
    return _escape_line_starts(render_inline(node.get('children', [])).strip())


def render_markdown(tree: DocumentTree) -> str:
    """Render a document tree as Markdown.

    Blocks are separated by a blank line; consecutive list items by a single
    newline. Empty paragraphs are dropped.
    """
    out: list[str] = []
    counters: dict[int, int] = {}
    prev_list = False

    for node in tree:
        is_list = bool(node.get('listStyleType'))
        if is_list:
            text = _list_item(node, counters)
        else:
            counters.clear()
            text = _block(node)
            if not text:
                prev_list = False
                continue
        if out:
            out.append('\n' if is_list and prev_list else '\n\n')
        out.append(text)
        prev_list = is_list

    return ''.join(out)
