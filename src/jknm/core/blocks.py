"""Legacy block documents to rich-text document trees"""

import logging
from typing import Iterator

from pydantic import ValidationError

from jknm.core.errors import ConversionError
from jknm.core.inline import parse_inline
from jknm.core.models import (
    KNOWN_BLOCK_TYPES, TYPED_BLOCK_ADAPTER,
    DocumentTree, EmbedBlock, HeaderBlock, ImageBlock, LegacyBlockDocument,
    ListBlock, ListItem, Node, ParagraphBlock, RawBlock, TypedBlock,
)


logger = logging.getLogger(__name__)

LIST_STYLE_TYPES = {'ordered': 'decimal', 'unordered': 'disc'}


def typed_block(raw: RawBlock) -> TypedBlock | None:
    """Resolve a raw block into its typed variant; None for unsupported types.

    Raises ConversionError when a supported type carries malformed data.
    """
    if raw.type not in KNOWN_BLOCK_TYPES:
        return None
    try:
        return TYPED_BLOCK_ADAPTER.validate_python({'type': raw.type, 'data': raw.data})
    except ValidationError as e:
        raise ConversionError(f"Malformed {raw.type} block {raw.id or '?'}: {e.errors()[0]['msg']}") from e


def iter_blocks(doc: LegacyBlockDocument) -> Iterator[TypedBlock]:
    """Yield typed blocks in order, skipping unsupported block types."""
    for raw in doc.blocks:
        block = typed_block(raw)
        if block is None:
            logger.debug("Skipping unsupported block type %r", raw.type)
            continue
        yield block


def _with_caption(element: Node, caption: str | None) -> Node:
    if caption:
        element['caption'] = parse_inline(caption)
    return element


def convert_list(
    items: list[str | ListItem],
    style: str,
    indent: int = 1,
    start: int = 1,
    ) -> list[Node]:
    """Flatten a (possibly nested) list into indented paragraph elements.

    Numbering attributes are sparse: an ordered list starting anywhere but 1
    gets listRestart on its first item, every later item carries its explicit
    listStart, and the first item of a default list carries nothing. Nested
    lists restart at 1 one indent level deeper.
    """
    ordered = style == 'ordered'
    elements: list[Node] = []

    for index, item in enumerate(items):
        content = item if isinstance(item, str) else item.content
        nested = [] if isinstance(item, str) else item.items

        element: Node = {
            'type': 'p',
            'indent': indent,
            'listStyleType': LIST_STYLE_TYPES[style],
            'children': parse_inline(content),
        }
        number = start + index
        if ordered:
            if index == 0 and start != 1:
                element['listRestart'] = number
            elif index > 0:
                element['listStart'] = number
        elif index > 0:
            element['listStart'] = index + 1
        elements.append(element)

        if nested:
            elements.extend(convert_list(nested, style, indent + 1, 1))

    return elements


def convert_block(block: TypedBlock) -> list[Node]:
    """Map one typed legacy block to its document-tree element(s)."""
    if isinstance(block, HeaderBlock):
        return [{'type': f"h{block.data.level}", 'children': parse_inline(block.data.text)}]
    if isinstance(block, ParagraphBlock):
        return [{'type': 'p', 'children': parse_inline(block.data.text)}]
    if isinstance(block, ImageBlock):
        element = {'type': 'img', 'url': block.data.file.url, 'children': [{'text': ''}]}
        return [_with_caption(element, block.data.caption)]
    if isinstance(block, EmbedBlock):
        element = {'type': 'media_embed', 'url': block.data.embed, 'children': [{'text': ''}]}
        return [_with_caption(element, block.data.caption)]
    if isinstance(block, ListBlock):
        start = block.data.meta.start if block.data.meta and block.data.meta.start is not None else 1
        return convert_list(block.data.items, block.data.style, 1, start)
    raise ConversionError(f"No converter for block type {type(block).__name__}")


def convert_document(doc: LegacyBlockDocument) -> DocumentTree:
    """Convert a legacy block document into a document tree."""
    tree: DocumentTree = []
    for block in iter_blocks(doc):
        tree.extend(convert_block(block))
    return tree
