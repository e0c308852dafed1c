"""Legacy block variants, document-tree aliases, and section models"""

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


Node = dict[str, Any]           # Element {type, children, ...attrs} or TextRun {text, ...marks}
DocumentTree = list[Node]

LINK_TYPE = "a"
MARKS = ("bold", "italic", "underline", "superscript", "subscript")


class RawBlock(BaseModel):
    """One block as stored in the legacy export; data shape depends on type."""
    id: Optional[str] = None
    type: str
    data: dict[str, Any] = {}


class LegacyBlockDocument(BaseModel):
    """Legacy block-editor document: {time?, version?, blocks}."""
    time: Optional[int] = None
    version: Optional[str] = None
    blocks: list[RawBlock] = []

    @classmethod
    def from_json(cls, raw: str | dict) -> "LegacyBlockDocument":
        """Accept either the decoded object or the JSON string the old table stored."""
        if isinstance(raw, str):
            raw = json.loads(raw)
        return cls.model_validate(raw)


# --- typed block payloads ---

class HeaderData(BaseModel):
    text: str = ""
    level: int = Field(default=1, ge=1, le=6)


class ParagraphData(BaseModel):
    text: str = ""


class ImageFile(BaseModel):
    url: str


class ImageData(BaseModel):
    file: ImageFile
    caption: Optional[str] = None


class EmbedData(BaseModel):
    embed: str
    caption: Optional[str] = None


class ListItem(BaseModel):
    """Nested list item; flat (CSV-derived) lists use plain strings instead."""
    content: str = ""
    items: list[Union[str, "ListItem"]] = []


class ListMeta(BaseModel):
    start: Optional[int] = None


class ListData(BaseModel):
    style: Literal["ordered", "unordered"] = "unordered"
    items: list[Union[str, ListItem]] = []
    meta: Optional[ListMeta] = None

    @field_validator("meta", mode="before")
    @classmethod
    def _empty_meta(cls, v):
        return v or None


class HeaderBlock(BaseModel):
    type: Literal["header"]
    data: HeaderData


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"]
    data: ParagraphData


class ImageBlock(BaseModel):
    type: Literal["image"]
    data: ImageData


class ListBlock(BaseModel):
    type: Literal["list"]
    data: ListData


class EmbedBlock(BaseModel):
    type: Literal["embed"]
    data: EmbedData


TypedBlock = Annotated[
    Union[HeaderBlock, ParagraphBlock, ImageBlock, ListBlock, EmbedBlock],
    Field(discriminator="type"),
]
TYPED_BLOCK_ADAPTER = TypeAdapter(TypedBlock)
KNOWN_BLOCK_TYPES = frozenset({"header", "paragraph", "image", "list", "embed"})


class MarkdownSection(BaseModel):
    """A heading-delimited slice of a Markdown document."""
    heading_text: str
    content_markdown: str
