"""Legacy source loaders: block-JSON export, Markdown export, and CSV export"""

import csv
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from jknm.core.errors import SourceDataError, UnknownCategoryError
from jknm.core.models import LegacyBlockDocument, RawBlock
from jknm.core.parse import split_frontmatter


logger = logging.getLogger(__name__)

CSV_COLUMNS = ("ID", "Kategorija", "Naslov", "Tekst", "Datum1", "ZadnjaSprememba")
ARTICLE_CATEGORY = "1"
SKIPPED_CATEGORIES = {"2"}
LIST_LINE_RE = re.compile(r'^\s*[-*]\s+')
DATE_FORMATS = ("%d.%m.%Y %H:%M:%S", "%d.%m.%Y %H:%M", "%d.%m.%Y")


def parse_legacy_date(value: str | None) -> datetime | None:
    """Parse ISO (YYYY-MM-DD[ HH:MM:SS]) or DD.MM.YYYY dates; blank is None."""
    value = (value or "").strip()
    if not value or value.startswith("0000"):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date {value!r}")


class ExportedArticle(BaseModel):
    """Collection A: a published-article row from the block-editor era."""
    id: int
    old_id: Optional[int] = None
    title: str
    url: str = ""
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    content: Optional[LegacyBlockDocument] = None
    content_preview: Optional[str] = None
    authors: list[str] = []

    @field_validator("content", mode="before")
    @classmethod
    def _decode_content(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v.strip() else None
        return v


class CsvArticle(BaseModel):
    """Collection C: a category-1 row from the oldest CSV export."""
    objave_id: int
    title: str
    text: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class LegacySources:
    """All three legacy collections, loaded once up front."""
    articles: list[ExportedArticle] = field(default_factory=list)
    markdown: dict[int, str] = field(default_factory=dict)
    csv_rows: list[dict[str, str]] = field(default_factory=list)
    rejected: list[SourceDataError] = field(default_factory=list)


def _row_error(position: int, row: Any, error: ValidationError) -> SourceDataError:
    """Describe an unreadable export row by whatever identifying fields it has."""
    row = row if isinstance(row, dict) else {}
    old_id = row.get("old_id") if isinstance(row.get("old_id"), int) else None
    title = row.get("title") if isinstance(row.get("title"), str) else None
    first = error.errors()[0]
    where = ".".join(str(p) for p in first["loc"]) or "row"
    return SourceDataError(
        f"Unreadable export row {position} (id={row.get('id')!r}): {where}: {first['msg']}",
        title=title, old_id=old_id,
    )


def load_articles_json(path: Path) -> tuple[list[ExportedArticle], list[SourceDataError]]:
    """Load collection A from a JSON array of article rows.

    Rows are validated one by one; a row that does not fit the export schema
    is returned as a SourceDataError and the remaining rows still load. A file
    that is not a JSON array raises ValueError.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of articles, got {type(data).__name__}")

    articles: list[ExportedArticle] = []
    rejected: list[SourceDataError] = []
    for position, row in enumerate(data):
        try:
            articles.append(ExportedArticle.model_validate(row))
        except ValidationError as e:
            rejected.append(_row_error(position, row, e))
    return articles, rejected


def load_markdown_dir(path: Path) -> dict[int, str]:
    """Load collection B: <legacy id>.md files keyed by that id; frontmatter is dropped."""
    exports: dict[int, str] = {}
    for p in sorted(Path(path).glob("*.md")):
        if not p.stem.isdigit():
            logger.warning("Ignoring markdown export with non-numeric name: %s", p.name)
            continue
        _, body = split_frontmatter(p.read_text(encoding="utf-8"))
        exports[int(p.stem)] = body.strip()
    return exports


def read_csv_rows(path: Path) -> list[dict[str, str]]:
    """Read collection C rows as dicts; the header must carry every legacy column."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        missing = [c for c in CSV_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing CSV columns {', '.join(missing)}")
        return list(reader)


def parse_csv_row(row: dict[str, str]) -> CsvArticle | None:
    """Return the article for a category-1 row, None for a skipped category.

    Raises UnknownCategoryError for any other category.
    """
    category = (row.get("Kategorija") or "").strip()
    if category in SKIPPED_CATEGORIES:
        return None
    if category != ARTICLE_CATEGORY:
        raise UnknownCategoryError(row.get("ID", ""), category, title=row.get("Naslov"))
    return CsvArticle(
        objave_id=int(row["ID"]),
        title=(row.get("Naslov") or "").strip(),
        text=row.get("Tekst") or "",
        created_at=parse_legacy_date(row.get("Datum1")),
        updated_at=parse_legacy_date(row.get("ZadnjaSprememba")),
    )


def csv_text_to_document(text: str) -> LegacyBlockDocument:
    """Turn CSV article text into paragraph blocks and flat-item list blocks.

    Blank lines separate chunks; consecutive '- ' / '* ' lines form one
    unordered list whose items are plain strings.
    """
    blocks: list[RawBlock] = []
    for chunk in re.split(r'\r?\n\s*\r?\n', text.strip()):
        paragraph: list[str] = []
        items: list[str] = []
        for line in re.split(r'\r?\n', chunk):
            if LIST_LINE_RE.match(line):
                if paragraph:
                    blocks.append(RawBlock(type="paragraph", data={"text": "<br>".join(paragraph)}))
                    paragraph = []
                items.append(LIST_LINE_RE.sub('', line).strip())
            elif line.strip():
                if items:
                    blocks.append(RawBlock(type="list", data={"style": "unordered", "items": items}))
                    items = []
                paragraph.append(line.strip())
        if paragraph:
            blocks.append(RawBlock(type="paragraph", data={"text": "<br>".join(paragraph)}))
        if items:
            blocks.append(RawBlock(type="list", data={"style": "unordered", "items": items}))
    return LegacyBlockDocument(blocks=blocks)


def load_sources(
    articles_json: Path | None = None,
    markdown_dir: Path | None = None,
    csv_path: Path | None = None,
    ) -> LegacySources:
    """Load whichever legacy collections are configured. I/O errors propagate."""
    sources = LegacySources()
    if articles_json:
        sources.articles, sources.rejected = load_articles_json(articles_json)
        logger.info(
            "Loaded %d exported articles from %s (%d unreadable)",
            len(sources.articles), articles_json, len(sources.rejected),
        )
    if markdown_dir:
        sources.markdown = load_markdown_dir(markdown_dir)
        logger.info("Loaded %d markdown exports from %s", len(sources.markdown), markdown_dir)
    if csv_path:
        sources.csv_rows = read_csv_rows(csv_path)
        logger.info("Loaded %d CSV rows from %s", len(sources.csv_rows), csv_path)
    return sources
