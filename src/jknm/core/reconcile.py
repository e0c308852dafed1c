"""Cross-source reconciliation and article payload derivation"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from jknm.core.blocks import convert_document
from jknm.core.errors import ConversionError, RecordValidationError, SourceDataError, UnknownCategoryError
from jknm.core.metadata import content_length, excerpt, meta_description, reading_time, truncate
from jknm.core.models import LegacyBlockDocument
from jknm.core.parse import markdown_to_document
from jknm.core.sources import CsvArticle, ExportedArticle, csv_text_to_document, parse_csv_row
from jknm.core.utils.slug import slug_from_url, slugify
from jknm.crud.models import ArticleStatus


logger = logging.getLogger(__name__)

SLUG_MAX = 240
TITLE_MAX = 255
URL_MAX = 255


@dataclass
class RecordFailure:
    """Diagnostic for one legacy record that could not be migrated."""
    title: str | None
    old_id: int | None
    reason: str


@dataclass
class BatchReport:
    """Per-run tally: successes, deliberately skipped rows, and failures."""
    succeeded: int = 0
    skipped: int = 0
    failures: list[RecordFailure] = field(default_factory=list)

    def fail(self, error: SourceDataError) -> None:
        logger.warning("Skipping record old_id=%s title=%r: %s", error.old_id, error.title, error)
        self.failures.append(RecordFailure(title=error.title, old_id=error.old_id, reason=str(error)))

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass
class ReconciledArticle:
    """One article with its title and content resolved across the sources."""
    old_id: int | None
    title: str
    url: str
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    markdown: str | None = None
    document: LegacyBlockDocument | None = None
    authors: list[str] = field(default_factory=list)


class ArticlePayload(BaseModel):
    """Validated insert payload for the article table."""
    old_id:           Optional[int] = None
    title:            str = Field(..., min_length=1, max_length=255)
    slug:             str = Field(..., min_length=1, max_length=255, pattern=r'^[a-z0-9]+(?:-[a-z0-9]+)*$')
    url:              str = Field(..., min_length=1, max_length=255)
    status:           ArticleStatus
    content_json:     Optional[list[dict[str, Any]]] = None
    content_markdown: Optional[str] = None
    content_editorjs: Optional[str] = None
    excerpt:          Optional[str] = Field(default=None, max_length=500)
    meta_description: Optional[str] = Field(default=None, max_length=160)
    reading_time:     int = Field(default=0, ge=0)
    content_length:   int = Field(default=0, ge=0)
    created_at:       datetime
    updated_at:       datetime
    published_at:     Optional[datetime] = None
    deleted_at:       Optional[datetime] = None
    migrated_at:      datetime


def index_csv_rows(
    rows: list[dict[str, str]],
    report: BatchReport,
    fail_fast: bool = False,
    ) -> dict[int, CsvArticle]:
    """Parse CSV rows into category-1 articles keyed by their legacy id.

    Skipped categories are counted; unknown categories and unreadable rows are
    recorded as failures (or raised when fail_fast).
    """
    by_id: dict[int, CsvArticle] = {}
    for row in rows:
        try:
            parsed = parse_csv_row(row)
        except UnknownCategoryError as e:
            if fail_fast:
                raise
            report.fail(e)
            continue
        except ValueError as e:
            err = SourceDataError(f"Unreadable CSV row {row.get('ID')!r}: {e}", title=row.get("Naslov"))
            if fail_fast:
                raise err from e
            report.fail(err)
            continue
        if parsed is None:
            report.skipped += 1
            continue
        by_id[parsed.objave_id] = parsed
    return by_id


def _checked_title(title: str | None, old_id: int | None) -> str:
    """Trimmed title capped at TITLE_MAX; a blank title is a source defect."""
    title = (title or "").strip()
    if not title:
        raise SourceDataError("Article has no title", title=title, old_id=old_id)
    if len(title) > TITLE_MAX:
        logger.warning("Truncating %d-char title of old_id=%s", len(title), old_id)
    return truncate(title, TITLE_MAX)


def reconcile_export(
    article: ExportedArticle,
    markdown: dict[int, str],
    csv_by_id: dict[int, CsvArticle],
    ) -> ReconciledArticle:
    """Resolve an exported article against the Markdown and CSV exports.

    Both lookups are keyed on the article's old_id, never its own id.
    Title: CSV, then export. Content: Markdown export, then block content.
    """
    md = markdown.get(article.old_id) if article.old_id is not None else None
    row = csv_by_id.get(article.old_id) if article.old_id is not None else None
    title = _checked_title(row.title if row and row.title.strip() else article.title, article.old_id)
    if len(article.url) > URL_MAX:
        raise SourceDataError(f"Legacy url is longer than {URL_MAX} characters", title=title, old_id=article.old_id)

    if not md and (article.content is None or not article.content.blocks):
        raise SourceDataError("No markdown export and no block content", title=title, old_id=article.old_id)

    return ReconciledArticle(
        old_id=article.old_id,
        title=title,
        url=article.url,
        created_at=article.created_at,
        updated_at=article.updated_at,
        deleted_at=article.deleted_at,
        markdown=md or None,
        document=None if md else article.content,
        authors=list(article.authors),
    )


def reconcile_csv(row: CsvArticle, markdown: dict[int, str]) -> ReconciledArticle:
    """Resolve a CSV-only article: Markdown export if present, else its own text."""
    title = _checked_title(row.title, row.objave_id)
    md = markdown.get(row.objave_id)
    if not md and not row.text.strip():
        raise SourceDataError("No markdown export and empty CSV text", title=title, old_id=row.objave_id)
    if row.created_at is None:
        raise SourceDataError("CSV row has no creation date", title=title, old_id=row.objave_id)
    return ReconciledArticle(
        old_id=row.objave_id,
        title=title,
        url=slugify(title)[:SLUG_MAX].strip("-"),
        created_at=row.created_at,
        updated_at=row.updated_at,
        markdown=md or None,
        document=None if md else csv_text_to_document(row.text),
    )


def article_slug(rec: ReconciledArticle) -> str:
    """Slug from the legacy url when it yields one, else from the title, else from the legacy id.

    Raises SourceDataError when none of them yields a slug.
    """
    slug = slug_from_url(rec.url) if rec.url else ''
    slug = (slug or slugify(rec.title))[:SLUG_MAX].strip('-')
    if slug:
        return slug
    if rec.old_id is not None:
        return f"novica-{rec.old_id}"
    raise SourceDataError("Cannot derive a slug from url, title, or legacy id", title=rec.title, old_id=rec.old_id)


def derive_payload(rec: ReconciledArticle, migrated_at: datetime) -> ArticlePayload:
    """Compute content representation and derived metadata for one article.

    Markdown content is stored as-is; block content is converted to a tree.
    Exactly one representation is populated.
    """
    try:
        if rec.markdown:
            doc = markdown_to_document(rec.markdown)
            content = {"content_markdown": rec.markdown}
        else:
            doc = rec.document
            content = {"content_json": convert_document(doc)}
        summary = excerpt(doc)
        minutes, length = reading_time(doc), content_length(doc)
    except ConversionError as e:
        raise SourceDataError(str(e), title=rec.title, old_id=rec.old_id) from e
    if not content.get("content_markdown") and not content.get("content_json"):
        raise SourceDataError("Content converted to an empty document", title=rec.title, old_id=rec.old_id)

    slug = article_slug(rec)
    status = ArticleStatus.deleted if rec.deleted_at else ArticleStatus.published
    data = {
        "old_id": rec.old_id,
        "title": rec.title,
        "slug": slug,
        "url": rec.url or slug,
        "status": status,
        **content,
        "excerpt": summary,
        "meta_description": meta_description(summary),
        "reading_time": minutes,
        "content_length": length,
        "created_at": rec.created_at,
        "updated_at": rec.updated_at or rec.created_at,
        "published_at": rec.created_at,
        "deleted_at": rec.deleted_at,
        "migrated_at": migrated_at,
    }
    try:
        return ArticlePayload.model_validate(data)
    except ValidationError as e:
        logger.error("Article payload for old_id=%s failed validation: %s", rec.old_id, e)
        raise RecordValidationError(f"Article payload for {rec.title!r} (old_id={rec.old_id}) is invalid: {e}") from e


def migrate_one(
    item: ExportedArticle | CsvArticle,
    markdown: dict[int, str],
    csv_by_id: dict[int, CsvArticle],
    migrated_at: datetime,
    ) -> tuple[ArticlePayload, list[str]]:
    """Reconcile and derive the payload (plus byline) for one legacy record."""
    if isinstance(item, ExportedArticle):
        rec = reconcile_export(item, markdown, csv_by_id)
    else:
        rec = reconcile_csv(item, markdown)
    return derive_payload(rec, migrated_at), rec.authors

