"""Search-index record construction and validation"""

import logging
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urljoin

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from jknm.core.errors import RecordValidationError
from jknm.core.models import MarkdownSection
from jknm.crud.models import ArticleStatus


logger = logging.getLogger(__name__)

_URL = TypeAdapter(HttpUrl)


class IndexRecord(BaseModel):
    """One section of one article as stored in the search index.

    Field names are the index schema; do not rename them.
    """
    model_config = ConfigDict(extra="forbid")

    # searchable
    objectID:         str = Field(..., min_length=1)
    title:            str = Field(..., min_length=1)
    permalink:        str
    content:          str
    section:          str
    authors:          list[str] = []
    # filtering / ordering
    status:           ArticleStatus
    section_order:    int = Field(..., ge=0)
    parent_post_id:   int
    parent_post_slug: str = Field(..., min_length=1)
    old_id:           Optional[int] = None
    created_at:       datetime
    updated_at:       datetime
    published_at:     Optional[datetime] = None
    archived_at:      Optional[datetime] = None
    deleted_at:       Optional[datetime] = None

    @field_validator("permalink")
    @classmethod
    def _absolute_url(cls, v: str) -> str:
        _URL.validate_python(v)
        return v


def object_id(article_id: int, section_index: int) -> str:
    """Deterministic composite identifier for a section record."""
    return f"{article_id}-{section_index}"


def permalink(base_url: str, slug_or_url: str) -> str:
    """Join the site base URL with an article slug (absolute URLs pass through)."""
    base = base_url if base_url.endswith('/') else base_url + '/'
    return urljoin(base, slug_or_url)


def build_index_records(
    article,
    sections: list[MarkdownSection],
    authors: list[str],
    base_url: str,
    ) -> list[IndexRecord]:
    """Build one validated IndexRecord per section of an article.

    article is any object exposing the Article columns. authors must already
    be in byline order. Raises RecordValidationError on the first record that
    does not match the index schema.
    """
    slug_or_url = article.slug or article.url
    link = permalink(base_url, slug_or_url)
    records = []

    for index, section in enumerate(sections):
        data: dict[str, Any] = {
            "objectID": object_id(article.id, index),
            "title": article.title,
            "permalink": link,
            "content": section.content_markdown,
            "section": section.heading_text,
            "authors": list(authors),
            "status": article.status,
            "section_order": index,
            "parent_post_id": article.id,
            "parent_post_slug": slug_or_url,
            "old_id": article.old_id,
            "created_at": article.created_at,
            "updated_at": article.updated_at,
            "published_at": article.published_at,
            "archived_at": article.archived_at,
            "deleted_at": article.deleted_at,
        }
        try:
            records.append(IndexRecord.model_validate(data))
        except ValidationError as e:
            logger.error("Index record %s failed validation: %s", data["objectID"], e)
            raise RecordValidationError(f"Index record {data['objectID']} is invalid: {e}") from e

    return records
