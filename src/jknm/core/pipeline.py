"""Pipeline step functions: migrate and index orchestration"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import partial
from typing import Any, Callable, Iterable, TypeVar

from sqlalchemy.engine import Engine
from sqlmodel import Session

from jknm.core.blocks import convert_document
from jknm.core.errors import SourceDataError
from jknm.core.index_records import IndexRecord, build_index_records
from jknm.core.models import LegacyBlockDocument, MarkdownSection
from jknm.core.reconcile import ArticlePayload, BatchReport, index_csv_rows, migrate_one
from jknm.core.render import render_markdown
from jknm.core.sections import split_sections
from jknm.core.sources import LegacySources
from jknm.crud.articles import author_names, get_by_old_id, get_by_slug, insert_articles, link_authors, list_articles
from jknm.crud.models import Article
from jknm.search.client import SearchIndex


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def convert_all(items: Iterable[T], fn: Callable[[T], R], max_workers: int = 4) -> list[R]:
    """Map a pure per-item function over items with bounded concurrency, keeping order."""
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(fn, items))


def _attempt(fn: Callable[[T], R], item: T) -> tuple[R | None, SourceDataError | None]:
    """Run fn, turning a per-record source error into a value instead of a raise."""
    try:
        return fn(item), None
    except SourceDataError as e:
        return None, e


def dedupe_slugs(payloads: list[ArticlePayload]) -> None:
    """Suffix repeated slugs with the legacy id (or position) so each stays unique."""
    seen: set[str] = set()
    for position, payload in enumerate(payloads):
        base = payload.slug
        tag = payload.old_id if payload.old_id is not None else position
        n = 1
        while payload.slug in seen:
            payload.slug = f"{base}-{tag}" if n == 1 else f"{base}-{tag}-{n}"
            n += 1
        seen.add(payload.slug)


def run_migrate(
    engine: Engine,
    sources: LegacySources,
    max_workers: int = 4,
    fail_fast: bool = False,
    migrated_at: datetime | None = None,
    ) -> tuple[BatchReport, int]:
    """Reconcile legacy sources and bulk-insert the resulting articles.

    Per-record source errors are collected in the report (or raised when
    fail_fast). Validation errors always propagate. Nothing is written until
    every record has been processed; the insert ignores rows that already
    exist, so re-runs are safe. Returns (report, inserted_count).
    """
    migrated_at = migrated_at or datetime.now()
    report = BatchReport()
    for error in sources.rejected:
        if fail_fast:
            raise error
        report.fail(error)
    csv_by_id = index_csv_rows(sources.csv_rows, report, fail_fast)

    referenced = {a.old_id for a in sources.articles if a.old_id is not None}
    referenced |= {e.old_id for e in sources.rejected if e.old_id is not None}
    items: list[Any] = list(sources.articles)
    items += [row for old_id, row in sorted(csv_by_id.items()) if old_id not in referenced]

    fn = partial(migrate_one, markdown=sources.markdown, csv_by_id=csv_by_id, migrated_at=migrated_at)
    outcomes = convert_all(items, partial(_attempt, fn), max_workers)

    payloads: list[ArticlePayload] = []
    bylines: list[list[str]] = []
    for result, error in outcomes:
        if error is not None:
            if fail_fast:
                raise error
            report.fail(error)
            continue
        payload, authors = result
        payloads.append(payload)
        bylines.append(authors)
        report.succeeded += 1

    dedupe_slugs(payloads)
    with Session(engine) as session:
        inserted = insert_articles(session, [p.model_dump() for p in payloads])
        for payload, authors in zip(payloads, bylines):
            if not authors:
                continue
            article = _stored(session, payload)
            if article is not None:
                link_authors(session, article.id, authors)
        session.commit()

    logger.info(
        "Migration finished: %d converted, %d inserted, %d skipped, %d failed",
        report.succeeded, inserted, report.skipped, report.failed,
    )
    return report, inserted


def _stored(session: Session, payload: ArticlePayload) -> Article | None:
    if payload.old_id is not None:
        return get_by_old_id(session, payload.old_id)
    return get_by_slug(session, payload.slug)


def article_markdown(article: Article) -> str:
    """Markdown for indexing: stored Markdown wins, then the tree, then legacy JSON."""
    if article.content_markdown:
        return article.content_markdown
    if article.content_json:
        return render_markdown(article.content_json)
    if article.content_editorjs:
        return render_markdown(convert_document(LegacyBlockDocument.from_json(article.content_editorjs)))
    return ""


def _records_for(item: tuple[Article, list[str]], base_url: str) -> tuple[int, list[IndexRecord]]:
    article, authors = item
    sections: list[MarkdownSection] = split_sections(article_markdown(article))
    if not sections:
        logger.debug("Article %s has no indexable content", article.id)
    return article.id, build_index_records(article, sections, authors, base_url)


def run_index(
    engine: Engine,
    index: SearchIndex,
    index_name: str,
    base_url: str,
    max_workers: int = 4,
    ) -> tuple[int, int]:
    """Rebuild search records for every stored article.

    All records are built and validated before anything is sent; an invalid
    record aborts the run. The new records are saved in one bulk call (upserts
    by objectID) and only then are each article's leftover higher-numbered
    sections removed, so a failed save leaves the previous records in place.
    Returns (article_count, record_count).
    """
    with Session(engine) as session:
        articles = list_articles(session)
        items = [(a, author_names(session, a.id)) for a in articles]

    built = convert_all(items, partial(_records_for, base_url=base_url), max_workers)

    records: list[dict[str, Any]] = []
    for _, article_records in built:
        records.extend(r.model_dump(mode="json") for r in article_records)
    if records:
        index.save_objects(index_name, records)
    for article_id, article_records in built:
        index.delete_by_parent(index_name, article_id, keep_sections=len(article_records))

    logger.info("Indexed %d records for %d articles into %s", len(records), len(built), index_name)
    return len(built), len(records)
