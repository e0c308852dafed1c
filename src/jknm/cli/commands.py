"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from jknm.config import Settings, load_config
from jknm.core.blocks import convert_document
from jknm.core.errors import MigrationError
from jknm.core.models import LegacyBlockDocument
from jknm.core.pipeline import run_index, run_migrate
from jknm.core.render import render_markdown
from jknm.core.sections import split_sections
from jknm.core.sources import load_sources
from jknm.crud.database import init_db, make_engine, reset_db
from jknm.logging_config import configure_logging
from jknm.search.client import AlgoliaIndex, MemoryIndex


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(settings.log_level)
    return settings


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def convert_cmd(
    path: Annotated[Path, typer.Argument(help="Legacy block-editor JSON document")],
    markdown: Annotated[bool, typer.Option("--markdown", help="Print Markdown instead of the document tree")] = False,
    ):
    """Convert one legacy block document to a document tree (or Markdown)."""
    _settings()
    try:
        doc = LegacyBlockDocument.from_json(path.read_text(encoding="utf-8"))
        tree = convert_document(doc)
    except (OSError, ValueError, MigrationError) as e:
        _fail(f"Cannot convert {path}", e)
    if markdown:
        typer.echo(render_markdown(tree))
    else:
        typer.echo(json.dumps(tree, indent=2, ensure_ascii=False))


def sections_cmd(
    path: Annotated[Path, typer.Argument(help="Markdown file to split")],
    ):
    """Split a Markdown file at level-1/level-2 headings and print the sections as JSON."""
    _settings()
    try:
        sections = split_sections(path.read_text(encoding="utf-8"))
    except OSError as e:
        _fail(f"Cannot read {path}", e)
    typer.echo(json.dumps([s.model_dump() for s in sections], indent=2, ensure_ascii=False))


def migrate_cmd(
    articles: Annotated[Optional[str], typer.Option("--articles", help="Block-JSON article export")] = None,
    markdown_dir: Annotated[Optional[str], typer.Option("--markdown-dir", help="Directory of <legacy id>.md exports")] = None,
    csv_path: Annotated[Optional[str], typer.Option("--csv", help="CSV export of the oldest articles")] = None,
    fail_fast: Annotated[bool, typer.Option("--fail-fast", help="Abort on the first failed record")] = False,
    workers: Annotated[Optional[int], typer.Option("--max-workers", help="Concurrent conversions")] = None,
    ):
    """Reconcile legacy exports and insert articles (existing rows are left untouched)."""
    settings = _settings(overrides={
        "articles_json": articles, "markdown_dir": markdown_dir, "csv_path": csv_path,
        "fail_fast": fail_fast or None, "max_workers": workers,
    })
    if not (settings.articles_json or settings.markdown_dir or settings.csv_path):
        _fail("No legacy sources configured. Pass --articles, --markdown-dir, or --csv.")

    try:
        sources = load_sources(
            Path(settings.articles_json) if settings.articles_json else None,
            Path(settings.markdown_dir) if settings.markdown_dir else None,
            Path(settings.csv_path) if settings.csv_path else None,
        )
    except (OSError, ValueError, ValidationError) as e:
        _fail("Cannot load legacy sources", e)

    engine = make_engine(settings.db_url)
    init_db(engine)
    try:
        report, inserted = run_migrate(engine, sources, settings.max_workers, settings.fail_fast)
    except MigrationError as e:
        _fail("Migration aborted", e)

    for failure in report.failures:
        typer.echo(f"  failed: old_id={failure.old_id} title={failure.title!r}: {failure.reason}", err=True)
    typer.echo(
        f"Migration complete - "
        f"{report.succeeded} converted, "
        f"{inserted} inserted, "
        f"{report.skipped} skipped, "
        f"{report.failed} failed"
    )


def index_cmd(
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Build and validate records without sending them")] = False,
    index_name: Annotated[Optional[str], typer.Option("--index", help="Search index name")] = None,
    ):
    """Rebuild search index records for every stored article."""
    settings = _settings(overrides={"index_name": index_name})
    engine = make_engine(settings.db_url)
    init_db(engine)

    if dry_run:
        index = MemoryIndex()
    else:
        try:
            index = AlgoliaIndex(
                settings.algolia_app_id, settings.algolia_api_key,
                retries=settings.index_retries, batch_size=settings.index_batch_size,
                timeout=settings.http_timeout,
            )
        except ValueError as e:
            _fail("Search index is not configured (set JKNM_ALGOLIA_APP_ID / JKNM_ALGOLIA_API_KEY)", e)

    try:
        articles, records = run_index(
            engine, index, settings.index_name, settings.base_url, settings.max_workers,
        )
    except MigrationError as e:
        _fail("Indexing aborted", e)
    finally:
        if isinstance(index, AlgoliaIndex):
            index.close()

    verb = "Validated" if dry_run else "Indexed"
    typer.echo(f"{verb} {records} record(s) for {articles} article(s) in '{settings.index_name}'")
