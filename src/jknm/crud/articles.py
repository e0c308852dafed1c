"""Article persistence: idempotent bulk insert, lookups, and author resolution"""

from typing import Any

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from jknm.crud.models import Article, ArticleAuthor, Author, AuthorType


INSERT_CHUNK = 200


def _insert_fn(session: Session):
    """Dialect-specific insert construct that supports ON CONFLICT DO NOTHING."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise ValueError(f"Unsupported database dialect for insert-or-ignore: {dialect}")


def count_articles(session: Session) -> int:
    """Return the number of stored articles."""
    return session.exec(select(func.count()).select_from(Article)).one()


def insert_articles(session: Session, payloads: list[dict[str, Any]]) -> int:
    """Insert article rows, ignoring any that collide on a unique key (old_id, slug).

    Existing rows are never overwritten. Flushes but does not commit; the
    caller owns the transaction. Returns the number of rows actually inserted.
    """
    if not payloads:
        return 0
    insert = _insert_fn(session)
    before = count_articles(session)
    conn = session.connection()
    for i in range(0, len(payloads), INSERT_CHUNK):
        stmt = insert(Article).values(payloads[i:i + INSERT_CHUNK]).on_conflict_do_nothing()
        conn.execute(stmt)
    session.flush()
    return count_articles(session) - before


def get_by_old_id(session: Session, old_id: int) -> Article | None:
    """Return the Article migrated from the given legacy id, or None."""
    return session.exec(select(Article).where(Article.old_id == old_id)).one_or_none()


def get_by_slug(session: Session, slug: str) -> Article | None:
    """Return the Article with the given slug, or None."""
    return session.exec(select(Article).where(Article.slug == slug)).one_or_none()


def list_articles(session: Session) -> list[Article]:
    """Return all articles ordered by id."""
    return list(session.exec(select(Article).order_by(Article.id)).all())


def get_or_create_author(session: Session, name: str) -> Author:
    """Return the author with this display name, creating a guest author if needed."""
    author = session.exec(select(Author).where(Author.name == name)).first()
    if author is None:
        author = Author(name=name, author_type=AuthorType.guest)
        session.add(author)
        session.flush()
    return author


def link_authors(session: Session, article_id: int, names: list[str]) -> int:
    """Attach authors to an article in byline order; existing links are kept.

    Returns the number of new links.
    """
    insert = _insert_fn(session)
    conn = session.connection()
    added = 0
    for order, name in enumerate(names):
        author = get_or_create_author(session, name)
        result = conn.execute(
            insert(ArticleAuthor)
            .values(article_id=article_id, author_id=author.id, order=order)
            .on_conflict_do_nothing()
        )
        added += result.rowcount or 0
    session.flush()
    return added


def author_names(session: Session, article_id: int) -> list[str]:
    """Return author display names for an article ordered by byline position."""
    return list(session.exec(
        select(Author.name)
        .join(ArticleAuthor, ArticleAuthor.author_id == Author.id)
        .where(ArticleAuthor.article_id == article_id)
        .order_by(ArticleAuthor.order)
    ).all())
