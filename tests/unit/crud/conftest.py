"""Shared fixtures for crud unit tests"""

from datetime import datetime

import pytest
from sqlmodel import Session

from jknm.crud.database import init_db, make_engine
from jknm.crud.models import ArticleStatus


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="payload")
def payload_fixture():
    """Factory for minimal article insert payloads."""
    def _make(old_id, slug, **extra):
        data = {
            "old_id": old_id, "title": slug.title(), "slug": slug, "url": slug,
            "status": ArticleStatus.published,
            "created_at": datetime(2020, 1, 1), "updated_at": datetime(2020, 1, 1),
        }
        data.update(extra)
        return data
    return _make
