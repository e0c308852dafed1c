"""Unit tests for search/client.py"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from jknm.core.errors import SearchIndexError
from jknm.search.client import AlgoliaIndex, MemoryIndex


def _index(handler, **kwargs) -> tuple[AlgoliaIndex, list[float]]:
    sleeps: list[float] = []
    client = httpx.Client(transport=httpx.MockTransport(handler))
    index = AlgoliaIndex("APPID", "secret", client=client, sleep=sleeps.append, **kwargs)
    return index, sleeps


def _records(n):
    return [{"objectID": f"1-{i}", "parent_post_id": 1} for i in range(n)]


def test_memory_index_upsert_and_delete():
    index = MemoryIndex()
    index.save_objects("a", [{"objectID": "1-0", "parent_post_id": 1, "v": 1}])
    index.save_objects("a", [{"objectID": "1-0", "parent_post_id": 1, "v": 2},
                             {"objectID": "2-0", "parent_post_id": 2}])
    assert {r["objectID"]: r.get("v") for r in index.records("a")} == {"1-0": 2, "2-0": None}
    index.delete_by_parent("a", 1)
    assert [r["objectID"] for r in index.records("a")] == ["2-0"]
    assert index.records("missing") == []


def test_memory_index_delete_keeps_lower_sections():
    index = MemoryIndex()
    index.save_objects("a", [{"objectID": f"1-{i}", "parent_post_id": 1, "section_order": i} for i in range(4)])
    index.delete_by_parent("a", 1, keep_sections=2)
    assert sorted(r["objectID"] for r in index.records("a")) == ["1-0", "1-1"]


def test_algolia_requires_credentials():
    with pytest.raises(ValueError, match="required"):
        AlgoliaIndex("", "key")


def test_save_objects_batches_requests():
    """Records are sent as updateObject batches of at most batch_size."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url, request.headers, json.loads(request.content)))
        return httpx.Response(200, json={"taskID": 1})

    index, _ = _index(handler, batch_size=2)
    assert index.save_objects("articles", _records(5)) == 5
    assert len(seen) == 3
    url, headers, body = seen[0]
    assert str(url) == "https://APPID.algolia.net/1/indexes/articles/batch"
    assert headers["X-Algolia-Application-Id"] == "APPID"
    assert headers["X-Algolia-API-Key"] == "secret"
    assert [r["action"] for r in body["requests"]] == ["updateObject", "updateObject"]
    assert body["requests"][0]["body"]["objectID"] == "1-0"
    assert len(seen[2][2]["requests"]) == 1


def test_delete_by_parent_sends_filter():
    bodies = []

    def handler(request):
        bodies.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={})

    index, _ = _index(handler)
    index.delete_by_parent("articles", 42)
    path, body = bodies[0]
    assert path == "/1/indexes/articles/deleteByQuery"
    assert parse_qs(body["params"]) == {"filters": ["parent_post_id=42"]}


def test_delete_by_parent_keeps_current_sections():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    index, _ = _index(handler)
    index.delete_by_parent("articles", 42, keep_sections=3)
    assert parse_qs(bodies[0]["params"]) == {"filters": ["parent_post_id=42 AND section_order>=3"]}


def test_retries_on_server_errors_with_backoff():
    responses = iter([httpx.Response(503), httpx.Response(429), httpx.Response(200, json={})])

    index, sleeps = _index(lambda request: next(responses), retries=3)
    index.save_objects("articles", _records(1))
    assert sleeps == [1, 2]


def test_retries_on_transport_errors():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("boom", request=request)
        return httpx.Response(200, json={})

    index, sleeps = _index(handler)
    index.delete_by_parent("articles", 1)
    assert len(calls) == 2
    assert sleeps == [1]


def test_gives_up_after_retries():
    index, sleeps = _index(lambda request: httpx.Response(500), retries=2)
    with pytest.raises(SearchIndexError, match="after 2 attempts"):
        index.save_objects("articles", _records(1))
    assert sleeps == [1]


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, text="invalid key")

    index, sleeps = _index(handler)
    with pytest.raises(SearchIndexError, match="403"):
        index.save_objects("articles", _records(1))
    assert len(calls) == 1
    assert sleeps == []


def test_context_manager_closes_client():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    with AlgoliaIndex("APPID", "secret", client=client):
        pass
    assert client.is_closed
