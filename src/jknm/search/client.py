"""Search index clients: Algolia over HTTP and an in-memory stand-in"""

import logging
import time
from typing import Any, Callable, Protocol
from urllib.parse import quote, urlencode

import httpx

from jknm.core.errors import SearchIndexError


logger = logging.getLogger(__name__)


class SearchIndex(Protocol):
    """Bulk write surface of the search index service."""

    def save_objects(self, index_name: str, records: list[dict[str, Any]]) -> int:
        """Upsert records by objectID (last write wins). Returns the count sent."""
        ...

    def delete_by_parent(self, index_name: str, parent_post_id: int, keep_sections: int = 0) -> None:
        """Remove an article's records whose section_order is keep_sections or higher."""
        ...


class MemoryIndex:
    """Dict-backed index keyed by (index name, objectID); used for dry runs and tests."""

    def __init__(self):
        self.indexes: dict[str, dict[str, dict[str, Any]]] = {}

    def save_objects(self, index_name: str, records: list[dict[str, Any]]) -> int:
        index = self.indexes.setdefault(index_name, {})
        for record in records:
            index[record["objectID"]] = dict(record)
        return len(records)

    def delete_by_parent(self, index_name: str, parent_post_id: int, keep_sections: int = 0) -> None:
        index = self.indexes.get(index_name, {})
        stale = [
            k for k, r in index.items()
            if r.get("parent_post_id") == parent_post_id and r.get("section_order", 0) >= keep_sections
        ]
        for key in stale:
            del index[key]

    def records(self, index_name: str) -> list[dict[str, Any]]:
        return list(self.indexes.get(index_name, {}).values())


class AlgoliaIndex:
    """Minimal Algolia REST client for batch upserts and delete-by-filter.

    parent_post_id must be declared in the index's attributesForFaceting for
    delete_by_parent to match anything.
    """

    def __init__(
        self,
        app_id: str,
        api_key: str,
        retries: int = 3,
        batch_size: int = 1000,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        ):
        if not app_id or not api_key:
            raise ValueError("Algolia app id and admin API key are required")
        self.base_url = f"https://{app_id}.algolia.net"
        self.retries = max(1, retries)
        self.batch_size = max(1, batch_size)
        self._sleep = sleep
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout, connect=10.0))
        self._headers = {
            "X-Algolia-Application-Id": app_id,
            "X-Algolia-API-Key": api_key,
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST with bounded retries on transport errors, 429, and 5xx responses."""
        url = f"{self.base_url}{path}"
        for attempt in range(self.retries):
            try:
                response = self._client.post(url, json=payload, headers=self._headers)
                if response.status_code == 429 or response.status_code >= 500:
                    logger.warning(
                        "Algolia returned %s for %s (attempt %d/%d)",
                        response.status_code, path, attempt + 1, self.retries,
                    )
                else:
                    response.raise_for_status()
                    return response.json()
            except httpx.HTTPStatusError as e:
                raise SearchIndexError(f"Algolia rejected {path}: {e.response.status_code} {e.response.text}") from e
            except httpx.RequestError as e:
                logger.warning("Request error for %s (attempt %d/%d): %s", path, attempt + 1, self.retries, e)
            if attempt + 1 < self.retries:
                self._sleep(2 ** attempt)
        raise SearchIndexError(f"Algolia request {path} failed after {self.retries} attempts")

    def save_objects(self, index_name: str, records: list[dict[str, Any]]) -> int:
        path = f"/1/indexes/{quote(index_name, safe='')}/batch"
        for i in range(0, len(records), self.batch_size):
            chunk = records[i:i + self.batch_size]
            self._post(path, {"requests": [{"action": "updateObject", "body": r} for r in chunk]})
            logger.info("Saved %d records to index %s", len(chunk), index_name)
        return len(records)

    def delete_by_parent(self, index_name: str, parent_post_id: int, keep_sections: int = 0) -> None:
        path = f"/1/indexes/{quote(index_name, safe='')}/deleteByQuery"
        filters = f"parent_post_id={int(parent_post_id)}"
        if keep_sections > 0:
            filters += f" AND section_order>={int(keep_sections)}"
        self._post(path, {"params": urlencode({"filters": filters})})
