"""
Pytest configuration and shared fixtures for raindrop exporter tests.

This module provides common fixtures, mocks, and test utilities that are
shared across multiple test modules.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from raindrop_exporter.core.data_models import (
    Bookmark,
    Collection,
    CollectionNode,
)
from raindrop_exporter.core.raindrop_client import RaindropClient
from raindrop_exporter.utils.rate_limiter import RateLimiter
from raindrop_exporter.utils.retry_handler import BackoffPolicy

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def clear_token_env(monkeypatch):
    """Keep a developer's RAINDROP_TOKEN out of the tests."""
    monkeypatch.delenv("RAINDROP_TOKEN", raising=False)


# ============================================================================
# HTTP Helpers
# ============================================================================


def _make_response(
    status_code: int = 200,
    json_data: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> MagicMock:
    """Mock httpx.Response with the attributes the client reads."""
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.headers = headers or {}
    response.json.return_value = json_data
    return response


def raindrop_item(item_id: int, title: Optional[str] = None, **extra) -> Dict[str, Any]:
    """Raindrop REST record for a bookmark."""
    item = {
        "_id": item_id,
        "title": title or f"Bookmark {item_id}",
        "link": f"https://example.com/{item_id}",
        "tags": [],
        "created": "2024-01-15T10:30:00.000Z",
    }
    item.update(extra)
    return item


def _page_of(start: int, size: int) -> Dict[str, Any]:
    """One page of bookmark records."""
    return {"result": True, "items": [raindrop_item(i) for i in range(start, start + size)]}


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def page_of():
    return _page_of


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def fixed_created() -> datetime:
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_collections() -> List[Collection]:
    """Flat listing: Unsorted, Reading > Articles > Deep, Work."""
    return [
        Collection(id=-1, title="Unsorted"),
        Collection(id=10, title="Reading", count=2),
        Collection(id=11, title="Articles", parent_id=10, count=1),
        Collection(id=12, title="Deep", parent_id=11),
        Collection(id=20, title="Work", count=3),
    ]


@pytest.fixture
def reading_forest(fixed_created):
    """
    Forest with Unsorted (two bookmarks) and Reading (one bookmark whose
    title needs escaping).
    """
    unsorted = CollectionNode(
        id=-1,
        title="Unsorted",
        bookmarks=(
            Bookmark(id=1, title="A", link="https://a.example", checked=True),
            Bookmark(id=2, title="B", link="https://b.example", checked=True),
        ),
        is_fully_loaded=True,
    )
    reading = CollectionNode(
        id=10,
        title="Reading",
        created=fixed_created,
        bookmarks=(
            Bookmark(
                id=3,
                title="Cats & Dogs",
                link="https://c.example/?a=1&b=2",
                tags=("pets", "fun"),
                created=fixed_created,
                excerpt='Quote "here"',
                checked=True,
            ),
        ),
        is_fully_loaded=True,
    )
    return (unsorted, reading)


@pytest.fixture
def client() -> RaindropClient:
    """Client with pacing disabled so tests never sleep on pagination."""
    return RaindropClient(
        base_url="https://api.test/rest/v1",
        page_delay=0.0,
        backoff=BackoffPolicy(base_delay=2.0, multiplier=2.0, max_delay=60.0, max_retries=5),
        rate_limiter=RateLimiter(requests_per_minute=1000, name="test"),
    )
