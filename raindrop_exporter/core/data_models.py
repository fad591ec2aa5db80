"""
Data models for the Raindrop Exporter.

This module defines the records returned by the Raindrop.io API and the
collection tree built from them. Collections, nodes and bookmarks are frozen
dataclasses holding tuples, so a forest is a value: every operation that
changes selection or bookmark content returns a new forest and leaves the
input untouched.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# System collection ids used by Raindrop.io
UNSORTED_COLLECTION_ID = -1

_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp from the API.

    Args:
        value: Timestamp string (e.g. "2024-01-15T10:30:00.000Z") or datetime

    Returns:
        Timezone-aware datetime, or None if missing or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_iso_instant(value: Optional[datetime]) -> str:
    """
    Format a datetime as a full ISO-8601 UTC instant.

    Naive datetimes are treated as UTC.

    Args:
        value: Datetime to format

    Returns:
        String like "2024-01-15T10:30:00.000Z", or "" for None
    """
    if value is None:
        return ""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)

    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_epoch_seconds(value: Optional[datetime]) -> int:
    """Unix epoch seconds for a datetime, 0 when absent."""
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _ref_id(ref: Any) -> Optional[int]:
    """Extract the id from an API reference object such as {"$id": 12}."""
    if isinstance(ref, dict):
        ref = ref.get("$id")
    if ref is None or ref == "":
        return None
    try:
        return int(ref)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Collection:
    """A collection record as listed by the remote service."""

    id: int
    title: str = ""
    description: Optional[str] = None
    parent_id: Optional[int] = None
    count: int = 0
    created: Optional[datetime] = None

    @property
    def is_system(self) -> bool:
        """System collections (Unsorted, Trash) have negative ids."""
        return self.id < 0

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Collection":
        """
        Build a Collection from a Raindrop REST record.

        Args:
            item: Dictionary from the ``items`` array of /collections/all

        Returns:
            Collection instance
        """
        return cls(
            id=int(item["_id"]),
            title=item.get("title") or "",
            description=item.get("description") or None,
            parent_id=_ref_id(item.get("parent")),
            count=int(item.get("count") or 0),
            created=parse_timestamp(item.get("created")),
        )


@dataclass(frozen=True)
class Bookmark:
    """
    A single bookmark (a "raindrop").

    ``checked`` is tri-state: None means unset and is treated as selected.
    """

    id: int
    title: str = ""
    link: str = ""
    excerpt: Optional[str] = None
    tags: Tuple[str, ...] = ()
    created: Optional[datetime] = None
    last_update: Optional[datetime] = None
    collection_id: Optional[int] = None
    checked: Optional[bool] = None

    @property
    def is_selected(self) -> bool:
        return self.checked is not False

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Bookmark":
        """
        Build a Bookmark from a Raindrop REST record.

        Duplicate tags are dropped while keeping their first-seen order.

        Args:
            item: Dictionary from the ``items`` array of /raindrops/{id}

        Returns:
            Bookmark instance
        """
        tags: List[str] = []
        for tag in item.get("tags") or []:
            tag = str(tag)
            if tag not in tags:
                tags.append(tag)

        collection_id = _ref_id(item.get("collection"))
        if collection_id is None:
            collection_id = _ref_id(item.get("collectionId"))

        return cls(
            id=int(item["_id"]),
            title=item.get("title") or "",
            link=item.get("link") or "",
            excerpt=item.get("excerpt") or None,
            tags=tuple(tags),
            created=parse_timestamp(item.get("created")),
            last_update=parse_timestamp(item.get("lastUpdate")),
            collection_id=collection_id,
        )


@dataclass(frozen=True)
class CollectionNode:
    """
    A collection placed in the tree.

    Owns its child nodes and bookmarks. ``checked`` is tri-state like
    Bookmark.checked; ``is_fully_loaded`` becomes True only after a complete
    bookmark retrieval for this node.
    """

    id: int
    title: str = ""
    description: Optional[str] = None
    parent_id: Optional[int] = None
    count: int = 0
    created: Optional[datetime] = None
    children: Tuple["CollectionNode", ...] = ()
    bookmarks: Tuple[Bookmark, ...] = ()
    checked: Optional[bool] = True
    is_fully_loaded: bool = False

    @property
    def is_selected(self) -> bool:
        return self.checked is not False

    @classmethod
    def from_collection(cls, collection: Collection) -> "CollectionNode":
        """Create an empty, checked node for a collection."""
        return cls(
            id=collection.id,
            title=collection.title,
            description=collection.description,
            parent_id=collection.parent_id,
            count=collection.count,
            created=collection.created,
        )


# A forest is an ordered tuple of root nodes
Forest = Tuple[CollectionNode, ...]


@dataclass
class ProcessingStatus:
    """Progress record for one fetch run. Reset at the start of every run."""

    total_collections: int = 0
    processed_collections: int = 0
    total_bookmarks: int = 0
    current_collection_name: str = ""
    is_complete: bool = False
    error: Optional[str] = None
    partial_collections: List[str] = field(default_factory=list)

    @property
    def progress_percentage(self) -> float:
        if self.total_collections == 0:
            return 100.0 if self.is_complete else 0.0
        return (self.processed_collections / self.total_collections) * 100

    def snapshot(self) -> "ProcessingStatus":
        """Copy handed to status listeners."""
        return ProcessingStatus(
            total_collections=self.total_collections,
            processed_collections=self.processed_collections,
            total_bookmarks=self.total_bookmarks,
            current_collection_name=self.current_collection_name,
            is_complete=self.is_complete,
            error=self.error,
            partial_collections=list(self.partial_collections),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_collections": self.total_collections,
            "processed_collections": self.processed_collections,
            "total_bookmarks": self.total_bookmarks,
            "current_collection_name": self.current_collection_name,
            "is_complete": self.is_complete,
            "error": self.error,
            "partial_collections": list(self.partial_collections),
        }
