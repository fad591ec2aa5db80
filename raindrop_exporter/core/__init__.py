"""
Core raindrop exporter modules.

This package contains the data model, the collection tree operations, the
Raindrop.io client, the fetch orchestrator and the format exporters.
"""

from .collection_tree import build_forest, flatten
from .data_models import Bookmark, Collection, CollectionNode, ProcessingStatus

__all__ = [
    "Bookmark",
    "Collection",
    "CollectionNode",
    "ProcessingStatus",
    "build_forest",
    "flatten",
]
