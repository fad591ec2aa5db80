"""
JSON forest exporter.

Exports the pruned collection tree as a nested JSON document.
"""

import json
from typing import Any, Dict, List, Sequence

from ..data_models import Bookmark, CollectionNode, format_iso_instant
from .base import FILENAME_PREFIX, ForestExporter, surviving_nodes


class JSONExporter(ForestExporter):
    """
    Export the forest to a nested JSON document.

    The root is an array of collection objects; each carries its surviving
    bookmarks and surviving child collections.

    Example:
        >>> exporter = JSONExporter(indent=2)
        >>> document = json.loads(exporter.render(forest))
    """

    def __init__(
        self,
        indent: int = 2,
        ensure_ascii: bool = False,
        filename_prefix: str = FILENAME_PREFIX,
    ):
        """
        Initialize the JSON exporter.

        Args:
            indent: Number of spaces for indentation
            ensure_ascii: Whether to escape non-ASCII characters
            filename_prefix: Stem of the default filename
        """
        super().__init__(filename_prefix)
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    @property
    def format_name(self) -> str:
        return "JSON"

    @property
    def file_extension(self) -> str:
        return "json"

    @property
    def content_type(self) -> str:
        return "application/json"

    def render(self, forest: Sequence[CollectionNode]) -> str:
        return json.dumps(
            self.build_document(forest),
            indent=self.indent,
            ensure_ascii=self.ensure_ascii,
        )

    def build_document(self, nodes: Sequence[CollectionNode]) -> List[Dict[str, Any]]:
        """Nested list of dictionaries for the surviving nodes."""
        return [self._node_to_dict(node) for node in surviving_nodes(nodes)]

    def _node_to_dict(self, node: CollectionNode) -> Dict[str, Any]:
        return {
            "_id": node.id,
            "title": node.title,
            "description": node.description,
            "count": node.count,
            "created": format_iso_instant(node.created) or None,
            "bookmarks": [
                self._bookmark_to_dict(b)
                for b in node.bookmarks
                if b.checked is not False
            ],
            "children": self.build_document(node.children),
        }

    @staticmethod
    def _bookmark_to_dict(bookmark: Bookmark) -> Dict[str, Any]:
        return {
            "title": bookmark.title,
            "link": bookmark.link,
            "tags": list(bookmark.tags),
            "created": format_iso_instant(bookmark.created) or None,
            "note": bookmark.excerpt,
        }
