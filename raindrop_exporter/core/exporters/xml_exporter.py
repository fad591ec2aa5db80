"""
XML forest exporter.

Writes collections as nested ``<collection>`` elements under a
``<raindrop_export>`` root, indented by two spaces per level.
"""

from typing import List, Sequence

from ..data_models import Bookmark, CollectionNode, format_iso_instant
from .base import ForestExporter, escape_markup

XML_PROLOG = '<?xml version="1.0" encoding="UTF-8"?>'
INDENT = "  "


class XMLExporter(ForestExporter):
    """
    Export the forest to a generic XML document.

    Optional bookmark fields (note, tags, created) are omitted entirely when
    absent rather than written as empty elements.
    """

    @property
    def format_name(self) -> str:
        return "XML"

    @property
    def file_extension(self) -> str:
        return "xml"

    @property
    def content_type(self) -> str:
        return "application/xml"

    def render(self, forest: Sequence[CollectionNode]) -> str:
        lines = [XML_PROLOG, "<raindrop_export>"]
        for root in forest:
            lines.extend(self._collection_lines(root, 1))
        lines.append("</raindrop_export>")
        return "\n".join(lines) + "\n"

    def _collection_lines(self, node: CollectionNode, level: int) -> List[str]:
        if node.checked is False:
            return []

        spaces = INDENT * level
        lines = [
            f'{spaces}<collection title="{escape_markup(node.title)}" id="{node.id}">'
        ]

        for bookmark in node.bookmarks:
            if bookmark.checked is not False:
                lines.extend(self._bookmark_lines(bookmark, level + 1))

        for child in node.children:
            lines.extend(self._collection_lines(child, level + 1))

        lines.append(f"{spaces}</collection>")
        return lines

    def _bookmark_lines(self, bookmark: Bookmark, level: int) -> List[str]:
        spaces = INDENT * level
        inner = spaces + INDENT

        lines = [
            f"{spaces}<bookmark>",
            f"{inner}<title>{escape_markup(bookmark.title)}</title>",
            f"{inner}<url>{escape_markup(bookmark.link)}</url>",
        ]
        if bookmark.excerpt:
            lines.append(f"{inner}<note>{escape_markup(bookmark.excerpt)}</note>")
        if bookmark.tags:
            lines.append(f"{inner}<tags>{escape_markup(','.join(bookmark.tags))}</tags>")
        if bookmark.created is not None:
            lines.append(f"{inner}<created>{format_iso_instant(bookmark.created)}</created>")
        lines.append(f"{spaces}</bookmark>")
        return lines
