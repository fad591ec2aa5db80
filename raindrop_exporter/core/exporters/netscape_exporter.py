"""
Netscape HTML bookmark exporter.

Generates browser-importable bookmark files following the
Netscape-Bookmark-file-1 format, one folder per surviving collection.
"""

from typing import List, Sequence

from ..data_models import Bookmark, CollectionNode, to_epoch_seconds
from .base import ForestExporter, escape_markup

HEADER_LINES = [
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>",
    "<!-- This is an automatically generated file.",
    "     It will be read and overwritten.",
    "     DO NOT EDIT! -->",
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">',
    "<TITLE>Bookmarks</TITLE>",
    "<H1>Bookmarks</H1>",
    "<DL><p>",
]

FOOTER_LINES = ["</DL><p>"]

INDENT = "    "


class NetscapeHTMLExporter(ForestExporter):
    """
    Export the forest to a Netscape bookmark file.

    Each surviving collection becomes an ``<H3>`` folder followed by a
    ``<DL>`` list holding its surviving bookmarks first and then its
    surviving child folders.
    """

    @property
    def format_name(self) -> str:
        return "HTML"

    @property
    def file_extension(self) -> str:
        return "html"

    @property
    def content_type(self) -> str:
        return "text/html"

    def render(self, forest: Sequence[CollectionNode]) -> str:
        lines = list(HEADER_LINES)
        for root in forest:
            lines.extend(self._folder_lines(root, 1))
        lines.extend(FOOTER_LINES)
        return "\n".join(lines) + "\n"

    def _folder_lines(self, node: CollectionNode, level: int) -> List[str]:
        """
        Generate the lines for a folder and its contents.

        Args:
            node: Collection node
            level: Nesting depth (roots are level 1)

        Returns:
            List of HTML lines, empty if the node is unchecked
        """
        if node.checked is False:
            return []

        indent = INDENT * level
        lines = [
            f'{indent}<DT><H3 ADD_DATE="{to_epoch_seconds(node.created)}">'
            f"{escape_markup(node.title)}</H3>",
            f"{indent}<DL><p>",
        ]

        for bookmark in node.bookmarks:
            if bookmark.checked is False:
                continue
            lines.append(f"{indent}{INDENT}<DT>{self._bookmark_html(bookmark)}")

        for child in node.children:
            lines.extend(self._folder_lines(child, level + 1))

        lines.append(f"{indent}</DL><p>")
        return lines

    def _bookmark_html(self, bookmark: Bookmark) -> str:
        """Anchor tag for a single bookmark."""
        attrs = [f'HREF="{escape_markup(bookmark.link)}"']

        if bookmark.created is not None:
            attrs.append(f'ADD_DATE="{to_epoch_seconds(bookmark.created)}"')

        if bookmark.tags:
            attrs.append(f'TAGS="{escape_markup(",".join(bookmark.tags))}"')

        return f"<A {' '.join(attrs)}>{escape_markup(bookmark.title)}</A>"
