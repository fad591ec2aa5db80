"""
CSV bookmark exporter.

Flattens the pruned forest into one row per bookmark with the folder path
leading to it.
"""

import csv
import io
from typing import Sequence

from ..collection_tree import iter_selected_bookmarks
from ..data_models import CollectionNode, format_iso_instant
from .base import ForestExporter

CSV_COLUMNS = ["Title", "URL", "Folder Path", "Tags", "Created", "Note"]

FOLDER_SEPARATOR = " > "
TAG_SEPARATOR = ";"


class CSVExporter(ForestExporter):
    """
    Export the forest to CSV.

    Rows follow depth-first order. Fields containing a comma, double quote
    or line break are quoted with inner quotes doubled.
    """

    @property
    def format_name(self) -> str:
        return "CSV"

    @property
    def file_extension(self) -> str:
        return "csv"

    @property
    def content_type(self) -> str:
        return "text/csv"

    def render(self, forest: Sequence[CollectionNode]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)

        for path, bookmark in iter_selected_bookmarks(forest):
            writer.writerow(
                [
                    bookmark.title,
                    bookmark.link,
                    FOLDER_SEPARATOR.join(path),
                    TAG_SEPARATOR.join(bookmark.tags),
                    format_iso_instant(bookmark.created),
                    bookmark.excerpt or "",
                ]
            )

        return buffer.getvalue()
