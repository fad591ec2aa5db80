"""
Base classes for forest exporters.

This module provides the abstract base class and the shared helpers for all
export formats: pruning of unchecked nodes, markup escaping and output path
handling.
"""

import html
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..collection_tree import iter_selected_bookmarks
from ..data_models import CollectionNode

FILENAME_PREFIX = "raindrop"


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        path: Path to the exported file
        count: Number of bookmarks exported
        collections: Number of collections exported
        format_name: Name of the export format used
        exported_at: Timestamp of the export
        warnings: List of non-fatal warnings during export
    """

    path: Path
    count: int
    collections: int
    format_name: str
    exported_at: datetime = field(default_factory=datetime.now)
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"ExportResult(format={self.format_name}, "
            f"count={self.count}, path={self.path})"
        )


class ExportError(Exception):
    """
    Exception raised when export fails.

    Attributes:
        message: Error description
        format_name: Name of the export format
        path: Target path if available
        original_error: Underlying exception if any
    """

    def __init__(
        self,
        message: str,
        format_name: Optional[str] = None,
        path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.format_name = format_name
        self.path = path
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.format_name:
            parts.append(f"[{self.format_name}]")
        parts.append(self.message)
        if self.path:
            parts.append(f"(path: {self.path})")
        if self.original_error:
            parts.append(
                f"Caused by: {type(self.original_error).__name__}: {self.original_error}"
            )
        return " ".join(parts)


def escape_markup(text: Optional[str]) -> str:
    """Escape the five reserved markup characters (& < > " ')."""
    if not text:
        return ""
    return html.escape(str(text), quote=True)


def surviving_nodes(nodes: Sequence[CollectionNode]) -> List[CollectionNode]:
    """Nodes at one level that are not explicitly unchecked."""
    return [node for node in nodes if node.checked is not False]


def count_surviving_collections(nodes: Sequence[CollectionNode]) -> int:
    """Collections that survive pruning, at every depth."""
    total = 0
    for node in surviving_nodes(nodes):
        total += 1 + count_surviving_collections(node.children)
    return total


def count_surviving_bookmarks(nodes: Sequence[CollectionNode]) -> int:
    """Bookmarks that survive pruning, at every depth."""
    return sum(1 for _ in iter_selected_bookmarks(nodes))


def default_filename(
    extension: str, today: Optional[date] = None, prefix: str = FILENAME_PREFIX
) -> str:
    """
    Default export filename, e.g. ``raindrop-2024-05-01.json``.

    Args:
        extension: Extension without the leading dot
        today: Export date (defaults to the current date)
        prefix: Filename stem before the date

    Returns:
        Filename string
    """
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.{extension}"


class ForestExporter(ABC):
    """
    Abstract base class for forest exporters.

    ``render`` is a pure function of the forest and its checked states: the
    same input always yields the same text and no I/O happens. ``export``
    renders and writes the result to disk.

    Example:
        >>> exporter = CSVExporter()
        >>> text = exporter.render(forest)
        >>> result = exporter.export(forest, Path("exports"))
        >>> print(f"Exported {result.count} bookmarks to {result.path}")
    """

    def __init__(self, filename_prefix: str = FILENAME_PREFIX):
        self.filename_prefix = filename_prefix
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable name of the export format."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Default file extension without leading dot."""
        pass

    @property
    @abstractmethod
    def content_type(self) -> str:
        """MIME type of the rendered document."""
        pass

    @abstractmethod
    def render(self, forest: Sequence[CollectionNode]) -> str:
        """
        Serialize the pruned forest.

        Args:
            forest: Root nodes, possibly partially unchecked

        Returns:
            Document text
        """
        pass

    def validate_forest(self, forest: Sequence[CollectionNode]) -> List[str]:
        """
        Check the pruned forest for conditions worth reporting.

        Returns:
            List of warning messages
        """
        warnings = []
        if count_surviving_collections(forest) == 0:
            warnings.append("No collections selected for export")
        elif count_surviving_bookmarks(forest) == 0:
            warnings.append("No bookmarks selected for export")
        return warnings

    def resolve_output_path(
        self, output_path: Union[str, Path, None], today: Optional[date] = None
    ) -> Path:
        """
        Resolve where the export is written.

        None means the default filename in the current directory, an
        existing directory means the default filename inside it.

        Raises:
            ExportError: If the parent directory cannot be created
        """
        filename = default_filename(self.file_extension, today, self.filename_prefix)

        if output_path is None:
            path = Path(filename)
        else:
            path = Path(output_path)
            if path.is_dir():
                path = path / filename

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(
                f"Cannot create output directory: {path.parent}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )
        return path

    def export(
        self,
        forest: Sequence[CollectionNode],
        output_path: Union[str, Path, None] = None,
    ) -> ExportResult:
        """
        Render the forest and write it to a file.

        Args:
            forest: Root nodes, possibly partially unchecked
            output_path: Target file or directory (default: current directory)

        Returns:
            ExportResult with export details

        Raises:
            ExportError: If writing fails
        """
        warnings = self.validate_forest(forest)
        path = self.resolve_output_path(output_path)

        content = self.render(forest)

        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except PermissionError as e:
            raise ExportError(
                f"Permission denied writing to {path}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )
        except OSError as e:
            raise ExportError(
                f"Failed to write {self.format_name} export: {e}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )

        count = count_surviving_bookmarks(forest)
        self.logger.info(f"Exported {count} bookmarks to {path}")
        for warning in warnings:
            self.logger.warning(warning)

        return ExportResult(
            path=path,
            count=count,
            collections=count_surviving_collections(forest),
            format_name=self.format_name,
            warnings=warnings,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(format={self.format_name})"
