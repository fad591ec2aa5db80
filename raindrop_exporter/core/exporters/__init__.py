"""
Multi-format forest exporters.

This module provides exporters for the supported output formats: JSON,
Netscape bookmark HTML, CSV and XML.
"""

from .base import ExportError, ExportResult, ForestExporter, default_filename
from .csv_exporter import CSVExporter
from .json_exporter import JSONExporter
from .netscape_exporter import NetscapeHTMLExporter
from .xml_exporter import XMLExporter

__all__ = [
    "ForestExporter",
    "ExportResult",
    "ExportError",
    "default_filename",
    "JSONExporter",
    "NetscapeHTMLExporter",
    "CSVExporter",
    "XMLExporter",
    "EXPORTERS",
    "get_exporter",
]


# Format registry for easy access
EXPORTERS = {
    "json": JSONExporter,
    "html": NetscapeHTMLExporter,
    "csv": CSVExporter,
    "xml": XMLExporter,
}


def get_exporter(format_name: str) -> type:
    """
    Get an exporter class by format name.

    Args:
        format_name: Name of the format (json, html, csv, xml)

    Returns:
        Exporter class for the specified format

    Raises:
        ValueError: If format is not supported
    """
    format_lower = format_name.lower()
    if format_lower not in EXPORTERS:
        supported = ", ".join(sorted(EXPORTERS))
        raise ValueError(
            f"Unsupported export format: {format_name}. "
            f"Supported formats: {supported}"
        )
    return EXPORTERS[format_lower]
