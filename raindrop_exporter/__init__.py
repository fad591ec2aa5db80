"""
Raindrop Exporter - export Raindrop.io bookmarks to JSON, HTML, CSV and XML.
"""

__version__ = "1.0.0"
