"""
Tests for the multi-format forest exporters.

This module contains tests for all exporter implementations:
- JSONExporter
- NetscapeHTMLExporter
- CSVExporter
- XMLExporter
"""

import csv
import io
import json
import xml.etree.ElementTree as ET
from datetime import date
from pathlib import Path

import pytest

from raindrop_exporter.core.collection_tree import (
    toggle_bookmark_checked,
    toggle_collection_checked,
)
from raindrop_exporter.core.data_models import Bookmark, CollectionNode
from raindrop_exporter.core.exporters import (
    EXPORTERS,
    CSVExporter,
    ExportError,
    ExportResult,
    JSONExporter,
    NetscapeHTMLExporter,
    XMLExporter,
    default_filename,
    get_exporter,
)
from raindrop_exporter.core.exporters.base import escape_markup


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture
def nested_forest(fixed_created):
    """Reading > Articles with one bookmark each, plus an unchecked Work."""
    articles = CollectionNode(
        id=11,
        title="Articles",
        parent_id=10,
        bookmarks=(Bookmark(id=21, title="Deep dive", link="https://deep.example", checked=True),),
        is_fully_loaded=True,
    )
    reading = CollectionNode(
        id=10,
        title="Reading",
        created=fixed_created,
        children=(articles,),
        bookmarks=(Bookmark(id=20, title="Top", link="https://top.example", checked=True),),
        is_fully_loaded=True,
    )
    work = CollectionNode(
        id=30,
        title="Work",
        checked=False,
        bookmarks=(Bookmark(id=31, title="Hidden", link="https://hidden.example"),),
    )
    return (reading, work)


# =========================================================================
# Helpers
# =========================================================================


class TestEscapeMarkup:
    def test_reserved_characters(self):
        assert escape_markup("<a href=\"x\">Tom & Jerry's</a>") == (
            "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#x27;s&lt;/a&gt;"
        )

    def test_empty(self):
        assert escape_markup(None) == ""
        assert escape_markup("") == ""


class TestDefaultFilename:
    def test_format(self):
        assert default_filename("json", date(2024, 5, 1)) == "raindrop-2024-05-01.json"

    def test_custom_prefix(self):
        assert default_filename("csv", date(2024, 5, 1), prefix="backup") == "backup-2024-05-01.csv"


class TestRegistry:
    def test_all_formats_registered(self):
        assert set(EXPORTERS) == {"json", "html", "csv", "xml"}

    def test_get_exporter_case_insensitive(self):
        assert get_exporter("HTML") is NetscapeHTMLExporter

    def test_get_exporter_unknown(self):
        with pytest.raises(ValueError) as exc_info:
            get_exporter("pdf")
        assert "csv, html, json, xml" in str(exc_info.value)

    @pytest.mark.parametrize(
        "name,content_type",
        [
            ("json", "application/json"),
            ("html", "text/html"),
            ("csv", "text/csv"),
            ("xml", "application/xml"),
        ],
    )
    def test_extension_matches_name(self, name, content_type):
        exporter = get_exporter(name)()
        assert exporter.file_extension == name
        assert exporter.content_type == content_type


# =========================================================================
# JSON
# =========================================================================


class TestJSONExporter:
    """Test JSONExporter functionality."""

    def test_structure(self, reading_forest):
        document = json.loads(JSONExporter().render(reading_forest))

        assert [c["title"] for c in document] == ["Unsorted", "Reading"]
        assert [b["title"] for b in document[0]["bookmarks"]] == ["A", "B"]

        reading = document[1]
        assert reading["_id"] == 10
        assert reading["created"] == "2024-01-15T10:30:00.000Z"
        assert reading["children"] == []
        bookmark = reading["bookmarks"][0]
        assert bookmark == {
            "title": "Cats & Dogs",
            "link": "https://c.example/?a=1&b=2",
            "tags": ["pets", "fun"],
            "created": "2024-01-15T10:30:00.000Z",
            "note": 'Quote "here"',
        }

    def test_missing_created_is_null(self, reading_forest):
        document = json.loads(JSONExporter().render(reading_forest))
        assert document[0]["created"] is None
        assert document[0]["bookmarks"][0]["created"] is None

    def test_nested_and_pruned(self, nested_forest):
        document = json.loads(JSONExporter().render(nested_forest))

        assert len(document) == 1
        assert document[0]["children"][0]["title"] == "Articles"
        assert document[0]["children"][0]["bookmarks"][0]["link"] == "https://deep.example"

    def test_unchecked_bookmark_dropped(self, reading_forest):
        forest = toggle_bookmark_checked(reading_forest, 2, False)
        document = json.loads(JSONExporter().render(forest))
        assert [b["title"] for b in document[0]["bookmarks"]] == ["A"]

    def test_non_ascii_kept(self):
        forest = (CollectionNode(id=1, title="Café"),)
        assert "Café" in JSONExporter().render(forest)

    def test_indent(self, reading_forest):
        text = JSONExporter(indent=4).render(reading_forest)
        assert '\n    {\n        "_id"' in text

    def test_empty_forest(self):
        assert json.loads(JSONExporter().render(())) == []


# =========================================================================
# Netscape HTML
# =========================================================================


class TestNetscapeHTMLExporter:
    """Test NetscapeHTMLExporter functionality."""

    def test_header_and_footer(self, reading_forest):
        text = NetscapeHTMLExporter().render(reading_forest)

        assert text.startswith("<!DOCTYPE NETSCAPE-Bookmark-file-1>\n")
        assert "<TITLE>Bookmarks</TITLE>" in text
        assert text.endswith("</DL><p>\n")

    def test_folders_and_escaping(self, reading_forest):
        text = NetscapeHTMLExporter().render(reading_forest)

        assert '<DT><H3 ADD_DATE="0">Unsorted</H3>' in text
        assert '<DT><H3 ADD_DATE="1705314600">Reading</H3>' in text
        assert '<DT><A HREF="https://a.example">A</A>' in text
        assert (
            '<DT><A HREF="https://c.example/?a=1&amp;b=2" ADD_DATE="1705314600" '
            'TAGS="pets,fun">Cats &amp; Dogs</A>'
        ) in text

    def test_bookmarks_before_child_folders(self, nested_forest):
        lines = NetscapeHTMLExporter().render(nested_forest).splitlines()

        top = next(i for i, line in enumerate(lines) if ">Top</A>" in line)
        articles = next(i for i, line in enumerate(lines) if ">Articles</H3>" in line)
        assert top < articles
        assert lines[articles].startswith("        <DT><H3")

    def test_unchecked_subtree_omitted(self, nested_forest):
        text = NetscapeHTMLExporter().render(nested_forest)
        assert "Work" not in text
        assert "Hidden" not in text

    def test_balanced_lists(self, nested_forest):
        text = NetscapeHTMLExporter().render(nested_forest)
        assert text.count("<DL><p>") == text.count("</DL><p>")

    def test_unchecked_everything_leaves_skeleton(self, reading_forest):
        forest = toggle_collection_checked(
            toggle_collection_checked(reading_forest, -1, False), 10, False
        )
        text = NetscapeHTMLExporter().render(forest)
        assert "<H3" not in text
        assert text.endswith("<DL><p>\n</DL><p>\n")


# =========================================================================
# CSV
# =========================================================================


class TestCSVExporter:
    """Test CSVExporter functionality."""

    def test_rows(self, reading_forest):
        rows = list(csv.reader(io.StringIO(CSVExporter().render(reading_forest))))

        assert rows[0] == ["Title", "URL", "Folder Path", "Tags", "Created", "Note"]
        assert rows[1] == ["A", "https://a.example", "Unsorted", "", "", ""]
        assert rows[3] == [
            "Cats & Dogs",
            "https://c.example/?a=1&b=2",
            "Reading",
            "pets;fun",
            "2024-01-15T10:30:00.000Z",
            'Quote "here"',
        ]

    def test_quotes_doubled(self, reading_forest):
        text = CSVExporter().render(reading_forest)
        assert '"Quote ""here"""' in text

    def test_commas_and_newlines_quoted(self):
        forest = (
            CollectionNode(
                id=1,
                title="Misc",
                bookmarks=(Bookmark(id=1, title="a, b", link="https://x", excerpt="line1\nline2"),),
            ),
        )
        text = CSVExporter().render(forest)
        assert '"a, b"' in text
        assert '"line1\nline2"' in text

    def test_nested_folder_path(self, nested_forest):
        rows = list(csv.reader(io.StringIO(CSVExporter().render(nested_forest))))

        assert [r[0] for r in rows[1:]] == ["Top", "Deep dive"]
        assert rows[2][2] == "Reading > Articles"

    def test_header_only_for_empty(self):
        assert CSVExporter().render(()) == "Title,URL,Folder Path,Tags,Created,Note\n"


# =========================================================================
# XML
# =========================================================================


class TestXMLExporter:
    """Test XMLExporter functionality."""

    def test_well_formed(self, reading_forest):
        root = ET.fromstring(XMLExporter().render(reading_forest).split("\n", 1)[1])

        assert root.tag == "raindrop_export"
        collections = root.findall("collection")
        assert [c.get("title") for c in collections] == ["Unsorted", "Reading"]
        assert collections[1].get("id") == "10"

        bookmark = collections[1].find("bookmark")
        assert bookmark.findtext("title") == "Cats & Dogs"
        assert bookmark.findtext("url") == "https://c.example/?a=1&b=2"
        assert bookmark.findtext("note") == 'Quote "here"'
        assert bookmark.findtext("tags") == "pets,fun"
        assert bookmark.findtext("created") == "2024-01-15T10:30:00.000Z"

    def test_optional_fields_omitted(self, reading_forest):
        root = ET.fromstring(XMLExporter().render(reading_forest).split("\n", 1)[1])
        bookmark = root.find("collection").find("bookmark")

        assert bookmark.find("note") is None
        assert bookmark.find("tags") is None
        assert bookmark.find("created") is None

    def test_prolog_and_indentation(self, nested_forest):
        lines = XMLExporter().render(nested_forest).splitlines()

        assert lines[0] == '<?xml version="1.0" encoding="UTF-8"?>'
        assert lines[1] == "<raindrop_export>"
        assert lines[2] == '  <collection title="Reading" id="10">'
        assert '    <collection title="Articles" id="11">' in lines
        assert lines[-1] == "</raindrop_export>"

    def test_unchecked_pruned(self, nested_forest):
        assert "Hidden" not in XMLExporter().render(nested_forest)


# =========================================================================
# Export to disk
# =========================================================================


class TestExport:
    """Test ForestExporter.export."""

    def test_writes_into_directory(self, reading_forest, tmp_path):
        result = JSONExporter().export(reading_forest, tmp_path)

        assert isinstance(result, ExportResult)
        assert result.path.parent == tmp_path
        assert result.path.name.startswith("raindrop-")
        assert result.path.suffix == ".json"
        assert result.count == 3
        assert result.collections == 2
        assert result.warnings == []
        assert json.loads(result.path.read_text(encoding="utf-8"))[1]["title"] == "Reading"

    def test_explicit_file_path(self, reading_forest, tmp_path):
        target = tmp_path / "nested" / "out.csv"
        result = CSVExporter().export(reading_forest, target)

        assert result.path == target
        assert target.read_text(encoding="utf-8").startswith("Title,URL")

    def test_filename_prefix(self, reading_forest, tmp_path):
        result = XMLExporter(filename_prefix="backup").export(reading_forest, tmp_path)
        assert result.path.name.startswith("backup-")

    def test_counts_follow_pruning(self, nested_forest, tmp_path):
        result = NetscapeHTMLExporter().export(nested_forest, tmp_path)
        assert result.count == 2
        assert result.collections == 2

    def test_warns_when_nothing_selected(self, reading_forest, tmp_path):
        forest = toggle_collection_checked(
            toggle_collection_checked(reading_forest, -1, False), 10, False
        )
        result = JSONExporter().export(forest, tmp_path)

        assert result.count == 0
        assert result.warnings == ["No collections selected for export"]

    def test_warns_when_no_bookmarks(self, tmp_path):
        result = CSVExporter().export((CollectionNode(id=1, title="Empty"),), tmp_path)
        assert result.warnings == ["No bookmarks selected for export"]

    def test_render_is_deterministic(self, nested_forest):
        exporter = NetscapeHTMLExporter()
        assert exporter.render(nested_forest) == exporter.render(nested_forest)

    def test_write_failure_raises_export_error(self, reading_forest, tmp_path):
        blocker = tmp_path / "file.txt"
        blocker.write_text("x")

        with pytest.raises(ExportError) as exc_info:
            JSONExporter().export(reading_forest, blocker / "out.json")
        assert exc_info.value.format_name == "JSON"
        assert isinstance(exc_info.value.path, Path)


# =========================================================================
# Cross-format behaviour
# =========================================================================


class TestCrossFormat:
    """Behaviour shared by every serializer."""

    @pytest.fixture
    def tricky_forest(self):
        return (
            CollectionNode(
                id=1,
                title="Misc",
                bookmarks=(
                    Bookmark(id=1, title='A & B <Test> "Quote"', link="https://e.com"),
                ),
            ),
        )

    def test_markup_escaping(self, tricky_forest):
        expected = "A &amp; B &lt;Test&gt; &quot;Quote&quot;"
        assert expected in NetscapeHTMLExporter().render(tricky_forest)
        assert expected in XMLExporter().render(tricky_forest)

    def test_csv_escaping(self, tricky_forest):
        assert '"A & B <Test> ""Quote"""' in CSVExporter().render(tricky_forest)

    def test_unchecked_unsorted_scenario(self):
        forest = (
            CollectionNode(id=-1, title="Unsorted", checked=False),
            CollectionNode(
                id=10,
                title="Reading",
                bookmarks=(Bookmark(id=5, title="Ex", link="https://e.com"),),
            ),
        )

        assert CSVExporter().render(forest) == (
            "Title,URL,Folder Path,Tags,Created,Note\n"
            "Ex,https://e.com,Reading,,,\n"
        )
        document = json.loads(JSONExporter().render(forest))
        assert [c["title"] for c in document] == ["Reading"]
        assert [b["title"] for b in document[0]["bookmarks"]] == ["Ex"]

    def test_json_and_csv_agree(self, nested_forest):
        document = json.loads(JSONExporter().render(nested_forest))
        rows = list(csv.reader(io.StringIO(CSVExporter().render(nested_forest))))

        def walk(nodes):
            for node in nodes:
                yield from node["bookmarks"]
                yield from walk(node["children"])

        from_json = [(b["title"], b["link"]) for b in walk(document)]
        assert from_json == [(r[0], r[1]) for r in rows[1:]]
