"""
Tests for forest construction and selection operations.
"""

from dataclasses import replace

import pytest

from raindrop_exporter.core.collection_tree import (
    build_forest,
    count_selected_collections,
    count_total_bookmarks,
    deselect_own_bookmarks,
    find_bookmark,
    find_node,
    flatten,
    iter_selected_bookmarks,
    path_only_ids,
    replace_node,
    select_only,
    set_all_checked,
    toggle_bookmark_checked,
    toggle_collection_checked,
)
from raindrop_exporter.core.data_models import Bookmark, Collection, CollectionNode
from raindrop_exporter.core.exporters import CSVExporter, JSONExporter


def ids(nodes):
    return [node.id for node in nodes]


@pytest.fixture
def nested_bookmarks():
    """Reading(10) > Articles(11), one checked bookmark each."""
    articles = CollectionNode(
        id=11,
        title="Articles",
        parent_id=10,
        bookmarks=(Bookmark(id=21, title="Deep dive", checked=True),),
    )
    reading = CollectionNode(
        id=10,
        title="Reading",
        children=(articles,),
        bookmarks=(Bookmark(id=20, title="Top", checked=True),),
    )
    return (reading,)


class TestBuildForest:
    """Test build_forest."""

    def test_hierarchy(self, sample_collections):
        forest = build_forest(sample_collections)

        assert ids(forest) == [-1, 10, 20]
        reading = forest[1]
        assert ids(reading.children) == [11]
        assert ids(reading.children[0].children) == [12]

    def test_every_collection_once(self, sample_collections):
        forest = build_forest(sample_collections)
        assert sorted(ids(flatten(forest))) == sorted(c.id for c in sample_collections)

    def test_nodes_start_checked_and_empty(self, sample_collections):
        for node in flatten(build_forest(sample_collections)):
            assert node.checked is True
            assert node.bookmarks == ()
            assert node.is_fully_loaded is False

    def test_missing_parent_becomes_root(self):
        forest = build_forest([Collection(id=5, title="Orphan", parent_id=999)])
        assert ids(forest) == [5]

    def test_child_listed_before_parent(self):
        forest = build_forest(
            [Collection(id=2, title="Child", parent_id=1), Collection(id=1, title="Parent")]
        )
        assert ids(forest) == [1]
        assert ids(forest[0].children) == [2]

    def test_sibling_order_preserved(self):
        forest = build_forest(
            [
                Collection(id=1, title="P"),
                Collection(id=3, title="C3", parent_id=1),
                Collection(id=2, title="C2", parent_id=1),
            ]
        )
        assert ids(forest[0].children) == [3, 2]

    def test_self_parent_is_root(self):
        forest = build_forest([Collection(id=1, title="Loop", parent_id=1)])
        assert ids(forest) == [1]

    def test_parent_cycle_keeps_all_nodes(self):
        forest = build_forest(
            [Collection(id=1, title="A", parent_id=2), Collection(id=2, title="B", parent_id=1)]
        )
        assert sorted(ids(flatten(forest))) == [1, 2]

    def test_duplicate_ids_ignored(self):
        forest = build_forest([Collection(id=1, title="First"), Collection(id=1, title="Second")])
        assert len(forest) == 1
        assert forest[0].title == "First"

    def test_empty(self):
        assert build_forest([]) == ()


class TestFlatten:
    def test_pre_order(self, sample_collections):
        forest = build_forest(sample_collections)
        assert ids(flatten(forest)) == [-1, 10, 11, 12, 20]

    def test_empty(self):
        assert flatten(()) == []


class TestToggleCollection:
    """Test toggle_collection_checked."""

    def test_cascades_to_subtree(self, sample_collections):
        forest = build_forest(sample_collections)
        forest = replace_node(
            forest, 12, lambda n: replace(n, bookmarks=(Bookmark(id=1, checked=True),))
        )

        result = toggle_collection_checked(forest, 10, False)

        for node_id in (10, 11, 12):
            assert find_node(result, node_id).checked is False
        assert find_node(result, 12).bookmarks[0].checked is False
        assert find_node(result, 20).checked is True
        assert find_node(result, -1).checked is True

    def test_does_not_mutate_input(self, sample_collections):
        forest = build_forest(sample_collections)
        toggle_collection_checked(forest, 10, False)
        assert all(node.checked is True for node in flatten(forest))

    def test_shares_untouched_branches(self, sample_collections):
        forest = build_forest(sample_collections)
        result = toggle_collection_checked(forest, 11, False)
        assert result[2] is forest[2]
        assert result[0] is forest[0]

    def test_unknown_id_is_noop(self, sample_collections):
        forest = build_forest(sample_collections)
        assert toggle_collection_checked(forest, 12345, False) == forest

    def test_is_idempotent(self, sample_collections):
        forest = build_forest(sample_collections)
        once = toggle_collection_checked(forest, 10, False)
        twice = toggle_collection_checked(once, 10, False)
        assert once == twice


class TestToggleBookmark:
    """Test toggle_bookmark_checked."""

    def test_only_target_changes(self, reading_forest):
        result = toggle_bookmark_checked(reading_forest, 1, False)

        unsorted = find_node(result, -1)
        assert unsorted.bookmarks[0].checked is False
        assert unsorted.bookmarks[1].checked is True
        assert unsorted.checked is True

    def test_unknown_id_is_noop(self, reading_forest):
        assert toggle_bookmark_checked(reading_forest, 999, False) == reading_forest

    def test_collection_toggle_overrides_bookmark_choice(self, reading_forest):
        result = toggle_bookmark_checked(reading_forest, 1, False)
        result = toggle_collection_checked(result, -1, True)
        assert all(b.checked is True for b in find_node(result, -1).bookmarks)


class TestSetAllChecked:
    def test_every_node_and_bookmark(self, reading_forest):
        result = set_all_checked(reading_forest, False)

        for node in flatten(result):
            assert node.checked is False
            assert all(b.checked is False for b in node.bookmarks)

    def test_equivalent_to_toggling_each_root(self, sample_collections):
        forest = build_forest(sample_collections)
        expected = forest
        for root in forest:
            expected = toggle_collection_checked(expected, root.id, False)
        assert set_all_checked(forest, False) == expected


class TestSelectOnly:
    """Test select_only and the helpers for ancestors it opens."""

    def test_selects_given_subtrees(self, sample_collections):
        forest = build_forest(sample_collections)
        result = select_only(forest, [11, 9999])

        assert [n.id for n in flatten(result) if n.checked] == [10, 11, 12]

    def test_ancestor_opened_without_cascade(self, sample_collections):
        result = select_only(build_forest(sample_collections), [12])

        assert find_node(result, 10).checked is True
        assert find_node(result, 11).checked is True
        assert find_node(result, 12).checked is True
        assert find_node(result, 20).checked is False

    def test_root_selection_opens_nothing(self, sample_collections):
        forest = build_forest(sample_collections)

        assert path_only_ids(forest, [10, 11]) == []
        assert path_only_ids(forest, [20]) == []

    def test_path_only_ids(self, sample_collections):
        forest = build_forest(sample_collections)

        assert path_only_ids(forest, [12]) == [10, 11]
        assert path_only_ids(forest, [12, 20, 404]) == [10, 11]

    def test_nested_include_is_exported(self):
        forest = build_forest(
            [
                Collection(id=1, title="Parent"),
                Collection(id=2, title="Child", parent_id=1),
            ]
        )
        selected = select_only(forest, [2])
        opened = path_only_ids(forest, [2])

        fetched = replace_node(
            selected,
            2,
            lambda node: replace(
                node, bookmarks=(Bookmark(id=7, title="Kept", link="https://k.example"),)
            ),
        )
        fetched = replace_node(
            fetched,
            1,
            lambda node: replace(
                node,
                bookmarks=(
                    Bookmark(id=8, title="Parent own", link="https://p.example", checked=True),
                ),
            ),
        )
        result = deselect_own_bookmarks(fetched, opened)

        csv_text = CSVExporter().render(result)
        assert "Kept,https://k.example,Parent > Child" in csv_text
        assert "Parent own" not in csv_text

        document = JSONExporter().render(result)
        assert '"Kept"' in document


class TestDeselectOwnBookmarks:
    def test_children_keep_selection(self, nested_bookmarks):
        result = deselect_own_bookmarks(nested_bookmarks, [10])

        assert all(b.checked is False for b in find_node(result, 10).bookmarks)
        assert all(b.checked is True for b in find_node(result, 11).bookmarks)
        assert find_node(result, 10).checked is True

    def test_unknown_ids_ignored(self, nested_bookmarks):
        assert deselect_own_bookmarks(nested_bookmarks, [404]) == nested_bookmarks


class TestFindBookmark:
    def test_found_in_any_collection(self, reading_forest):
        assert find_bookmark(reading_forest, 3).title == "Cats & Dogs"
        assert find_bookmark(reading_forest, 2).title == "B"

    def test_missing(self, reading_forest):
        assert find_bookmark(reading_forest, 404) is None


class TestQueries:
    """Test counting, lookup and the pruning walk."""

    def test_find_node(self, sample_collections):
        forest = build_forest(sample_collections)
        assert find_node(forest, 12).title == "Deep"
        assert find_node(forest, 404) is None

    def test_count_total_bookmarks(self, reading_forest):
        assert count_total_bookmarks(reading_forest) == 3

    def test_count_selected_collections(self, sample_collections):
        forest = toggle_collection_checked(build_forest(sample_collections), 11, False)
        assert count_selected_collections(forest) == 3

    def test_iter_selected_bookmarks_paths(self, reading_forest):
        pairs = list(iter_selected_bookmarks(reading_forest))

        assert [b.id for _, b in pairs] == [1, 2, 3]
        assert pairs[2][0] == ("Reading",)

    def test_iter_selected_bookmarks_pruning(self, reading_forest):
        forest = toggle_bookmark_checked(reading_forest, 2, False)
        forest = toggle_collection_checked(forest, 10, False)

        assert [b.id for _, b in iter_selected_bookmarks(forest)] == [1]

    def test_unset_checked_is_selected(self):
        forest = (CollectionNode(id=1, title="X", checked=None, bookmarks=(Bookmark(id=5),)),)
        assert [b.id for _, b in iter_selected_bookmarks(forest)] == [5]


def test_replace_node_unknown_id_returns_equal_forest(sample_collections):
    forest = build_forest(sample_collections)
    assert replace_node(forest, 777, lambda n: n) == forest
