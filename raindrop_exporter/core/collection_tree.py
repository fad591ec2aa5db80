"""
Collection tree construction and selection.

Turns the flat collection listing into a forest of CollectionNode values and
provides the selection toggles. None of the functions here mutate their
input: each returns a new forest that shares every untouched branch with the
old one.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .data_models import Bookmark, Collection, CollectionNode, Forest

logger = logging.getLogger(__name__)


def build_forest(collections: Sequence[Collection]) -> Forest:
    """
    Build a forest from a flat list of collections.

    Pass 1 creates an empty, checked node per collection. Pass 2 attaches
    each node to its parent when the parent is part of the same input;
    otherwise the node becomes a root. Roots and children keep the order in
    which the collections appear in the input.

    Args:
        collections: Collections in discovery order

    Returns:
        Tuple of root nodes
    """
    nodes: Dict[int, CollectionNode] = {}
    for collection in collections:
        if collection.id in nodes:
            logger.warning(
                f"Duplicate collection id {collection.id} ({collection.title!r}) ignored"
            )
            continue
        nodes[collection.id] = CollectionNode.from_collection(collection)

    children_of: Dict[int, List[int]] = {node_id: [] for node_id in nodes}
    root_ids: List[int] = []

    for node_id, node in nodes.items():
        parent_id = node.parent_id
        if parent_id is not None and parent_id in nodes and parent_id != node_id:
            children_of[parent_id].append(node_id)
        else:
            if parent_id is not None and parent_id not in nodes:
                logger.debug(
                    f"Collection {node_id} references missing parent {parent_id}, "
                    f"placing it at the root"
                )
            root_ids.append(node_id)

    def assemble(node_id: int, seen: frozenset) -> CollectionNode:
        seen = seen | {node_id}
        children = tuple(
            assemble(child_id, seen)
            for child_id in children_of[node_id]
            if child_id not in seen
        )
        return replace(nodes[node_id], children=children)

    forest = tuple(assemble(node_id, frozenset()) for node_id in root_ids)

    # Parent chains that loop back on themselves never reach a root. Promote
    # the first member of each such cycle so no collection is lost.
    placed = {node.id for node in flatten(forest)}
    for node_id in nodes:
        if node_id not in placed:
            logger.warning(f"Collection {node_id} is part of a parent cycle, placing it at the root")
            orphan = _assemble_detached(node_id, nodes, children_of, placed)
            forest = forest + (orphan,)
            placed.update(node.id for node in flatten((orphan,)))

    logger.debug(f"Built forest with {len(forest)} roots from {len(nodes)} collections")
    return forest


def _assemble_detached(
    node_id: int,
    nodes: Dict[int, CollectionNode],
    children_of: Dict[int, List[int]],
    placed: set,
) -> CollectionNode:
    """Assemble a subtree for a node stuck in a parent cycle."""
    seen = set(placed)

    def assemble(current: int) -> CollectionNode:
        seen.add(current)
        children = []
        for child_id in children_of[current]:
            if child_id not in seen:
                children.append(assemble(child_id))
        return replace(nodes[current], children=tuple(children))

    return assemble(node_id)


def flatten(forest: Iterable[CollectionNode]) -> List[CollectionNode]:
    """
    Pre-order traversal of the forest.

    Args:
        forest: Root nodes

    Returns:
        Every node, each one before its children, roots in order
    """
    result: List[CollectionNode] = []
    stack = list(reversed(tuple(forest)))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result


def find_node(forest: Iterable[CollectionNode], node_id: int) -> Optional[CollectionNode]:
    """Depth-first lookup of a node by id."""
    for node in flatten(forest):
        if node.id == node_id:
            return node
    return None


def count_total_bookmarks(forest: Iterable[CollectionNode]) -> int:
    """Number of bookmarks held anywhere in the forest."""
    return sum(len(node.bookmarks) for node in flatten(forest))


def count_selected_collections(forest: Iterable[CollectionNode]) -> int:
    """Number of nodes whose own checked flag is not False."""
    return sum(1 for node in flatten(forest) if node.checked is not False)


def _cascade(node: CollectionNode, checked: bool) -> CollectionNode:
    """Set checked on a node, its descendants and every bookmark beneath it."""
    return replace(
        node,
        checked=checked,
        bookmarks=tuple(replace(b, checked=checked) for b in node.bookmarks),
        children=tuple(_cascade(child, checked) for child in node.children),
    )


def replace_node(
    forest: Sequence[CollectionNode],
    node_id: int,
    update: Callable[[CollectionNode], CollectionNode],
) -> Forest:
    """
    Return a new forest with one node replaced by ``update(node)``.

    Only the path from the root down to the node is rebuilt. If the id is
    not present the original nodes are returned unchanged.

    Args:
        forest: Root nodes
        node_id: Id of the node to replace
        update: Function producing the replacement node

    Returns:
        New forest
    """
    new_forest, _ = _replace_in(tuple(forest), node_id, update)
    return new_forest


def _replace_in(
    nodes: Tuple[CollectionNode, ...],
    node_id: int,
    update: Callable[[CollectionNode], CollectionNode],
) -> Tuple[Tuple[CollectionNode, ...], bool]:
    for index, node in enumerate(nodes):
        if node.id == node_id:
            replaced = nodes[:index] + (update(node),) + nodes[index + 1:]
            return replaced, True
        if node.children:
            children, found = _replace_in(node.children, node_id, update)
            if found:
                replaced_node = replace(node, children=children)
                return nodes[:index] + (replaced_node,) + nodes[index + 1:], True
    return nodes, False


def toggle_collection_checked(
    forest: Sequence[CollectionNode], node_id: int, checked: bool
) -> Forest:
    """
    Select or deselect a collection and everything beneath it.

    The value cascades to every descendant node and every bookmark in the
    subtree, overwriting earlier individual bookmark choices. Ancestors and
    siblings are untouched. Unknown ids are a no-op.

    Args:
        forest: Root nodes
        node_id: Collection id to toggle
        checked: New checked state

    Returns:
        New forest
    """
    return replace_node(forest, node_id, lambda node: _cascade(node, checked))


def toggle_bookmark_checked(
    forest: Sequence[CollectionNode], bookmark_id: int, checked: bool
) -> Forest:
    """
    Select or deselect a single bookmark.

    The owning node is found by bookmark membership. Neither the node's own
    flag nor sibling bookmarks change. Unknown ids are a no-op.

    Args:
        forest: Root nodes
        bookmark_id: Bookmark id to toggle
        checked: New checked state

    Returns:
        New forest
    """
    owner = _find_bookmark_owner(forest, bookmark_id)
    if owner is None:
        logger.debug(f"Bookmark {bookmark_id} not found, selection unchanged")
        return tuple(forest)

    def update(node: CollectionNode) -> CollectionNode:
        return replace(
            node,
            bookmarks=tuple(
                replace(b, checked=checked) if b.id == bookmark_id else b
                for b in node.bookmarks
            ),
        )

    return replace_node(forest, owner.id, update)


def _find_bookmark_owner(
    forest: Iterable[CollectionNode], bookmark_id: int
) -> Optional[CollectionNode]:
    for node in flatten(forest):
        if any(b.id == bookmark_id for b in node.bookmarks):
            return node
    return None


def find_bookmark(forest: Iterable[CollectionNode], bookmark_id: int) -> Optional[Bookmark]:
    """Lookup of a bookmark by id anywhere in the forest."""
    owner = _find_bookmark_owner(forest, bookmark_id)
    if owner is None:
        return None
    return next(b for b in owner.bookmarks if b.id == bookmark_id)


def set_all_checked(forest: Sequence[CollectionNode], checked: bool) -> Forest:
    """Apply the subtree cascade to every root."""
    return tuple(_cascade(root, checked) for root in forest)


def ancestor_ids(forest: Iterable[CollectionNode], node_id: int) -> List[int]:
    """Ids on the path from the root down to a node, excluding the node."""

    def walk(nodes: Iterable[CollectionNode], path: List[int]) -> Optional[List[int]]:
        for node in nodes:
            if node.id == node_id:
                return path
            found = walk(node.children, path + [node.id])
            if found is not None:
                return found
        return None

    return walk(forest, []) or []


def path_only_ids(forest: Iterable[CollectionNode], node_ids: Iterable[int]) -> List[int]:
    """
    Ancestors that ``select_only`` opens without selecting their content.

    These are the ancestors of the given collections that are neither one of
    them nor inside one of their subtrees, in pre-order.
    """
    roots = set(node_ids)
    opened = set()
    for node_id in roots:
        path = ancestor_ids(forest, node_id)
        if roots.isdisjoint(path):
            opened.update(path)
    return [node.id for node in flatten(forest) if node.id in opened]


def select_only(forest: Sequence[CollectionNode], node_ids: Iterable[int]) -> Forest:
    """
    Deselect everything, then select the subtrees of the given collections.

    A nested collection is only exported when its ancestors are selected, so
    the own flag of every ancestor is set as well, without cascading. The
    bookmarks those ancestors hold are not part of the selection; remove
    them after fetching with ``deselect_own_bookmarks`` and the ids from
    ``path_only_ids``. Ids that are not in the forest are logged and skipped.

    Args:
        forest: Root nodes
        node_ids: Collection ids whose subtrees stay selected

    Returns:
        New forest
    """
    node_ids = list(node_ids)
    result = set_all_checked(forest, False)
    for node_id in node_ids:
        if find_node(result, node_id) is None:
            logger.warning(f"Collection {node_id} not found, ignoring")
            continue
        result = toggle_collection_checked(result, node_id, True)

    for ancestor_id in path_only_ids(result, node_ids):
        result = replace_node(result, ancestor_id, lambda node: replace(node, checked=True))
    return result


def deselect_own_bookmarks(
    forest: Sequence[CollectionNode], node_ids: Iterable[int]
) -> Forest:
    """Uncheck the bookmarks held directly by the given collections."""
    result: Forest = tuple(forest)
    for node_id in node_ids:
        node = find_node(result, node_id)
        if node is None:
            continue
        for bookmark in node.bookmarks:
            result = toggle_bookmark_checked(result, bookmark.id, False)
    return result


def iter_selected_bookmarks(
    forest: Iterable[CollectionNode],
) -> Iterator[Tuple[Tuple[str, ...], Bookmark]]:
    """
    Walk the pruned forest and yield surviving bookmarks.

    A node with checked False hides its whole subtree; a bookmark with
    checked False is skipped.

    Yields:
        (folder path titles from the root to the owning node, bookmark)
    """
    for node in forest:
        yield from _iter_node(node, ())


def _iter_node(
    node: CollectionNode, path: Tuple[str, ...]
) -> Iterator[Tuple[Tuple[str, ...], Bookmark]]:
    if node.checked is False:
        return
    current = path + (node.title,)
    for bookmark in node.bookmarks:
        if bookmark.checked is not False:
            yield current, bookmark
    for child in node.children:
        yield from _iter_node(child, current)
