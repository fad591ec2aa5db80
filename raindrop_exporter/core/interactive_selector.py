"""
Interactive Collection Selection Module

Lets the user pick which collections to export by toggling subtrees of the
collection tree in the terminal, and review the fetched bookmarks before the
export is written.
"""

import logging
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.tree import Tree

from .collection_tree import (
    count_selected_collections,
    find_bookmark,
    find_node,
    flatten,
    iter_selected_bookmarks,
    set_all_checked,
    toggle_bookmark_checked,
    toggle_collection_checked,
)
from .data_models import CollectionNode, Forest

CHECKED_MARK = "[green]✔[/green]"
UNCHECKED_MARK = "[red]✘[/red]"
HIDDEN_MARK = "[dim]✔[/dim]"

SELECT_HELP = """
[cyan]<id>[/cyan] - Toggle a collection and everything beneath it
[cyan]a[/cyan]    - Select all collections
[cyan]n[/cyan]    - Select no collections
[cyan]d[/cyan]    - Done, export the selection
[cyan]q[/cyan]    - Quit without exporting
"""

REVIEW_HELP = """
[cyan]<id>[/cyan]   - Toggle a collection and everything beneath it
[cyan]l <id>[/cyan] - List the bookmarks of a collection
[cyan]b <id>[/cyan] - Toggle a single bookmark
[cyan]a[/cyan]      - Select everything
[cyan]n[/cyan]      - Select nothing
[cyan]d[/cyan]      - Done, write the export
[cyan]q[/cyan]      - Quit without exporting
"""


class InteractiveSelector:
    """
    Terminal selection of collections and bookmarks.

    ``select`` runs before fetching and works on collections only.
    ``review`` runs after fetching and can also toggle single bookmarks.
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize the selector.

        Args:
            console: Rich console instance (creates one if not provided)
        """
        self.console = console or Console()
        self.logger = logging.getLogger(__name__)

    def build_tree(
        self, forest: Sequence[CollectionNode], show_bookmarks: bool = False
    ) -> Tree:
        """
        Rich tree of the forest with check marks.

        A collection that is selected but sits below an unselected one is
        drawn dimmed and flagged, since nothing of it will be exported.
        """
        tree = Tree("[bold]Collections[/bold]")
        for root in forest:
            self._add_node(tree, root, hidden=False, show_bookmarks=show_bookmarks)
        return tree

    def _add_node(
        self,
        parent: Tree,
        node: CollectionNode,
        hidden: bool,
        show_bookmarks: bool,
    ) -> None:
        if node.checked is False:
            mark = UNCHECKED_MARK
        elif hidden:
            mark = HIDDEN_MARK
        else:
            mark = CHECKED_MARK

        if show_bookmarks:
            selected = sum(1 for b in node.bookmarks if b.checked is not False)
            details = f"id {node.id}, {selected}/{len(node.bookmarks)} bookmarks"
        else:
            details = f"id {node.id}, {node.count} bookmarks"

        label = f"{mark} {escape(node.title)} [dim]({details})[/dim]"
        if hidden and node.checked is not False:
            label += " [yellow]parent not selected[/yellow]"

        branch = parent.add(label)
        child_hidden = hidden or node.checked is False
        for child in node.children:
            self._add_node(branch, child, child_hidden, show_bookmarks)

    def build_bookmark_table(self, node: CollectionNode) -> Table:
        """Table of one collection's own bookmarks."""
        table = Table(title=escape(node.title))
        table.add_column("", width=1)
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Title")
        table.add_column("URL", style="dim")

        for bookmark in node.bookmarks:
            mark = UNCHECKED_MARK if bookmark.checked is False else CHECKED_MARK
            table.add_row(mark, str(bookmark.id), escape(bookmark.title), escape(bookmark.link))
        return table

    def select(self, forest: Sequence[CollectionNode]) -> Optional[Forest]:
        """
        Run the collection selection loop.

        Returns:
            The forest with the chosen checked states, or None if the user quit
        """

        def show(current: Forest) -> None:
            self.console.print(self.build_tree(current))
            self.console.print(
                f"[cyan]{count_selected_collections(current)}[/cyan] of "
                f"{len(flatten(current))} collections selected"
            )

        return self._run(
            forest, "Select Collections", SELECT_HELP, "id/a/n/d/q", show, self._toggle
        )

    def review(self, forest: Sequence[CollectionNode]) -> Optional[Forest]:
        """
        Run the review loop over a fetched forest.

        Returns:
            The forest with the chosen checked states, or None if the user quit
        """

        def show(current: Forest) -> None:
            total = sum(len(node.bookmarks) for node in flatten(current))
            selected = sum(1 for _ in iter_selected_bookmarks(current))
            self.console.print(self.build_tree(current, show_bookmarks=True))
            self.console.print(f"[cyan]{selected}[/cyan] of {total} bookmarks selected")

        return self._run(
            forest,
            "Review Bookmarks",
            REVIEW_HELP,
            "id/l id/b id/a/n/d/q",
            show,
            self._review_command,
        )

    def _run(
        self,
        forest: Sequence[CollectionNode],
        title: str,
        help_text: str,
        choices: str,
        show: Callable[[Forest], None],
        handle: Callable[[Forest, str], Forest],
    ) -> Optional[Forest]:
        current: Forest = tuple(forest)
        self.console.print(Panel(help_text.strip(), title=title, border_style="blue"))

        while True:
            show(current)

            try:
                response = Prompt.ask(
                    f"[bold]Command[/bold] \\[{choices}]",
                    console=self.console,
                    default="d",
                )
            except (KeyboardInterrupt, EOFError):
                return None

            command = response.strip().lower()

            if command == "d":
                return current
            elif command == "q":
                self.logger.info(f"{title} cancelled by user")
                return None
            elif command == "a":
                current = set_all_checked(current, True)
            elif command == "n":
                current = set_all_checked(current, False)
            else:
                current = handle(current, command)

    def _parse_id(self, text: str, command: str) -> Optional[int]:
        try:
            return int(text)
        except ValueError:
            self.console.print(f"[yellow]Unknown command: {escape(command)}[/yellow]")
            return None

    def _toggle(self, forest: Forest, command: str) -> Forest:
        node_id = self._parse_id(command, command)
        if node_id is None:
            return forest

        node = find_node(forest, node_id)
        if node is None:
            self.console.print(f"[yellow]No collection with id {node_id}[/yellow]")
            return forest

        return toggle_collection_checked(forest, node_id, node.checked is False)

    def _review_command(self, forest: Forest, command: str) -> Forest:
        action, _, argument = command.partition(" ")
        argument = argument.strip()

        if action == "l" and argument:
            node_id = self._parse_id(argument, command)
            if node_id is None:
                return forest
            node = find_node(forest, node_id)
            if node is None:
                self.console.print(f"[yellow]No collection with id {node_id}[/yellow]")
            else:
                self.console.print(self.build_bookmark_table(node))
            return forest

        if action == "b" and argument:
            bookmark_id = self._parse_id(argument, command)
            if bookmark_id is None:
                return forest
            bookmark = find_bookmark(forest, bookmark_id)
            if bookmark is None:
                self.console.print(f"[yellow]No bookmark with id {bookmark_id}[/yellow]")
                return forest
            return toggle_bookmark_checked(forest, bookmark_id, bookmark.checked is False)

        return self._toggle(forest, command)
