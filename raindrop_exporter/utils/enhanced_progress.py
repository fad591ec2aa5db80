"""
Live progress display for bookmark fetching.

Renders ProcessingStatus snapshots published by the fetch orchestrator as a
Rich progress bar, and prints a summary table once the run ends.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from ..core.data_models import ProcessingStatus


class FetchProgressDisplay:
    """
    Progress bar driven by orchestrator status snapshots.

    Instances are callable so they can be passed directly as the
    orchestrator's status listener:

        with FetchProgressDisplay() as display:
            orchestrator = FetchOrchestrator(client, on_status=display)
            forest = await orchestrator.run(forest, token)
        display.print_summary()
    """

    def __init__(self, console: Optional[Console] = None, enabled: bool = True):
        """
        Initialize the display.

        Args:
            console: Rich console instance (creates one if not provided)
            enabled: When False, snapshots are recorded but nothing is drawn
        """
        self.console = console or Console(stderr=True)
        self.enabled = enabled
        self.last_status: Optional[ProcessingStatus] = None
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "FetchProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if not self.enabled or self._progress is not None:
            return
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[green]{task.fields[bookmarks]:,} bookmarks"),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        )
        self._progress.start()
        self._task = self._progress.add_task("Waiting", total=None, bookmarks=0)

    def stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None

    def __call__(self, status: ProcessingStatus) -> None:
        self.update(status)

    def update(self, status: ProcessingStatus) -> None:
        """Record a snapshot and redraw the bar."""
        self.last_status = status
        if self._progress is None or self._task is None:
            return

        description = escape(status.current_collection_name or "Fetching")
        if status.error:
            description = f"[red]{escape(status.error)}"

        self._progress.update(
            self._task,
            description=description,
            total=status.total_collections or None,
            completed=status.processed_collections,
            bookmarks=status.total_bookmarks,
        )

    def build_summary(self) -> Table:
        """Summary table of the last recorded snapshot."""
        status = self.last_status or ProcessingStatus()
        table = Table(title="Fetch Summary", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value")

        table.add_row(
            "Collections",
            f"{status.processed_collections}/{status.total_collections}",
        )
        table.add_row("Bookmarks", f"{status.total_bookmarks:,}")

        if status.partial_collections:
            table.add_row(
                "Incomplete",
                "[yellow]" + escape(", ".join(status.partial_collections)),
            )
        if status.error:
            table.add_row("Error", f"[red]{escape(status.error)}")
        elif status.is_complete:
            table.add_row("Status", "[green]Complete")

        return table

    def print_summary(self) -> None:
        self.console.print(self.build_summary())
