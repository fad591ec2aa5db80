"""
Fetch orchestration for selected collections.

Walks the selected part of the forest one collection at a time, retrieves
each collection's bookmarks through the client and merges them into a new
forest while publishing ProcessingStatus snapshots.
"""

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import Callable, List, Optional, Sequence

from ..utils.error_handler import OrchestratorFailure
from .collection_tree import flatten, replace_node
from .data_models import CollectionNode, Forest, ProcessingStatus
from .raindrop_client import RaindropClient

StatusListener = Callable[[ProcessingStatus], None]


class FetchPhase(str, Enum):
    """Phases of a fetch run."""

    AWAITING_SELECTION = "awaiting_selection"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"


def build_worklist(forest: Sequence[CollectionNode]) -> List[CollectionNode]:
    """
    Nodes to fetch, in pre-order.

    Every node whose own checked flag is not False is included, at every
    depth of the hierarchy.
    """
    return [node for node in flatten(forest) if node.checked is not False]


class FetchOrchestrator:
    """
    Sequential bookmark retrieval over the selected collections.

    Collections are processed strictly in worklist order with no concurrent
    fetches. A collection whose pagination ended early keeps the bookmarks
    it got and stays marked as not fully loaded; the run continues. An
    unexpected exception aborts the run, and collections processed before it
    keep their bookmarks.

    Example:
        >>> orchestrator = FetchOrchestrator(client, on_status=print)
        >>> forest = await orchestrator.run(forest, token)
        >>> orchestrator.phase
        <FetchPhase.DONE: 'done'>
    """

    def __init__(
        self,
        client: RaindropClient,
        on_status: Optional[StatusListener] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Open RaindropClient used for every collection
            on_status: Listener receiving a status snapshot on every change
            cancel_event: When set, the run stops before the next collection
        """
        self.client = client
        self.on_status = on_status
        self.cancel_event = cancel_event
        self.status = ProcessingStatus()
        self.phase = FetchPhase.AWAITING_SELECTION
        self.failure: Optional[OrchestratorFailure] = None
        self.logger = logging.getLogger(__name__)

    def _publish(self) -> None:
        if not self.on_status:
            return
        try:
            self.on_status(self.status.snapshot())
        except Exception as e:
            self.logger.warning(f"Status listener failed: {e}")

    def _fail(self, message: str, failure: OrchestratorFailure) -> None:
        self.failure = failure
        self.status.error = message
        self.phase = FetchPhase.FAILED
        self._publish()

    async def run(self, forest: Sequence[CollectionNode], token: str) -> Forest:
        """
        Fetch bookmarks for every selected collection.

        Args:
            forest: Current forest
            token: Raindrop.io access token

        Returns:
            New forest holding the fetched bookmarks. After a failed run it
            holds the collections completed before the failure.
        """
        worklist = build_worklist(forest)
        result: Forest = tuple(forest)

        self.status = ProcessingStatus(total_collections=len(worklist))
        self.failure = None
        self.phase = FetchPhase.FETCHING
        self.logger.info(f"Fetching bookmarks for {len(worklist)} collections")
        self._publish()

        total_bookmarks = 0

        for node in worklist:
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.logger.warning(
                    f"Fetch cancelled after {self.status.processed_collections} "
                    f"of {len(worklist)} collections"
                )
                self._fail(
                    "Fetch cancelled",
                    OrchestratorFailure("Fetch cancelled", collection_id=node.id),
                )
                return result

            self.status.current_collection_name = node.title
            self._publish()

            try:
                batch = await self.client.fetch_bookmarks_for_collection(token, node.id)
            except Exception as e:
                self.logger.exception(
                    f"Unexpected error fetching collection {node.id} ({node.title!r})"
                )
                self._fail(
                    "Error fetching bookmarks.",
                    OrchestratorFailure(
                        f"Fetching collection {node.title!r} failed",
                        collection_id=node.id,
                        original_error=e,
                    ),
                )
                return result

            fetched = tuple(replace(b, checked=True) for b in batch)
            complete = getattr(batch, "complete", True)

            result = replace_node(
                result,
                node.id,
                lambda current: replace(
                    current, bookmarks=fetched, is_fully_loaded=complete
                ),
            )

            total_bookmarks += len(fetched)
            if not complete:
                self.status.partial_collections.append(node.title)
                self.logger.warning(
                    f"Collection {node.title!r} is incomplete: kept {len(fetched)} bookmarks"
                )

            self.status.processed_collections += 1
            self.status.total_bookmarks = total_bookmarks
            self._publish()

        self.status.is_complete = True
        self.status.current_collection_name = "All done."
        self.phase = FetchPhase.DONE
        self.logger.info(
            f"Fetched {total_bookmarks} bookmarks from "
            f"{self.status.processed_collections} collections"
        )
        self._publish()

        return result
