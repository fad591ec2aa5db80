"""
Export session

Sequences one export run: authenticate, load the collection tree, fetch the
selected collections and write the requested formats.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config.configuration import Configuration
from ..utils.error_handler import AuthError, OrchestratorFailure
from .collection_tree import build_forest, count_selected_collections
from .data_models import CollectionNode, Forest, ProcessingStatus
from .exporters import ExportResult, get_exporter
from .fetch_orchestrator import FetchOrchestrator, FetchPhase, StatusListener
from .raindrop_client import RaindropClient


@dataclass
class FetchOutcome:
    """Forest and final status of a fetch run."""

    forest: Forest
    status: ProcessingStatus
    phase: FetchPhase
    failure: Optional[OrchestratorFailure] = None

    @property
    def failed(self) -> bool:
        return self.phase == FetchPhase.FAILED


class RaindropExportSession:
    """
    One authenticated export run against Raindrop.io.

    Example:
        >>> async with RaindropExportSession(config) as session:
        ...     forest = await session.connect(token)
        ...     outcome = await session.fetch(forest)
        ...     results = session.export(outcome.forest, ["json", "html"])
    """

    def __init__(
        self,
        config: Configuration,
        client: Optional[RaindropClient] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize the session.

        Args:
            config: Application configuration
            client: Client to use (built from the configuration if omitted)
            cancel_event: Forwarded to the fetch orchestrator
        """
        self.config = config
        self.client = client or config.build_client()
        self.cancel_event = cancel_event
        self.token: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    async def __aenter__(self) -> "RaindropExportSession":
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.client.close()

    async def connect(self, token: str) -> Forest:
        """
        Validate the token and load the collection tree.

        Raises:
            AuthError: If the token is rejected
            RetrievalError: If the collection list cannot be retrieved
        """
        if not await self.client.validate_credential(token):
            raise AuthError("Invalid Access Token")

        self.token = token
        collections = await self.client.list_all_collections(token)
        forest = build_forest(collections)

        self.logger.info(
            f"Loaded {len(collections)} collections ({len(forest)} top-level)"
        )
        return forest

    async def fetch(
        self,
        forest: Sequence[CollectionNode],
        on_status: Optional[StatusListener] = None,
    ) -> FetchOutcome:
        """Fetch bookmarks for every selected collection."""
        if self.token is None:
            raise RuntimeError("Session not connected. Call connect() first.")

        self.logger.info(
            f"Fetching {count_selected_collections(forest)} selected collections"
        )
        orchestrator = FetchOrchestrator(
            self.client, on_status=on_status, cancel_event=self.cancel_event
        )
        result = await orchestrator.run(forest, self.token)

        return FetchOutcome(
            forest=result,
            status=orchestrator.status.snapshot(),
            phase=orchestrator.phase,
            failure=orchestrator.failure,
        )

    def export(
        self,
        forest: Sequence[CollectionNode],
        formats: Optional[Sequence[str]] = None,
        output: Union[str, Path, None] = None,
    ) -> List[ExportResult]:
        """
        Write the pruned forest in each requested format.

        Args:
            forest: Forest with fetched bookmarks
            formats: Format names (defaults to the configured formats)
            output: File or directory (defaults to the configured directory)

        Returns:
            One ExportResult per format

        Raises:
            ExportError: If a file cannot be written
            ValueError: If a format is unknown
        """
        formats = list(formats or self.config.get_formats())
        target = output if output is not None else self.config.get_output_dir()
        prefix = self.config.get_filename_prefix()

        results = []
        for fmt in formats:
            exporter = get_exporter(fmt)(filename_prefix=prefix)
            results.append(exporter.export(forest, target))
        return results
