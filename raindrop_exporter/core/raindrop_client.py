"""
Raindrop.io REST API client.

This module provides an async HTTP client for the three endpoints the
exporter needs: token validation, the collection listing, and paginated
bookmark retrieval with rate-limit backoff.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..utils.error_handler import PartialFetchFailure, RetrievalError
from ..utils.rate_limiter import RateLimiter, parse_retry_after
from ..utils.retry_handler import BackoffPolicy
from .data_models import UNSORTED_COLLECTION_ID, Bookmark, Collection

DEFAULT_BASE_URL = "https://api.raindrop.io/rest/v1"


class BookmarkBatch(list):
    """
    Bookmarks retrieved for one collection.

    Behaves as a plain list of Bookmark. ``complete`` is False when
    pagination stopped early, in which case ``failure`` describes why.
    """

    def __init__(
        self,
        items=(),
        complete: bool = True,
        failure: Optional[PartialFetchFailure] = None,
    ):
        super().__init__(items)
        self.complete = complete
        self.failure = failure


class RaindropClient:
    """
    Client for the Raindrop.io REST API.

    The client is designed to be used as an async context manager. The access
    token is passed to every call rather than stored on the client:

        async with RaindropClient() as client:
            if await client.validate_credential(token):
                collections = await client.list_all_collections(token)

    Attributes:
        base_url: Base URL of the REST API
        timeout: Request timeout in seconds
        page_size: Bookmarks requested per page
        page_delay: Pause after every non-empty page in seconds
        backoff: Schedule used for HTTP 429 retries
        rate_limiter: Sliding-window limiter acquired before every request
    """

    DEFAULT_HEADERS = {
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        page_size: int = 50,
        page_delay: float = 0.1,
        backoff: Optional[BackoffPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the REST API (trailing slash removed)
            timeout: Request timeout in seconds
            page_size: Bookmarks per page (the API maximum is 50)
            page_delay: Pause between successful page requests
            backoff: Backoff schedule for rate-limited requests
            rate_limiter: Limiter shared by all requests of this client
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.page_delay = page_delay
        self.backoff = backoff or BackoffPolicy()
        self.rate_limiter = rate_limiter or RateLimiter(
            requests_per_minute=120, name="raindrop"
        )
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logging.getLogger(__name__)

    async def __aenter__(self) -> "RaindropClient":
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers=self.DEFAULT_HEADERS.copy(),
            follow_redirects=True,
        )
        self.logger.debug(f"Raindrop client opened for {self.base_url}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self.logger.debug("Raindrop client closed")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _ensure_open(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Raindrop client not open. Use 'async with' context manager."
            )
        return self._client

    async def _get(
        self, token: str, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Issue one authenticated GET request."""
        client = self._ensure_open()
        await self.rate_limiter.acquire()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        return await client.get(
            url, params=params, headers={"Authorization": f"Bearer {token}"}
        )

    async def validate_credential(self, token: str) -> bool:
        """
        Check whether the service accepts a token.

        Never raises: transport errors and non-success statuses both
        yield False.

        Args:
            token: Raindrop.io access token

        Returns:
            True if GET /user succeeds with this token
        """
        if not token:
            return False

        try:
            response = await self._get(token, "/user")
        except httpx.HTTPError as e:
            self.logger.warning(f"Token validation request failed: {e}")
            return False

        if response.is_success:
            return True

        self.logger.info(f"Token rejected (HTTP {response.status_code})")
        return False

    async def list_all_collections(self, token: str) -> List[Collection]:
        """
        Retrieve every user collection plus the "Unsorted" system collection.

        The listing endpoint does not reliably include the system root, so
        "Unsorted" (id -1, count 0) is synthesized and placed first.

        Args:
            token: Raindrop.io access token

        Returns:
            Collections in listing order, Unsorted first

        Raises:
            RetrievalError: If the request fails or the body is not usable
        """
        try:
            response = await self._get(token, "/collections/all")
        except httpx.HTTPError as e:
            raise RetrievalError("Failed to fetch collections", original_error=e)

        if not response.is_success:
            raise RetrievalError(
                "Failed to fetch collections", status_code=response.status_code
            )

        try:
            data = response.json()
            items = (data or {}).get("items") or []
            user_collections = [Collection.from_api(item) for item in items]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise RetrievalError("Malformed collection listing", original_error=e)

        # The count for Unsorted is a placeholder, not the real number of items
        unsorted = Collection(id=UNSORTED_COLLECTION_ID, title="Unsorted", count=0)
        self.logger.debug("Synthesized 'Unsorted' collection with placeholder count 0")
        self.logger.info(f"Listed {len(user_collections)} collections")

        return [unsorted] + user_collections

    async def fetch_bookmarks_for_collection(
        self,
        token: str,
        collection_id: int,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> BookmarkBatch:
        """
        Retrieve all bookmarks of one collection page by page.

        Pages are requested from 0 until a page comes back empty. HTTP 429
        retries the same page following the backoff policy. Any other
        failure stops pagination and the bookmarks gathered so far are
        returned as an incomplete batch; this method does not raise for
        request failures.

        Args:
            token: Raindrop.io access token
            collection_id: Collection to read
            progress_callback: Called with the cumulative count after each page

        Returns:
            BookmarkBatch with every bookmark retrieved
        """
        bookmarks: List[Bookmark] = []
        page = 0
        rate_limit_retries = 0

        while True:
            params = {"perpage": self.page_size, "page": page}
            status_code: Optional[int] = None

            try:
                response = await self._get(token, f"/raindrops/{collection_id}", params)
                status_code = response.status_code

                if status_code == 429:
                    if self.backoff.should_retry(rate_limit_retries):
                        delay = self.backoff.delay_for(
                            rate_limit_retries,
                            parse_retry_after(response.headers.get("Retry-After")),
                        )
                        rate_limit_retries += 1
                        self.logger.info(
                            f"Rate limited on collection {collection_id} page {page}, "
                            f"retry {rate_limit_retries}/{self.backoff.max_retries} "
                            f"in {delay:.1f}s"
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise PartialFetchFailure(
                        "Rate limit retries exhausted",
                        collection_id=collection_id,
                        page=page,
                        fetched=len(bookmarks),
                        status_code=status_code,
                    )

                if not response.is_success:
                    raise PartialFetchFailure(
                        f"Failed to fetch bookmarks for collection {collection_id}",
                        collection_id=collection_id,
                        page=page,
                        fetched=len(bookmarks),
                        status_code=status_code,
                    )

                data = response.json()
                items = (data or {}).get("items") or []
                page_bookmarks = [Bookmark.from_api(item) for item in items]

            except PartialFetchFailure as failure:
                return self._partial(bookmarks, failure)
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
                failure = PartialFetchFailure(
                    f"Failed to fetch bookmarks for collection {collection_id}",
                    collection_id=collection_id,
                    page=page,
                    fetched=len(bookmarks),
                    status_code=status_code,
                    original_error=e,
                )
                return self._partial(bookmarks, failure)

            if not page_bookmarks:
                break

            bookmarks.extend(page_bookmarks)
            rate_limit_retries = 0
            if progress_callback:
                progress_callback(len(bookmarks))
            page += 1

            if self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

        self.logger.debug(
            f"Fetched {len(bookmarks)} bookmarks from collection {collection_id} "
            f"in {page} page(s)"
        )
        return BookmarkBatch(bookmarks)

    def _partial(
        self, bookmarks: List[Bookmark], failure: PartialFetchFailure
    ) -> BookmarkBatch:
        self.logger.error(
            f"{failure}; keeping {len(bookmarks)} bookmarks fetched before page {failure.page}"
        )
        return BookmarkBatch(bookmarks, complete=False, failure=failure)

    def __repr__(self) -> str:
        return f"RaindropClient(base_url={self.base_url!r}, timeout={self.timeout})"
