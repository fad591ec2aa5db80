"""
Error hierarchy for the Raindrop Exporter.

All custom exceptions for the project are defined here so callers can catch
``RaindropExporterError`` at the boundary and the more specific classes where
the distinction matters (authentication vs. retrieval vs. a failed fetch run).
"""

from typing import Optional


class RaindropExporterError(Exception):
    """Base exception for all raindrop exporter errors."""

    pass


# ============================================================================
# Configuration / Validation Errors
# ============================================================================


class ConfigurationError(RaindropExporterError):
    """Configuration-related errors."""

    pass


class ValidationError(RaindropExporterError):
    """Invalid command-line or user input."""

    pass


# ============================================================================
# API Errors
# ============================================================================


class APIError(RaindropExporterError):
    """
    Base class for errors talking to the Raindrop.io REST API.

    Attributes:
        message: Error description
        status_code: HTTP status code if applicable
        original_error: The underlying exception if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        if self.original_error:
            parts.append(
                f"Caused by: {type(self.original_error).__name__}: {self.original_error}"
            )
        return " ".join(parts)


class AuthError(APIError):
    """The access token was rejected; no fetch is started."""

    pass


class RetrievalError(APIError):
    """The collection listing could not be retrieved."""

    pass


class PartialFetchFailure(APIError):
    """
    Pagination for one collection stopped early on a non-rate-limit error.

    Recovered locally: the bookmarks gathered so far are kept and the run
    moves on. Instances are attached to the returned batch and logged, they
    are not raised.
    """

    def __init__(
        self,
        message: str,
        collection_id: int,
        page: int,
        fetched: int,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.collection_id = collection_id
        self.page = page
        self.fetched = fetched
        super().__init__(message, status_code=status_code, original_error=original_error)


# ============================================================================
# Fetch Run Errors
# ============================================================================


class OrchestratorFailure(RaindropExporterError):
    """An unexpected error aborted a multi-collection fetch run."""

    def __init__(
        self,
        message: str,
        collection_id: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.collection_id = collection_id
        self.original_error = original_error
        super().__init__(message)
