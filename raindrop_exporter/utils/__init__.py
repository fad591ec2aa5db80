"""
Utility modules for the raindrop exporter.

This package contains error types, logging setup, rate limiting, backoff
and progress display helpers.
"""

from .error_handler import (
    APIError,
    AuthError,
    ConfigurationError,
    OrchestratorFailure,
    PartialFetchFailure,
    RaindropExporterError,
    RetrievalError,
    ValidationError,
)
from .rate_limiter import RateLimiter
from .retry_handler import BackoffPolicy

__all__ = [
    "RaindropExporterError",
    "ConfigurationError",
    "ValidationError",
    "APIError",
    "AuthError",
    "RetrievalError",
    "PartialFetchFailure",
    "OrchestratorFailure",
    "RateLimiter",
    "BackoffPolicy",
]
