"""
Configuration management for the Raindrop Exporter.

Wraps the Pydantic models with the accessors the CLI and the export session
use, such as building the HTTP client and the exporters from settings.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from ..core.raindrop_client import RaindropClient
from ..utils.rate_limiter import RateLimiter
from ..utils.retry_handler import BackoffPolicy
from .pydantic_config import ConfigurationManager, ExporterConfig


class Configuration:
    """
    Application configuration backed by the Pydantic models.

    Example:
        >>> config = Configuration()
        >>> config.update_from_args({"formats": ["html"]})
        >>> client = config.build_client()
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to user configuration file (TOML/JSON)
        """
        self._manager = ConfigurationManager(config_path)
        self._config = self._manager.config

    @property
    def config(self) -> ExporterConfig:
        """Get the underlying Pydantic configuration."""
        return self._config

    def update_from_args(self, args: Dict[str, Any]) -> None:
        """
        Update configuration from command-line arguments.

        Args:
            args: Dictionary of validated arguments
        """
        self._manager.update_from_cli_args(args)
        self._config = self._manager.config

    def get_access_token(self) -> Optional[str]:
        """Access token from the file, environment or command line."""
        return self._manager.get_access_token()

    def get_backoff_policy(self) -> BackoffPolicy:
        fetch = self._config.fetch
        return BackoffPolicy(
            base_delay=fetch.rate_limit_delay,
            multiplier=fetch.backoff_multiplier,
            max_delay=fetch.max_backoff,
            max_retries=fetch.max_rate_limit_retries,
        )

    def get_rate_limiter(self) -> RateLimiter:
        return RateLimiter(
            requests_per_minute=self._config.fetch.requests_per_minute,
            name="raindrop",
        )

    def build_client(self) -> RaindropClient:
        """Create an unopened RaindropClient from the api and fetch settings."""
        return RaindropClient(
            base_url=self._config.api.base_url,
            timeout=float(self._config.api.timeout),
            page_size=self._config.fetch.page_size,
            page_delay=self._config.fetch.page_delay,
            backoff=self.get_backoff_policy(),
            rate_limiter=self.get_rate_limiter(),
        )

    def get_output_dir(self) -> Path:
        return self._config.export.output_dir

    def get_formats(self) -> list:
        return list(self._config.export.formats)

    def get_filename_prefix(self) -> str:
        return self._config.export.filename_prefix
