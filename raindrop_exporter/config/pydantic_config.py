"""
Pydantic-based configuration system for Raindrop Exporter.

Settings are grouped into four sections (api, fetch, export, logging) and
can be loaded from a TOML or JSON file, with the access token optionally
supplied through the environment.
"""

import json
import os
import sys
import warnings
from pathlib import Path
from typing import Dict, List, Literal, Optional

import toml
from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from ..core.raindrop_client import DEFAULT_BASE_URL

TOKEN_ENV_VAR = "RAINDROP_TOKEN"

PLACEHOLDER_TOKENS = ("your-raindrop-token-here", "your-access-token")


class ApiConfig(BaseModel):
    """Raindrop.io API connection settings."""

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the Raindrop.io REST API",
        json_schema_extra={
            "error_msg": "Base URL must be an http(s) URL, e.g. "
            "https://api.raindrop.io/rest/v1"
        },
    )
    timeout: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Request timeout in seconds",
        json_schema_extra={
            "error_msg": "Timeout must be between 5 and 300 seconds. "
            "Recommended: 30 seconds."
        },
    )
    access_token: Optional[SecretStr] = Field(
        default=None,
        description="Raindrop.io access token",
        json_schema_extra={
            "error_msg": "Access token should be a Raindrop.io test token or "
            "OAuth token. Keep this secure and never commit it to version "
            "control."
        },
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        """Require an http(s) URL without a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("access_token", mode="before")
    @classmethod
    def validate_access_token(cls, v):
        """Reject placeholder tokens and treat empty values as unset."""
        if v is None or v == "":
            return None

        token = v.get_secret_value() if isinstance(v, SecretStr) else str(v)

        if token in PLACEHOLDER_TOKENS:
            raise ValueError(
                "Please replace the placeholder access token with your actual "
                "Raindrop.io token. You can create one under Settings > "
                "Integrations on raindrop.io."
            )

        return SecretStr(token)


class FetchConfig(BaseModel):
    """Pagination and pacing settings for bookmark retrieval."""

    page_size: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Bookmarks requested per page",
        json_schema_extra={
            "error_msg": "Page size must be between 1 and 50 "
            "(the API maximum)."
        },
    )
    page_delay: float = Field(
        default=0.1,
        ge=0.0,
        le=5.0,
        description="Pause after every non-empty page in seconds",
    )
    rate_limit_delay: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Initial delay after an HTTP 429 response",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Growth factor between consecutive rate-limit retries",
    )
    max_backoff: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Upper bound for a single rate-limit delay",
    )
    max_rate_limit_retries: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Rate-limit retries allowed per page",
        json_schema_extra={
            "error_msg": "Rate-limit retries must be between 0 and 20. "
            "Set to 0 to give up on the first HTTP 429."
        },
    )
    requests_per_minute: int = Field(
        default=120,
        ge=1,
        le=1000,
        description="Client-side request budget per minute",
    )

    @field_validator("page_delay")
    @classmethod
    def validate_page_delay(cls, v):
        """Warn when pages are requested without any pause."""
        if v == 0:
            warnings.warn(
                "A page delay of 0 may trigger Raindrop.io rate limiting on "
                "large collections. Consider using 0.1 seconds.",
                UserWarning,
            )
        return v


class ExportConfig(BaseModel):
    """Output format and file settings."""

    formats: List[Literal["json", "html", "csv", "xml"]] = Field(
        default_factory=lambda: ["json"],
        min_length=1,
        description="Formats written by a single run",
        json_schema_extra={
            "error_msg": "Formats must be a non-empty list of json, html, "
            "csv or xml."
        },
    )
    output_dir: Path = Field(
        default=Path("."),
        description="Directory receiving exported files",
    )
    filename_prefix: str = Field(
        default="raindrop",
        min_length=1,
        description="Stem of generated file names",
    )

    @field_validator("formats", mode="before")
    @classmethod
    def normalize_formats(cls, v):
        """Accept a single string and normalize case."""
        if isinstance(v, str):
            v = [v]
        return [str(item).lower() for item in v]

    @field_validator("output_dir", mode="before")
    @classmethod
    def validate_output_dir(cls, v):
        """Ensure the output directory is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class LoggingConfig(BaseModel):
    """Log level and log file settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    log_file: str = Field(
        default="raindrop_exporter.log",
        description="Base name of the log file under logs/",
    )
    log_to_file: bool = Field(
        default=True,
        description="Write a timestamped log file",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class ExporterConfig(BaseModel):
    """Main configuration model."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigurationManager:
    """Manages loading and validation of configuration from multiple sources."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file (TOML or JSON)

        Raises:
            ValueError: If the file cannot be read or fails validation
        """
        self._config: Optional[ExporterConfig] = None
        self._load_configuration(config_path)

    def _get_default_config_paths(self) -> List[Path]:
        """Get list of default configuration file paths to try."""
        if getattr(sys, "frozen", False):
            app_dir = Path(sys.executable).parent
            return [
                app_dir / "config" / "user_config.toml",
                app_dir / "config" / "user_config.json",
                app_dir / "raindrop_config.toml",
                app_dir / "raindrop_config.json",
            ]

        config_dir = Path(__file__).parent
        project_root = config_dir.parent.parent
        return [
            config_dir / "user_config.toml",
            config_dir / "user_config.json",
            project_root / "raindrop_config.toml",
            project_root / "raindrop_config.json",
        ]

    def _load_configuration(self, config_path: Optional[Path] = None) -> None:
        """Load configuration from file or use defaults."""
        config_data: Dict = {}

        if config_path:
            config_data = self._load_config_file(Path(config_path))
        else:
            for path in self._get_default_config_paths():
                if path.exists():
                    config_data = self._load_config_file(path)
                    break

        self._load_token_from_env(config_data)

        try:
            self._config = ExporterConfig(**config_data)
        except ValidationError as e:
            raise ValueError(format_config_error(e)) from e

    def _load_config_file(self, config_path: Path) -> Dict:
        """Load configuration from TOML or JSON file."""
        if not config_path.exists():
            raise ValueError(
                format_config_error(
                    FileNotFoundError(2, "No such file", str(config_path))
                )
            )

        suffix = config_path.suffix.lower()
        if suffix not in (".toml", ".json"):
            raise ValueError(
                f"Unsupported configuration file format: {config_path.suffix}"
            )

        try:
            if suffix == ".toml":
                return toml.load(config_path)
            with open(config_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (toml.TomlDecodeError, json.JSONDecodeError, OSError) as e:
            raise ValueError(
                f"Failed to load configuration from {config_path}: {e}"
            ) from e

    def _load_token_from_env(self, config_data: Dict) -> None:
        """Load the access token from the environment as fallback."""
        api_section = config_data.setdefault("api", {})
        token = os.getenv(TOKEN_ENV_VAR)
        if token and not api_section.get("access_token"):
            api_section["access_token"] = token

    def update_from_cli_args(self, args: Dict) -> None:
        """Update configuration from command-line arguments."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")

        config_dict = self._config.model_dump()

        # model_dump keeps SecretStr instances; the validator accepts them
        if args.get("token"):
            config_dict["api"]["access_token"] = args["token"]

        if args.get("formats"):
            config_dict["export"]["formats"] = args["formats"]

        if args.get("output_dir") is not None:
            config_dict["export"]["output_dir"] = args["output_dir"]

        if args.get("verbose"):
            config_dict["logging"]["level"] = "DEBUG"

        try:
            self._config = ExporterConfig(**config_dict)
        except ValidationError as e:
            raise ValueError(format_config_error(e)) from e

    @property
    def config(self) -> ExporterConfig:
        """Get the current configuration."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")
        return self._config

    def get_access_token(self) -> Optional[str]:
        """Get the access token, returning the actual secret value."""
        token = self.config.api.access_token
        return token.get_secret_value() if token else None

    def has_access_token(self) -> bool:
        return self.get_access_token() is not None


def create_sample_config(output_path: Path, format: str = "toml") -> None:
    """
    Create a sample configuration file.

    Args:
        output_path: Destination file
        format: ``toml`` or ``json``

    Raises:
        ValueError: If the format is not supported
    """
    sample_config = {
        "api": {
            "base_url": DEFAULT_BASE_URL,
            "timeout": 30,
            # Tokens should be added manually and not committed
            "access_token": "your-raindrop-token-here",
        },
        "fetch": {
            "page_size": 50,
            "page_delay": 0.1,
            "rate_limit_delay": 2.0,
            "backoff_multiplier": 2.0,
            "max_backoff": 60.0,
            "max_rate_limit_retries": 5,
            "requests_per_minute": 120,
        },
        "export": {
            "formats": ["json", "html"],
            "output_dir": ".",
            "filename_prefix": "raindrop",
        },
        "logging": {
            "level": "INFO",
            "log_file": "raindrop_exporter.log",
            "log_to_file": True,
        },
    }

    if format.lower() == "toml":
        with open(output_path, "w", encoding="utf-8") as f:
            toml.dump(sample_config, f)
    elif format.lower() == "json":
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(sample_config, f, indent=2)
    else:
        raise ValueError(f"Unsupported format: {format}")


class ConfigurationErrorFormatter:
    """Formats Pydantic validation errors into user-friendly messages."""

    @staticmethod
    def format_validation_error(error: ValidationError) -> str:
        """
        Convert Pydantic ValidationError into a user-friendly error message.

        Args:
            error: Pydantic ValidationError instance

        Returns:
            Formatted error message with helpful guidance
        """
        error_messages = []

        for error_detail in error.errors():
            location = ConfigurationErrorFormatter._format_error_location(
                error_detail["loc"]
            )
            error_messages.append(
                ConfigurationErrorFormatter._format_by_error_type(
                    location,
                    error_detail["type"],
                    error_detail,
                    error_detail.get("input", "N/A"),
                )
            )

        header = "🔧 Configuration Validation Failed:\n"
        separator = "\n" + "─" * 60 + "\n"

        footer = (
            "\n\n💡 Tips:\n"
            "• Check the configuration file format (TOML or JSON)\n"
            "• Verify the access token is not a placeholder value\n"
            "• Ensure numeric values are within the allowed ranges\n"
            "• Use 'raindrop-exporter --create-config toml' to generate a "
            "sample file"
        )

        return header + separator + "\n".join(error_messages) + footer

    @staticmethod
    def _format_error_location(location: tuple) -> str:
        """Format the error location path."""
        if not location:
            return "Configuration"

        path_parts = []
        for part in location:
            if isinstance(part, str):
                path_parts.append(part)
            else:
                path_parts.append(f"[{part}]")

        return " → ".join(path_parts)

    @staticmethod
    def _format_by_error_type(
        location: str, error_type: str, error_detail: dict, input_value
    ) -> str:
        """Format error message based on Pydantic error type."""

        if error_type == "missing":
            return f"❌ {location}: Required field is missing"

        elif error_type == "value_error":
            msg = error_detail.get("msg", "Invalid value")
            if "access_token" in location:
                # never echo the token itself
                return f"❌ {location}: {msg}"
            return f"❌ {location}: {msg} (got: {input_value})"

        elif error_type in [
            "greater_than_equal",
            "less_than_equal",
            "greater_than",
            "less_than",
        ]:
            ctx = error_detail.get("ctx", {})
            limit = next(
                (ctx[key] for key in ("ge", "le", "gt", "lt") if key in ctx),
                "limit",
            )
            operator = {
                "greater_than_equal": "≥",
                "less_than_equal": "≤",
                "greater_than": ">",
                "less_than": "<",
            }.get(error_type, "?")
            return (
                f"❌ {location}: Value must be {operator} {limit} (got: {input_value})"
            )

        elif error_type == "literal_error":
            expected = error_detail.get("ctx", {}).get("expected", "valid option")
            return f"❌ {location}: Must be one of {expected} (got: {input_value})"

        elif error_type in ("string_too_short", "too_short"):
            return f"❌ {location}: Value must not be empty"

        else:
            msg = error_detail.get("msg", "Invalid configuration value")
            return f"❌ {location}: {msg} (got: {input_value})"


def format_config_error(error: Exception) -> str:
    """
    Format any configuration-related error into a user-friendly message.

    Args:
        error: Exception that occurred during configuration

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        return ConfigurationErrorFormatter.format_validation_error(error)

    elif isinstance(error, FileNotFoundError):
        return (
            f"🔧 Configuration File Not Found:\n"
            f"❌ Could not find configuration file: {error.filename}\n\n"
            f"💡 Solutions:\n"
            f"• Create a configuration file using: "
            f"raindrop-exporter --create-config toml\n"
            f"• Use default configuration by omitting the --config parameter\n"
            f"• Check the file path is correct and accessible"
        )

    else:
        return f"🔧 Unexpected Configuration Error:\n❌ {str(error)}"
