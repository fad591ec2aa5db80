"""
Input validation utilities for the Raindrop Exporter.

This module provides validation functions for command-line arguments
and other user inputs.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .error_handler import ValidationError

SUPPORTED_FORMATS = ("json", "html", "csv", "xml")


def validate_token(token: Optional[str]) -> str:
    """
    Validate that an access token was supplied.

    Args:
        token: Token from the command line, config file or environment

    Returns:
        Token with surrounding whitespace removed

    Raises:
        ValidationError: If the token is missing or blank
    """
    if token is None or not token.strip():
        raise ValidationError(
            "No access token provided. Use --token, set RAINDROP_TOKEN, "
            "or add api.access_token to the configuration file."
        )
    if any(ch.isspace() for ch in token.strip()):
        raise ValidationError("Access token must not contain whitespace")
    return token.strip()


def validate_formats(formats: Optional[Iterable[str]]) -> List[str]:
    """
    Validate and de-duplicate requested export formats.

    Args:
        formats: Format names, or None

    Returns:
        Lower-cased format names in first-seen order (empty if None)

    Raises:
        ValidationError: If a format is not supported
    """
    result: List[str] = []
    for fmt in formats or []:
        name = fmt.lower()
        if name not in SUPPORTED_FORMATS:
            raise ValidationError(
                f"Unsupported export format: {fmt}. "
                f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
            )
        if name not in result:
            result.append(name)
    return result


def validate_output_path(
    file_path: Union[str, Path, None], formats: List[str]
) -> Optional[Path]:
    """
    Validate the output target.

    A path naming an existing directory, or ending in a separator, is a
    directory target. Anything else is a file target, which is only allowed
    for a single format.

    Args:
        file_path: Path from --output, or None
        formats: Formats being written

    Returns:
        Absolute path, or None when no output was requested

    Raises:
        ValidationError: If the path isn't writable or conflicts with formats
    """
    if file_path is None:
        return None

    path = Path(file_path)
    is_directory = path.is_dir() or str(file_path).endswith(("/", os.sep))

    if is_directory:
        target_dir = path
    else:
        if len(formats) > 1:
            raise ValidationError(
                "A single output file cannot hold several formats; "
                "pass a directory to --output instead"
            )
        target_dir = path.parent

    if not target_dir.exists():
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValidationError(
                f"Cannot create output directory: {target_dir}: {e}"
            )

    if not os.access(target_dir, os.W_OK):
        raise ValidationError(f"Output directory is not writable: {target_dir}")

    if not is_directory and path.exists() and not os.access(path, os.W_OK):
        raise ValidationError(f"Output file exists and is not writable: {file_path}")

    return path.absolute()


def validate_config_file(file_path: Union[str, Path, None]) -> Union[Path, None]:
    """
    Validate configuration file if provided.

    Args:
        file_path: Path to the config file or None

    Returns:
        Validated Path object or None

    Raises:
        ValidationError: If file doesn't exist or isn't readable
    """
    if file_path is None:
        return None

    path = Path(file_path)

    if not path.exists():
        raise ValidationError(f"Configuration file does not exist: {file_path}")

    if not path.is_file():
        raise ValidationError(f"Configuration path is not a file: {file_path}")

    if not os.access(path, os.R_OK):
        raise ValidationError(f"Configuration file is not readable: {file_path}")

    if path.suffix.lower() not in [".toml", ".json"]:
        raise ValidationError(
            f"Configuration file must be .toml or .json, got: {path.suffix}"
        )

    return path.absolute()


def validate_collection_ids(values: Optional[Iterable[Union[str, int]]]) -> List[int]:
    """
    Parse collection ids given on the command line.

    Raises:
        ValidationError: If a value is not an integer
    """
    ids: List[int] = []
    for value in values or []:
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f"Collection id must be an integer, got: {value}")
    return ids


def validate_conflicting_arguments(
    include: List[int], exclude: List[int], interactive: bool
) -> None:
    """
    Validate that conflicting selection arguments aren't combined.

    Raises:
        ValidationError: If conflicting arguments are set
    """
    overlap = sorted(set(include) & set(exclude))
    if overlap:
        raise ValidationError(
            f"Collections cannot be both included and excluded: "
            f"{', '.join(str(i) for i in overlap)}"
        )
    if interactive and (include or exclude):
        raise ValidationError(
            "Cannot use --interactive together with --include or --exclude. "
            "Choose one or the other."
        )
