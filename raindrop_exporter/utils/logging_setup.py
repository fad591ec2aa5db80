"""
Logging configuration for the Raindrop Exporter.

This module sets up logging based on configuration settings.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .secure_logging import TokenRedactingFilter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Shared so the CLI can register the active token after setup
redacting_filter = TokenRedactingFilter()


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_to_file: bool = True,
    console_output: bool = True,
) -> Optional[Path]:
    """
    Set up logging configuration.

    Args:
        level: Minimum log level name
        log_file: Base name of the log file
        log_to_file: Write a timestamped log file under logs/
        console_output: Also log to stderr

    Returns:
        Path of the log file, or None when file logging is disabled
    """
    if log_file is None:
        log_file = "raindrop_exporter.log"

    handlers = []
    log_path = None

    if log_to_file:
        if getattr(sys, "frozen", False):
            # Running as executable
            app_dir = Path(sys.executable).parent
        else:
            app_dir = Path.cwd()

        log_dir = app_dir / "logs"
        log_dir.mkdir(exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{Path(log_file).stem}_{timestamp}.log"

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(console_handler)

    for handler in handlers:
        handler.addFilter(redacting_filter)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers or [logging.NullHandler()],
        force=True,
    )

    logger = logging.getLogger(__name__)
    if log_path:
        logger.info(f"Raindrop Exporter starting - Log file: {log_path}")
    logger.info(f"Log level: {level.upper()}")

    # Reduce noise from HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return log_path
