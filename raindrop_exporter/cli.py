"""
Command-line interface for the Raindrop Exporter.

This module provides the CLI for exporting Raindrop.io collections and
bookmarks to JSON, Netscape HTML, CSV and XML files.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from raindrop_exporter import __version__
from raindrop_exporter.config.configuration import Configuration
from raindrop_exporter.config.pydantic_config import create_sample_config
from raindrop_exporter.core.collection_tree import (
    deselect_own_bookmarks,
    flatten,
    path_only_ids,
    select_only,
    toggle_collection_checked,
)
from raindrop_exporter.core.data_models import Forest
from raindrop_exporter.core.export_session import RaindropExportSession
from raindrop_exporter.core.exporters import ExportError
from raindrop_exporter.core.interactive_selector import InteractiveSelector
from raindrop_exporter.utils.enhanced_progress import FetchProgressDisplay
from raindrop_exporter.utils.error_handler import (
    APIError,
    ConfigurationError,
    ValidationError,
)
from raindrop_exporter.utils.logging_setup import redacting_filter, setup_logging
from raindrop_exporter.utils.validation import (
    SUPPORTED_FORMATS,
    validate_collection_ids,
    validate_config_file,
    validate_conflicting_arguments,
    validate_formats,
    validate_output_path,
    validate_token,
)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_FETCH_FAILED = 2
EXIT_INTERRUPTED = 130


class CLIInterface:
    """Command line interface for exporting Raindrop.io bookmarks."""

    def __init__(self, console: Optional[Console] = None):
        self.parser = self._create_parser()
        self.console = console or Console()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create comprehensive argument parser."""
        parser = argparse.ArgumentParser(
            prog="raindrop-exporter",
            description="Raindrop Exporter - Export Raindrop.io bookmarks",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  raindrop-exporter --token $TOKEN
  raindrop-exporter --token $TOKEN --format html --output bookmarks.html
  raindrop-exporter --format json --format csv --output exports/
  raindrop-exporter --list-collections
  raindrop-exporter --include 123 --include 456 --format xml
  raindrop-exporter --exclude 789 --verbose
  raindrop-exporter --interactive --format html
  raindrop-exporter --include 123 --review

Access Token:
  Create a test token under Settings > Integrations on raindrop.io.
  The token is read from --token, then the RAINDROP_TOKEN environment
  variable, then api.access_token in the configuration file.

Configuration System:
  Configuration can be provided via TOML or JSON files:

  • Create raindrop_config.toml in the project directory
  • Or use --config to specify a custom configuration file path
  • Use --create-config toml to write a sample file

  Example configuration (raindrop_config.toml):
  [fetch]
  page_size = 50
  max_rate_limit_retries = 5

  [export]
  formats = ["json", "html"]
  output_dir = "exports"

Exit Codes:
  0 success, 1 invalid input or export error, 2 fetch failed,
  130 interrupted
            """,
        )

        parser.add_argument(
            "--version", "-V", action="version", version=f"%(prog)s {__version__}"
        )

        parser.add_argument(
            "--create-config",
            choices=["toml", "json"],
            help="Create a sample configuration file (raindrop_config.toml "
            "or raindrop_config.json) in the current directory and exit.",
        )

        parser.add_argument(
            "--token",
            "-t",
            help="Raindrop.io access token (default: RAINDROP_TOKEN or "
            "configuration file)",
        )
        parser.add_argument(
            "--format",
            "-f",
            dest="formats",
            action="append",
            choices=list(SUPPORTED_FORMATS),
            help="Export format; repeat for several formats "
            "(default: configured formats, json)",
        )
        parser.add_argument(
            "--output",
            "-o",
            help="Output file, or directory for default file names "
            "(raindrop-YYYY-MM-DD.<ext>)",
        )

        # Selection
        parser.add_argument(
            "--include",
            action="append",
            metavar="ID",
            help="Export only this collection and its sub-collections; repeatable",
        )
        parser.add_argument(
            "--exclude",
            action="append",
            metavar="ID",
            help="Skip this collection and its sub-collections; repeatable",
        )
        parser.add_argument(
            "--interactive",
            action="store_true",
            help="Choose collections interactively before fetching",
        )
        parser.add_argument(
            "--review",
            action="store_true",
            help="Review the fetched bookmarks and deselect single bookmarks "
            "or collections before writing the export",
        )
        parser.add_argument(
            "--list-collections",
            action="store_true",
            help="List collections with their ids and exit",
        )

        parser.add_argument(
            "--config",
            "-c",
            help="Custom configuration file path (TOML or JSON format). "
            "If not specified, looks for raindrop_config.toml/.json.",
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable debug logging",
        )
        parser.add_argument(
            "--no-progress",
            action="store_true",
            help="Disable the live progress bar",
        )

        return parser

    def parse_args(self, args=None) -> argparse.Namespace:
        """Parse command line arguments."""
        return self.parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> dict:
        """
        Validate all arguments and return processed values.

        Args:
            args: Parsed arguments from argparse

        Returns:
            Dictionary of validated and processed arguments

        Raises:
            ValidationError: If any validation fails
        """
        config_path = validate_config_file(args.config)
        formats = validate_formats(args.formats)
        include = validate_collection_ids(args.include)
        exclude = validate_collection_ids(args.exclude)

        validate_conflicting_arguments(include, exclude, args.interactive)

        return {
            "config_path": config_path,
            "token": args.token,
            "formats": formats,
            "output": args.output,
            "include": include,
            "exclude": exclude,
            "interactive": args.interactive,
            "review": args.review,
            "list_collections": args.list_collections,
            "verbose": args.verbose,
            "show_progress": not args.no_progress,
        }

    def process_arguments(self, validated_args: dict) -> Configuration:
        """
        Load configuration, apply overrides and set up logging.

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        try:
            config = Configuration(validated_args["config_path"])
            config.update_from_args(validated_args)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        logging_config = config.config.logging
        setup_logging(
            level=logging_config.level,
            log_file=logging_config.log_file,
            log_to_file=logging_config.log_to_file,
            console_output=validated_args["verbose"],
        )
        return config

    def _handle_create_config(self, config_format: str) -> int:
        """Write a sample configuration file to the current directory."""
        output_path = Path(f"raindrop_config.{config_format}")

        if output_path.exists():
            print(f"❌ Configuration file '{output_path}' already exists.")
            return EXIT_ERROR

        try:
            create_sample_config(output_path, config_format)
        except OSError as e:
            print(f"❌ Error creating configuration file: {e}")
            return EXIT_ERROR

        print(f"✅ Created configuration file: {output_path}")
        print()
        print("📝 Next steps:")
        print("1. Replace the placeholder access token with your Raindrop.io token")
        print("2. Adjust export formats and output directory")
        print(f"3. Use with: raindrop-exporter --config {output_path}")
        return EXIT_SUCCESS

    def print_collections(self, forest: Forest) -> None:
        """Print a table of collections in tree order."""
        table = Table(title="Raindrop.io Collections")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Title")
        table.add_column("Bookmarks", justify="right")

        depths = {}
        for node in flatten(forest):
            depth = depths.get(node.parent_id, -1) + 1
            depths[node.id] = depth
            table.add_row(str(node.id), "  " * depth + escape(node.title), str(node.count))

        self.console.print(table)

    def apply_selection(self, forest: Forest, validated_args: dict) -> Optional[Forest]:
        """
        Apply --include/--exclude or the interactive selection.

        Returns:
            Forest to fetch, or None if the user aborted the selection
        """
        if validated_args["include"]:
            forest = select_only(forest, validated_args["include"])

        for node_id in validated_args["exclude"]:
            forest = toggle_collection_checked(forest, node_id, False)

        if validated_args["interactive"]:
            return InteractiveSelector(self.console).select(forest)

        return forest

    async def _run_export(
        self, config: Configuration, token: str, validated_args: dict
    ) -> int:
        logger = logging.getLogger(__name__)
        cancel_event = asyncio.Event()

        async with RaindropExportSession(config, cancel_event=cancel_event) as session:
            forest = await session.connect(token)

            if validated_args["list_collections"]:
                self.print_collections(forest)
                return EXIT_SUCCESS

            path_only = path_only_ids(forest, validated_args["include"])
            forest = self.apply_selection(forest, validated_args)
            if forest is None:
                print("Export cancelled.")
                return EXIT_INTERRUPTED

            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, cancel_event.set)
                handles_sigint = True
            except (NotImplementedError, RuntimeError):
                handles_sigint = False

            try:
                with FetchProgressDisplay(
                    enabled=validated_args["show_progress"]
                ) as display:
                    outcome = await session.fetch(forest, on_status=display)
            finally:
                if handles_sigint:
                    loop.remove_signal_handler(signal.SIGINT)

            if validated_args["show_progress"]:
                display.print_summary()

            if outcome.failed:
                if cancel_event.is_set():
                    print("Fetch cancelled.", file=sys.stderr)
                    return EXIT_INTERRUPTED
                logger.error(f"Fetch failed: {outcome.failure}")
                print(f"Fetch Error: {outcome.status.error}", file=sys.stderr)
                return EXIT_FETCH_FAILED

            for collection in outcome.status.partial_collections:
                print(f"⚠️  Collection '{collection}' was only partially fetched")

            export_forest = deselect_own_bookmarks(outcome.forest, path_only)
            if validated_args["review"]:
                export_forest = InteractiveSelector(self.console).review(export_forest)
                if export_forest is None:
                    print("Export cancelled.")
                    return EXIT_INTERRUPTED

            results = session.export(export_forest, output=validated_args["output"])

        for result in results:
            print(
                f"✅ {result.format_name}: {result.count} bookmarks in "
                f"{result.collections} collections -> {result.path}"
            )
            for warning in result.warnings:
                print(f"⚠️  {warning}")

        return EXIT_SUCCESS

    def run(self, args=None) -> int:
        """Execute CLI interface."""
        logger = logging.getLogger(__name__)
        try:
            parsed_args = self.parse_args(args)

            if parsed_args.create_config:
                return self._handle_create_config(parsed_args.create_config)

            validated_args = self.validate_args(parsed_args)
            config = self.process_arguments(validated_args)

            token = validate_token(config.get_access_token())
            redacting_filter.add_secret(token)

            if not validated_args["list_collections"]:
                validated_args["output"] = validate_output_path(
                    validated_args["output"], config.get_formats()
                )

            logger.info("Raindrop Exporter CLI starting")
            logger.info(f"Formats: {', '.join(config.get_formats())}")

            return asyncio.run(self._run_export(config, token, validated_args))

        except ValidationError as e:
            print(f"Validation Error: {e}", file=sys.stderr)
            return EXIT_ERROR
        except ConfigurationError as e:
            print(f"{e}", file=sys.stderr)
            return EXIT_ERROR
        except APIError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_ERROR
        except ExportError as e:
            print(f"Export Error: {e}", file=sys.stderr)
            return EXIT_ERROR
        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return EXIT_INTERRUPTED
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            logger.exception("Unexpected error in CLI")
            return EXIT_ERROR


def main(args=None):
    """Main entry point for the CLI."""
    cli = CLIInterface()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
