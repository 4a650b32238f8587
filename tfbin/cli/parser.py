"""
tfbin CLI argument parser.

This module implements the command-line interface for tfbin using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tfbin import __version__

logger = logging.getLogger(__name__)


class CLI:
    """tfbin command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="tfbin",
            description="tfbin - fetch and cache Terraform provider plugin binaries",
            epilog='Use "tfbin COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"tfbin {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./tfbin.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_fetch_command(subparsers)
        self._add_search_command(subparsers)
        self._add_cache_command(subparsers)

        return parser

    def _add_provider_arguments(self, parser: argparse.ArgumentParser):
        """Arguments shared by commands that take a provider query."""
        parser.add_argument(
            "provider",
            metavar="PROVIDER",
            help="Provider source address: NAME, NAMESPACE/NAME or HOST/NAMESPACE/NAME",
        )
        parser.add_argument(
            "--version",
            dest="provider_version",
            required=True,
            metavar="VERSION",
            help=(
                "Provider version or constraint "
                "(e.g., 3.2.1, '~> 3.2', '>= 3.0, < 4.0')"
            ),
        )
        parser.add_argument(
            "--os",
            dest="target_os",
            metavar="OS",
            help="Target operating system (default: current platform)",
        )
        parser.add_argument(
            "--arch",
            dest="target_arch",
            metavar="ARCH",
            help="Target architecture (default: current platform)",
        )
        parser.add_argument(
            "--host",
            metavar="HOST",
            help="Registry host (default: from config, registry.terraform.io)",
        )
        parser.add_argument(
            "--no-cache",
            action="store_true",
            help="Bypass the local provider cache",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="PATH",
            help="Provider cache directory (default: ./.tf-cache)",
        )

    def _add_fetch_command(self, subparsers):
        """Add 'fetch' subcommand."""
        parser = subparsers.add_parser(
            "fetch",
            help="Download a provider binary",
            description="Resolve a provider build and write its binary to disk",
        )
        self._add_provider_arguments(parser)
        parser.add_argument(
            "--output",
            type=Path,
            metavar="DIR",
            help=(
                "Directory to write the binary to "
                "(default: ./tf-plugin/HOST/NAMESPACE/NAME/VERSION/OS_ARCH)"
            ),
        )

    def _add_search_command(self, subparsers):
        """Add 'search' subcommand."""
        parser = subparsers.add_parser(
            "search",
            help="Resolve a provider build without downloading it",
            description="Search the cache, then the registry, for a provider build",
        )
        self._add_provider_arguments(parser)

    def _add_cache_command(self, subparsers):
        """Add 'cache' subcommand."""
        parser = subparsers.add_parser(
            "cache",
            help="Inspect the provider cache",
            description="Inspect the local provider cache",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="PATH",
            help="Provider cache directory (default: ./.tf-cache)",
        )
        cache_subparsers = parser.add_subparsers(
            dest="cache_command", help="Cache commands", metavar="CACHE_COMMAND"
        )
        cache_subparsers.add_parser("list", help="List cached providers")

    def parse_args(self, argv: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse command-line arguments."""
        return self.parser.parse_args(argv)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            argv: Command-line arguments (default: sys.argv[1:])

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        args = self.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return 1

        self._configure_logging(args)

        try:
            return self._dispatch_command(args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "fetch": "tfbin.cli.commands.fetch",
            "search": "tfbin.cli.commands.search",
            "cache": "tfbin.cli.commands.cache",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
