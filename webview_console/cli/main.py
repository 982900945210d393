"""
Main CLI entry point for webview-console.

Usage:
    python -m webview_console.cli.main <subcommand> [options]

Subcommands:
    list   - Discover webviews on a debugging endpoint
    watch  - Stream bridged console output of a webview
    eval   - Run a script in a webview and print its outcome
"""

import argparse
import sys
from typing import List, Optional

from webview_console.config import Configuration
from webview_console.logging_setup import setup_logging

CONFIG_FILE = "~/.webviewconsolerc"


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Connection and logging options default to None so that values from the
    environment and the config file are only overridden when given.
    """
    parent = argparse.ArgumentParser(add_help=False)

    parent.add_argument(
        "--chrome-host",
        default=None,
        help="Debugging endpoint host (default: localhost)",
    )
    parent.add_argument(
        "--chrome-port",
        type=int,
        default=None,
        help="Debugging endpoint port (default: 9222)",
    )
    parent.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Command timeout in seconds (default: 30.0)",
    )

    parent.add_argument(
        "--format",
        choices=["json", "text", "table"],
        default="json",
        help="Output format (default: json)",
    )

    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: info)",
    )
    parent.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Diagnostic log format on stderr (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-essential output (only show results)",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webview-console",
        description="Console capture and script execution for embedded webviews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List webviews of a browser started with --remote-debugging-port=9222
  webview-console list

  # Stream console output of the first webview matching a URL for 60 seconds
  webview-console watch --url example.com --duration 60

  # Run a script in a webview
  webview-console eval --url example.com "document.title"

For more information on subcommands, run: webview-console <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available operations",
        required=True,
    )

    from . import list_cmd, watch_cmd, eval_cmd

    list_cmd.register_subcommand(subparsers, parent)
    watch_cmd.register_subcommand(subparsers, parent)
    eval_cmd.register_subcommand(subparsers, parent)

    return parser


def load_configuration(args: argparse.Namespace) -> Configuration:
    """Precedence: CLI flags > env vars > config file > defaults."""
    config = Configuration()
    config.load_from_file(CONFIG_FILE)
    config.load_from_env()

    config.merge(
        chrome_host=getattr(args, "chrome_host", None),
        chrome_port=getattr(args, "chrome_port", None),
        timeout=getattr(args, "timeout", None),
        log_level=getattr(args, "log_level", None),
        log_format=getattr(args, "log_format", None),
    )

    if getattr(args, "quiet", False):
        config.log_level = "ERROR"
    elif getattr(args, "verbose", False):
        config.log_level = "DEBUG"
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)

    args = parser.parse_args(argv)

    config = load_configuration(args)
    setup_logging(
        format_type=config.log_format,
        level=str(config.log_level).upper(),
        quiet=getattr(args, "quiet", False),
        verbose=getattr(args, "verbose", False),
    )

    # Attach config to args for subcommands to access
    args.config = config

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
