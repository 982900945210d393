"""
Watch subcommand: stream the bridged console output of a webview.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from ..exceptions import TargetNotFoundError, WebviewConsoleError
from ..view import StreamView
from .common import close_console, open_console, report_error


async def watch_handler_async(args: argparse.Namespace) -> int:
    """
    Stream console entries of the first matching webview as JSONL.

    Entries of the selected webview go to stdout (or --output) as they
    arrive; reloads of the page reinstall the bridge automatically.
    """
    view = StreamView(
        output_path=Path(args.output) if args.output else None,
        level_filter=args.level,
    )
    console, host = open_console(args, view=view)
    try:
        await host.refresh()
        async with view:
            console.show()
            await console.wait_idle()

            webview = console.selected
            if webview is None:
                raise TargetNotFoundError(
                    "No webview found", url_pattern=args.url,
                )

            if not args.quiet:
                print(
                    f"Watching {webview.url} for {args.duration} seconds...",
                    file=sys.stderr,
                )
            await asyncio.sleep(args.duration)

        if not args.quiet and view.output_path:
            print(f"Console logs saved to: {view.output_path}", file=sys.stderr)
        return 0

    except WebviewConsoleError as e:
        return report_error(args, e)
    finally:
        await close_console(console, host)


def watch_handler(args: argparse.Namespace) -> int:
    return asyncio.run(watch_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    watch_parser = subparsers.add_parser(
        "watch",
        parents=[parent],
        help="Stream console output of a webview",
        description="Bridge console.log/info/warn/error of a webview and stream them",
        epilog="""
Examples:
  # Stream console output of the first webview for 60 seconds
  webview-console watch --duration 60

  # Webview matching a URL, warnings and errors only
  webview-console watch --url example.com --duration 60 --level warn

  # Save to a JSONL file
  webview-console watch --duration 60 --output console.jsonl
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    watch_parser.add_argument(
        "--url",
        help="URL pattern to match webviews (first match is watched)",
    )
    watch_parser.add_argument(
        "--duration",
        type=float,
        required=True,
        help="Duration to stream logs in seconds",
    )
    watch_parser.add_argument(
        "--level",
        choices=["log", "info", "warn", "error"],
        help="Minimum console level to emit",
    )
    watch_parser.add_argument(
        "--output",
        help="Output file path for console logs (JSONL format)",
    )

    watch_parser.set_defaults(func=watch_handler)
