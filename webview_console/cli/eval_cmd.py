"""
Eval subcommand: run a script in a webview through the command executor.
"""

import argparse
import asyncio
import json

from ..exceptions import TargetNotFoundError, WebviewConsoleError
from ..executor import FAILURE_PREFIX
from .common import close_console, open_console, report_error


async def eval_handler_async(args: argparse.Namespace) -> int:
    console, host = open_console(args)
    try:
        await host.refresh()
        console.show()
        await console.wait_idle()

        if console.selected is None:
            raise TargetNotFoundError("No webview found", url_pattern=args.url)

        entry = await console.execute(args.expression)
    except WebviewConsoleError as e:
        return report_error(args, e)
    finally:
        await close_console(console, host)

    if entry is None:
        return 0
    if args.format == "json":
        print(json.dumps(entry.to_dict(), indent=2))
    else:
        print(entry.text)
    return 1 if entry.text.startswith(FAILURE_PREFIX) else 0


def eval_handler(args: argparse.Namespace) -> int:
    return asyncio.run(eval_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    eval_parser = subparsers.add_parser(
        "eval",
        parents=[parent],
        help="Execute JavaScript in a webview",
        description="Execute a script in a webview and print the logged outcome",
        epilog="""
Examples:
  # Evaluate in the first webview
  webview-console eval "document.title"

  # Evaluate in the webview matching a URL
  webview-console eval --url example.com "location.href"
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    eval_parser.add_argument(
        "--url",
        help="URL pattern to match webviews (uses first match)",
    )
    eval_parser.add_argument(
        "expression",
        help="JavaScript expression to evaluate",
    )

    eval_parser.set_defaults(func=eval_handler)
