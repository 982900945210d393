"""
List subcommand: discover the webviews of a debugging endpoint.
"""

import argparse
import asyncio
import json

from ..exceptions import WebviewConsoleError
from .common import close_console, open_console, report_error


async def list_handler_async(args: argparse.Namespace) -> int:
    console, host = open_console(args)
    try:
        await host.refresh()
        console.show()
        await console.wait_idle()

        rows = [
            {
                "key": webview.key,
                "id": webview.target.id,
                "type": webview.target.type,
                "url": webview.url,
                "title": webview.title,
                "bridged": console.bridge.was_bridged(webview),
            }
            for webview in console.webviews
        ]
    except WebviewConsoleError as e:
        return report_error(args, e)
    finally:
        await close_console(console, host)

    if args.format == "json":
        print(json.dumps(rows, indent=2))
    elif args.format == "text":
        for row in rows:
            print(f"{row['key']}\t{row['id']}\t{row['type']}\t{row['url']}\t{row['title']}")
    else:
        print(f"{'KEY':<6} {'ID':<34} {'TYPE':<8} {'URL':<50} {'TITLE':<30}")
        print("-" * 132)
        for row in rows:
            print(
                f"{row['key']:<6} {row['id'][:34]:<34} {row['type']:<8} "
                f"{row['url'][:50]:<50} {row['title'][:30]:<30}"
            )
    return 0


def list_handler(args: argparse.Namespace) -> int:
    return asyncio.run(list_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    list_parser = subparsers.add_parser(
        "list",
        parents=[parent],
        help="Discover webviews",
        description="Discover webviews and attach the console bridge to them",
        epilog="""
Examples:
  # List all webviews
  webview-console list

  # Only webviews whose URL contains a pattern, as a table
  webview-console list --url localhost --format table
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    list_parser.add_argument(
        "--url",
        help="Filter webviews by URL pattern (case-insensitive substring match)",
    )

    list_parser.set_defaults(func=list_handler)
