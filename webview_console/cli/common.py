"""Helpers shared by the CLI subcommands."""

import argparse
import sys
from typing import Optional, Tuple

from ..cdp.host import ChromeHost
from ..cdp.session import CDPSession
from ..console import WebviewConsole
from ..exceptions import WebviewConsoleError
from ..view import ConsoleView


def open_console(
    args: argparse.Namespace,
    view: Optional[ConsoleView] = None,
) -> Tuple[WebviewConsole, ChromeHost]:
    """Build a console over the configured debugging endpoint.

    Navigations re-track their webview so the bridge is reinstalled on every
    new page.
    """
    config = args.config
    session = CDPSession(
        chrome_host=config.chrome_host,
        chrome_port=config.chrome_port,
        timeout=min(config.timeout, 5.0),
    )
    host = ChromeHost(
        session,
        timeout=config.timeout,
        max_size=config.max_size,
        url_pattern=getattr(args, "url", None),
    )
    console = WebviewConsole(host, config=config, view=view)
    host.on_navigated = console.track_webview
    return console, host


async def close_console(console: WebviewConsole, host: ChromeHost) -> None:
    await console.close()
    await host.close()


def report_error(args: argparse.Namespace, error: WebviewConsoleError) -> int:
    if args.config.log_level.upper() == "DEBUG":
        raise error
    print(f"Error: {error}", file=sys.stderr)
    if error.details.get("recovery"):
        print(f"Recovery hint: {error.details['recovery']}", file=sys.stderr)
    return 1
