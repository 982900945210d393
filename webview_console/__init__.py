"""Console capture and script execution for embedded webviews.

This package provides:
- WebviewConsole: host-facing facade (tracking, show/hide, selection, commands)
- Core components: registry, bridge, router, log store, scanner, selection, executor
- cdp: a host backend for Chrome DevTools Protocol targets
- CLI: command-line interface for watching and scripting webviews
"""

__version__ = "0.1.0"

from .console import WebviewConsole
from .config import Configuration
from .logstore import LogEntry, Severity
from .view import ConsoleView, StreamView
from .webview import Host, ViewContainer, Webview

__all__ = [
    "WebviewConsole",
    "Configuration",
    "LogEntry",
    "Severity",
    "ConsoleView",
    "StreamView",
    "Host",
    "ViewContainer",
    "Webview",
]
