"""Chrome DevTools Protocol backend for the webview console."""

from .connection import CDPConnection
from .host import BrowserContainer, ChromeHost
from .session import CDPSession, Target
from .webview import CDPWebview

__all__ = [
    "CDPConnection",
    "BrowserContainer",
    "ChromeHost",
    "CDPSession",
    "Target",
    "CDPWebview",
]
