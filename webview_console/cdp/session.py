"""
Webview discovery over the DevTools HTTP endpoint (``GET /json``).

Discovery is synchronous; ChromeHost runs it in a worker thread.
"""

import json
import urllib.request
import urllib.error
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import WebviewConsoleError, TargetNotFoundError

# Target types that host a scriptable page
WEBVIEW_TARGET_TYPES = ("page", "iframe", "webview")

RECOVERY_HINT = "Ensure the browser runs with --remote-debugging-port"


class Target:
    """
    One entry of the ``/json`` listing.

    Field names follow the endpoint's JSON (``webSocketDebuggerUrl``,
    ``parentId``) so listings can be passed through unchanged. An empty
    ``webSocketDebuggerUrl`` means another client already holds the target.
    """

    FIELDS = ("id", "type", "title", "url", "webSocketDebuggerUrl", "parentId")

    def __init__(self, target_data: Dict[str, Any]):
        self.id = target_data["id"]
        self.type = target_data["type"]
        self.title = target_data.get("title", "")
        self.url = target_data.get("url", "")
        self.webSocketDebuggerUrl = target_data.get("webSocketDebuggerUrl", "")
        # top-level targets report "" or nothing
        self.parentId = target_data.get("parentId") or None

    @property
    def is_webview(self) -> bool:
        return self.type in WEBVIEW_TARGET_TYPES

    @property
    def debuggable(self) -> bool:
        return bool(self.webSocketDebuggerUrl)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.FIELDS}

    def __repr__(self):
        return f"Target({self.type} {self.id!r} {self.url!r})"


class CDPSession:
    """
    Reads the target list of a browser started with ``--remote-debugging-port``.

        session = CDPSession("localhost", 9222)
        for target in session.list_webview_targets("example.com"):
            ...
    """

    def __init__(
        self,
        chrome_host: str = "localhost",
        chrome_port: int = 9222,
        timeout: float = 5.0,
    ):
        if not 1 <= chrome_port <= 65535:
            raise ValueError(f"chrome_port must be 1-65535, got {chrome_port}")

        self.chrome_host = chrome_host
        self.chrome_port = chrome_port
        self.timeout = timeout

    @property
    def endpoint_url(self) -> str:
        return f"http://{self.chrome_host}:{self.chrome_port}/json"

    def _fetch(self) -> List[Dict[str, Any]]:
        url = self.endpoint_url
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.URLError as e:
            raise WebviewConsoleError(
                f"Failed to connect to browser at {url}: {e}",
                details={
                    "chrome_host": self.chrome_host,
                    "chrome_port": self.chrome_port,
                    "recovery": RECOVERY_HINT,
                },
            ) from e

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise WebviewConsoleError(
                f"Invalid JSON response from browser endpoint: {e}",
                details={"endpoint": url},
            ) from e

    def list_targets(
        self,
        target_types: Optional[Iterable[str]] = None,
        url_pattern: Optional[str] = None,
    ) -> List[Target]:
        """
        All targets, in endpoint order.

        Args:
            target_types: keep only these types
            url_pattern: keep only URLs containing this text (case-insensitive)

        Raises:
            WebviewConsoleError: endpoint unreachable or not returning JSON
        """
        wanted = set(target_types) if target_types is not None else None
        needle = url_pattern.lower() if url_pattern else None

        targets = []
        for data in self._fetch():
            target = Target(data)
            if wanted is not None and target.type not in wanted:
                continue
            if needle and needle not in target.url.lower():
                continue
            targets.append(target)
        return targets

    def list_webview_targets(self, url_pattern: Optional[str] = None) -> List[Target]:
        """Scriptable targets this process can open a socket to."""
        return [
            target
            for target in self.list_targets(WEBVIEW_TARGET_TYPES, url_pattern)
            if target.debuggable
        ]

    def get_target_by_id(self, target_id: str) -> Target:
        for target in self.list_targets():
            if target.id == target_id:
                return target
        raise TargetNotFoundError("Target not found", target_id=target_id)
