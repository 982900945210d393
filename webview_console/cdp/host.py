"""
Browser-backed host for the webview console.

ChromeHost owns one CDPWebview per live target and is the only holder of
strong references to them. When a target disappears from the endpoint its
webview is closed and dropped, which is what makes it vanish from the
console's weak registry.
"""

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..exceptions import WebviewConsoleError
from ..webview import Host, ViewContainer
from .session import CDPSession
from .webview import CDPWebview

logger = logging.getLogger(__name__)


class BrowserContainer(ViewContainer):
    """Root container: the browser, whose children are its top-level targets."""

    def __init__(self, webviews: Iterable[CDPWebview]):
        self._webviews = list(webviews)

    def children(self) -> List[CDPWebview]:
        return list(self._webviews)


class ChromeHost(Host):
    """
    Discovers and owns webviews of one browser debugging endpoint.

    Usage:
        host = ChromeHost(CDPSession("localhost", 9222))
        console = WebviewConsole(host)
        host.on_navigated = console.track_webview

    Attributes:
        session: Target discovery
        url_pattern: Only manage targets whose URL contains this substring
        on_navigated: Forwarded to every webview (see CDPWebview.on_navigated)
    """

    def __init__(
        self,
        session: CDPSession,
        *,
        timeout: float = 30.0,
        max_size: int = 2_097_152,
        url_pattern: Optional[str] = None,
        on_navigated: Optional[Callable[[CDPWebview], None]] = None,
    ):
        self.session = session
        self.timeout = timeout
        self.max_size = max_size
        self.url_pattern = url_pattern
        self.on_navigated = on_navigated
        self._webviews: Dict[str, CDPWebview] = {}

    @property
    def webviews(self) -> List[CDPWebview]:
        return list(self._webviews.values())

    def webview_for(self, target_id: str) -> Optional[CDPWebview]:
        return self._webviews.get(target_id)

    async def refresh(self) -> List[CDPWebview]:
        """Sync owned webviews with the endpoint's current target list.

        Raises:
            WebviewConsoleError: If the endpoint cannot be listed
        """
        targets = await asyncio.to_thread(
            self.session.list_webview_targets, self.url_pattern
        )

        live_ids = set()
        for target in targets:
            webview = self._webviews.get(target.id)
            if webview is not None:
                webview.target = target
                live_ids.add(target.id)
                continue

            webview = CDPWebview(target, timeout=self.timeout, max_size=self.max_size)
            try:
                await webview.open()
            except WebviewConsoleError as e:
                logger.warning(f"Cannot open target {target.id} ({target.url}): {e}")
                await webview.close()
                continue
            webview.on_navigated = self._forward_navigation
            self._webviews[target.id] = webview
            live_ids.add(target.id)
            logger.debug(f"Opened target {target.id} as webview {webview.key}")

        for target_id in [tid for tid in self._webviews if tid not in live_ids]:
            webview = self._webviews.pop(target_id)
            logger.debug(f"Target {target_id} is gone, dropping webview {webview.key}")
            await webview.close()

        for webview in self._webviews.values():
            webview.child_webviews = [
                child
                for child in self._webviews.values()
                if child.target.parentId == webview.target.id
            ]
        return self.webviews

    async def roots(self) -> List[ViewContainer]:
        await self.refresh()
        top_level = [
            webview
            for webview in self._webviews.values()
            if webview.target.parentId not in self._webviews
        ]
        return [BrowserContainer(top_level)]

    async def close(self) -> None:
        webviews = list(self._webviews.values())
        self._webviews.clear()
        for webview in webviews:
            await webview.close()

    def _forward_navigation(self, webview: CDPWebview) -> None:
        if self.on_navigated is not None:
            self.on_navigated(webview)
