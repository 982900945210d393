"""
Host-facing webview console.

WebviewConsole wires the registry, bridge, router, log store, scanner,
selection and executor together and exposes the operations a host
application calls: tracking, show/hide, selection, command execution and the
clear operations.

All methods must be called on the event loop that owns the console. Work
that needs the page (bridge attachment, scans, commands) is scheduled as
tasks on that loop and never runs inside the caller's turn.
"""

import asyncio
import logging
from typing import Coroutine, List, Optional, Set

from .bridge import BridgeInstaller
from .config import Configuration
from .exceptions import WebviewConsoleError
from .executor import CommandExecutor
from .logstore import LogEntry, LogStore
from .registry import WebviewRegistry
from .router import MessageRouter
from .scanner import ViewHierarchyScanner
from .screenshots import ScreenshotCache
from .selection import SelectionController
from .view import ConsoleView
from .webview import Host, Webview, identity_key

logger = logging.getLogger(__name__)


class WebviewConsole:
    """
    Observes console output of, and runs scripts in, a host's webviews.

    Usage:
        console = WebviewConsole(host, config=config, view=StreamView())
        console.show()                  # scans when auto-detect is on
        await console.wait_idle()
        console.select_index(0)
        await console.execute("document.title")

    Attributes:
        host: Supplies root containers for scans (None = manual tracking only)
        config: Configuration; the console options below forward to it
        view: Presentation sink
    """

    def __init__(
        self,
        host: Optional[Host] = None,
        config: Optional[Configuration] = None,
        view: Optional[ConsoleView] = None,
    ):
        self.host = host
        self.config = config or Configuration()
        self.view = view or ConsoleView()

        self.store = LogStore(max_entries=self.config.max_log_entries)
        self.screenshots = ScreenshotCache(self.config.screenshot_cache_size)
        self.registry = WebviewRegistry(on_added=self._schedule_attach)
        self.selection = SelectionController(
            self.registry, on_change=self._selection_changed
        )
        self.router = MessageRouter(
            self.store,
            self.selection,
            self.view,
            auto_scroll=self.config.auto_scroll_on_new_log,
        )
        self.bridge = BridgeInstaller(self.store, self.router)
        self.scanner = ViewHierarchyScanner()
        self.executor = CommandExecutor(self.selection, self.router)

        self._visible = False
        self._pending: Set[asyncio.Task] = set()

    # -- options -------------------------------------------------------------

    @property
    def auto_detect_webviews(self) -> bool:
        return self.config.auto_detect_webviews

    @auto_detect_webviews.setter
    def auto_detect_webviews(self, enabled: bool) -> None:
        changed = enabled != self.config.auto_detect_webviews
        self.config.auto_detect_webviews = enabled
        if changed and enabled:
            self.scan()

    @property
    def clear_webviews_on_hide(self) -> bool:
        return self.config.clear_webviews_on_hide

    @clear_webviews_on_hide.setter
    def clear_webviews_on_hide(self, enabled: bool) -> None:
        self.config.clear_webviews_on_hide = enabled

    @property
    def suggest_commands_while_editing(self) -> bool:
        return self.config.suggest_commands_while_editing

    @suggest_commands_while_editing.setter
    def suggest_commands_while_editing(self, enabled: bool) -> None:
        self.config.suggest_commands_while_editing = enabled

    @property
    def auto_scroll_on_new_log(self) -> bool:
        return self.config.auto_scroll_on_new_log

    @auto_scroll_on_new_log.setter
    def auto_scroll_on_new_log(self, enabled: bool) -> None:
        self.config.auto_scroll_on_new_log = enabled
        self.router.auto_scroll = enabled

    # -- tracking and visibility ----------------------------------------------

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def webviews(self) -> List[Webview]:
        return self.registry.list()

    def track_webview(self, webview: Webview) -> bool:
        """Force-track webview, e.g. from a navigation-commit callback.

        Always re-runs bridge attachment, which reinstalls the page-side
        wrappers after a navigation.

        Returns:
            True if webview was not tracked before
        """
        added = self.registry.add(webview, manual=True)
        if added and self._visible:
            self._update_webview_list()
        return added

    def show(self) -> None:
        if self._visible:
            return
        self._visible = True
        if self.config.auto_detect_webviews:
            self.scan()
        else:
            self._update_webview_list()

    def hide(self) -> None:
        if not self._visible:
            return
        self._visible = False
        if self.config.clear_webviews_on_hide:
            self.clear_webviews(keep_selected=False)

    def scan(self) -> asyncio.Task:
        """Schedule a scan of the host hierarchy.

        The scan replaces the registry contents with what it discovers.
        Manually tracked webviews that are still alive survive it when
        preserve_tracked_on_scan is set.
        """
        return self._spawn(self._scan())

    async def _scan(self) -> None:
        if self.host is None:
            roots = []
        else:
            try:
                roots = list(await self.host.roots())
            except WebviewConsoleError as e:
                logger.warning(f"Webview scan failed: {e}")
                return

        manual = (
            self.registry.manual_webviews()
            if self.config.preserve_tracked_on_scan
            else []
        )
        self.clear_webviews()
        for webview in self.scanner.scan(roots):
            self.registry.add(webview)
        for webview in manual:
            self.registry.add(webview, manual=True)
        logger.info(f"Tracking {len(self.registry)} webview(s)")
        self._update_webview_list()

    def clear_webviews(
        self, keep_selected: bool = True, keep_screenshots: bool = True
    ) -> None:
        """Forget all tracked webviews. Logs and bridge history stay."""
        if not keep_selected:
            self.selection.reset()
        if not keep_screenshots:
            self.screenshots.clear()
        self.registry.clear()

    # -- selection ------------------------------------------------------------

    @property
    def selected(self) -> Optional[Webview]:
        return self.selection.selected

    @property
    def selected_index(self) -> Optional[int]:
        return self.selection.index

    def select(self, webview: Optional[Webview]) -> Optional[Webview]:
        return self.selection.select(webview)

    def select_index(self, index: int) -> Optional[Webview]:
        return self.selection.select_index(index)

    def _selection_changed(
        self, webview: Optional[Webview], previous: Optional[Webview]
    ) -> None:
        self.view.show_log(self.store.entries(identity_key(webview)))

    def _update_webview_list(self) -> None:
        self.selection.sync()
        webviews = self.registry.list()
        self.view.show_webviews(webviews, self.selection.index)
        if not webviews:
            self.view.show_log([])

    # -- logs -----------------------------------------------------------------

    def logs(self, webview: Optional[Webview] = None) -> List[LogEntry]:
        """Buffered entries of webview (default: the selected one)."""
        target = webview if webview is not None else self.selection.selected
        return self.store.entries(identity_key(target))

    def search(self, pattern: str) -> List[LogEntry]:
        """Entries of the selected webview matching pattern; none without selection."""
        return self.store.search(identity_key(self.selection.selected), pattern)

    def clear_current(self) -> None:
        webview = self.selection.selected
        if webview is None:
            return
        self.store.clear(webview.key)
        self.view.show_log([])

    def clear_all_logs(self) -> None:
        self.store.clear_all()
        self.view.show_log([])

    def clear_all(self) -> None:
        """Clear logs, tracked webviews, selection and cached screenshots."""
        self.clear_webviews(keep_selected=False, keep_screenshots=False)
        self.store.clear_all()
        self._update_webview_list()

    # -- page interaction -----------------------------------------------------

    def execute(self, script: str) -> asyncio.Task:
        """Schedule script on the selected webview; the outcome lands in its log."""
        return self._spawn(self.executor.execute(script))

    async def reload_current(self) -> bool:
        webview = self.selection.selected
        if webview is None:
            return False
        try:
            await webview.reload()
        except (WebviewConsoleError, NotImplementedError) as e:
            logger.warning(f"Reload of webview {webview.key} failed: {e}")
            return False
        return True

    async def snapshot(
        self, webview: Webview, use_cached: bool = True
    ) -> Optional[bytes]:
        """Screenshot of webview, served from the cache unless use_cached is False."""
        if use_cached:
            cached = self.screenshots.get(webview.key)
            if cached is not None:
                return cached
        try:
            image = await webview.capture_screenshot()
        except (WebviewConsoleError, NotImplementedError) as e:
            logger.debug(f"Screenshot of webview {webview.key} unavailable: {e}")
            return self.screenshots.get(webview.key)
        self.screenshots.set(webview.key, image)
        return image

    # -- task bookkeeping -----------------------------------------------------

    def _schedule_attach(self, webview: Webview) -> None:
        self._spawn(self.bridge.attach(webview))

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Console task failed", exc_info=error)

    async def wait_idle(self) -> None:
        """Wait until scheduled attach, scan and command tasks have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._pending.clear()
