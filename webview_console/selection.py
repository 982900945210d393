"""Current-webview selection."""

import logging
import weakref
from typing import Callable, Optional

from .registry import WebviewRegistry
from .webview import Webview

logger = logging.getLogger(__name__)

# new selection, previous selection
SelectionListener = Callable[[Optional[Webview], Optional[Webview]], None]


class SelectionController:
    """Tracks which webview is current for log display and commands.

    Holds only a weak reference. The selected webview is reported only while
    it is live and in the registry; its index is recomputed from the
    registry's enumeration on every read so it cannot go stale.
    """

    def __init__(
        self,
        registry: WebviewRegistry,
        on_change: Optional[SelectionListener] = None,
    ):
        self.registry = registry
        self.on_change = on_change
        self._ref: Optional["weakref.ref[Webview]"] = None

    @property
    def selected(self) -> Optional[Webview]:
        webview = self._ref() if self._ref is not None else None
        if webview is None or not self.registry.contains(webview):
            return None
        return webview

    @property
    def index(self) -> Optional[int]:
        return self.registry.index_of(self.selected)

    def is_selected(self, webview: Optional[Webview]) -> bool:
        return webview is not None and self.selected is webview

    def select(self, webview: Optional[Webview]) -> Optional[Webview]:
        """Make webview current.

        A webview outside the registry's live set selects nothing.

        Returns:
            The resulting selection
        """
        if webview is not None and not self.registry.contains(webview):
            logger.debug(f"Webview {webview.key} is not tracked, clearing selection")
            webview = None

        previous = self._ref() if self._ref is not None else None
        self._ref = weakref.ref(webview) if webview is not None else None

        if previous is not webview:
            logger.debug(
                f"Selection changed: {getattr(previous, 'key', None)} -> "
                f"{getattr(webview, 'key', None)}"
            )
            if self.on_change is not None:
                self.on_change(webview, previous)
        return webview

    def select_index(self, index: int) -> Optional[Webview]:
        """Select by position in the registry, as a paginated list would."""
        webviews = self.registry.list()
        if 0 <= index < len(webviews):
            return self.select(webviews[index])
        return self.selected

    def sync(self) -> Optional[Webview]:
        """Keep a still-tracked selection, otherwise fall back to the first webview."""
        current = self.selected
        if current is not None:
            return current
        webviews = self.registry.list()
        if webviews:
            return self.select(webviews[0])
        return None

    def reset(self) -> None:
        self.select(None)
