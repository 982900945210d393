"""Weak registry of tracked webviews."""

import logging
import weakref
from typing import Callable, Dict, List, Optional, Set

from .webview import Webview

logger = logging.getLogger(__name__)


class WebviewRegistry:
    """Tracks webviews without extending their lifetime.

    Entries are weak references keyed by identity key, kept in insertion
    order. Dead references are pruned lazily whenever the registry is
    enumerated; nothing hooks deallocation.

    Attributes:
        on_added: Called with every webview passed to add(), new or not.
            The console uses it to (re)attach the bridge.
    """

    def __init__(self, on_added: Optional[Callable[[Webview], None]] = None):
        self.on_added = on_added
        self._refs: Dict[int, "weakref.ref[Webview]"] = {}
        self._manual: Set[int] = set()

    def add(self, webview: Webview, manual: bool = False) -> bool:
        """Track webview.

        Returns:
            True if webview was not already tracked
        """
        ref = self._refs.get(webview.key)
        added = ref is None or ref() is None
        if added:
            self._refs[webview.key] = weakref.ref(webview)
            logger.debug(f"Tracking webview {webview.key}")
        if manual:
            self._manual.add(webview.key)
        if self.on_added is not None:
            self.on_added(webview)
        return added

    def list(self) -> List[Webview]:
        """Live tracked webviews in insertion order."""
        live = []
        for key, ref in list(self._refs.items()):
            webview = ref()
            if webview is None:
                del self._refs[key]
                self._manual.discard(key)
                logger.debug(f"Webview {key} was deallocated")
            else:
                live.append(webview)
        return live

    def contains(self, webview: Optional[Webview]) -> bool:
        if webview is None:
            return False
        ref = self._refs.get(webview.key)
        return ref is not None and ref() is webview

    def index_of(self, webview: Optional[Webview]) -> Optional[int]:
        if webview is None:
            return None
        for index, candidate in enumerate(self.list()):
            if candidate is webview:
                return index
        return None

    def is_manual(self, webview: Webview) -> bool:
        return webview.key in self._manual

    def manual_webviews(self) -> List[Webview]:
        return [webview for webview in self.list() if webview.key in self._manual]

    def clear(self) -> None:
        self._refs.clear()
        self._manual.clear()

    def __len__(self) -> int:
        return len(self.list())
