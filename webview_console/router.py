"""Routing of bridged console messages into log buffers."""

import logging
from typing import Any, Optional

from .logstore import LogEntry, LogStore, Severity, ORIGIN_CONSOLE, format_payload
from .selection import SelectionController
from .view import ConsoleView
from .webview import Webview

logger = logging.getLogger(__name__)


class MessageRouter:
    """Receives bridge messages from any tracked webview.

    Every entry is appended synchronously in arrival order; there is no
    batching. Entries for the selected webview are pushed to the view as
    they arrive, entries for other webviews wait in their buffer.

    Attributes:
        store: Destination log buffers
        selection: Decides which webview's entries are shown live
        view: Presentation sink
        auto_scroll: Ask the view to scroll after each live entry
    """

    def __init__(
        self,
        store: LogStore,
        selection: SelectionController,
        view: Optional[ConsoleView] = None,
        auto_scroll: bool = True,
    ):
        self.store = store
        self.selection = selection
        self.view = view or ConsoleView()
        self.auto_scroll = auto_scroll

    def on_message(self, source: Webview, channel: str, payload: Any) -> None:
        """Message channel callback registered by the bridge.

        Unknown channel names are dropped without error so newer page-side
        bridges can add channels.
        """
        severity = Severity.from_channel(channel)
        if severity is None:
            logger.debug(f"Dropping message on unknown channel {channel!r}")
            return
        self.record(source.key, format_payload(payload), severity, ORIGIN_CONSOLE)

    def record(
        self,
        key: int,
        text: str,
        severity: Optional[Severity] = None,
        origin: str = ORIGIN_CONSOLE,
    ) -> LogEntry:
        """Append an entry to key's buffer and surface it if key is selected."""
        entry = self.store.append(key, text, severity, origin)
        selected = self.selection.selected
        if selected is not None and selected.key == key:
            self.view.append_entry(entry)
            if self.auto_scroll:
                self.view.scroll_to_bottom()
        return entry

    def redisplay(self, key: int) -> None:
        """Show key's whole buffer again if key is selected."""
        selected = self.selection.selected
        if selected is not None and selected.key == key:
            self.view.show_log(self.store.entries(key))
