"""
Presentation sinks for console output.

ConsoleView is the interface a UI implements; all methods default to no-ops.
StreamView renders entries as JSON lines, for terminals and pipes.
"""

import asyncio
import json
import sys
from collections import deque
from pathlib import Path
from typing import Optional, Sequence, TextIO, TYPE_CHECKING

if TYPE_CHECKING:
    from .logstore import LogEntry
    from .webview import Webview


class ConsoleView:
    """Presentation interface driven by the console core."""

    def show_log(self, entries: Sequence["LogEntry"]) -> None:
        """Replace the displayed log (selection change, clear)."""

    def append_entry(self, entry: "LogEntry") -> None:
        """Display one new entry for the selected webview."""

    def scroll_to_bottom(self) -> None:
        pass

    def show_webviews(
        self, webviews: Sequence["Webview"], selected_index: Optional[int]
    ) -> None:
        """Refresh the list of tracked webviews."""


class StreamView(ConsoleView):
    """
    Writes console entries as JSONL.

    Streams to ``stream`` (stdout by default) in real time, or, when an
    output path is given, buffers into a bounded deque that is flushed to the
    file every ``flush_interval`` seconds and on stop().

    Usage:
        view = StreamView(level_filter="warn")
        console = WebviewConsole(host, view=view)

    Attributes:
        output_path: JSONL file (None = stream)
        level_filter: Minimum level to emit ("log", "info", "warn", "error")
    """

    # Log level hierarchy (ascending severity)
    LOG_LEVELS = {
        "log": 1,
        "info": 2,
        "warn": 3,
        "warning": 3,
        "error": 4,
    }

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        output_path: Optional[Path] = None,
        level_filter: Optional[str] = None,
        flush_interval: float = 30.0,
    ):
        self.stream = stream
        self.output_path = Path(output_path) if output_path else None
        self.level_filter = level_filter
        self.flush_interval = flush_interval

        self._buffer: deque = deque(maxlen=1000)
        self._flush_task: Optional[asyncio.Task] = None
        self._running = False

    def show_log(self, entries: Sequence["LogEntry"]) -> None:
        for entry in entries:
            self.append_entry(entry)

    def append_entry(self, entry: "LogEntry") -> None:
        level = entry.severity.value if entry.severity else None
        if level is not None and not self._should_emit(level):
            return

        record = entry.to_dict()
        if self.output_path is None:
            print(json.dumps(record), file=self.stream or sys.stdout, flush=True)
        else:
            self._buffer.append(record)

    def _should_emit(self, level: str) -> bool:
        if not self.level_filter:
            return True
        filter_idx = self.LOG_LEVELS.get(self.level_filter.lower(), 0)
        level_idx = self.LOG_LEVELS.get(level.lower(), 0)
        return level_idx >= filter_idx

    async def start(self) -> None:
        self._running = True
        if self.output_path:
            self._flush_task = asyncio.create_task(self._periodic_flush())

    async def stop(self) -> None:
        self._running = False
        if self._flush_task:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None
        self.flush()

    async def _periodic_flush(self) -> None:
        while self._running:
            await asyncio.sleep(self.flush_interval)
            self.flush()

    def flush(self) -> None:
        """Append buffered records to the output file and empty the buffer."""
        if not self.output_path or not self._buffer:
            return

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "a") as f:
            for record in self._buffer:
                f.write(json.dumps(record) + "\n")

        self._buffer.clear()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False
