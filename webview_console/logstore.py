"""Per-webview log buffers.

Buffers are keyed by webview identity key, not by the webview object, so
they outlive the webview they belong to until explicitly cleared.
"""

import enum
import itertools
import json
import re
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterator, List, Optional


class Severity(enum.Enum):
    """Console severities the bridge intercepts.

    Each member knows the console function it wraps, the native channel name
    it posts to, and its fixed presentation color.
    """

    LOG = "log"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def channel(self) -> str:
        return _CHANNELS[self]

    @property
    def js_function(self) -> str:
        return f"console.{self.value}"

    @property
    def style(self) -> str:
        return _STYLES[self]

    @classmethod
    def from_channel(cls, channel: str) -> Optional["Severity"]:
        return _BY_CHANNEL.get(channel.strip())


_CHANNELS = {
    Severity.LOG: "consoleLog",
    Severity.INFO: "consoleInfo",
    Severity.WARN: "consoleWarn",
    Severity.ERROR: "consoleError",
}
_BY_CHANNEL = {channel: severity for severity, channel in _CHANNELS.items()}
_STYLES = {
    Severity.LOG: "#000000",
    Severity.INFO: "#000080",
    Severity.WARN: "#999900",
    Severity.ERROR: "#800000",
}
DEFAULT_STYLE = "#000000"

ORIGIN_CONSOLE = "console"
ORIGIN_DIAGNOSTIC = "diagnostic"
ORIGIN_COMMAND = "command"


@dataclass(frozen=True)
class LogEntry:
    text: str
    severity: Optional[Severity] = None
    origin: str = ORIGIN_CONSOLE
    sequence: int = 0
    timestamp: float = field(default_factory=time.time)

    @property
    def style(self) -> str:
        return self.severity.style if self.severity else DEFAULT_STYLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "timestamp": self.timestamp,
            "level": self.severity.value if self.severity else None,
            "origin": self.origin,
            "style": self.style,
            "text": self.text,
        }


def format_payload(payload: Any) -> str:
    """Stringify a bridged console argument.

    Strings are kept verbatim; everything else is rendered as JSON, the way
    the page-side wrapper stringifies non-string arguments.
    """
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str)


class LogStore:
    """Ordered, bounded log buffers keyed by webview identity.

    Attributes:
        max_entries: Per-buffer bound; oldest entries are dropped once full
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._buffers: Dict[int, Deque[LogEntry]] = {}
        self._sequence = itertools.count(1)

    def __contains__(self, key: int) -> bool:
        return key in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def keys(self) -> List[int]:
        return list(self._buffers)

    def init_buffer(self, key: int) -> None:
        """Create (or reset) an empty buffer for key."""
        self._buffers[key] = deque(maxlen=self.max_entries)

    def append(
        self,
        key: int,
        text: str,
        severity: Optional[Severity] = None,
        origin: str = ORIGIN_CONSOLE,
    ) -> LogEntry:
        entry = LogEntry(
            text=text,
            severity=severity,
            origin=origin,
            sequence=next(self._sequence),
        )
        buffer = self._buffers.get(key)
        if buffer is None:
            buffer = self._buffers[key] = deque(maxlen=self.max_entries)
        buffer.append(entry)
        return entry

    def entries(self, key: Optional[int]) -> List[LogEntry]:
        if key is None:
            return []
        return list(self._buffers.get(key, ()))

    def clear(self, key: int) -> None:
        """Empty one buffer. The key stays in the store."""
        if key in self._buffers:
            self._buffers[key].clear()

    def clear_all(self) -> None:
        """Empty every buffer. Keys stay in the store."""
        for buffer in self._buffers.values():
            buffer.clear()

    def search(self, key: Optional[int], pattern: str) -> List[LogEntry]:
        """Return entries of one buffer whose text matches pattern.

        Matching is a case-insensitive regex search; an invalid pattern falls
        back to a plain substring match.
        """
        pattern = pattern.strip()
        if key is None or not pattern:
            return []
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error:
            regex = re.compile(re.escape(pattern), re.IGNORECASE)
        return [entry for entry in self._buffers.get(key, ()) if regex.search(entry.text)]

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._buffers))
