"""Diagnostic logging for the console itself.

Page console output is bridged into the LogStore and never passes through
these handlers. Handlers write to stderr so that stdout stays free for the
JSONL stream produced by ``webview-console watch``.

(The module is not called ``logging`` so it cannot shadow the stdlib.)
"""

import sys
import json
import logging
from typing import Any, Dict, Optional
from datetime import datetime, timezone

PACKAGE_LOGGER = "webview_console"

# attribute name on LogRecord carrying log_with_context() fields
CONTEXT_ATTR = "extra"


def _context_of(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    context = getattr(record, CONTEXT_ATTR, None)
    return context if isinstance(context, dict) else None


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    ``{"timestamp": ..., "level": "INFO", "logger": "webview_console.bridge",
    "message": "Bridge attached", "extra": {"webview": 3}}``

    DEBUG records also carry a ``location`` block with file, line and function.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context_of(record)
        if context:
            payload["extra"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.levelno <= logging.DEBUG:
            payload["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``2026-10-19 10:30:00 [INFO] webview_console.bridge: Bridge attached (webview=3)``"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context_of(record)
        if not context:
            return line
        fields = " ".join(f"{key}={value}" for key, value in context.items())
        head, newline, rest = line.partition("\n")
        return f"{head} ({fields}){newline}{rest}"


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """Pick the effective level: ``quiet`` beats ``verbose`` beats ``level``.

    Unknown level names fall back to INFO.
    """
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def setup_logging(
    format_type: str = "text",
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        format_type: "json" or "text"
        level: level name, used when neither quiet nor verbose is set
        quiet: only errors
        verbose: everything down to DEBUG
    """
    log_level = resolve_level(level, quiet=quiet, verbose=verbose)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if format_type == "json" else TextFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)


def log_with_context(
    logger: logging.Logger, level: int, message: str, **context
) -> None:
    """Log ``message`` with structured fields.

    The fields end up under ``extra`` in JSON output and as ``key=value``
    pairs in text output::

        log_with_context(logger, logging.INFO, "Bridge attached",
                         webview=3, url="https://example.com")
    """
    if not context:
        logger.log(level, message, stacklevel=2)
        return
    logger.log(level, message, extra={CONTEXT_ATTR: context}, stacklevel=2)
