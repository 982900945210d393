"""Errors raised inside the webview console.

Nothing here is meant to reach the host application. Each component turns
these into log entries (diagnostics or command results) where it catches
them; only the CLI prints them, together with ``details["recovery"]`` when
one is given.
"""

from typing import Optional


class WebviewConsoleError(Exception):
    """Root of the hierarchy.

    ``details`` is free-form context; it is appended to ``str(error)`` as
    ``key=value`` pairs unless a subclass renders itself differently.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def describe(self) -> Optional[str]:
        """Subclass hook; a non-None return replaces the default rendering."""
        return None

    def __str__(self):
        described = self.describe()
        if described is not None:
            return described
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"


# -- page side -------------------------------------------------------------

class ScriptEvaluationError(WebviewConsoleError):
    """JavaScript threw, failed to parse, or could not be run at all."""

    def __init__(self, message: str, script: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details)
        self.script = script


class ResultTypeUnsupportedError(ScriptEvaluationError):
    """The script ran but its value cannot cross back to the host.

    Bridge scripts count this as success since their side effects happened.
    """


class WebviewGoneError(WebviewConsoleError):
    """The webview was deallocated mid-operation."""


# -- CDP transport ---------------------------------------------------------

class CDPConnectionError(WebviewConsoleError):
    """Websocket level failure talking to a debugging target."""


class ConnectionFailedError(CDPConnectionError):
    """Could not open the websocket (browser not started with
    --remote-debugging-port, wrong port, target already closed)."""


class ConnectionClosedError(CDPConnectionError):
    """The websocket went away, or was used after ``disconnect()``."""


class CDPCommandError(WebviewConsoleError):
    """Error response to a protocol command."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandFailedError(CDPCommandError):
    """The browser rejected a command (bad params, missing context, ...)."""


class CDPTimeoutError(WebviewConsoleError):
    """No response arrived within the command timeout."""

    def __init__(
        self,
        message: str,
        command_method: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.command_method = command_method
        self.timeout = timeout

    def describe(self):
        if self.command_method and self.timeout:
            return f"Command '{self.command_method}' timed out after {self.timeout}s"
        return self.message


class TargetNotFoundError(WebviewConsoleError):
    """No webview target matched an id or URL filter."""

    def __init__(
        self,
        message: str,
        target_id: Optional[str] = None,
        url_pattern: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.target_id = target_id
        self.url_pattern = url_pattern

    def describe(self):
        if self.target_id:
            return f"Target not found: {self.target_id}"
        if self.url_pattern:
            return f"No webview matching URL pattern: {self.url_pattern}"
        return self.message
