"""
Webview backed by a DevTools target.

The native message channel is a CDP binding: ``Runtime.addBinding`` exposes
``window.<name>(string)`` to every context of the target, including those
created by later navigations, and each call arrives as a
``Runtime.bindingCalled`` event.
"""

import base64
import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import (
    CDPConnectionError,
    CDPTimeoutError,
    CommandFailedError,
    ResultTypeUnsupportedError,
    ScriptEvaluationError,
    WebviewConsoleError,
)
from ..webview import MessageHandler, ViewContainer, Webview
from .connection import CDPConnection
from .session import Target

logger = logging.getLogger(__name__)

# Error messages Runtime.evaluate returns when a result cannot be sent by value
_UNSERIALIZABLE_MARKERS = (
    "could not be returned by value",
    "couldn't be returned by value",
    "reference chain is too long",
    "could not be cloned",
)


def _exception_text(details: dict) -> str:
    exception = details.get("exception") or {}
    return exception.get("description") or details.get("text") or "Uncaught exception"


class CDPWebview(Webview, ViewContainer):
    """
    One debuggable page, iframe or guest webview.

    Usage:
        webview = CDPWebview(target)
        await webview.open()
        title = await webview.evaluate("document.title")

    Attributes:
        target: Target description from the HTTP endpoint
        connection: CDP connection to the target
        child_webviews: Targets embedded in this one (set by ChromeHost)
        on_navigated: Called with this webview when a new page finishes
            creating its main script context
    """

    def __init__(
        self,
        target: Target,
        *,
        timeout: float = 30.0,
        max_size: int = 2_097_152,
        connection: Optional[CDPConnection] = None,
    ):
        super().__init__()
        self.target = target
        self.connection = connection or CDPConnection(
            target.webSocketDebuggerUrl, timeout=timeout, max_size=max_size
        )
        self.child_webviews: List["CDPWebview"] = []
        self.on_navigated: Optional[Callable[["CDPWebview"], None]] = None

        self._handlers: Dict[str, MessageHandler] = {}
        self._subscribed = False
        self._javascript_enabled = True
        self._ready = False

    @property
    def url(self) -> str:
        return self.target.url

    @property
    def title(self) -> str:
        return self.target.title

    @property
    def javascript_enabled(self) -> bool:
        return self._javascript_enabled

    def children(self) -> List["CDPWebview"]:
        return list(self.child_webviews)

    async def open(self) -> None:
        """Connect and enable the Runtime domain.

        Raises:
            ConnectionFailedError: If the target socket cannot be opened
        """
        await self.connection.connect()
        for event_name, callback in self._event_callbacks():
            self.connection.subscribe(event_name, callback)
        self._subscribed = True
        await self.connection.execute_command("Runtime.enable")
        self._ready = True

    async def close(self) -> None:
        """Disconnect and drop every callback.

        After this the connection holds no reference back to the webview.
        """
        self._ready = False
        if self._subscribed:
            for event_name, callback in self._event_callbacks():
                self.connection.unsubscribe(event_name, callback)
            self._subscribed = False
        self._handlers.clear()
        self.on_navigated = None
        self.child_webviews = []
        await self.connection.disconnect()

    def _event_callbacks(self):
        return (
            ("Runtime.bindingCalled", self._on_binding_called),
            ("Runtime.executionContextCreated", self._on_context_created),
        )

    async def evaluate(self, script: str) -> Any:
        try:
            result = await self.connection.execute_command(
                "Runtime.evaluate",
                {"expression": script, "returnByValue": True, "awaitPromise": True},
            )
        except CommandFailedError as e:
            if any(marker in e.message.lower() for marker in _UNSERIALIZABLE_MARKERS):
                raise ResultTypeUnsupportedError(e.message, script=script) from e
            raise ScriptEvaluationError(e.message, script=script, details=e.details) from e
        except (CDPConnectionError, CDPTimeoutError) as e:
            raise ScriptEvaluationError(str(e), script=script) from e

        details = result.get("exceptionDetails")
        if details:
            raise ScriptEvaluationError(_exception_text(details), script=script)

        remote = result.get("result", {})
        if "unserializableValue" in remote:
            return remote["unserializableValue"]
        return remote.get("value")

    async def add_message_handler(self, channel: str, handler: MessageHandler) -> None:
        self._handlers[channel] = handler
        try:
            await self.connection.execute_command("Runtime.addBinding", {"name": channel})
        except WebviewConsoleError:
            del self._handlers[channel]
            raise

    async def set_javascript_enabled(self, enabled: bool) -> None:
        await self.connection.execute_command(
            "Emulation.setScriptExecutionDisabled", {"value": not enabled}
        )
        self._javascript_enabled = enabled

    async def reload(self) -> None:
        await self.connection.execute_command("Page.reload", {"ignoreCache": False})

    async def capture_screenshot(self) -> bytes:
        result = await self.connection.execute_command(
            "Page.captureScreenshot", {"format": "png"}
        )
        return base64.b64decode(result["data"])

    def _on_binding_called(self, params: dict) -> None:
        name = params.get("name", "")
        handler = self._handlers.get(name)
        if handler is None:
            logger.debug(f"Binding call on unregistered channel {name!r}")
            return
        handler(self, name, params.get("payload", ""))

    def _on_context_created(self, params: dict) -> None:
        # Runtime.enable replays existing contexts; only later ones are navigations
        if not self._ready or self.on_navigated is None:
            return
        aux = params.get("context", {}).get("auxData", {})
        if aux.get("isDefault"):
            logger.debug(f"Webview {self.key} navigated")
            self.on_navigated(self)
