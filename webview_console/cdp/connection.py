"""CDP WebSocket connection management.

Provides CDPConnection for command execution and event subscription against
one DevTools target.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from ..exceptions import (
    ConnectionFailedError,
    ConnectionClosedError,
    CommandFailedError,
    CDPTimeoutError,
)

logger = logging.getLogger(__name__)

# Plain functions run inline in the receive loop, in message order.
# Coroutine functions are scheduled as tasks.
EventHandler = Callable[[dict], Any]


class CDPConnection:
    """Manages a WebSocket connection to a Chrome DevTools Protocol endpoint.

    Handles:
    - Connection lifecycle (connect, disconnect, context manager)
    - Command execution with timeout handling
    - Event subscription and in-order dispatching

    Usage:
        async with CDPConnection(ws_url) as conn:
            result = await conn.execute_command("Runtime.evaluate", {"expression": "1+1"})
            conn.subscribe("Runtime.bindingCalled", on_binding)

    Attributes:
        ws_url: WebSocket debugger URL
        timeout: Default command timeout in seconds
        max_size: Maximum WebSocket message size in bytes
    """

    def __init__(
        self,
        ws_url: str,
        *,
        timeout: float = 30.0,
        max_size: int = 2_097_152
    ):
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.timeout = timeout
        self.max_size = max_size

        self._ws = None
        self._next_command_id: int = 1
        self._pending_commands: Dict[int, asyncio.Future] = {}
        self._event_handlers: Dict[str, List[EventHandler]] = {}
        self._receive_task: Optional[asyncio.Task] = None
        self._is_connected: bool = False

    @property
    def is_connected(self) -> bool:
        if not self._is_connected or self._ws is None:
            return False
        return self._ws.state.name == "OPEN"

    async def connect(self) -> None:
        """Establish WebSocket connection and start receive loop.

        Raises:
            ConnectionFailedError: If WebSocket connection fails
        """
        try:
            logger.info(f"Connecting to {self.ws_url}")
            self._ws = await websockets.connect(self.ws_url, max_size=self.max_size)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}",
                details={"url": self.ws_url, "error": str(e)},
            ) from e
        self._is_connected = True
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("CDP connection established")

    async def disconnect(self) -> None:
        """Close WebSocket connection gracefully."""
        logger.info(f"Disconnecting from {self.ws_url}")
        self._is_connected = False

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass

        if self._ws is not None and self._ws.state.name != "CLOSED":
            try:
                await self._ws.close()
            except (OSError, websockets.exceptions.WebSocketException) as e:
                logger.warning(f"Error closing WebSocket: {e}")

        self._fail_pending(ConnectionClosedError("Connection closed during command execution"))

    async def __aenter__(self) -> "CDPConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    async def execute_command(
        self,
        method: str,
        params: Optional[dict] = None,
        *,
        timeout: Optional[float] = None
    ) -> dict:
        """Execute CDP command and wait for response.

        Args:
            method: CDP method name (e.g., "Runtime.evaluate", "Runtime.addBinding")
            params: Method parameters (default: empty dict)
            timeout: Command timeout in seconds (default: self.timeout)

        Returns:
            Command result dict (contents of "result" field in response)

        Raises:
            ConnectionClosedError: If connection is not active
            CDPTimeoutError: If command times out
            CommandFailedError: If the browser returns an error response
        """
        if not self.is_connected:
            raise ConnectionClosedError("Cannot execute command: connection not active")

        cmd_id = self._next_command_id
        self._next_command_id += 1

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_commands[cmd_id] = future

        message = json.dumps({"id": cmd_id, "method": method, "params": params or {}})
        cmd_timeout = timeout if timeout is not None else self.timeout

        try:
            await self._ws.send(message)
            logger.debug(f"Sent command {cmd_id}: {method}")
            return await asyncio.wait_for(future, timeout=cmd_timeout)
        except asyncio.TimeoutError:
            raise CDPTimeoutError(
                "Command timed out", command_method=method, timeout=cmd_timeout
            )
        except CommandFailedError as e:
            e.method = method
            raise
        finally:
            self._pending_commands.pop(cmd_id, None)

    def subscribe(self, event_name: str, callback: EventHandler) -> None:
        """Register callback for CDP event.

        Note:
            Remember to enable the corresponding CDP domain first.
        """
        self._event_handlers.setdefault(event_name, []).append(callback)
        logger.debug(f"Subscribed to event: {event_name}")

    def unsubscribe(self, event_name: str, callback: EventHandler) -> None:
        handlers = self._event_handlers.get(event_name, [])
        if callback in handlers:
            handlers.remove(callback)
            logger.debug(f"Unsubscribed from event: {event_name}")
        else:
            logger.warning(f"Callback not found for event: {event_name}")

    def _dispatch(self, data: dict) -> None:
        """Route one decoded message to a pending command or event handlers."""
        if "id" in data:
            future = self._pending_commands.get(data["id"])
            if future is None or future.done():
                return
            if "error" in data:
                error = data["error"]
                future.set_exception(
                    CommandFailedError(
                        error.get("message", "Unknown CDP error"),
                        error_code=error.get("code"),
                        details={"error": error},
                    )
                )
            else:
                future.set_result(data.get("result", {}))
            return

        event_name = data.get("method")
        if event_name is None:
            return
        params = data.get("params", {})
        for handler in list(self._event_handlers.get(event_name, [])):
            try:
                if inspect.iscoroutinefunction(handler):
                    asyncio.create_task(handler(params))
                else:
                    handler(params)
            except Exception as e:
                logger.error(f"Event handler error for {event_name}: {e}", exc_info=True)

    async def _receive_loop(self) -> None:
        try:
            async for message in self._ws:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    logger.error(f"Malformed CDP message: {e}")
                    continue
                self._dispatch(data)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
            self._is_connected = False
            self._fail_pending(ConnectionClosedError(f"Connection closed: {e}"))

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending_commands.values():
            if not future.done():
                future.set_exception(error)
        self._pending_commands.clear()
