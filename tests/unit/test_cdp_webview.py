"""Unit tests for CDPWebview against a mocked CDPConnection."""

import base64

import pytest
from unittest.mock import AsyncMock, MagicMock

from webview_console.cdp.session import Target
from webview_console.cdp.webview import CDPWebview
from webview_console.exceptions import (
    CDPTimeoutError,
    CommandFailedError,
    ResultTypeUnsupportedError,
    ScriptEvaluationError,
)


def make_webview(result=None, error=None):
    connection = MagicMock()
    connection.connect = AsyncMock()
    connection.disconnect = AsyncMock()
    connection.execute_command = AsyncMock(return_value=result or {}, side_effect=error)
    target = Target({
        "id": "page-1",
        "type": "page",
        "title": "Example",
        "url": "https://example.com",
        "webSocketDebuggerUrl": "ws://localhost:9222/devtools/page/page-1",
    })
    return CDPWebview(target, connection=connection), connection


def event_handler(connection, event_name):
    for call in connection.subscribe.call_args_list:
        name, handler = call[0]
        if name == event_name:
            return handler
    raise AssertionError(f"{event_name} not subscribed")


@pytest.mark.unit
@pytest.mark.asyncio
class TestEvaluate:
    async def test_returns_value(self):
        webview, connection = make_webview({"result": {"type": "string", "value": "Example"}})

        assert await webview.evaluate("document.title") == "Example"
        connection.execute_command.assert_awaited_once_with(
            "Runtime.evaluate",
            {"expression": "document.title", "returnByValue": True, "awaitPromise": True},
        )

    async def test_undefined_is_none(self):
        webview, _ = make_webview({"result": {"type": "undefined"}})

        assert await webview.evaluate("void 0") is None

    async def test_unserializable_value(self):
        webview, _ = make_webview({"result": {"type": "number", "unserializableValue": "NaN"}})

        assert await webview.evaluate("0/0") == "NaN"

    async def test_exception_details_raise(self):
        webview, _ = make_webview({
            "result": {"type": "object", "subtype": "error"},
            "exceptionDetails": {
                "text": "Uncaught",
                "exception": {"description": "ReferenceError: foo is not defined"},
            },
        })

        with pytest.raises(ScriptEvaluationError, match="ReferenceError: foo is not defined") as exc_info:
            await webview.evaluate("foo")
        assert exc_info.value.script == "foo"

    async def test_unserializable_result_error(self):
        webview, _ = make_webview(
            error=CommandFailedError("Object reference chain is too long", error_code=-32000)
        )

        with pytest.raises(ResultTypeUnsupportedError):
            await webview.evaluate("window")

    async def test_other_command_failure(self):
        webview, _ = make_webview(error=CommandFailedError("Cannot find context with specified id"))

        with pytest.raises(ScriptEvaluationError) as exc_info:
            await webview.evaluate("1")
        assert not isinstance(exc_info.value, ResultTypeUnsupportedError)

    async def test_timeout_becomes_evaluation_error(self):
        webview, _ = make_webview(
            error=CDPTimeoutError("timed out", command_method="Runtime.evaluate", timeout=1.0)
        )

        with pytest.raises(ScriptEvaluationError, match="timed out after 1.0s"):
            await webview.evaluate("while(true){}")


@pytest.mark.unit
@pytest.mark.asyncio
class TestMessageChannel:
    async def test_add_binding_and_dispatch(self):
        webview, connection = make_webview()
        await webview.open()
        received = []

        await webview.add_message_handler(
            "consoleLog", lambda source, channel, payload: received.append((source, channel, payload))
        )
        connection.execute_command.assert_any_await("Runtime.addBinding", {"name": "consoleLog"})

        on_binding = event_handler(connection, "Runtime.bindingCalled")
        on_binding({"name": "consoleLog", "payload": "hello", "executionContextId": 3})
        on_binding({"name": "consoleDebug", "payload": "ignored"})

        assert received == [(webview, "consoleLog", "hello")]

    async def test_failed_binding_is_not_kept(self):
        webview, connection = make_webview(error=CommandFailedError("Runtime domain not enabled"))
        received = []

        with pytest.raises(CommandFailedError):
            await webview.add_message_handler("consoleLog", lambda *args: received.append(args))

        webview._on_binding_called({"name": "consoleLog", "payload": "x"})
        assert received == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestNavigation:
    async def test_default_context_after_open_reports_navigation(self):
        webview, connection = make_webview()
        navigated = []
        webview.on_navigated = navigated.append

        await webview.open()
        on_context = event_handler(connection, "Runtime.executionContextCreated")
        on_context({"context": {"id": 2, "auxData": {"isDefault": True, "frameId": "F"}}})
        on_context({"context": {"id": 3, "auxData": {"isDefault": False}}})

        assert navigated == [webview]

    async def test_contexts_before_ready_are_ignored(self):
        webview, connection = make_webview()
        navigated = []
        webview.on_navigated = navigated.append

        webview._on_context_created({"context": {"auxData": {"isDefault": True}}})

        assert navigated == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestPageCommands:
    async def test_open_enables_runtime(self):
        webview, connection = make_webview()

        await webview.open()

        connection.connect.assert_awaited_once()
        connection.execute_command.assert_awaited_once_with("Runtime.enable")

    async def test_reload(self):
        webview, connection = make_webview()

        await webview.reload()

        connection.execute_command.assert_awaited_once_with("Page.reload", {"ignoreCache": False})

    async def test_capture_screenshot_decodes_png(self):
        webview, _ = make_webview({"data": base64.b64encode(b"\x89PNG").decode()})

        assert await webview.capture_screenshot() == b"\x89PNG"

    async def test_set_javascript_enabled(self):
        webview, connection = make_webview()

        await webview.set_javascript_enabled(False)

        assert webview.javascript_enabled is False
        connection.execute_command.assert_awaited_once_with(
            "Emulation.setScriptExecutionDisabled", {"value": True}
        )

    async def test_properties_follow_target(self):
        webview, _ = make_webview()

        assert webview.url == "https://example.com"
        assert webview.title == "Example"
        assert webview.children() == []
