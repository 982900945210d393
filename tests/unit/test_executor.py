"""Unit tests for CommandExecutor."""

import pytest

from webview_console.exceptions import ScriptEvaluationError
from webview_console.executor import CommandExecutor, FAILURE_PREFIX, SUCCESS_PREFIX
from webview_console.logstore import LogStore, ORIGIN_COMMAND
from webview_console.registry import WebviewRegistry
from webview_console.router import MessageRouter
from webview_console.selection import SelectionController

from fakes import FakeWebview, RecordingView


@pytest.fixture
def setup():
    registry = WebviewRegistry()
    selection = SelectionController(registry)
    store = LogStore()
    view = RecordingView()
    executor = CommandExecutor(selection, MessageRouter(store, selection, view))
    webview = FakeWebview()
    registry.add(webview)
    selection.select(webview)
    return webview, store, view, executor


@pytest.mark.unit
class TestExecute:
    @pytest.mark.asyncio
    async def test_success_logs_result(self, setup):
        webview, store, view, executor = setup
        webview.results["1+1"] = 2

        entry = await executor.execute("  1+1  ")

        assert entry.text == "> Command execution: SUCCESS. Result:\n'2'"
        assert entry.origin == ORIGIN_COMMAND
        assert store.entries(webview.key) == [entry]
        assert view.appended == [entry]
        assert webview.scripts == ["1+1"]

    @pytest.mark.asyncio
    async def test_failure_logs_error(self, setup):
        webview, store, view, executor = setup
        webview.results["nope()"] = ScriptEvaluationError("ReferenceError: nope is not defined")

        entry = await executor.execute("nope()")

        assert entry.text.startswith(FAILURE_PREFIX)
        assert entry.text == (
            "> Command execution: FAILED. Error:\n 'ReferenceError: nope is not defined'"
        )

    @pytest.mark.asyncio
    async def test_undefined_result_logs_nothing(self, setup):
        webview, store, view, executor = setup

        assert await executor.execute("void 0") is None
        assert store.entries(webview.key) == []

    @pytest.mark.asyncio
    async def test_blank_script_is_ignored(self, setup):
        webview, store, view, executor = setup

        assert await executor.execute("   ") is None
        assert webview.scripts == []

    @pytest.mark.asyncio
    async def test_no_selection(self, setup):
        webview, store, view, executor = setup
        executor.selection.select(None)

        assert await executor.execute("1+1") is None
        assert webview.scripts == []

    @pytest.mark.asyncio
    async def test_string_result(self, setup):
        webview, store, view, executor = setup
        webview.results["document.title"] = "Inbox"

        entry = await executor.execute("document.title")

        assert entry.text == f"{SUCCESS_PREFIX} Result:\n'Inbox'"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value,rendered", [
        (True, "true"),
        ({"a": 1}, '{"a": 1}'),
        ([1, "two"], '[1, "two"]'),
    ])
    async def test_non_string_results_render_as_json(self, setup, value, rendered):
        webview, store, view, executor = setup
        webview.results["value"] = value

        entry = await executor.execute("value")

        assert entry.text == f"{SUCCESS_PREFIX} Result:\n'{rendered}'"
