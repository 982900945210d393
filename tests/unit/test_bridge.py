"""Unit tests for BridgeInstaller."""

import pytest

from webview_console.bridge import (
    BridgeInstaller,
    CLAIM_SCRIPT,
    PAGE_FLAG,
    SCRIPTING_DISABLED_MESSAGE,
    wrap_script,
)
from webview_console.exceptions import (
    ResultTypeUnsupportedError,
    ScriptEvaluationError,
)
from webview_console.logstore import LogStore, Severity, ORIGIN_DIAGNOSTIC
from webview_console.registry import WebviewRegistry
from webview_console.router import MessageRouter
from webview_console.selection import SelectionController

from fakes import FakeWebview, RecordingView


@pytest.fixture
def store():
    return LogStore()


@pytest.fixture
def bridge(store):
    selection = SelectionController(WebviewRegistry())
    return BridgeInstaller(store, MessageRouter(store, selection))


@pytest.mark.unit
class TestScripts:
    def test_wrap_script_targets_function_and_channel(self):
        script = wrap_script(Severity.WARN)

        assert script.startswith("console.warn = (function(_super)")
        assert "window.consoleWarn(" in script
        assert "_super.apply(this, arguments)" in script
        assert script.rstrip().endswith("void 0;")

    def test_claim_script_uses_page_flag(self):
        assert f"window.{PAGE_FLAG} = true" in CLAIM_SCRIPT


@pytest.mark.unit
class TestAttach:
    @pytest.mark.asyncio
    async def test_first_attach_registers_and_wraps(self, bridge, store):
        webview = FakeWebview()

        await bridge.attach(webview)

        assert webview.registrations == [s.channel for s in Severity]
        assert webview.wrapped == list(Severity)
        assert webview.page_globals[PAGE_FLAG] is True
        assert bridge.was_bridged(webview)
        assert store.entries(webview.key) == []

    @pytest.mark.asyncio
    async def test_attach_is_idempotent(self, bridge):
        webview = FakeWebview()

        await bridge.attach(webview)
        await bridge.attach(webview)
        await bridge.attach(webview)

        assert len(webview.registrations) == 4
        assert webview.wrapped == list(Severity)
        assert bridge.history == frozenset({webview.key})

    @pytest.mark.asyncio
    async def test_navigation_rewraps_without_reregistering(self, bridge):
        webview = FakeWebview()
        await bridge.attach(webview)

        webview.navigate()
        assert PAGE_FLAG not in webview.page_globals

        await bridge.attach(webview)

        assert webview.page_globals[PAGE_FLAG] is True
        assert webview.wrapped == list(Severity)
        assert len(webview.registrations) == 4

    @pytest.mark.asyncio
    async def test_console_calls_reach_buffer(self, bridge, store):
        webview = FakeWebview()
        await bridge.attach(webview)

        webview.console_call(Severity.LOG, "a")
        webview.console_call(Severity.WARN, "b")
        webview.console_call(Severity.LOG, "c")

        assert [(e.severity, e.text) for e in store.entries(webview.key)] == [
            (Severity.LOG, "a"),
            (Severity.WARN, "b"),
            (Severity.LOG, "c"),
        ]

    @pytest.mark.asyncio
    async def test_reattach_keeps_existing_log(self, bridge, store):
        webview = FakeWebview()
        await bridge.attach(webview)
        webview.console_call(Severity.INFO, "before reload")

        webview.navigate()
        await bridge.attach(webview)
        webview.console_call(Severity.INFO, "after reload")

        assert [e.text for e in store.entries(webview.key)] == [
            "before reload",
            "after reload",
        ]


@pytest.mark.unit
class TestScriptingDisabled:
    @pytest.mark.asyncio
    async def test_single_diagnostic(self, bridge, store):
        webview = FakeWebview(javascript_enabled=False)

        await bridge.attach(webview)
        await bridge.attach(webview)

        entries = store.entries(webview.key)
        assert len(entries) == 1
        assert entries[0].text == SCRIPTING_DISABLED_MESSAGE
        assert entries[0].origin == ORIGIN_DIAGNOSTIC
        assert entries[0].severity is None
        assert webview.scripts == []
        assert webview.registrations == []
        assert not bridge.was_bridged(webview)

    @pytest.mark.asyncio
    async def test_selected_view_shows_only_the_diagnostic(self, store):
        registry = WebviewRegistry()
        selection = SelectionController(registry)
        view = RecordingView()
        bridge = BridgeInstaller(store, MessageRouter(store, selection, view))
        webview = FakeWebview(javascript_enabled=False)
        registry.add(webview)
        selection.select(webview)
        store.append(webview.key, "from the previous page")

        await bridge.attach(webview)

        assert [e.text for e in view.shown_logs[-1]] == [SCRIPTING_DISABLED_MESSAGE]
        assert view.appended == []


@pytest.mark.unit
class TestFailures:
    @pytest.mark.asyncio
    async def test_wrap_failure_continues_with_other_severities(self, bridge, store):
        webview = FakeWebview()
        webview.results[wrap_script(Severity.INFO)] = ScriptEvaluationError(
            "ReferenceError: console is not defined"
        )

        await bridge.attach(webview)

        assert webview.wrapped == [Severity.LOG, Severity.WARN, Severity.ERROR]
        entries = store.entries(webview.key)
        assert len(entries) == 1
        assert entries[0].text == (
            "Unable to attach observer.\n"
            "Error: 'ReferenceError: console is not defined'"
        )
        # channels are registered regardless
        assert len(webview.registrations) == 4

    @pytest.mark.asyncio
    async def test_unsupported_result_type_is_tolerated(self, bridge, store):
        webview = FakeWebview()
        webview.results[wrap_script(Severity.ERROR)] = ResultTypeUnsupportedError(
            "Object reference chain is too long"
        )

        await bridge.attach(webview)

        assert store.entries(webview.key) == []

    @pytest.mark.asyncio
    async def test_claim_failure_is_reported(self, bridge, store):
        webview = FakeWebview()
        webview.results[CLAIM_SCRIPT] = ScriptEvaluationError("Execution context was destroyed")

        await bridge.attach(webview)

        assert webview.wrapped == []
        assert len(store.entries(webview.key)) == 1
        assert store.entries(webview.key)[0].origin == ORIGIN_DIAGNOSTIC

    @pytest.mark.asyncio
    async def test_webview_gone_during_attach(self, bridge, store):
        webview = FakeWebview()
        key = webview.key
        attaching = bridge.attach(webview)
        del webview

        await attaching

        assert store.entries(key) == []
        assert key in bridge.history
