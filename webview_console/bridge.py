"""Installation of the console bridge into webview pages.

Two pieces of state decide what attach() has to do:

- The history set, kept here, says whether a webview identity has ever been
  bridged. It only gates the native channel registration, which outlives
  page navigation and must happen once per identity.
- The page flag, kept in the page's own ``window``, says whether the console
  functions of the currently loaded page are already wrapped. Navigation
  wipes it, so wrappers are reinstalled after every reload.
"""

import logging
import string
import weakref
from typing import FrozenSet, Set

from .exceptions import (
    ResultTypeUnsupportedError,
    ScriptEvaluationError,
    WebviewConsoleError,
    WebviewGoneError,
)
from .logging_setup import log_with_context
from .logstore import LogStore, Severity, ORIGIN_DIAGNOSTIC
from .router import MessageRouter
from .webview import Webview

logger = logging.getLogger(__name__)

PAGE_FLAG = "__webviewConsoleBridge"

SCRIPTING_DISABLED_MESSAGE = (
    "Unable to attach observer. Javascript is not enabled for this webview"
)

# Query-then-set in one evaluation, so two racing attach calls cannot both wrap.
CLAIM_SCRIPT = (
    "(function() {\n"
    f"  if (window.{PAGE_FLAG} === true) {{ return false; }}\n"
    f"  window.{PAGE_FLAG} = true;\n"
    "  return true;\n"
    "})()"
)

WRAP_TEMPLATE = string.Template(
    """$function = (function(_super) {
  var toText = function(value) {
    if (typeof value === 'string') { return value; }
    try {
      var json = JSON.stringify(value);
      return json === undefined ? String(value) : json;
    } catch (e) {
      return String(value);
    }
  };
  return function() {
    try { window.$channel(toText(arguments[0])); } catch (e) {}
    return _super.apply(this, arguments);
  };
})($function);
void 0;"""
)


def wrap_script(severity: Severity) -> str:
    """Script that wraps one console function, calling through to the original."""
    return WRAP_TEMPLATE.substitute(
        function=severity.js_function, channel=severity.channel
    )


async def _evaluate(ref: "weakref.ref[Webview]", script: str):
    webview = ref()
    if webview is None:
        raise WebviewGoneError("Webview deallocated during bridge attachment")
    return await webview.evaluate(script)


class BridgeInstaller:
    """Attaches the console bridge to webviews.

    attach() is idempotent and safe to call on every scan or navigation.
    Failures never propagate: they become diagnostic entries in the
    webview's log.

    Usage:
        bridge = BridgeInstaller(store, router)
        await bridge.attach(webview)
    """

    def __init__(self, store: LogStore, router: MessageRouter):
        self.store = store
        self.router = router
        self._history: Set[int] = set()

    @property
    def history(self) -> FrozenSet[int]:
        return frozenset(self._history)

    def was_bridged(self, webview: Webview) -> bool:
        return webview.key in self._history

    async def attach(self, webview: Webview) -> None:
        key = webview.key

        if not webview.javascript_enabled:
            # a fresh buffer holding only the diagnostic, however often we retry
            self.store.init_buffer(key)
            self.store.append(key, SCRIPTING_DISABLED_MESSAGE, origin=ORIGIN_DIAGNOSTIC)
            self.router.redisplay(key)
            logger.warning(f"Scripting disabled on webview {key}, bridge not attached")
            return

        first_time = key not in self._history
        if first_time:
            self.store.init_buffer(key)
            self._history.add(key)

        ref = weakref.ref(webview)
        # completions must not keep a deallocated webview alive
        del webview

        try:
            if first_time:
                await self._register_channels(key, ref)
            await self._install_wrappers(key, ref)
        except WebviewGoneError:
            logger.debug(f"Webview {key} went away during bridge attachment")

    async def _register_channels(self, key: int, ref: "weakref.ref[Webview]") -> None:
        for severity in Severity:
            webview = ref()
            if webview is None:
                raise WebviewGoneError("Webview deallocated during channel registration")
            try:
                await webview.add_message_handler(severity.channel, self.router.on_message)
            except WebviewConsoleError as e:
                self._report_failure(key, e)
            finally:
                webview = None

    async def _install_wrappers(self, key: int, ref: "weakref.ref[Webview]") -> None:
        try:
            claimed = await _evaluate(ref, CLAIM_SCRIPT)
        except ResultTypeUnsupportedError:
            claimed = False
        except ScriptEvaluationError as e:
            self._report_failure(key, e)
            return

        if claimed is not True:
            logger.debug(f"Console already bridged on the current page of webview {key}")
            return

        installed = []
        for severity in Severity:
            try:
                await _evaluate(ref, wrap_script(severity))
            except ResultTypeUnsupportedError:
                pass
            except ScriptEvaluationError as e:
                self._report_failure(key, e)
                continue
            installed.append(severity.value)

        log_with_context(
            logger, logging.INFO, "Console bridge installed",
            webview=key, severities=installed,
        )

    def _report_failure(self, key: int, error: Exception) -> None:
        logger.warning(f"Bridge attachment failed for webview {key}: {error}")
        self.router.record(
            key,
            f"Unable to attach observer.\nError: '{error}'",
            origin=ORIGIN_DIAGNOSTIC,
        )
