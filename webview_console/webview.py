"""Capability interfaces the console core is written against.

A host backend (see webview_console.cdp) supplies concrete Webview and
ViewContainer classes. The core never touches framework specifics directly.
"""

import abc
import itertools
from typing import Any, Callable, Iterable, Optional

# source webview, channel name, payload
MessageHandler = Callable[["Webview", str, Any], None]

_identity_keys = itertools.count(1)


class Webview(abc.ABC):
    """An embedded web-content surface with a scriptable page.

    Each instance gets an integer ``key`` at construction. Keys come from a
    process-wide counter and are never reused, so logs keyed by a destroyed
    webview cannot leak into a new one that happens to share its address.

    Subclasses must call ``super().__init__()``.
    """

    def __init__(self):
        self.key: int = next(_identity_keys)

    @property
    def javascript_enabled(self) -> bool:
        return True

    @property
    def url(self) -> str:
        return ""

    @property
    def title(self) -> str:
        return ""

    @abc.abstractmethod
    async def evaluate(self, script: str) -> Any:
        """Evaluate script in the current page.

        Returns:
            The JSON-compatible result, or None for undefined/null

        Raises:
            ScriptEvaluationError: The script threw or could not run
            ResultTypeUnsupportedError: The result cannot be returned by value
        """

    @abc.abstractmethod
    async def add_message_handler(self, channel: str, handler: MessageHandler) -> None:
        """Expose ``window.<channel>(payload)`` to the page.

        Registrations outlive page navigation. Each call to the page function
        must invoke ``handler(self, channel, payload)`` on the owner loop.
        """

    async def reload(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} cannot reload")

    async def capture_screenshot(self) -> bytes:
        raise NotImplementedError(f"{type(self).__name__} cannot capture screenshots")

    def __repr__(self):
        return f"{type(self).__name__}(key={self.key}, url={self.url!r})"


class ViewContainer(abc.ABC):
    """A node of the host's view/window hierarchy.

    ``children()`` returns the attached descendants one level down.
    ``hidden_children()`` returns containers that are loaded but not on
    screen, like inactive tab pages or backgrounded navigation-stack pages.
    Either may contain Webview instances, other containers, or nodes that are
    both.
    """

    @property
    def visible(self) -> bool:
        return True

    @abc.abstractmethod
    def children(self) -> Iterable[Any]:
        pass

    def hidden_children(self) -> Iterable[Any]:
        return ()


class Host(abc.ABC):
    """Supplies the top-level containers a scan starts from."""

    @abc.abstractmethod
    async def roots(self) -> Iterable[ViewContainer]:
        pass


def identity_key(webview: Optional[Webview]) -> Optional[int]:
    return webview.key if webview is not None else None
