"""View hierarchy traversal that discovers webviews."""

import logging
from typing import Any, Iterable, Iterator, List, Set

from .webview import ViewContainer, Webview

logger = logging.getLogger(__name__)


class ViewHierarchyScanner:
    """Finds every webview reachable from a set of root containers.

    Besides the attached descendants of each container, the walk also enters
    its hidden_children(): pages of inactive tabs, backgrounded navigation
    stacks and other loaded but off-screen containers still own live webviews.

    Usage:
        scanner = ViewHierarchyScanner()
        for webview in scanner.scan(await host.roots()):
            registry.add(webview)
    """

    def scan(self, roots: Iterable[ViewContainer]) -> Iterator[Webview]:
        """Yield each reachable webview once.

        Invisible roots are skipped. Order follows a depth-first walk but is
        not part of the contract.
        """
        found = self._collect(root for root in roots if root.visible)
        logger.debug(f"Scan found {len(found)} webview(s)")
        return iter(found)

    def _collect(self, roots: Iterable[ViewContainer]) -> List[Webview]:
        webviews: List[Webview] = []
        seen_webviews: Set[int] = set()
        # id() is safe here: every node is alive for the duration of the walk
        seen_nodes: Set[int] = set()
        stack: List[Any] = list(roots)
        stack.reverse()

        while stack:
            node = stack.pop()
            if id(node) in seen_nodes:
                continue
            seen_nodes.add(id(node))

            if isinstance(node, Webview) and node.key not in seen_webviews:
                seen_webviews.add(node.key)
                webviews.append(node)

            if isinstance(node, ViewContainer):
                descendants = list(node.children()) + list(node.hidden_children())
                stack.extend(reversed(descendants))

        return webviews
