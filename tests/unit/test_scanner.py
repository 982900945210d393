"""Unit tests for ViewHierarchyScanner."""

import pytest

from webview_console.scanner import ViewHierarchyScanner

from fakes import FakeContainer, FakeWebview


@pytest.mark.unit
class TestScan:
    def test_finds_nested_webviews(self):
        deep = FakeWebview()
        top = FakeWebview()
        root = FakeContainer(children=[top, FakeContainer(children=[FakeContainer(children=[deep])])])

        found = list(ViewHierarchyScanner().scan([root]))

        assert set(found) == {top, deep}

    def test_includes_hidden_children(self):
        """Inactive tab pages and backgrounded navigation pages are walked too."""
        in_background_tab = FakeWebview()
        in_nav_stack = FakeWebview()
        nav_controller = FakeContainer(hidden=[FakeContainer(children=[in_nav_stack])])
        tab_controller = FakeContainer(
            children=[nav_controller],
            hidden=[FakeContainer(children=[in_background_tab])],
        )

        found = list(ViewHierarchyScanner().scan([FakeContainer(children=[tab_controller])]))

        assert set(found) == {in_background_tab, in_nav_stack}

    def test_deduplicates_webview_reachable_twice(self):
        shared = FakeWebview()
        hidden_tab = FakeContainer(children=[shared])
        root = FakeContainer(children=[shared], hidden=[hidden_tab])

        found = list(ViewHierarchyScanner().scan([root, FakeContainer(children=[shared])]))

        assert found == [shared]

    def test_walks_into_webview_children(self):
        guest = FakeWebview()
        embedder = FakeWebview(children=[guest])

        found = list(ViewHierarchyScanner().scan([FakeContainer(children=[embedder])]))

        assert found == [embedder, guest]

    def test_skips_invisible_roots(self):
        hidden_window = FakeContainer(children=[FakeWebview()], visible=False)

        assert list(ViewHierarchyScanner().scan([hidden_window])) == []

    def test_survives_cycles(self):
        a = FakeContainer()
        b = FakeContainer(children=[a])
        webview = FakeWebview()
        a._children = [b, webview]

        assert list(ViewHierarchyScanner().scan([a])) == [webview]

    def test_returns_iterator(self):
        result = ViewHierarchyScanner().scan([])
        assert iter(result) is result
        assert list(result) == []
