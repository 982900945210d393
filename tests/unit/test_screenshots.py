"""Unit tests for ScreenshotCache."""

import pytest

from webview_console.screenshots import ScreenshotCache


@pytest.mark.unit
class TestScreenshotCache:
    def test_get_and_set(self):
        cache = ScreenshotCache()
        cache.set(1, b"png")

        assert cache.get(1) == b"png"
        assert cache.get(2) is None
        assert 1 in cache

    def test_evicts_oldest(self):
        cache = ScreenshotCache(capacity=2)
        cache.set(1, b"a")
        cache.set(2, b"b")
        cache.set(3, b"c")

        assert 1 not in cache
        assert len(cache) == 2

    def test_set_refreshes_position(self):
        cache = ScreenshotCache(capacity=2)
        cache.set(1, b"a")
        cache.set(2, b"b")
        cache.set(1, b"a2")
        cache.set(3, b"c")

        assert cache.get(1) == b"a2"
        assert 2 not in cache

    def test_clear(self):
        cache = ScreenshotCache()
        cache.set(1, b"a")
        cache.clear()
        assert len(cache) == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ScreenshotCache(capacity=0)
