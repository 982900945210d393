"""Bounded in-memory cache of webview screenshots."""

from collections import OrderedDict
from typing import Optional


class ScreenshotCache:
    """Identity key -> image bytes, evicting the least recently set entry.

    Purely a presentation cache; reads do not refresh an entry's position.
    """

    def __init__(self, capacity: int = 32):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._images: "OrderedDict[int, bytes]" = OrderedDict()

    def get(self, key: int) -> Optional[bytes]:
        return self._images.get(key)

    def set(self, key: int, image: bytes) -> None:
        self._images.pop(key, None)
        self._images[key] = image
        while len(self._images) > self.capacity:
            self._images.popitem(last=False)

    def clear(self) -> None:
        self._images.clear()

    def __contains__(self, key: int) -> bool:
        return key in self._images

    def __len__(self) -> int:
        return len(self._images)
