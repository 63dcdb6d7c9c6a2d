"""Bounded window caches."""

from __future__ import annotations
import threading
from collections import OrderedDict
from typing import Optional, Protocol, runtime_checkable

from .model import ByteRange


@runtime_checkable
class BoundedCache(Protocol):
    """Protocol for a key -> window-bytes cache bounded by entry count.

    Implementations pick their own eviction policy. A cache shared between
    several streams must make ``get``/``put`` safe for concurrent use.
    """

    max_entries: int

    def get(self, key: ByteRange) -> Optional[bytes]:
        ...

    def put(self, key: ByteRange, value: bytes) -> None:
        ...


class LRUWindowCache:
    """Least-recently-used cache of fetched windows."""

    def __init__(self, max_entries: int):
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.max_entries = max_entries
        self._entries: "OrderedDict[ByteRange, bytes]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: ByteRange) -> Optional[bytes]:
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def put(self, key: ByteRange, value: bytes) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
