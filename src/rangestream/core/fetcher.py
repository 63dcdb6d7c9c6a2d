from __future__ import annotations
import logging
from typing import Optional

from .cache import BoundedCache
from .model import ByteRange, Cursor, StreamStats, TransportError, Window

LOG = logging.getLogger("rangestream.core.fetcher")


class WindowFetcher:
    """Maps positions onto fixed-size windows and loads them from a cache or a RangeClient.

    The resource ``[0, length)`` is split into windows of ``window_size``
    bytes; the last one may be shorter. At most one window is loaded at a
    time and it is only replaced when the cursor has moved into another
    window. A failed fetch leaves the loaded window untouched.
    """

    def __init__(self, client, length: int, window_size: int, cache: Optional[BoundedCache] = None):
        if window_size <= 0:
            raise ValueError("window_size must be > 0")
        if length < 0:
            raise ValueError("length cannot be negative")
        self.client = client
        self.length = length
        self.window_size = window_size
        self.cache = cache
        self.window: Optional[Window] = None
        self.stats = StreamStats(length=length)

    @property
    def window_count(self) -> int:
        return -(-self.length // self.window_size)

    def window_index(self, position: int) -> int:
        return position // self.window_size

    def range_for(self, index: int) -> ByteRange:
        start = index * self.window_size
        if index < 0 or start >= self.length:
            raise ValueError(f"Window {index} is outside a resource of {self.length} bytes")
        end = min(start + self.window_size, self.length) - 1
        return ByteRange(start, end, self.length)

    def fetch(self, byte_range: ByteRange) -> bytes:
        """Return the bytes of ``byte_range`` from the cache, or download them."""
        if self.cache is not None:
            chunk = self.cache.get(byte_range)
            if chunk is not None:
                LOG.debug("Chunk cache hit for range: %s", byte_range)
                self.stats.cache_hits += 1
                return chunk

        LOG.debug("Downloading range: %s", byte_range)
        self.stats.downloads += 1
        chunk = self.client.fetch_range(byte_range.start, byte_range.end).body
        if len(chunk) != byte_range.length:
            raise TransportError(f"Expected {byte_range.length} bytes for {byte_range}, got {len(chunk)}")
        self.stats.bytes_downloaded += len(chunk)

        if self.cache is not None:
            self.cache.put(byte_range, chunk)
        return chunk

    def resolve(self, position: int) -> Window:
        """Return the window containing ``position`` without installing it."""
        index = self.window_index(position)
        byte_range = self.range_for(index)
        return Window(index, byte_range, self.fetch(byte_range))

    def prepare_window(self, cursor: Cursor) -> Window:
        """Make sure the loaded window contains ``cursor.position``."""
        index = self.window_index(cursor.position)
        if self.window is None or self.window.index != index:
            self.window = self.resolve(cursor.position)
            cursor.buffer_offset = cursor.position % self.window_size
        return self.window

    def release(self) -> None:
        self.window = None
        self.client = None
