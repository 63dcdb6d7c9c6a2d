"""Seekable, windowed read access to a remote resource over ranged HTTP requests.

The resource is divided into fixed-size windows (a.k.a. chunks) which are
fetched as needed. This pays off when reading small portions of large,
selectively readable files such as tiled TIFF or JPEG2000, and costs extra
requests when reading a whole file.
"""

from __future__ import annotations
import io
import logging
from typing import Optional

from .core.cache import BoundedCache, LRUWindowCache
from .core.config import StreamSettings
from .core.fetcher import WindowFetcher
from .core.model import BoundsError, Cursor, StreamStats
from .core.probe import probe

LOG = logging.getLogger("rangestream.stream")


class SeekableStream(io.RawIOBase):
    """Random-access reader over a RangeClient.

    Pass ``length`` when the resource length is already known to skip the
    capability probe. Seeking only moves the cursor; the window holding the
    new position is fetched by the next read. A single ``read_into`` never
    crosses a window boundary, so callers wanting more loop on the returned
    count (``read_fully`` does that).

    Not safe for concurrent use; a shared ``cache`` has to be.
    """

    def __init__(self, client, length: Optional[int] = None, *,
                 settings: Optional[StreamSettings] = None,
                 cache: Optional[BoundedCache] = None,
                 owns_client: bool = False):
        super().__init__()
        self._fetcher: Optional[WindowFetcher] = None
        self._owns_client = owns_client
        self._settings = settings if settings is not None else StreamSettings()

        if length is None:
            length = probe(client)
        elif length < 0:
            raise ValueError("length cannot be negative")

        if cache is None and self._settings.max_cache_entries > 0:
            cache = LRUWindowCache(self._settings.max_cache_entries)

        self._fetcher = WindowFetcher(client, length, self._settings.window_size, cache)
        self._cursor = Cursor()

    # --- properties ---
    @property
    def length(self) -> int:
        """Total resource length, fixed for the stream's lifetime."""
        return self._fetcher.length

    @property
    def window_size(self) -> int:
        return self._fetcher.window_size

    @property
    def cache(self) -> Optional[BoundedCache]:
        return self._fetcher.cache

    @property
    def max_cache_entries(self) -> int:
        cache = self._fetcher.cache
        return cache.max_entries if cache is not None else 0

    @property
    def stats(self) -> StreamStats:
        return self._fetcher.stats

    # --- io.RawIOBase ---
    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        self._check_open()
        return self._cursor.position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the cursor; positions past the end are clamped to ``length``."""
        self._check_open()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._cursor.position + offset
        elif whence == io.SEEK_END:
            position = self.length + offset
        else:
            raise ValueError(f"Invalid whence value: {whence}")
        if position < 0:
            raise BoundsError(f"Negative seek position: {position}")

        position = min(position, self.length)
        self._cursor.position = position
        self._cursor.buffer_offset = position % self.window_size
        return position

    def readinto(self, b) -> int:
        return self.read_into(b)

    # --- reads ---
    def read_byte(self) -> Optional[int]:
        """Return the next byte as an int, or None at end of stream."""
        self._check_open()
        cursor = self._cursor
        if cursor.position >= self.length:
            return None
        window = self._fetcher.prepare_window(cursor)
        value = window.data[cursor.buffer_offset]
        cursor.buffer_offset += 1
        cursor.position += 1
        return value

    def read_into(self, buffer, offset: int = 0, length: Optional[int] = None) -> int:
        """Copy up to ``length`` bytes into ``buffer[offset:]`` and return the count.

        Reads stop at the end of the current window and at the end of the
        resource. Returns 0 at end of stream. Raises ``BoundsError`` for a
        negative ``offset``/``length`` or when ``offset + length`` exceeds
        the buffer.
        """
        self._check_open()
        view = memoryview(buffer).cast('B')
        if view.readonly:
            raise TypeError("read_into() needs a writable buffer")
        capacity = view.nbytes

        if offset < 0:
            raise BoundsError("Negative offset")
        if length is None:
            if offset > capacity:
                raise BoundsError("offset > buffer length")
            length = capacity - offset
        if length < 0:
            raise BoundsError("Negative length")
        if offset + length > capacity:
            raise BoundsError("offset + length > buffer length")

        cursor = self._cursor
        if cursor.position >= self.length or length == 0:
            return 0
        length = min(length, self.length - cursor.position)

        window = self._fetcher.prepare_window(cursor)
        start = cursor.buffer_offset
        filled = min(length, len(window.data) - start)
        view[offset:offset + filled] = window.data[start:start + filled]

        cursor.buffer_offset += filled
        cursor.position += filled
        return filled

    def read_fully(self, size: int) -> bytes:
        """Read exactly ``size`` bytes, crossing windows as needed.

        Raises EOFError if the stream ends first; the bytes read so far are consumed.
        """
        if size < 0:
            raise BoundsError("Negative size")
        out = bytearray(size)
        filled = 0
        while filled < size:
            n = self.read_into(out, filled, size - filled)
            if n == 0:
                raise EOFError(f"Stream ended after {filled} of {size} bytes")
            filled += n
        return bytes(out)

    # --- lifecycle ---
    def close(self) -> None:
        """Release the window buffer and the client and log download statistics."""
        if self.closed:
            return
        fetcher = self._fetcher
        if fetcher is not None:
            LOG.debug("close(): %s", fetcher.stats.summary())
            client = fetcher.client
            fetcher.release()
            if self._owns_client and client is not None:
                client.close()
        super().close()

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

    def __repr__(self) -> str:
        if self._fetcher is None:
            return "SeekableStream(uninitialized)"
        return (f"SeekableStream(length={self.length}, window_size={self.window_size}, "
                f"position={self._cursor.position}, closed={self.closed})")
