from __future__ import annotations
from dataclasses import dataclass, field

MEGABYTE = 2 ** 20


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Inclusive ``[start, end]`` span of a resource of ``total`` bytes.

    Equality and hashing only look at ``start`` and ``end`` so a range can
    be used as a cache key.
    """
    start: int
    end: int
    total: int = field(default=0, compare=False)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def header_value(self) -> str:
        """Value for the HTTP ``Range`` request header."""
        return f"bytes={self.start}-{self.end}"

    def __str__(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total}"


@dataclass(slots=True)
class Window:
    index: int
    byte_range: ByteRange
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class Cursor:
    position: int = 0
    buffer_offset: int = 0


@dataclass(slots=True)
class StreamStats:
    downloads: int = 0
    cache_hits: int = 0
    bytes_downloaded: int = 0
    length: int = 0

    def summary(self) -> str:
        return (f"{self.downloads} chunks fetched "
                f"({self.bytes_downloaded / MEGABYTE:.2f}MB of {self.length / MEGABYTE:.2f}MB); "
                f"{self.cache_hits} cache hits")


class RangesNotSupportedError(RuntimeError):
    """Raised when the server does not advertise ``Accept-Ranges: bytes``."""


class MetadataParseError(RuntimeError):
    """Raised when the resource length is missing from or unreadable in a probe response."""


class BoundsError(ValueError, IndexError):
    """Raised on negative offsets/lengths or a destination buffer that is too small."""


class TransportError(IOError):
    """Raised by range clients when a request fails."""
