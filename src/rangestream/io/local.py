"""Local range client using mmap."""

import io
import mmap
from pathlib import Path
from typing import BinaryIO, Union

from .base import ProbeResponse, RangeResponse
from ..core.model import TransportError


class LocalRangeClient:
    """Serves byte ranges of a local file, file object or bytes as if over HTTP."""

    def __init__(self, source: Union[Path, str, bytes, BinaryIO]):
        self.bytes_fetched = 0
        self.requests_made = 0
        self._file = None
        self._mmap = None
        self._data = None  # For in-memory sources
        self._should_close_file = False

        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data = bytes(source)
        elif hasattr(source, 'read'):
            self._file = source
            if isinstance(source, io.BytesIO):
                self._data = source.getvalue()
        else:
            self._file = open(source, 'rb')
            self._should_close_file = True

    def _ensure_mmap(self):
        """Create mmap on first access."""
        if self._mmap is not None or self._data is not None:
            return
        if self._file is None:
            raise TransportError("Client is closed")
        if not self._file.seekable():
            raise TransportError("File is not seekable, cannot use mmap")
        self._file.seek(0, io.SEEK_END)
        if self._file.tell() == 0:
            # mmap refuses empty files
            self._data = b''
            return
        try:
            self._mmap = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
        except (io.UnsupportedOperation, OSError):
            # Fallback for file objects without a usable fileno()
            self._file.seek(0)
            self._data = self._file.read()

    @property
    def size(self) -> int:
        """Return the total size of the source in bytes."""
        self._ensure_mmap()
        source = self._mmap if self._mmap is not None else self._data
        return len(source)

    def probe_metadata(self) -> ProbeResponse:
        self.requests_made += 1
        return ProbeResponse.from_headers({
            "Accept-Ranges": "bytes",
            "Content-Length": str(self.size),
        })

    def fetch_range(self, start: int, end: int) -> RangeResponse:
        """Return bytes ``[start, end]``, short only at end of file."""
        self.requests_made += 1
        self._ensure_mmap()
        source = self._mmap if self._mmap is not None else self._data

        if start < 0 or end < start:
            raise TransportError(f"Invalid range bytes={start}-{end}")
        if start >= len(source):
            raise TransportError(f"Range not satisfiable: bytes={start}-{end}, "
                                 f"file only has {len(source)} bytes")

        data = bytes(source[start:end + 1])
        self.bytes_fetched += len(data)
        return RangeResponse(206, data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close mmap and file if we opened it."""
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
        if self._should_close_file and self._file is not None:
            self._file.close()
            self._file = None


def open_local_client(source: Union[Path, str, bytes, BinaryIO]) -> LocalRangeClient:
    """Create a local range client."""
    return LocalRangeClient(source)
