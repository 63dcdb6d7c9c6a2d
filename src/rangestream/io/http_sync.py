"""Synchronous HTTP range client using requests."""

import logging
import requests
from typing import Optional

from .base import ProbeResponse, RangeResponse
from ..core.model import ByteRange, TransportError

LOG = logging.getLogger("rangestream.io.http_sync")

_CHUNK_SIZE = 64 * 1024

# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def check_range_status(status: int, start: int, end: int) -> None:
    """Reject a ranged GET by status alone, before any of the body is read."""
    if status >= 400:
        raise TransportError(f"Range request failed with status {status}")
    if status == 206:
        return
    if status == 200 and start == 0:
        # may be the whole resource in one window; check_range_body decides
        return
    raise TransportError(f"Unexpected status {status} for range bytes={start}-{end}")


def check_range_body(status: int, body_len: int, start: int, end: int) -> None:
    """Accept a 200 only when its body is exactly the requested span."""
    if status == 200 and body_len != end - start + 1:
        raise TransportError(f"Server ignored Range bytes={start}-{end} (status 200)")


def read_limited(chunks, limit: int) -> bytes:
    """Join ``chunks`` but stop once ``limit`` bytes are in hand."""
    data = bytearray()
    for chunk in chunks:
        data += chunk
        if len(data) >= limit:
            break
    return bytes(data[:limit])


class RequestsRangeClient:
    """HTTP range client on top of a (shared) requests session."""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 30.0):
        self.url = url
        self.timeout = timeout
        self.requests_made = 0
        self.bytes_fetched = 0
        self._session = session if session is not None else _get_session()

    def probe_metadata(self) -> ProbeResponse:
        """Send a HEAD request and return its headers."""
        self.requests_made += 1
        try:
            response = self._session.head(self.url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise TransportError(f"HEAD request failed: {e}") from e
        if response.status_code >= 400:
            raise TransportError(f"HEAD request failed with status {response.status_code}")
        return ProbeResponse.from_headers(response.headers)

    def fetch_range(self, start: int, end: int) -> RangeResponse:
        """Fetch ``[start, end]`` with a single ranged GET.

        The body is streamed and never read past one byte beyond the span,
        so a server that ignores ``Range`` cannot push the whole resource.
        """
        headers = {'Range': ByteRange(start, end).header_value()}
        self.requests_made += 1
        LOG.debug("GET %s Range: %s", self.url, headers['Range'])
        try:
            response = self._session.get(self.url, headers=headers, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise TransportError(f"Range request failed: {e}") from e

        try:
            check_range_status(response.status_code, start, end)
            data = read_limited(response.iter_content(chunk_size=_CHUNK_SIZE), end - start + 2)
        except requests.RequestException as e:
            raise TransportError(f"Range request failed: {e}") from e
        finally:
            response.close()

        check_range_body(response.status_code, len(data), start, end)
        self.bytes_fetched += len(data)
        return RangeResponse(response.status_code, data)

    def close(self):
        # Session is shared unless injected; the owner closes it
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_http_client(url: str, **kwargs) -> RequestsRangeClient:
    """Create a requests-backed range client."""
    return RequestsRangeClient(url, **kwargs)
