"""HTTP range client using httpx."""

import logging
import httpx
from typing import Optional

from .base import ProbeResponse, RangeResponse
from .http_sync import check_range_body, check_range_status, read_limited
from ..core.model import ByteRange, TransportError

LOG = logging.getLogger("rangestream.io.http_httpx")


class HttpxRangeClient:
    """HTTP range client on top of an ``httpx.Client``.

    A client passed in is left open on ``close()``; one created here is closed.
    """

    def __init__(self, url: str, client: Optional[httpx.Client] = None, timeout: float = 30.0):
        self.url = url
        self.requests_made = 0
        self.bytes_fetched = 0
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout, follow_redirects=True)

    def probe_metadata(self) -> ProbeResponse:
        self.requests_made += 1
        try:
            response = self._client.head(self.url)
        except httpx.HTTPError as e:
            raise TransportError(f"HEAD request failed: {e}") from e
        if response.status_code >= 400:
            raise TransportError(f"HEAD request failed with status {response.status_code}")
        return ProbeResponse.from_headers(response.headers)

    def fetch_range(self, start: int, end: int) -> RangeResponse:
        headers = {'Range': ByteRange(start, end).header_value()}
        self.requests_made += 1
        LOG.debug("GET %s Range: %s", self.url, headers['Range'])
        try:
            with self._client.stream("GET", self.url, headers=headers) as response:
                status = response.status_code
                check_range_status(status, start, end)
                data = read_limited(response.iter_bytes(), end - start + 2)
        except httpx.HTTPError as e:
            raise TransportError(f"Range request failed: {e}") from e

        check_range_body(status, len(data), start, end)
        self.bytes_fetched += len(data)
        return RangeResponse(status, data)

    def close(self):
        if self._owns_client and self._client is not None:
            self._client.close()
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_httpx_client(url: str, **kwargs) -> HttpxRangeClient:
    """Create an httpx-backed range client."""
    return HttpxRangeClient(url, **kwargs)
