"""Transport layer for rangestream - probes resources and fetches byte ranges."""

# Re-export these for import convenience
from .base import RangeClient, ProbeResponse, RangeResponse
from .local import LocalRangeClient, open_local_client
from .http_sync import RequestsRangeClient, open_http_client
from .http_httpx import HttpxRangeClient, open_httpx_client


def open_client(source, **kwargs):
    """Factory function to create the appropriate RangeClient for a source."""
    if isinstance(source, (bytes, bytearray, memoryview)) or hasattr(source, 'read'):
        return open_local_client(source)

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return open_http_client(source_str, **kwargs)
    else:
        return open_local_client(source)


__all__ = [
    "RangeClient", "ProbeResponse", "RangeResponse",
    "LocalRangeClient", "RequestsRangeClient", "HttpxRangeClient",
    "open_client", "open_local_client", "open_http_client", "open_httpx_client",
]
