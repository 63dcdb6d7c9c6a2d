"""rangestream - seekable, windowed reads of large remote files over HTTP range requests."""

from .core.model import (                                            # re-export
    ByteRange, Window, StreamStats,
    RangesNotSupportedError, MetadataParseError, BoundsError, TransportError,
)
from .core.cache import BoundedCache, LRUWindowCache
from .core.config import StreamSettings
from .core.probe import probe
from .core.fetcher import WindowFetcher
from .io import RangeClient, open_client
from .stream import SeekableStream


def open_stream(source, *, length: int | None = None, settings: StreamSettings | None = None,
                cache: BoundedCache | None = None, **overrides) -> SeekableStream:
    """Open a SeekableStream on a URL, local path, bytes, file object or RangeClient.

    Keyword ``overrides`` (``window_size``, ``max_cache_bytes``, ``timeout``)
    take precedence over ``settings`` and the environment. Clients created
    here are closed with the stream; a RangeClient passed in is not.
    """
    if settings is None:
        settings = StreamSettings(**overrides)
    elif overrides:
        settings = StreamSettings(**{**settings.model_dump(), **overrides})

    if hasattr(source, 'fetch_range') and hasattr(source, 'probe_metadata'):
        client, owns_client = source, False
    else:
        client, owns_client = open_client(source, timeout=settings.timeout), True

    try:
        return SeekableStream(client, length, settings=settings, cache=cache, owns_client=owns_client)
    except Exception:
        if owns_client:
            client.close()
        raise


__all__ = [
    "open_stream", "probe",
    "SeekableStream", "WindowFetcher", "StreamSettings",
    "BoundedCache", "LRUWindowCache", "RangeClient", "open_client",
    "ByteRange", "Window", "StreamStats",
    "RangesNotSupportedError", "MetadataParseError", "BoundsError", "TransportError",
]
