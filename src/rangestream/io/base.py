"""Base protocols and shared types for the transport layer."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable


@dataclass(slots=True)
class ProbeResponse:
    """Headers of a metadata-only (HEAD) request, keys lower-cased."""
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ProbeResponse":
        return cls({k.lower(): v for k, v in headers.items()})

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


@dataclass(slots=True)
class RangeResponse:
    status: int
    body: bytes


@runtime_checkable
class RangeClient(Protocol):
    """Protocol for clients able to probe a resource and fetch byte ranges."""

    def probe_metadata(self) -> ProbeResponse:
        """Send a metadata-only request and return its headers."""
        ...

    def fetch_range(self, start: int, end: int) -> RangeResponse:
        """Fetch the inclusive span ``[start, end]``.
        Any failure → raise TransportError.
        """
        ...

    def close(self) -> None:
        ...
