"""Shared fixtures: an in-process RangeClient that records every request."""

import pytest

from rangestream.io.base import ProbeResponse, RangeResponse


def make_data(size: int) -> bytes:
    """Deterministic, non-repeating-per-window test payload."""
    pattern = bytes(range(251))
    return (pattern * (size // len(pattern) + 1))[:size]


class FakeRangeClient:
    """RangeClient serving ``data`` from memory and counting requests."""

    def __init__(self, data: bytes, headers=None):
        self.data = data
        if headers is None:
            headers = {"Accept-Ranges": "bytes", "Content-Length": str(len(data))}
        self.headers = headers
        self.probes = 0
        self.fetches = []
        self.fail_next = None
        self.closed = False

    def probe_metadata(self) -> ProbeResponse:
        self.probes += 1
        return ProbeResponse.from_headers(self.headers)

    def fetch_range(self, start: int, end: int) -> RangeResponse:
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
        self.fetches.append((start, end))
        return RangeResponse(206, self.data[start:end + 1])

    def close(self):
        self.closed = True


@pytest.fixture
def data():
    return make_data(10_000)


@pytest.fixture
def client(data):
    return FakeRangeClient(data)
