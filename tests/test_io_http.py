"""Tests for HTTP range clients."""

import httpx
import pytest
import requests
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from rangestream import open_stream
from rangestream.core.model import MetadataParseError, RangesNotSupportedError, TransportError
from rangestream.io import open_client
from rangestream.io.http_httpx import HttpxRangeClient, open_httpx_client
from rangestream.io.http_sync import _CHUNK_SIZE, RequestsRangeClient, open_http_client

from conftest import make_data

FULL_BODY_SIZE = 5_000_000


class RecordingSession(requests.Session):
    """Session that keeps every GET response for inspection."""

    def __init__(self):
        super().__init__()
        self.responses = []

    def get(self, *args, **kwargs):
        response = super().get(*args, **kwargs)
        self.responses.append(response)
        return response


def _parse_range(header: str):
    # bytes=start-end
    start, end = map(int, header.replace("bytes=", "").split("-"))
    return start, end


class TestRequestsRangeClient:
    """Test the requests-backed client against a live server."""

    def setup_method(self):
        """Set up test HTTP server."""
        self.test_data = make_data(3000)
        self.server = HTTPServer(host="127.0.0.1", port=0)
        self.server.expect_request("/test").respond_with_handler(self._handle_request)
        self.server.expect_request("/no-ranges").respond_with_handler(self._handle_no_ranges)
        self.server.expect_request("/full-body").respond_with_handler(self._handle_full_body)
        self.server.expect_request("/whole").respond_with_data(b"0123456789")
        self.server.expect_request("/missing").respond_with_data("nope", status=404)
        self.server.start()
        self.base_url = f"http://127.0.0.1:{self.server.port}"

    def teardown_method(self):
        """Clean up test HTTP server."""
        if self.server.is_running():
            self.server.stop()

    def _handle_request(self, request: Request) -> Response:
        """Handle requests with range support."""
        if request.method == "HEAD":
            return Response(
                status=200,
                headers={
                    "Content-Length": str(len(self.test_data)),
                    "Accept-Ranges": "bytes"
                }
            )

        range_header = request.headers.get("Range")
        if range_header:
            start, end = _parse_range(range_header)
            data = self.test_data[start:end + 1]
            return Response(
                data,
                status=206,
                headers={
                    "Content-Range": f"bytes {start}-{end}/{len(self.test_data)}",
                    "Content-Length": str(len(data))
                }
            )

        return Response(self.test_data, status=200)

    def _handle_no_ranges(self, request: Request) -> Response:
        """Server that never advertises or honors ranges."""
        if request.method == "HEAD":
            return Response(status=200, headers={"Content-Length": str(len(self.test_data))})
        return Response(self.test_data, status=200)

    def _handle_full_body(self, request: Request) -> Response:
        """Advertises ranges but answers every GET with the whole 5 MB body."""
        if request.method == "HEAD":
            return Response(status=200, headers={"Accept-Ranges": "bytes", "Content-Length": str(FULL_BODY_SIZE)})
        return Response(b"\0" * FULL_BODY_SIZE, status=200)

    def _methods(self):
        return [req.method for req, _ in self.server.log]

    def test_probe_metadata(self):
        client = RequestsRangeClient(f"{self.base_url}/test")
        response = client.probe_metadata()
        assert response.header("accept-ranges") == "bytes"
        assert response.header("Content-Length") == str(len(self.test_data))

    def test_fetch_range(self):
        client = RequestsRangeClient(f"{self.base_url}/test")
        response = client.fetch_range(100, 199)
        assert response.status == 206
        assert response.body == self.test_data[100:200]
        assert client.bytes_fetched == 100
        assert client.requests_made == 1
        request, _ = self.server.log[-1]
        assert request.headers["Range"] == "bytes=100-199"

    def test_stream_reads(self):
        """Windowed reads over HTTP reproduce the resource."""
        with open_stream(f"{self.base_url}/test", window_size=1000) as stream:
            assert stream.length == len(self.test_data)
            stream.seek(2500)
            assert stream.read_fully(500) == self.test_data[2500:]
            stream.seek(10)
            assert stream.read_fully(10) == self.test_data[10:20]
        ranges = [req.headers.get("Range") for req, _ in self.server.log if req.method == "GET"]
        assert ranges == ["bytes=2000-2999", "bytes=0-999"]
        assert self._methods()[0] == "HEAD"

    def test_ranges_not_supported(self):
        """Construction fails after the probe and issues no GET."""
        with pytest.raises(RangesNotSupportedError):
            open_stream(f"{self.base_url}/no-ranges")
        assert self._methods() == ["HEAD"]

    def test_ignored_range_header_is_transport_error(self):
        client = RequestsRangeClient(f"{self.base_url}/no-ranges")
        with pytest.raises(TransportError):
            client.fetch_range(10, 19)

    @pytest.mark.parametrize("start,end", [(0, 524287), (524288, 1048575)])
    def test_ignored_range_header_reads_bounded_body(self, start, end):
        """A 200 with the full resource is rejected after at most one extra chunk."""
        session = RecordingSession()
        client = RequestsRangeClient(f"{self.base_url}/full-body", session=session)
        with pytest.raises(TransportError):
            client.fetch_range(start, end)

        response, = session.responses
        assert response.raw.tell() <= (end - start + 2) + _CHUNK_SIZE
        assert client.bytes_fetched == 0

    def test_whole_resource_as_200(self):
        client = RequestsRangeClient(f"{self.base_url}/whole")
        response = client.fetch_range(0, 9)
        assert response.status == 200
        assert response.body == b"0123456789"

    def test_http_error_status(self):
        client = RequestsRangeClient(f"{self.base_url}/missing")
        with pytest.raises(TransportError, match="404"):
            client.probe_metadata()
        with pytest.raises(TransportError, match="404"):
            client.fetch_range(0, 9)

    def test_connection_error_is_not_retried(self):
        url = f"{self.base_url}/test"
        self.server.stop()
        client = RequestsRangeClient(url, timeout=2)
        with pytest.raises(TransportError) as exc_info:
            client.fetch_range(0, 9)
        assert isinstance(exc_info.value.__cause__, requests.RequestException)
        assert client.requests_made == 1

    def test_factory_function(self):
        client = open_client(f"{self.base_url}/test")
        assert isinstance(client, RequestsRangeClient)
        assert isinstance(open_http_client(f"{self.base_url}/test"), RequestsRangeClient)


class TestHttpxRangeClient:
    """Test the httpx-backed client with a mock transport."""

    def setup_method(self):
        self.test_data = make_data(2048)
        self.seen = []

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.seen.append((request.method, request.headers.get("Range")))
        if request.method == "HEAD":
            return httpx.Response(
                200, headers={"Accept-Ranges": "bytes", "Content-Length": str(len(self.test_data))})
        start, end = _parse_range(request.headers["Range"])
        return httpx.Response(206, content=self.test_data[start:end + 1])

    def _client(self, handler=None):
        transport = httpx.MockTransport(handler or self._handler)
        return HttpxRangeClient("https://example.test/blob", client=httpx.Client(transport=transport))

    def test_stream_over_httpx(self):
        with open_stream(self._client(), window_size=512, max_cache_bytes=1024) as stream:
            stream.seek(1000)
            assert stream.read_fully(100) == self.test_data[1000:1100]
            stream.seek(600)
            assert stream.read_byte() == self.test_data[600]
            assert stream.stats.downloads == 2
            assert stream.stats.cache_hits == 1
        assert self.seen == [
            ("HEAD", None),
            ("GET", "bytes=512-1023"),
            ("GET", "bytes=1024-1535"),
        ]

    def test_ranges_not_supported(self):
        def handler(request):
            self.seen.append(request.method)
            return httpx.Response(200, headers={"Content-Length": "10"})

        with pytest.raises(RangesNotSupportedError):
            open_stream(self._client(handler))
        assert self.seen == ["HEAD"]

    def test_unparseable_length(self):
        def handler(request):
            self.seen.append(request.method)
            return httpx.Response(200, headers={"Accept-Ranges": "bytes", "Content-Length": "unknown"})

        with pytest.raises(MetadataParseError):
            open_stream(self._client(handler))
        assert self.seen == ["HEAD"]

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = self._client(handler)
        with pytest.raises(TransportError) as exc_info:
            client.fetch_range(0, 9)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_server_error(self):
        client = self._client(lambda request: httpx.Response(503))
        with pytest.raises(TransportError, match="503"):
            client.fetch_range(0, 9)

    @pytest.mark.parametrize("start,end", [(0, 524287), (524288, 1048575)])
    def test_ignored_range_header_reads_bounded_body(self, start, end):
        """Only as much of a full-resource 200 as one window needs is pulled."""
        chunk = b"\0" * 65536
        sent = []

        def body():
            for _ in range(FULL_BODY_SIZE // len(chunk)):
                sent.append(len(chunk))
                yield chunk

        client = self._client(lambda request: httpx.Response(200, content=body()))
        with pytest.raises(TransportError):
            client.fetch_range(start, end)
        assert sum(sent) <= (end - start + 2) + len(chunk)
        assert client.bytes_fetched == 0

    def test_whole_resource_as_200(self):
        client = self._client(lambda request: httpx.Response(200, content=b"0123456789"))
        response = client.fetch_range(0, 9)
        assert response.status == 200
        assert response.body == b"0123456789"

    def test_injected_client_left_open(self):
        inner = httpx.Client(transport=httpx.MockTransport(self._handler))
        client = HttpxRangeClient("https://example.test/blob", client=inner)
        client.close()
        client.close()
        assert not inner.is_closed

    def test_owned_client_closed(self):
        client = open_httpx_client("https://example.test/blob")
        inner = client._client
        client.close()
        assert inner.is_closed
