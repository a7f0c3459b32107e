"""
Unit tests for HttpTransport.
"""

import asyncio

import httpx
import pytest

from rsview.client.transport import HttpTransport, TransportRequest
from rsview.core.errors import (
    HttpStatusError,
    NetworkError,
    ResponseDecodeError,
    TransportTimeout,
)

from tests.helpers import (
    SERVER_URL,
    FakeBackend,
    connect_error,
    decoding_error,
    read_timeout,
    run,
)


def make_transport(backend, base_url=SERVER_URL, timeout=5.0) -> HttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return HttpTransport(base_url, timeout=timeout, client=client)


class TestHttpTransport:
    """Test single-shot HTTP calls."""

    def test_json_body_parsed(self):
        backend = FakeBackend(httpx.Response(200, json={"status": "ok"}))
        result = run(make_transport(backend).send("/health"))

        assert result.is_ok()
        assert result.value == {"status": "ok"}
        assert str(backend.calls[0].url) == f"{SERVER_URL}/health"

    def test_text_body_returned_raw(self):
        backend = FakeBackend(httpx.Response(200, text="healthy"))
        result = run(make_transport(backend).send("/health"))
        assert result.value == "healthy"

    def test_trailing_slash_removed_from_base_url(self):
        backend = FakeBackend(httpx.Response(200, text="ok"))
        transport = make_transport(backend, base_url=f"{SERVER_URL}/")

        assert transport.base_url == SERVER_URL
        run(transport.send("/info"))
        assert str(backend.calls[0].url) == f"{SERVER_URL}/info"

    def test_base_url_settable(self):
        backend = FakeBackend(httpx.Response(200, text="ok"))
        transport = make_transport(backend)
        transport.base_url = "http://other.test:8080/"

        run(transport.send("/health"))
        assert str(backend.calls[0].url) == "http://other.test:8080/health"

    def test_headers_and_body(self):
        backend = FakeBackend(httpx.Response(200, json={}))
        transport = make_transport(backend)

        run(transport.send("/analyse", method="POST", headers={"Content-Type": "text/plain; charset=utf-8"}, body="fn main() {}"))

        request = backend.calls[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "text/plain; charset=utf-8"
        assert request.content == b"fn main() {}"

    def test_default_content_type_is_json(self):
        backend = FakeBackend(httpx.Response(200, json={}))
        run(make_transport(backend).send("/health"))
        assert backend.calls[0].headers["content-type"] == "application/json"

    @pytest.mark.parametrize("status,reason,permanent", [(404, "Not Found", True), (400, "Bad Request", True), (503, "Service Unavailable", False)])
    def test_non_2xx_is_http_error(self, status, reason, permanent):
        backend = FakeBackend(httpx.Response(status))
        result = run(make_transport(backend).send("/analyse"))

        assert result.is_err()
        error = result.error
        assert isinstance(error, HttpStatusError)
        assert error.status == status
        assert str(error) == f"HTTP {status}: {reason}"
        assert error.permanent is permanent
        assert error.transient is not permanent

    def test_connection_failure_is_network_error(self):
        result = run(make_transport(FakeBackend(connect_error)).send("/health"))
        assert isinstance(result.error, NetworkError)
        assert result.error.transient

    def test_body_decoding_failure_is_network_error(self):
        """httpx errors outside its TransportError branch still come back as Err."""
        result = run(make_transport(FakeBackend(decoding_error)).send("/health"))

        assert isinstance(result.error, NetworkError)
        assert "bad gzip" in str(result.error)

    def test_httpx_timeout_is_transport_timeout(self):
        result = run(make_transport(FakeBackend(read_timeout), timeout=2.5).send("/health"))
        assert isinstance(result.error, TransportTimeout)
        assert str(result.error) == "Request timed out after 2.5s"

    def test_hard_timeout_cancels_slow_call(self):
        """The wall-clock budget applies even when the server never answers."""
        cancelled = []

        async def slow(request):
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise
            return httpx.Response(200)

        transport = make_transport(slow)
        result = run(transport.send("/analyse", timeout=0.05))

        assert isinstance(result.error, TransportTimeout)
        assert result.error.timeout == 0.05
        assert cancelled == [True]

    @pytest.mark.parametrize(
        "content_type",
        ["application/problem+json", "application/vnd.api+json; charset=utf-8", "Application/JSON"],
    )
    def test_structured_json_media_types_parsed(self, content_type):
        backend = FakeBackend(
            httpx.Response(200, content=b'{"title": "ok"}', headers={"Content-Type": content_type})
        )
        result = run(make_transport(backend).send("/info"))
        assert result.value == {"title": "ok"}

    def test_undecodable_json_is_transient_error(self):
        backend = FakeBackend(
            httpx.Response(200, content=b"{not json", headers={"Content-Type": "application/json"})
        )
        result = run(make_transport(backend).send("/analyse"))

        assert isinstance(result.error, ResponseDecodeError)
        assert result.error.transient

    def test_send_request(self):
        backend = FakeBackend(httpx.Response(200, json=[1, 2]))
        request = TransportRequest("/analyse", method="POST", body="x", timeout=1.0)

        result = run(make_transport(backend).send_request(request))
        assert result.value == [1, 2]
        assert backend.calls[0].method == "POST"
