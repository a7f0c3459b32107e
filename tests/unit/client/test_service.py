"""
Unit tests for AnalysisService.

The backend is an httpx.MockTransport, so every test exercises the real
transport, retry policy, tracker and cache together.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from rsview.client.cache import fingerprint
from rsview.core.errors import (
    HttpStatusError,
    InputValidationError,
    NetworkError,
    PayloadFormatError,
)
from rsview.core.types import AnalysisResult, RequestStatus

from tests.helpers import SERVER_URL, FakeBackend, connect_error, decoding_error, run

SOURCE = "fn main() {}"


class TestAnalyze:
    """Test AnalysisService.analyze."""

    def test_end_to_end_result_cached(self, make_service, analysis_payload):
        """A fresh analysis is returned, cached, and served from cache next time."""
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)

        first = run(service.analyze(SOURCE))

        assert isinstance(first, AnalysisResult)
        assert first.to_payload() == analysis_payload
        assert service.cache.get_entry(fingerprint(SOURCE)).result is first

        second = run(service.analyze(SOURCE))
        assert second is first
        assert backend.call_count == 1

    def test_request_shape(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        run(make_service(backend).analyze(SOURCE))

        request = backend.calls[0]
        assert request.method == "POST"
        assert str(request.url) == f"{SERVER_URL}/analyse"
        assert request.headers["content-type"] == "text/plain; charset=utf-8"
        assert request.content == SOURCE.encode("utf-8")

    def test_cache_hit_skips_tracker(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)

        run(service.analyze(SOURCE))
        run(service.analyze(SOURCE))

        assert len(service.tracker.get_request_history()) == 1

    def test_success_recorded(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)

        result = run(service.analyze(SOURCE))

        record = service.tracker.get_request_history()[0]
        assert record.id.startswith("analyze_")
        assert record.description == "source analysis"
        assert record.status is RequestStatus.SUCCESS
        assert record.result is result
        assert service.tracker.get_active_requests() == []

    @pytest.mark.parametrize("code", ["", "   ", "\n\t  \n"])
    def test_empty_input_rejected_without_network(self, make_service, code):
        backend = FakeBackend(httpx.Response(200, json={}))
        service = make_service(backend)

        with pytest.raises(InputValidationError):
            run(service.analyze(code))

        assert backend.call_count == 0
        assert service.tracker.get_request_history() == []

    def test_missing_parse_tree_not_cached(self, make_service, analysis_payload):
        """A malformed payload raises a format error and leaves the cache empty."""
        del analysis_payload["parseTree"]
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)

        with pytest.raises(PayloadFormatError):
            run(service.analyze(SOURCE))

        assert len(service.cache) == 0
        record = service.tracker.get_request_history()[0]
        assert record.status is RequestStatus.ERROR
        assert "parseTree" in record.error

    def test_payload_errors_not_retried(self, make_service):
        backend = FakeBackend(httpx.Response(200, text="<html>proxy page</html>"))
        service = make_service(backend)

        with pytest.raises(PayloadFormatError):
            run(service.analyze(SOURCE))
        assert backend.call_count == 1

    def test_not_found_attempted_once(self, make_service, sleeps):
        backend = FakeBackend(httpx.Response(404))
        service = make_service(backend)

        with pytest.raises(HttpStatusError) as exc_info:
            run(service.analyze(SOURCE))

        assert str(exc_info.value) == "HTTP 404: Not Found"
        assert backend.call_count == 1
        assert sleeps == []
        assert service.tracker.get_request_history()[0].error == "HTTP 404: Not Found"

    def test_network_failure_attempted_max_attempts(self, make_service, sleeps):
        backend = FakeBackend(connect_error)
        service = make_service(backend, max_attempts=4, base_delay=1.0)

        with pytest.raises(NetworkError):
            run(service.analyze(SOURCE))

        assert backend.call_count == 4
        assert sleeps == [1.0, 2.0, 3.0]
        assert service.tracker.get_request_history()[0].status is RequestStatus.ERROR

    def test_server_error_then_success(self, make_service, analysis_payload):
        backend = FakeBackend(
            httpx.Response(503),
            httpx.Response(200, json=analysis_payload),
        )
        service = make_service(backend)

        result = run(service.analyze(SOURCE))
        assert result.success
        assert backend.call_count == 2

    def test_cache_disabled_always_hits_network(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend, cache_enabled=False)

        run(service.analyze(SOURCE))
        run(service.analyze(SOURCE))
        assert backend.call_count == 2

    def test_set_cache_enabled_false_clears(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)
        run(service.analyze(SOURCE))

        service.set_cache_enabled(False)
        assert len(service.cache) == 0
        assert service.config.cache_enabled is False

        run(service.analyze(SOURCE))
        assert backend.call_count == 2

    def test_changing_server_clears_cache(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)
        run(service.analyze(SOURCE))

        service.set_server_url("http://other.test:7071/")
        assert service.server_url == "http://other.test:7071"
        assert len(service.cache) == 0

        run(service.analyze(SOURCE))
        assert backend.call_count == 2
        assert str(backend.calls[1].url) == "http://other.test:7071/analyse"

    def test_clear_cache_and_stats(self, make_service, analysis_payload):
        backend = FakeBackend(httpx.Response(200, json=analysis_payload))
        service = make_service(backend)
        run(service.analyze(SOURCE))
        run(service.analyze(SOURCE))

        stats = service.cache_stats()
        assert (stats.entries, stats.hits, stats.misses) == (1, 1, 1)

        service.clear_cache()
        run(service.analyze(SOURCE))
        assert backend.call_count == 2

    def test_unexpected_httpx_error_recorded(self, make_service):
        """A failure outside httpx's transport branch still reaches a terminal record."""
        backend = FakeBackend(decoding_error)
        service = make_service(backend, max_attempts=2)

        with pytest.raises(NetworkError):
            run(service.analyze(SOURCE))

        assert backend.call_count == 2
        assert service.tracker.get_active_requests() == []
        record = service.tracker.get_request_history()[0]
        assert record.status is RequestStatus.ERROR
        assert record.error == "bad gzip"

    def test_any_exception_finishes_record(self, make_service):
        service = make_service(FakeBackend(httpx.Response(200, json={})))

        with patch.object(service.retry, "send_with_retry", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError, match="boom"):
                run(service.analyze(SOURCE))

        assert service.tracker.get_active_requests() == []
        record = service.tracker.get_request_history()[0]
        assert record.status is RequestStatus.ERROR
        assert record.error == "boom"

    def test_cancelled_analysis_marked_cancelled(self, make_service):
        async def scenario():
            started = asyncio.Event()

            async def hanging_backend(request):
                started.set()
                await asyncio.sleep(10)
                return httpx.Response(200)

            service = make_service(hanging_backend)
            task = asyncio.create_task(service.analyze(SOURCE))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return service

        service = run(scenario())

        assert service.tracker.get_active_requests() == []
        record = service.tracker.get_request_history()[0]
        assert record.status is RequestStatus.CANCELLED
        assert len(service.cache) == 0

    def test_concurrent_identical_requests_not_deduplicated(self, make_service, analysis_payload):
        """Both calls reach the network and a single cache entry remains."""
        calls = []

        async def slow_backend(request):
            calls.append(request)
            await asyncio.sleep(0.01)
            return httpx.Response(200, json=analysis_payload)

        service = make_service(slow_backend)

        async def both():
            return await asyncio.gather(service.analyze(SOURCE), service.analyze(SOURCE))

        first, second = run(both())

        assert len(calls) == 2
        assert first == second
        assert len(service.cache) == 1


class TestServerStatus:
    """Test check_status and get_server_info."""

    def test_online(self, make_service):
        backend = FakeBackend(httpx.Response(200, json={"status": "healthy"}))
        service = make_service(backend)

        status = run(service.check_status())

        assert status.online is True
        assert str(backend.calls[0].url) == f"{SERVER_URL}/health"
        record = service.tracker.get_request_history()[0]
        assert record.description == "server status check"
        assert record.status is RequestStatus.SUCCESS

    def test_offline_on_connection_failure(self, make_service):
        backend = FakeBackend(connect_error)
        service = make_service(backend)

        status = run(service.check_status())

        assert status.online is False
        assert "Connection refused" in status.message
        assert service.tracker.get_request_history()[0].status is RequestStatus.ERROR

    def test_unexpected_httpx_error_is_offline(self, make_service):
        service = make_service(FakeBackend(decoding_error))

        status = run(service.check_status())

        assert status.online is False
        assert status.message == "bad gzip"
        assert service.tracker.get_active_requests() == []
        assert service.tracker.get_request_history()[0].status is RequestStatus.ERROR

    def test_never_raises(self, make_service):
        service = make_service(FakeBackend(httpx.Response(200)))

        with patch.object(service.transport, "send", AsyncMock(side_effect=RuntimeError("boom"))):
            status = run(service.check_status())

        assert status.online is False
        assert status.message == "boom"
        assert service.tracker.get_active_requests() == []
        assert service.tracker.get_request_history()[0].status is RequestStatus.ERROR

    def test_undecodable_2xx_body_still_online(self, make_service):
        backend = FakeBackend(
            httpx.Response(200, content=b"{oops", headers={"Content-Type": "application/json"})
        )
        status = run(make_service(backend).check_status())
        assert status.online is True

    def test_status_probe_not_retried(self, make_service, sleeps):
        backend = FakeBackend(httpx.Response(503))
        status = run(make_service(backend).check_status())

        assert status.online is False
        assert status.message == "HTTP 503: Service Unavailable"
        assert backend.call_count == 1
        assert sleeps == []

    def test_server_info(self, make_service):
        info = {"name": "rust-analyzer-service", "version": "1.2.0"}
        backend = FakeBackend(httpx.Response(200, json=info))

        assert run(make_service(backend).get_server_info()) == info
        assert str(backend.calls[0].url) == f"{SERVER_URL}/info"

    @pytest.mark.parametrize(
        "response",
        [httpx.Response(500), httpx.Response(200, text="plain text"), connect_error],
        ids=["server-error", "not-json", "offline"],
    )
    def test_server_info_best_effort(self, make_service, response):
        assert run(make_service(FakeBackend(response)).get_server_info()) is None
