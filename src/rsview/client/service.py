"""
Analysis Orchestrator.

AnalysisService composes the transport, retry policy, lifecycle tracker and
result cache into the two calls a host needs: ``analyze`` and
``check_status``. Collaborators are injected; ``from_config`` wires the
default set.

Per call:
    idle -> dispatched -> (cache hit | network path) -> terminal
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from ..config import ANALYZE_ENDPOINT, HEALTH_ENDPOINT, INFO_ENDPOINT, ClientConfig
from ..core.errors import InputValidationError, PayloadFormatError, ResponseDecodeError
from ..core.result import Err
from ..core.types import AnalysisResult, ServerStatus
from .cache import CacheStats, ResultCache, fingerprint
from .lifecycle import RequestTracker
from .retry import RetryPolicy, SleepFn
from .transport import HttpTransport, TransportRequest

logger = logging.getLogger(__name__)

ANALYZE_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}


class AnalysisService:
    """
    Client for the remote source-analysis backend.

    Concurrent ``analyze`` calls for the same source are not deduplicated;
    both reach the network and the last one to finish owns the cache slot.
    """

    def __init__(
        self,
        transport: HttpTransport,
        retry: RetryPolicy,
        tracker: RequestTracker,
        cache: ResultCache,
        config: Optional[ClientConfig] = None,
    ):
        self.transport = transport
        self.retry = retry
        self.tracker = tracker
        self.cache = cache
        self.config = config or ClientConfig(
            server_url=transport.base_url,
            timeout=transport.timeout,
            cache_enabled=cache.enabled,
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[SleepFn] = None,
    ) -> "AnalysisService":
        """
        Build a service with default collaborators.

        Args:
            config: Settings, ``ClientConfig.load()`` if None.
            client: Shared httpx client, one per call if None.
            sleep: Backoff sleep, ``asyncio.sleep`` if None.
        """
        config = config or ClientConfig.load()
        transport = HttpTransport(config.server_url, config.timeout, client=client)
        retry = RetryPolicy(
            transport,
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            sleep=sleep,
        )
        tracker = RequestTracker(max_history=config.history_size)
        cache = ResultCache(max_size=config.cache_size, enabled=config.cache_enabled)
        return cls(transport, retry, tracker, cache, config=config)

    # --- Analysis ---

    async def analyze(self, code: str) -> AnalysisResult:
        """
        Analyze source text on the backend.

        Args:
            code: Source text, sent verbatim.

        Returns:
            AnalysisResult: Cached or freshly decoded result.

        Raises:
            InputValidationError: ``code`` is empty or whitespace only.
            TransportError: Every attempt failed, or the failure was permanent.
            PayloadFormatError: The backend answered with a malformed payload.
        """
        if not code or not code.strip():
            raise InputValidationError("Source text must not be empty")

        key = fingerprint(code)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Returning cached analysis for {key}")
            return cached

        request_id = f"analyze_{uuid.uuid4().hex[:12]}"
        self.tracker.start(request_id, "source analysis")

        try:
            result = await self._request_analysis(code)
        except asyncio.CancelledError:
            self.tracker.cancel(request_id)
            raise
        except Exception as e:
            self.tracker.complete(request_id, error=e)
            raise

        self.cache.put(key, result)
        self.tracker.complete(request_id, result=result)
        logger.info(
            f"Analysis {request_id}: {len(result.tokens)} tokens, {len(result.errors)} errors"
        )
        return result

    async def _request_analysis(self, code: str) -> AnalysisResult:
        request = TransportRequest(
            ANALYZE_ENDPOINT,
            method="POST",
            headers=ANALYZE_HEADERS,
            body=code,
            timeout=self.config.timeout,
        )
        outcome = await self.retry.send_with_retry(request)
        if outcome.is_err():
            raise outcome.unwrap_err()

        try:
            return AnalysisResult.from_payload(outcome.value)
        except PayloadFormatError as e:
            logger.warning(f"Rejected analysis payload: {e}")
            raise

    # --- Server ---

    async def check_status(self) -> ServerStatus:
        """
        Single unretried health probe. Never raises.

        Any 2xx answer counts as online, even when its body cannot be decoded.
        """
        request_id = f"status_{uuid.uuid4().hex[:12]}"
        self.tracker.start(request_id, "server status check")

        try:
            outcome = await self.transport.send(
                HEALTH_ENDPOINT, timeout=self.config.status_timeout
            )
        except asyncio.CancelledError:
            self.tracker.cancel(request_id)
            raise
        except Exception as e:
            logger.exception("Unexpected failure during status check")
            outcome = Err(e)

        if outcome.is_ok() or isinstance(outcome.error, ResponseDecodeError):
            status = ServerStatus(online=True, message="Server is online")
            self.tracker.complete(request_id, result=status)
        else:
            message = str(outcome.error) or type(outcome.error).__name__
            status = ServerStatus(online=False, message=message)
            self.tracker.complete(request_id, result=status, error=outcome.error)
        return status

    async def get_server_info(self) -> Optional[Dict[str, Any]]:
        """Fetch ``/info``. Returns None on any failure."""
        outcome = await self.transport.send(INFO_ENDPOINT, timeout=self.config.status_timeout)
        if outcome.is_err():
            logger.warning(f"Could not fetch server info: {outcome.error}")
            return None
        if not isinstance(outcome.value, dict):
            logger.warning("Server info is not a JSON object")
            return None
        return outcome.value

    @property
    def server_url(self) -> str:
        return self.transport.base_url

    def set_server_url(self, url: str) -> None:
        """Point at another backend. Cached results are dropped."""
        self.config.server_url = url
        self.transport.base_url = self.config.server_url
        self.cache.clear()
        logger.info(f"Server URL set to {self.transport.base_url}")

    # --- Cache ---

    def set_cache_enabled(self, enabled: bool) -> None:
        self.config.cache_enabled = enabled
        self.cache.enabled = enabled

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> CacheStats:
        return self.cache.get_stats()
