"""
HTTP Transport.

Issues exactly one bounded-time HTTP call against the analysis backend and
reports the outcome as a Result. Network conditions never raise: timeouts,
connection failures, non-2xx answers and undecodable JSON bodies all come
back as ``Err(TransportError)`` for the retry policy to classify.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..config import DEFAULT_SERVER_URL, DEFAULT_TIMEOUT
from ..core.errors import (
    HttpStatusError,
    NetworkError,
    ResponseDecodeError,
    TransportError,
    TransportTimeout,
)
from ..core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class TransportRequest:
    """
    Description of one HTTP call, replayable across retry attempts.

    Attributes:
        endpoint: Path appended to the transport's base URL.
        method: HTTP verb.
        headers: Extra headers, merged over the defaults.
        body: Raw request body.
        timeout: Wall-clock budget in seconds, transport default if None.
    """
    endpoint: str
    method: str = "GET"
    headers: Optional[Mapping[str, str]] = None
    body: Optional[Union[str, bytes]] = None
    timeout: Optional[float] = None


class HttpTransport:
    """
    Single-shot HTTP calls with a hard wall-clock timeout.

    An injected ``httpx.AsyncClient`` is reused for every call and left open;
    without one, a short-lived client is opened per call.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._base_url = value.rstrip("/")

    async def send(
        self,
        endpoint: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
        timeout: Optional[float] = None,
    ) -> Result[Any, TransportError]:
        """
        Perform one HTTP call.

        Args:
            endpoint: Path such as ``/analyse``.
            method: HTTP verb.
            headers: Headers merged over ``Content-Type: application/json``.
            body: Raw body sent as-is.
            timeout: Seconds before the call is cancelled.

        Returns:
            Ok(parsed JSON or text body) or Err(TransportError).
        """
        budget = self.timeout if timeout is None else timeout
        url = f"{self._base_url}{endpoint}"
        merged = {**DEFAULT_HEADERS, **(headers or {})}

        logger.debug(f"{method} {url} (timeout {budget:g}s)")
        try:
            response = await asyncio.wait_for(
                self._request(method, url, merged, body, budget), timeout=budget
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return Err(TransportTimeout(budget))
        except httpx.HTTPError as e:
            return Err(NetworkError(str(e) or type(e).__name__))

        if not response.is_success:
            logger.debug(f"{method} {url} -> {response.status_code}")
            return Err(HttpStatusError(response.status_code, response.reason_phrase))

        return self._decode(response)

    async def send_request(self, request: TransportRequest) -> Result[Any, TransportError]:
        """Send a prepared TransportRequest."""
        return await self.send(
            request.endpoint,
            method=request.method,
            headers=request.headers,
            body=request.body,
            timeout=request.timeout,
        )

    async def _request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Union[str, bytes]],
        timeout: float,
    ) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(
                method, url, headers=headers, content=body, timeout=timeout
            )
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method, url, headers=headers, content=body)

    @staticmethod
    def _decode(response: httpx.Response) -> Result[Any, TransportError]:
        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if media_type != "application/json" and not media_type.endswith("+json"):
            return Ok(response.text)
        try:
            return Ok(response.json())
        except ValueError as e:
            return Err(ResponseDecodeError(f"Invalid JSON body: {e}"))
