"""
Retry Policy.

Wraps HttpTransport with bounded linear-backoff retry. Permanent failures
(HTTP 4xx) are returned after the first attempt; everything else is retried
until the attempt budget is spent.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS
from ..core.errors import TransportError
from ..core.result import Result
from .transport import HttpTransport, TransportRequest

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


class RetryPolicy:
    """
    Linear backoff: after failed attempt ``n`` the policy sleeps
    ``base_delay * n`` before attempt ``n + 1``.
    """

    def __init__(
        self,
        transport: HttpTransport,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Optional[SleepFn] = None,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.transport = transport
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep or asyncio.sleep

    async def send_with_retry(
        self,
        request: TransportRequest,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> Result[Any, TransportError]:
        """
        Send ``request`` until it succeeds, fails permanently, or the
        attempt budget runs out.

        Args:
            request: The call to replay.
            max_attempts: Total attempts, policy default if None.
            base_delay: Backoff unit in seconds, policy default if None.

        Returns:
            The first Ok, or the Err of the last attempt made.
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        delay = self.base_delay if base_delay is None else base_delay
        if attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {attempts}")

        attempt = 0
        while True:
            attempt += 1
            result = await self.transport.send_request(request)
            if result.is_ok():
                return result

            error = result.error
            if error.permanent:
                logger.debug(f"{request.method} {request.endpoint} failed permanently: {error}")
                return result
            if attempt >= attempts:
                logger.debug(f"{request.method} {request.endpoint} gave up after {attempt} attempts")
                return result

            wait = delay * attempt
            logger.warning(
                f"Attempt {attempt}/{attempts} for {request.endpoint} failed ({error}), "
                f"retrying in {wait:g}s"
            )
            await self._sleep(wait)
