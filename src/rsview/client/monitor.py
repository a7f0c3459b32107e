"""
Periodic server health monitoring.
"""

import asyncio
import logging
from typing import Callable, Optional

from ..core.types import ServerStatus
from .retry import SleepFn
from .service import AnalysisService

logger = logging.getLogger(__name__)

StatusCallback = Callable[[ServerStatus], None]


class StatusMonitor:
    """
    Runs ``check_status`` every ``interval`` seconds on the current loop.

    Online/offline transitions are logged; every status is passed to
    ``on_status``.
    """

    def __init__(
        self,
        service: AnalysisService,
        interval: Optional[float] = None,
        on_status: Optional[StatusCallback] = None,
        sleep: Optional[SleepFn] = None,
    ):
        self.service = service
        self.interval = interval if interval is not None else service.config.status_interval
        self.on_status = on_status
        self._sleep = sleep or asyncio.sleep
        self._task: Optional[asyncio.Task] = None
        self.last_status: Optional[ServerStatus] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> ServerStatus:
        status = await self.service.check_status()

        previous = self.last_status
        if previous is None or previous.online != status.online:
            state = "online" if status.online else "offline"
            logger.info(f"Server {self.service.server_url} is {state}: {status.message}")
        self.last_status = status

        if self.on_status is not None:
            try:
                self.on_status(status)
            except Exception:
                logger.exception("Status callback failed")
        return status

    def start(self) -> asyncio.Task:
        """Start the loop. Must be called from a running event loop."""
        if self.is_running:
            return self._task
        self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await self._sleep(self.interval)
