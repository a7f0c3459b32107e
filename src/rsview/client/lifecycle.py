"""
Request Lifecycle Tracker.

Keeps the set of in-flight requests and a bounded audit history. Records are
created pending and move exactly once to success, error or cancelled. The
tracker owns every record; callers and listeners only see copies.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from ..config import DEFAULT_HISTORY_SIZE
from ..core.types import RequestRecord, RequestStatus, utcnow
from .events import RequestEvents

logger = logging.getLogger(__name__)


class RequestTracker:
    """
    Active-set plus bounded history of RequestRecords.

    History is append-only and evicts the oldest-inserted record once
    ``max_history`` is reached. Lookups by id consult the active set only, so a
    second ``complete`` or ``cancel`` for the same id is a no-op.
    """

    def __init__(
        self,
        max_history: int = DEFAULT_HISTORY_SIZE,
        events: Optional[RequestEvents] = None,
    ):
        if max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {max_history}")
        self.max_history = max_history
        self.events = events or RequestEvents()
        self._active: Dict[str, RequestRecord] = {}
        self._history: Deque[RequestRecord] = deque(maxlen=max_history)

    def start(self, request_id: str, description: str = "") -> RequestRecord:
        """
        Register a new pending request.

        Raises:
            ValueError: If ``request_id`` is already active.
        """
        if request_id in self._active:
            raise ValueError(f"Request '{request_id}' is already active")

        record = RequestRecord(id=request_id, description=description)
        self._active[request_id] = record
        self._history.append(record)
        logger.debug(f"Request started: {request_id} ({description})")

        self.events.started.emit(record.snapshot())
        return record.snapshot()

    def complete(
        self,
        request_id: str,
        result: Any = None,
        error: Optional[BaseException | str] = None,
    ) -> Optional[RequestRecord]:
        """
        Finish an active request as ``error`` when an error is given, else
        ``success``.

        Returns:
            A copy of the terminal record, or None for an unknown id.
        """
        status = RequestStatus.ERROR if error is not None else RequestStatus.SUCCESS
        record = self._finish(request_id, status, result=result, error=error)
        if record is not None:
            self.events.completed.emit(record.snapshot())
            return record.snapshot()
        return None

    def cancel(self, request_id: str) -> Optional[RequestRecord]:
        """Mark an active request cancelled. Unknown ids return None."""
        record = self._finish(request_id, RequestStatus.CANCELLED)
        if record is not None:
            self.events.cancelled.emit(record.snapshot())
            return record.snapshot()
        return None

    def _finish(
        self,
        request_id: str,
        status: RequestStatus,
        result: Any = None,
        error: Optional[BaseException | str] = None,
    ) -> Optional[RequestRecord]:
        record = self._active.pop(request_id, None)
        if record is None:
            logger.debug(f"Ignoring {status.value} for unknown request '{request_id}'")
            return None

        record.end_time = utcnow()
        record.duration_ms = (record.end_time - record.start_time).total_seconds() * 1000
        record.status = status
        record.result = result
        record.error = str(error) if error is not None else None
        logger.debug(f"Request {status.value}: {request_id} in {record.duration_ms:.1f}ms")
        return record

    def get(self, request_id: str) -> Optional[RequestRecord]:
        record = self._active.get(request_id)
        return record.snapshot() if record else None

    def get_active_requests(self) -> List[RequestRecord]:
        return [r.snapshot() for r in self._active.values()]

    def get_request_history(self) -> List[RequestRecord]:
        """History copies, newest first."""
        return [r.snapshot() for r in reversed(self._history)]

    def clear_history(self) -> None:
        self._history.clear()

    @property
    def active_count(self) -> int:
        return len(self._active)
