"""
Typed event channels for request lifecycle notifications.

A listener that raises is logged and skipped; the remaining listeners still
receive the payload.
"""

import logging
from enum import StrEnum
from typing import Callable, Generic, List, TypeVar

from ..core.types import RequestRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class RequestEvent(StrEnum):
    START = "request:start"
    COMPLETE = "request:complete"
    CANCEL = "request:cancel"


class EventChannel(Generic[T]):
    """A named list of listeners that all receive every emitted payload."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, callback: Listener) -> Callable[[], bool]:
        """
        Register ``callback``.

        Returns:
            A handle that unsubscribes the callback when called.
        """
        self._listeners.append(callback)
        return lambda: self.unsubscribe(callback)

    def once(self, callback: Listener) -> Callable[[], bool]:
        """Register ``callback`` for the next emission only."""

        def _wrapper(payload: T) -> None:
            self.unsubscribe(_wrapper)
            callback(payload)

        return self.subscribe(_wrapper)

    def unsubscribe(self, callback: Listener) -> bool:
        try:
            self._listeners.remove(callback)
        except ValueError:
            return False
        return True

    def emit(self, payload: T) -> int:
        """
        Deliver ``payload`` to every current listener.

        Returns:
            int: Number of listeners that handled the payload without raising.
        """
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Listener {listener!r} failed on '{self.name}'")
        return delivered

    def __len__(self) -> int:
        return len(self._listeners)


class RequestEvents:
    """The three lifecycle channels of a RequestTracker."""

    def __init__(self):
        self.started: EventChannel[RequestRecord] = EventChannel(RequestEvent.START)
        self.completed: EventChannel[RequestRecord] = EventChannel(RequestEvent.COMPLETE)
        self.cancelled: EventChannel[RequestRecord] = EventChannel(RequestEvent.CANCEL)

    def channel(self, event: RequestEvent) -> EventChannel[RequestRecord]:
        return {
            RequestEvent.START: self.started,
            RequestEvent.COMPLETE: self.completed,
            RequestEvent.CANCEL: self.cancelled,
        }[RequestEvent(event)]
