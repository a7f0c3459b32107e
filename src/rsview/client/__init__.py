"""
Analysis-request orchestration layer.

Provides:
- HttpTransport: one bounded-time HTTP call
- RetryPolicy: linear-backoff retry over the transport
- RequestTracker: request lifecycle records and events
- ResultCache: fingerprint-keyed FIFO cache
- AnalysisService: analyze / check_status over all of the above
- StatusMonitor: periodic health probes
"""

from .cache import CacheStats, ResultCache, fingerprint
from .events import EventChannel, RequestEvent, RequestEvents
from .lifecycle import RequestTracker
from .monitor import StatusMonitor
from .retry import RetryPolicy
from .service import AnalysisService
from .transport import HttpTransport, TransportRequest

__all__ = [
    "AnalysisService",
    "CacheStats",
    "EventChannel",
    "HttpTransport",
    "RequestEvent",
    "RequestEvents",
    "RequestTracker",
    "ResultCache",
    "RetryPolicy",
    "StatusMonitor",
    "TransportRequest",
    "fingerprint",
]
