"""
Shared fixtures for the rsview test suite.
"""

from typing import Callable, List, Optional

import httpx
import pytest

from rsview.client.service import AnalysisService
from rsview.config import ClientConfig
from rsview.core.types import AnalysisResult

from tests.helpers import SERVER_URL, FakeBackend, FakeEngine


@pytest.fixture
def analysis_payload() -> dict:
    """Backend answer for ``fn main() {}``."""
    return {
        "success": True,
        "tokens": [
            {"type": "FN", "text": "fn", "line": 1, "column": 0},
            {"type": "IDENTIFIER", "text": "main", "line": 1, "column": 3},
            {"type": "LPAREN", "text": "(", "line": 1, "column": 7},
            {"type": "RPAREN", "text": ")", "line": 1, "column": 8},
            {"type": "LBRACE", "text": "{", "line": 1, "column": 10},
            {"type": "RBRACE", "text": "}", "line": 1, "column": 11},
        ],
        "parseTree": {
            "lisp": "(crate (item (function fn main ( ) (block { }))))",
            "dot": "digraph G { A; }",
        },
        "errors": [],
    }


@pytest.fixture
def analysis_result(analysis_payload) -> AnalysisResult:
    return AnalysisResult.from_payload(analysis_payload)


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the retry policy during a test."""
    return []


@pytest.fixture
def make_service(sleeps) -> Callable[..., AnalysisService]:
    """Build an AnalysisService wired to a FakeBackend, with instant backoff."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _make(backend: FakeBackend, config: Optional[ClientConfig] = None, **overrides) -> AnalysisService:
        config = config or ClientConfig(server_url=SERVER_URL, **overrides)
        client = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        return AnalysisService.from_config(config, client=client, sleep=fake_sleep)

    return _make


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
