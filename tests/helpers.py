"""
Test doubles shared across the rsview test suite.
"""

import asyncio
from typing import Any, List

import httpx

from rsview.core.errors import RenderError, RenderUnavailableError

SERVER_URL = "http://analysis.test"


class FakeBackend:
    """
    httpx.MockTransport handler that replays canned responses.

    Each item is an ``httpx.Response`` or a callable taking the request (so it
    can raise request-bound httpx errors). The last item repeats forever.
    """

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        item = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if callable(item):
            return item(request)
        return item

    @property
    def call_count(self) -> int:
        return len(self.calls)


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def read_timeout(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("Read timed out", request=request)


def decoding_error(request: httpx.Request) -> httpx.Response:
    raise httpx.DecodingError("bad gzip", request=request)


class FakeEngine:
    """In-memory LayoutEngine that records what it was asked to render."""

    def __init__(self, svg: str = "<svg>graph</svg>", fail_init: bool = False, fail_render: bool = False):
        self.svg = svg
        self.fail_init = fail_init
        self.fail_render = fail_render
        self.init_calls = 0
        self.rendered: List[str] = []

    def initialize(self) -> None:
        self.init_calls += 1
        if self.fail_init:
            raise RenderUnavailableError("Graphviz executables not found")

    def render_svg(self, dot: str) -> str:
        self.rendered.append(dot)
        if self.fail_render:
            raise RenderError("syntax error in line 2")
        return self.svg


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)
