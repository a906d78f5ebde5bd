"""Shared fixtures for catalog_bridge tests."""

import logging
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.runtime.upstream import UpstreamClient

BASE_URL = "http://upstream.test/endpoint-REST"


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingUpstream:
    """httpx mock transport that records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(self, raw_path: str, status_code: int = 200, **kwargs: Any) -> None:
        self.routes[raw_path] = lambda request: httpx.Response(status_code, **kwargs)

    def raise_on(self, raw_path: str, exc: Exception) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[raw_path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.raw_path.decode())
        if handler is None:
            return httpx.Response(404, json={"msg": "no route"})
        return handler(request)

    @property
    def raw_paths(self) -> list[str]:
        return [r.url.raw_path.decode() for r in self.requests]


@pytest.fixture
def recorder() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def upstream(recorder: RecordingUpstream) -> UpstreamClient:
    return UpstreamClient(BASE_URL, timeout_s=2.0, transport=httpx.MockTransport(recorder))


@pytest.fixture
def dispatcher(upstream: UpstreamClient) -> ToolDispatcher:
    return ToolDispatcher(upstream)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
