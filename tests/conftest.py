"""Shared fixtures: a Shuttle app wired to fake origins instead of the network."""

from collections import Counter
from typing import Callable

import httpx
import logfire
import pytest
from fastapi.testclient import TestClient
from logfire.testing import capfire  # noqa: F401

from shuttle.app import create_app
from shuttle.config import Settings
from shuttle.handler import OriginHandler

# Keep test runs quiet and offline
logfire.configure(send_to_logfire=False, console=False)


class FakeOrigins:
    """Routes requests by origin to canned responders and records what arrived."""

    def __init__(self):
        self.responders: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.created: Counter = Counter()

    def add(self, origin: str, responder: Callable[[httpx.Request], httpx.Response]):
        self.responders[origin] = responder

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        origin = f"{request.url.scheme}://{request.url.netloc.decode('ascii')}"
        responder = self.responders.get(origin)
        if responder is None:
            raise httpx.ConnectError(f"Name or service not known: {request.url.host}", request=request)
        response = responder(request)
        if not response.is_stream_consumed:
            return response
        # httpx.Response(content=...) reads its body up front; hand the proxy an
        # unread stream of the same raw bytes, as a socket would. The in-memory
        # ByteStream can be iterated again.
        return httpx.Response(
            response.status_code,
            headers=response.headers.raw,
            stream=response.stream,
        )

    def factory(self, origin: str) -> OriginHandler:
        self.created[origin] += 1
        return OriginHandler(
            origin,
            timeout=1.0,
            transport=httpx.MockTransport(self.handle),
        )


@pytest.fixture
def origins() -> FakeOrigins:
    return FakeOrigins()


@pytest.fixture
def app(origins):
    return create_app(Settings(), handler_factory=origins.factory)


@pytest.fixture
def client(app):
    """Test client with the app's lifespan running (registry live)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def registry(app, client):
    return app.state.registry
