"""Shared fixtures for Enlight HTTP client tests."""

from collections.abc import Callable

import httpx
import pytest
import structlog

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it handled."""

    def __init__(self, handler: Handler):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def make_transport() -> Callable[[Handler], RecordingTransport]:
    """Factory building a RecordingTransport around a handler."""
    return RecordingTransport


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any logging configuration a test applied."""
    yield
    structlog.reset_defaults()
