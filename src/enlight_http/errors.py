"""Errors raised by the Enlight HTTP client.

Every failure is an :class:`HttpClientError` naming the step that failed,
the HTTP method and the target URL. The underlying exception is chained
as ``__cause__``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import HttpResponse


class HttpClientError(Exception):
    """Base class for client failures."""

    template = "{method} request to endpoint: {url} failed"

    def __init__(self, method: str, url: str):
        self.method = method
        self.url = url
        super().__init__(self.template.format(method=method, url=url))


class MarshalError(HttpClientError):
    """The request payload could not be serialized to JSON."""

    template = "Failed to marshal body for {method} request to endpoint: {url}"


class RequestCreationError(HttpClientError):
    """The request could not be built (invalid URL or header value)."""

    template = "Failed to create {method} request to endpoint: {url}"


class RequestFailedError(HttpClientError):
    """The request did not complete at the transport level."""


class ResponseParseError(HttpClientError):
    """The response body could not be read."""

    template = "Failed to parse response from {method} request to endpoint: {url}"


class UnmarshalError(HttpClientError):
    """The response body could not be decoded into the requested type.

    ``response`` holds the envelope that was read before decoding, or
    ``None`` when the body was decoded without one (login).
    """

    template = (
        "Failed to unmarshal json response from {method} request to endpoint: {url}"
    )

    def __init__(self, method: str, url: str, response: HttpResponse | None = None):
        super().__init__(method, url)
        self.response = response
