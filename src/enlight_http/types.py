"""Request and response types for the Enlight HTTP client.

Pydantic models for the login exchange and for the response envelope
returned by every verb call.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class LoginRequest(BaseModel):
    """Credentials sent to the authentication endpoint."""

    username: str
    password: str


class LoginResponse(BaseModel):
    """Body returned by a successful login."""

    token: str


class HttpResponse(BaseModel, Generic[T]):
    """Immutable view of an HTTP response.

    Built from the raw response before any JSON decoding happens, so the
    status, headers and body are available even when decoding into the
    caller's output type fails. Header names are canonicalized
    (``x-custom`` becomes ``X-Custom``) and map to every value received,
    in order.
    """

    model_config = ConfigDict(frozen=True)

    # Status line, e.g. "404 Not Found"
    status: str
    status_code: int

    headers: dict[str, list[str]]
    body: bytes

    # Decoded body, set only when an output type was requested
    data: T | None = None
