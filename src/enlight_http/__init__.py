"""Enlight HTTP client.

Minimal authenticated HTTP client: logs in against the Enlight
authentication service to obtain a token, then sends JSON requests
carrying it and decodes JSON responses into caller-supplied types.

Exports:
    AuthenticatedHttpClient: HTTP client with token authentication.
    HttpResponse: Response envelope returned by verb calls.
    HttpClientError: Base class of all client errors.
    login_url: Authentication endpoint for a deployment stage.
"""

from .client import AuthenticatedHttpClient, login_url
from .errors import (
    HttpClientError,
    MarshalError,
    RequestCreationError,
    RequestFailedError,
    ResponseParseError,
    UnmarshalError,
)
from .types import HttpResponse

__version__ = "0.1.0"

__all__ = [
    "AuthenticatedHttpClient",
    "HttpClientError",
    "HttpResponse",
    "MarshalError",
    "RequestCreationError",
    "RequestFailedError",
    "ResponseParseError",
    "UnmarshalError",
    "login_url",
]
