"""Authenticated HTTP client for Enlight APIs.

Provides a login exchange that stores a bearer token on the client and
GET/POST/PUT/DELETE helpers that send it, encode request payloads as JSON
and decode response bodies into caller-supplied types using pydantic.
"""

import json
import threading
import time
from typing import Any, TypeVar

import httpx
import pydantic
import structlog
from pydantic_core import PydanticSerializationError, to_json

from .errors import (
    MarshalError,
    RequestCreationError,
    RequestFailedError,
    ResponseParseError,
    UnmarshalError,
)
from .types import HttpResponse, LoginRequest, LoginResponse

logger = structlog.get_logger(__name__)

PROD_STAGE = "prod"
PROD_LOGIN_URL = "https://api-auth.users.enlight.skf.com/login"
STAGE_LOGIN_URL_TEMPLATE = "https://api-auth.{stage}.users.enlight.skf.com/login"

JSON_MEDIA_TYPE = "application/json"

# Only these methods ever carry a request body.
_BODY_METHODS = frozenset({"POST", "PUT"})

T = TypeVar("T")


def login_url(stage: str) -> str:
    """Return the authentication endpoint for a deployment stage."""
    if stage == PROD_STAGE:
        return PROD_LOGIN_URL
    return STAGE_LOGIN_URL_TEMPLATE.format(stage=stage)


def _canonical_header_key(key: str) -> str:
    """Canonicalize a header name, e.g. ``x-custom`` -> ``X-Custom``."""
    return "-".join(part.capitalize() for part in key.split("-"))


def _reject_constant(name: str) -> Any:
    """Refuse the non-standard NaN and Infinity tokens."""
    msg = f"{name} is not a valid JSON value"
    raise ValueError(msg)


def _encode_json(payload: Any) -> bytes:
    """Encode a payload as strict JSON.

    Raises:
        PydanticSerializationError: If the payload type is not serializable.
        ValueError: If the payload holds a non-finite float.
    """
    content = to_json(payload)
    json.loads(content, parse_constant=_reject_constant)
    return content


def _parse_response(response: httpx.Response) -> HttpResponse[Any]:
    """Read the full body and build the response envelope.

    Raises:
        httpx.HTTPError: If reading the body fails.
        httpx.StreamError: If the body stream was already consumed or closed.
    """
    headers: dict[str, list[str]] = {}
    for key, value in response.headers.multi_items():
        headers.setdefault(_canonical_header_key(key), []).append(value)

    body = response.read()

    return HttpResponse(
        status=f"{response.status_code} {response.reason_phrase}".rstrip(),
        status_code=response.status_code,
        headers=headers,
        body=body,
    )


class AuthenticatedHttpClient:
    """HTTP client that authenticates requests with a bearer token.

    The token is sent verbatim as the ``Authorization`` header of every
    verb call, even when empty. It is a plain attribute that
    :meth:`fetch_token` replaces, so concurrent token refreshes and
    requests on one instance must be serialized by the caller.

    Underlying httpx.Client instances are kept in thread-local storage.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        token: str = "",
        *,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        No I/O happens here.

        Args:
            token: Bearer token to send (default: empty until login).
            timeout: Request timeout in seconds (default: no timeout).
            transport: Optional httpx transport, e.g. a mock in tests.

        Raises:
            ValueError: If timeout is not positive.
        """
        if timeout is not None and timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.token = token
        self._timeout = timeout
        self._transport = transport

        # Use thread-local storage for httpx.Client (thread safety)
        self._local = threading.local()

    @classmethod
    def with_token(cls, token: str, **kwargs: Any) -> "AuthenticatedHttpClient":
        """Create a client with a pre-known token."""
        return cls(token, **kwargs)

    @property
    def client(self) -> httpx.Client:
        """Get or create the thread-local httpx client."""
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._local.client

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def fetch_token(self, stage: str, username: str, password: str) -> None:
        """Log in and store the returned token on the client.

        The HTTP status of the login response is not inspected: any body
        that decodes into ``{"token": ...}`` is accepted. On failure the
        previously stored token is kept.

        Args:
            stage: Deployment stage, ``"prod"`` or an environment name.
            username: Account user name.
            password: Account password.

        Raises:
            MarshalError: If the credentials cannot be encoded.
            RequestCreationError: If the login request cannot be built.
            RequestFailedError: If the request fails at the transport level.
            UnmarshalError: If the response is not a JSON ``{"token": ...}``.
        """
        method = "POST"
        url = login_url(stage)

        try:
            content = LoginRequest(username=username, password=password).model_dump_json()
        except PydanticSerializationError as err:
            raise MarshalError(method, url) from err

        try:
            request = self.client.build_request(
                method,
                url,
                content=content,
                headers={"Accept": JSON_MEDIA_TYPE, "Content-Type": JSON_MEDIA_TYPE},
            )
        except (httpx.InvalidURL, ValueError, TypeError) as err:
            raise RequestCreationError(method, url) from err

        response = self._dispatch(request, url)
        try:
            out = LoginResponse.model_validate_json(response.read())
        except (pydantic.ValidationError, httpx.HTTPError, httpx.StreamError) as err:
            raise UnmarshalError(method, url) from err
        finally:
            response.close()

        self.token = out.token
        logger.info("Fetched token", stage=stage, url=url)

    def get(self, url: str, output: type[T] | None = None) -> HttpResponse[T]:
        """Send a GET request and optionally decode the body into ``output``."""
        return self._send("GET", url, None, output)

    def post(
        self,
        url: str,
        payload: Any = None,
        output: type[T] | None = None,
    ) -> HttpResponse[T]:
        """Send a POST request with an optional JSON payload."""
        return self._send("POST", url, payload, output)

    def put(
        self,
        url: str,
        payload: Any = None,
        output: type[T] | None = None,
    ) -> HttpResponse[T]:
        """Send a PUT request with an optional JSON payload."""
        return self._send("PUT", url, payload, output)

    def delete(self, url: str, output: type[T] | None = None) -> HttpResponse[T]:
        """Send a DELETE request and optionally decode the body into ``output``."""
        return self._send("DELETE", url, None, output)

    def _dispatch(self, request: httpx.Request, url: str) -> httpx.Response:
        """Send a built request without reading its body.

        The caller owns the returned response and must close it.

        Raises:
            RequestFailedError: If the request fails at the transport level.
        """
        start_time = time.time()
        logger.debug("Making HTTP request", method=request.method, url=url)
        try:
            response = self.client.send(request, stream=True)
        except httpx.RequestError as err:
            duration = time.time() - start_time
            logger.exception(
                "HTTP request failed",
                method=request.method,
                url=url,
                duration_seconds=round(duration, 3),
            )
            raise RequestFailedError(request.method, url) from err

        duration = time.time() - start_time
        logger.debug(
            "HTTP request completed",
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )
        return response

    def _send(
        self,
        method: str,
        url: str,
        payload: Any,
        output: type[T] | None,
    ) -> HttpResponse[T]:
        """Perform one request/response exchange.

        A body is sent only for POST and PUT with a payload. HTTP error
        statuses are returned as normal responses; callers inspect
        ``status_code`` themselves.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            payload: Value to encode as the JSON body, or None for no body.
            output: Type to decode the response body into, or None to skip.

        Returns:
            Response envelope, with ``data`` set when ``output`` was given.

        Raises:
            MarshalError: If the payload cannot be encoded.
            RequestCreationError: If the request cannot be built.
            RequestFailedError: If the request fails at the transport level.
            ResponseParseError: If the response body cannot be read.
            UnmarshalError: If the body cannot be decoded into ``output``.
        """
        adapter = None
        if output is not None:
            try:
                adapter = pydantic.TypeAdapter(output)
            except pydantic.PydanticSchemaGenerationError as err:
                raise UnmarshalError(method, url) from err

        send_body = payload is not None and method in _BODY_METHODS

        content = None
        if send_body:
            try:
                content = _encode_json(payload)
            except (PydanticSerializationError, ValueError) as err:
                raise MarshalError(method, url) from err

        headers = {"Accept": JSON_MEDIA_TYPE, "Authorization": self.token}
        if send_body:
            headers["Content-Type"] = JSON_MEDIA_TYPE

        try:
            request = self.client.build_request(
                method,
                url,
                content=content,
                headers=headers,
            )
        except (httpx.InvalidURL, ValueError, TypeError) as err:
            raise RequestCreationError(method, url) from err

        response = self._dispatch(request, url)
        try:
            result = _parse_response(response)
        except (httpx.HTTPError, httpx.StreamError) as err:
            raise ResponseParseError(method, url) from err
        finally:
            response.close()

        if adapter is None:
            return result

        try:
            data = adapter.validate_json(result.body)
            json.loads(result.body, parse_constant=_reject_constant)
        except (ValueError, pydantic.PydanticSchemaGenerationError) as err:
            raise UnmarshalError(method, url, response=result) from err

        return result.model_copy(update={"data": data})
