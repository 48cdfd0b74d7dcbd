"""Configuration and logging setup for callers of the Enlight HTTP client."""

import json
import logging
import os
import pathlib

import httpx
import pydantic
import structlog

from .client import PROD_STAGE, AuthenticatedHttpClient

CONFIG_ENV_VAR = "ENLIGHT_HTTP_CONFIG_PATH"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for an authenticated Enlight HTTP client."""

    stage: str = pydantic.Field(
        PROD_STAGE,
        description="Deployment stage used to select the login endpoint",
    )
    username: str | None = pydantic.Field(None, description="Login user name")
    password: pydantic.SecretStr | None = pydantic.Field(
        None,
        description="Login password",
    )
    token: pydantic.SecretStr | None = pydantic.Field(
        None,
        description="Pre-known token, skips the login exchange",
    )
    timeout: float | None = pydantic.Field(
        None,
        description="Request timeout in seconds, unset for no timeout",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")

    @pydantic.model_validator(mode="after")
    def _check_credentials(self) -> "ClientConfig":
        if (self.username is None) != (self.password is None):
            msg = "username and password must be set together"
            raise ValueError(msg)
        return self


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    data = json.loads(path.read_text())
    return ClientConfig.model_validate(data)


def create_client(
    config: ClientConfig,
    transport: httpx.BaseTransport | None = None,
) -> AuthenticatedHttpClient:
    """Build a client from validated config.

    A configured token is used as is. Otherwise, when credentials are
    configured, the client logs in against the configured stage before
    being returned.

    Args:
        config: Validated client configuration.
        transport: Optional httpx transport passed through to the client.

    Returns:
        Ready-to-use client.

    Raises:
        HttpClientError: If the login exchange fails.
    """
    if config.token is not None:
        logger.info("Using configured token", stage=config.stage)
        return AuthenticatedHttpClient.with_token(
            config.token.get_secret_value(),
            timeout=config.timeout,
            transport=transport,
        )

    client = AuthenticatedHttpClient(timeout=config.timeout, transport=transport)
    if config.username is not None and config.password is not None:
        client.fetch_token(
            config.stage,
            config.username,
            config.password.get_secret_value(),
        )
    return client


def create_client_from_env(
    config_path: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> AuthenticatedHttpClient:
    """Create a client using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "/config.json")
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    return create_client(config, transport=transport)
