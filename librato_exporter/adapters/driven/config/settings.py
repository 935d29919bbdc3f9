"""Configuration loading from environment variables and files."""

import json
import logging
import os
import socket
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from librato_exporter.ports.results import Result

__all__ = [
    "ConfigurationError",
    "Settings",
    "load_settings",
    "DEFAULT_LIBRATO_API_URL",
    "DEFAULT_SOURCE",
]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

DEFAULT_LIBRATO_API_URL = "https://metrics-api.librato.com/v1/metrics"
DEFAULT_LIBRATO_API_TIMEOUT_IN_MILLIS = 1000
DEFAULT_SOURCE = "#hostname#"
DEFAULT_PERIOD_IN_SECONDS = 60


class ConfigurationError(ValueError):
    """Invalid or missing configuration; aborts startup."""


class Settings(BaseModel):
    """Runtime configuration for the Librato exporter.

    Attributes:
        url: Librato metrics endpoint.
        username: Librato user.
        token: Librato API token.
        proxy_host: Optional HTTP proxy host.
        proxy_port: HTTP proxy port, required when proxy_host is set.
        librato_api_timeout_in_millis: Read timeout of the API calls.
        source: Librato "source" of every metric; "#hostname#" means local host.
        enabled: Export nothing when False.
        period_in_sec: Interval between export cycles in seconds.
        results_file_path: Path to JSON file with the results to export.
        results: Results loaded from file.
    """

    url: str = Field(default=DEFAULT_LIBRATO_API_URL, description="Librato metrics endpoint.")
    username: str = Field(..., min_length=1, description="Librato user.")
    token: str = Field(..., min_length=1, description="Librato API token.")
    proxy_host: str | None = Field(default=None, description="Optional HTTP proxy host.")
    proxy_port: int | None = Field(default=None, ge=1, le=65535, description="HTTP proxy port.")
    librato_api_timeout_in_millis: int = Field(
        default=DEFAULT_LIBRATO_API_TIMEOUT_IN_MILLIS,
        gt=0,
        description="Read timeout of the calls to the Librato HTTP API.",
    )
    source: str = Field(default=DEFAULT_SOURCE, description="Librato source label.")
    enabled: bool = Field(default=True, description="Flag to enable/disable the exporter.")
    period_in_sec: int = Field(
        default=DEFAULT_PERIOD_IN_SECONDS, gt=0, description="Interval between exports."
    )
    results_file_path: str = Field(..., description="Path to JSON file containing results.")
    results: list[Result] = Field(
        default_factory=list,
        description="Results to export (populated from file).",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that the endpoint is a valid HTTP(S) URL.

        Args:
            v: Endpoint URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If URL is malformed or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// endpoints allowed")
        except Exception as e:
            raise ValueError(f"Invalid Librato endpoint: {e}") from e
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Reject user names that cannot be sent with basic authentication."""
        if ":" in v:
            raise ValueError("Librato username must not contain ':'")
        if not v.isascii():
            raise ValueError("Librato username must be ASCII")
        return v

    @field_validator("proxy_host")
    @classmethod
    def blank_proxy_host_is_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def validate_proxy(self) -> "Settings":
        if self.proxy_host and self.proxy_port is None:
            raise ValueError("LIBRATO_PROXY_PORT is required when LIBRATO_PROXY_HOST is set")
        return self

    def resolved_source(self) -> str:
        """Return the source label, replacing the hostname placeholder."""
        if self.source == DEFAULT_SOURCE:
            return socket.gethostname()
        return self.source

    def load_results(self) -> None:
        """Load and validate results from JSON file.

        Each entry is an object with "classNameAlias", "attributeName",
        "values" and an optional "epoch" (ms).

        Raises:
            ConfigurationError: If file not found, invalid JSON or wrong format.
        """
        try:
            with open(self.results_file_path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Results file not found: {self.results_file_path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Results file contains invalid JSON: {self.results_file_path}"
            ) from e

        if not isinstance(data, list):
            raise ConfigurationError("Results file must be a JSON array")
        if not data:
            raise ConfigurationError("Results file is empty")

        self.results = [_parse_result(entry) for entry in data]
        logger.debug(f"Loaded {len(self.results)} results from {self.results_file_path}")


def _parse_result(entry: Any) -> Result:
    if not isinstance(entry, dict):
        raise ConfigurationError("Each result must be a JSON object")
    try:
        alias = entry["classNameAlias"]
        attribute = entry["attributeName"]
    except KeyError as e:
        raise ConfigurationError(f"Result is missing '{e.args[0]}': {entry}") from e

    values = entry.get("values") or {}
    if not isinstance(values, dict):
        raise ConfigurationError(f"Result 'values' must be a JSON object: {entry}")

    return Result(
        class_name_alias=str(alias),
        attribute_name=str(attribute),
        epoch=int(entry.get("epoch", 0)),
        values=values,
    )


def load_settings() -> Settings:
    """Load and validate settings from environment and files.

    Required environment variables:
    - LIBRATO_USERNAME, LIBRATO_TOKEN: Librato credentials.
    - RESULTS_FILE_PATH: Path to JSON file with results to export.

    Optional:
    - LIBRATO_URL, LIBRATO_PROXY_HOST, LIBRATO_PROXY_PORT,
      LIBRATO_API_TIMEOUT_IN_MILLIS, LIBRATO_SOURCE, LIBRATO_ENABLED,
      PERIOD_IN_SECONDS.

    Returns:
        Validated Settings object.

    Raises:
        ConfigurationError: If required env vars are missing or any value is invalid.
    """
    try:
        username = os.environ["LIBRATO_USERNAME"]
        token = os.environ["LIBRATO_TOKEN"]
        results_path = os.environ["RESULTS_FILE_PATH"]
    except KeyError as e:
        raise ConfigurationError(f"Missing required environment variable: {e.args[0]}") from e

    optional = {
        "url": os.getenv("LIBRATO_URL"),
        "proxy_host": os.getenv("LIBRATO_PROXY_HOST"),
        "proxy_port": os.getenv("LIBRATO_PROXY_PORT"),
        "librato_api_timeout_in_millis": os.getenv("LIBRATO_API_TIMEOUT_IN_MILLIS"),
        "source": os.getenv("LIBRATO_SOURCE"),
        "enabled": os.getenv("LIBRATO_ENABLED"),
        "period_in_sec": os.getenv("PERIOD_IN_SECONDS"),
    }

    try:
        settings = Settings(
            username=username,
            token=token,
            results_file_path=results_path,
            **{key: value for key, value in optional.items() if value not in (None, "")},
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    # Load and validate results file
    settings.load_results()

    logger.info(
        f"Start Librato writer connected to '{settings.url}': "
        f"user={settings.username}, "
        f"proxy={settings.proxy_host or '<none>'}:{settings.proxy_port or ''}, "
        f"timeout={settings.librato_api_timeout_in_millis}ms, "
        f"period={settings.period_in_sec}s, "
        f"results={len(settings.results)}"
    )

    return settings
