from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lambda_otel_exporter.shared.exceptions import ConfigError
from lambda_otel_exporter.shared.hints import HONEYCOMB_CREDENTIALS_MISSING, RUNTIME_API_MISSING

HONEYCOMB_TRACE_ENDPOINT = "https://api.honeycomb.io/v1/traces"

_TRUTHY = {"1", "t", "true", "y", "yes", "on"}
_FALSY = {"0", "f", "false", "n", "no", "off", ""}


class Settings(BaseSettings):
    """
    Settings for the Lambda OTel exporter extension.

    Values come from the function's environment variables (and a local .env
    file when one exists, which is handy for --local-mode runs).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    aws_lambda_runtime_api: str | None = Field(
        default=None,
        description="host:port of the Lambda runtime API, set by the Lambda service",
        validation_alias="AWS_LAMBDA_RUNTIME_API",
    )

    extension_name: str = Field(
        default_factory=lambda: Path(sys.argv[0]).name,
        description="Name announced to the extensions API; must match the file name in /opt/extensions",
        validation_alias="LAMBDA_OTEL_EXTENSION_NAME",
    )

    honeycomb_dataset: str | None = Field(
        default=None,
        description="Honeycomb dataset spans are written to",
        validation_alias="HONEYCOMB_DATASET",
    )

    honeycomb_api_key: str | None = Field(
        default=None,
        description="Honeycomb API key",
        validation_alias="HONEYCOMB_API_KEY",
    )

    destination_endpoint: str = Field(
        default=HONEYCOMB_TRACE_ENDPOINT,
        description="OTLP/HTTP traces endpoint batches are forwarded to",
        validation_alias="LAMBDA_OTEL_DESTINATION_ENDPOINT",
    )

    destination_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra static headers sent with every export (JSON object)",
        validation_alias="LAMBDA_OTEL_DESTINATION_HEADERS",
    )

    listen_host: str = Field(
        default="0.0.0.0",  # noqa: S104
        description="Interface the OTLP ingest listener binds to",
        validation_alias="LAMBDA_OTEL_LISTEN_HOST",
    )

    listen_port: int = Field(
        default=4318,
        description="Port the OTLP ingest listener binds to",
        validation_alias="LAMBDA_OTEL_LISTEN_PORT",
    )

    queue_capacity: int = Field(
        default=1000,
        gt=0,
        description="Maximum number of resource span groups held between flushes",
        validation_alias="LAMBDA_OTEL_QUEUE_CAPACITY",
    )

    invoke_flush_timeout: float = Field(
        default=3.0,
        gt=0,
        description="Seconds allowed for the flush that follows an INVOKE event",
        validation_alias="LAMBDA_OTEL_INVOKE_FLUSH_TIMEOUT",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
        validation_alias="OTEL_DEBUG",
    )

    @field_validator("debug", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any) -> Any:
        """Unparseable OTEL_DEBUG values fall back to False instead of failing startup."""
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUTHY:
                return True
            if lowered in _FALSY:
                return False
            return False
        return value

    def export_headers(self) -> dict[str, str]:
        """Static headers attached to every export request."""
        headers: dict[str, str] = {}
        if self.honeycomb_dataset:
            headers["x-honeycomb-dataset"] = self.honeycomb_dataset
        if self.honeycomb_api_key:
            headers["x-honeycomb-team"] = self.honeycomb_api_key
        headers.update(self.destination_headers)
        return headers

    def validate_destination(self) -> None:
        """Raise ConfigError if spans would be forwarded without credentials."""
        if self.destination_endpoint == HONEYCOMB_TRACE_ENDPOINT and (
            not self.honeycomb_dataset or not self.honeycomb_api_key
        ):
            raise ConfigError(
                "missing required env vars HONEYCOMB_DATASET/HONEYCOMB_API_KEY",
                hints=[HONEYCOMB_CREDENTIALS_MISSING],
            )

    def require_runtime_api(self) -> str:
        """Return the runtime API address or raise ConfigError when it is unset."""
        if not self.aws_lambda_runtime_api:
            raise ConfigError(
                "AWS_LAMBDA_RUNTIME_API is not set",
                hints=[RUNTIME_API_MISSING],
            )
        return self.aws_lambda_runtime_api


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings instance, loading it on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings()
    return _SETTINGS
