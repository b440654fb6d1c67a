from __future__ import annotations

import pytest

ENV_VARS = (
    "AWS_LAMBDA_RUNTIME_API",
    "LAMBDA_OTEL_EXTENSION_NAME",
    "HONEYCOMB_DATASET",
    "HONEYCOMB_API_KEY",
    "LAMBDA_OTEL_DESTINATION_ENDPOINT",
    "LAMBDA_OTEL_DESTINATION_HEADERS",
    "LAMBDA_OTEL_LISTEN_HOST",
    "LAMBDA_OTEL_LISTEN_PORT",
    "LAMBDA_OTEL_QUEUE_CAPACITY",
    "LAMBDA_OTEL_INVOKE_FLUSH_TIMEOUT",
    "OTEL_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's own environment out of settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
