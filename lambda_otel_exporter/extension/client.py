"""
Client for the Lambda extensions API.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from lambda_otel_exporter.shared.exceptions import ExtensionRegistrationError, NextEventError
from lambda_otel_exporter.shared.requests import create_extension_client

from .models import NextEventResponse, RegisterRequest, RegisterResponse

logger = logging.getLogger(__name__)

EXTENSION_API_VERSION = "2020-01-01"
EXTENSION_NAME_HEADER = "Lambda-Extension-Name"
EXTENSION_IDENTIFIER_HEADER = "Lambda-Extension-Identifier"


def _base_url(runtime_api: str) -> str:
    if not runtime_api.startswith(("http://", "https://")):
        runtime_api = f"http://{runtime_api}"
    return f"{runtime_api.rstrip('/')}/{EXTENSION_API_VERSION}/extension"


class ExtensionClient:
    """Registers the extension and long-polls for lifecycle events."""

    def __init__(
        self,
        runtime_api: str,
        extension_name: str,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the extensions API client.

        Args:
            runtime_api: Value of AWS_LAMBDA_RUNTIME_API (``host:port``) or a full URL
            extension_name: Name sent on registration; Lambda matches it to the executable
            client: Optional custom httpx.AsyncClient
        """
        self.base_url = _base_url(runtime_api)
        self.extension_name = extension_name
        self.extension_id: str | None = None
        self._owns_client = client is None
        self._client = client or create_extension_client()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def register(self) -> RegisterResponse:
        """Register for INVOKE and SHUTDOWN events and remember the extension id.

        Raises:
            ExtensionRegistrationError: on any failure; the extension cannot run without an id.
        """
        try:
            response = await self._client.post(
                self.url("/register"),
                json=RegisterRequest().model_dump(mode="json"),
                headers={EXTENSION_NAME_HEADER: self.extension_name},
            )
        except httpx.RequestError as e:
            raise ExtensionRegistrationError(f"Register request failed: {e!s}") from e

        if not response.is_success:
            raise ExtensionRegistrationError.from_response(response, "Register")

        extension_id = response.headers.get(EXTENSION_IDENTIFIER_HEADER)
        if not extension_id:
            raise ExtensionRegistrationError(
                f"Register response is missing the {EXTENSION_IDENTIFIER_HEADER} header",
                status_code=response.status_code,
            )

        try:
            registration = RegisterResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise ExtensionRegistrationError(f"Invalid register response: {e}") from e

        self.extension_id = extension_id
        logger.debug(
            "Registered extension %s for function %s (%s)",
            self.extension_name,
            registration.function_name,
            registration.function_version,
        )
        return registration

    async def next_event(self) -> NextEventResponse:
        """Block until the host delivers the next lifecycle event.

        Raises:
            NextEventError: if the poll fails; the caller decides whether to poll again.
        """
        if self.extension_id is None:
            raise NextEventError("Extension is not registered")

        try:
            response = await self._client.get(
                self.url("/event/next"),
                headers={EXTENSION_IDENTIFIER_HEADER: self.extension_id},
            )
        except httpx.RequestError as e:
            raise NextEventError(f"Next event request failed: {e!s}") from e

        if not response.is_success:
            raise NextEventError.from_response(response, "Next event")

        try:
            return NextEventResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise NextEventError(f"Invalid next event response: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
