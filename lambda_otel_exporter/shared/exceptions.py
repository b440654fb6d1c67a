"""Exception types for the Lambda OTel exporter.

Every error carries an optional list of structured hints so the CLI can tell
an operator what to fix.  Errors fall into three groups:

- Fatal: raised before the extension is operational (configuration,
  registration).  The process exits.
- Transient: raised while ingesting or flushing.  Logged, answered with a
  client error on the ingest side, and the lifecycle loop keeps going.
- Remote status: a non-2xx answer from the export destination is not an
  exception at all, it is only logged.

Example:
    try:
        await client.register()
    except ExtensionRegistrationError as e:
        console.render_exception(e)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from typing import Self

    import httpx

from lambda_otel_exporter.shared.hints import (
    EXTENSION_REGISTRATION_FAILED,
    INVALID_CONFIG,
    QUEUE_AT_CAPACITY,
    Hint,
)


class ExporterException(Exception):
    """Base exception class for all exporter errors."""

    # Subclasses can override this class attribute
    default_hints: ClassVar[list[Hint]] = []

    def __init__(
        self,
        message: str = "",
        *,
        hints: list[Hint] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        # If hints not provided, use defaults defined by subclass
        self.hints: list[Hint] = hints if hints is not None else list(self.default_hints)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args and self.args[0] else ""


class ConfigError(ExporterException):
    """Raised when the process configuration cannot be used."""

    default_hints: ClassVar[list[Hint]] = [INVALID_CONFIG]


class CapacityExceededError(ExporterException):
    """Raised when an append would grow the span queue past its capacity."""

    default_hints: ClassVar[list[Hint]] = [QUEUE_AT_CAPACITY]

    def __init__(self, capacity: int, queued: int, incoming: int) -> None:
        super().__init__(
            f"unable to add {incoming} resource spans to queue - "
            f"{queued} queued, at capacity {capacity}"
        )
        self.capacity = capacity
        self.queued = queued
        self.incoming = incoming


class UnsupportedContentTypeError(ExporterException):
    """Raised when an ingest request carries a content type we cannot decode."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"invalid Content-Type: {content_type!r}")
        self.content_type = content_type


class DecodeError(ExporterException):
    """Raised when an ingest payload does not parse as an export request."""


class SendError(ExporterException):
    """Raised when an export request got no response from the destination."""

    @classmethod
    def from_httpx_error(cls, error: httpx.RequestError, destination: str) -> Self:
        import httpx

        if isinstance(error, httpx.TimeoutException):
            return cls(f"timed out sending spans to {destination}: {error!s}")
        return cls(f"failed to execute HTTP POST request to {destination}: {error!s}")


class ExtensionAPIError(ExporterException):
    """Any request to the Lambda extensions API can raise this exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
        *,
        hints: list[Hint] | None = None,
    ) -> None:
        super().__init__(message, hints=hints)
        self.status_code = status_code
        self.response_text = response_text

    def __str__(self) -> str:
        parts = [self.message]

        if self.status_code:
            parts.append(f"Status: {self.status_code}")

        if self.response_text:
            parts.append(f"Response Text: {self.response_text}")

        return " | ".join(parts)

    @classmethod
    def from_response(cls, response: httpx.Response, context: str) -> Self:
        """Build an error from a non-2xx extensions API response."""
        try:
            response_text = response.text
        except Exception:
            response_text = None
        return cls(
            f"{context} failed with status {response.status_code}",
            status_code=response.status_code,
            response_text=response_text or None,
        )


class ExtensionRegistrationError(ExtensionAPIError):
    """Registration with the extensions API failed. Fatal."""

    default_hints: ClassVar[list[Hint]] = [EXTENSION_REGISTRATION_FAILED]


class NextEventError(ExtensionAPIError):
    """Polling for the next lifecycle event failed. The poll is retried."""

