from __future__ import annotations

from .exceptions import (
    CapacityExceededError,
    ConfigError,
    DecodeError,
    ExporterException,
    ExtensionAPIError,
    ExtensionRegistrationError,
    NextEventError,
    SendError,
    UnsupportedContentTypeError,
)
from .requests import create_export_client, create_extension_client

__all__ = [
    "CapacityExceededError",
    "ConfigError",
    "DecodeError",
    "ExporterException",
    "ExtensionAPIError",
    "ExtensionRegistrationError",
    "NextEventError",
    "SendError",
    "UnsupportedContentTypeError",
    "create_export_client",
    "create_extension_client",
]
