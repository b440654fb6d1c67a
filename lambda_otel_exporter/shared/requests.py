"""
HTTP client factories for the export destination and the Lambda extensions API.
"""

from __future__ import annotations

import httpx

# Export calls are bounded per request by the flush budget, so the client
# itself only guards the connect phase.
_EXPORT_TIMEOUT = httpx.Timeout(None, connect=10.0)
_EXPORT_LIMITS = httpx.Limits(
    max_connections=10,
    max_keepalive_connections=10,
    keepalive_expiry=30.0,
)

# /event/next blocks until the host has something for us, which can be
# arbitrarily long while the function is frozen.
_EXTENSION_TIMEOUT = httpx.Timeout(None)


def create_export_client() -> httpx.AsyncClient:
    """Create the httpx AsyncClient used to ship span batches."""
    return httpx.AsyncClient(
        timeout=_EXPORT_TIMEOUT,
        limits=_EXPORT_LIMITS,
    )


def create_extension_client() -> httpx.AsyncClient:
    """Create the httpx AsyncClient used to talk to the extensions API."""
    return httpx.AsyncClient(timeout=_EXTENSION_TIMEOUT)
