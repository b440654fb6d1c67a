"""OTLP/HTTP export of drained span batches.

One flush is one POST: every drained resource span group goes into a single
binary ``ExportTraceServiceRequest``.  There is no retry; a batch that cannot
be delivered inside its deadline is gone.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from lambda_otel_exporter.shared.exceptions import SendError
from lambda_otel_exporter.shared.requests import create_export_client

from .codec import PROTOBUF_CONTENT_TYPE, encode_export_request

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from opentelemetry.proto.trace.v1.trace_pb2 import ResourceSpans

logger = logging.getLogger(__name__)


class ExportClient:
    """Sends resource span batches to an OTLP/HTTP traces endpoint."""

    def __init__(
        self,
        *,
        destination: str,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the export client.

        Args:
            destination: Full URL of the traces endpoint
            headers: Static headers sent with every request (API keys, dataset names)
            client: Optional custom httpx.AsyncClient
        """
        self._destination = destination
        self._headers = dict(headers or {})
        self._owns_client = client is None
        self._client = client or create_export_client()

    @property
    def destination(self) -> str:
        return self._destination

    def _request_headers(self) -> httpx.Headers:
        headers = httpx.Headers(self._headers)
        headers["Content-Type"] = PROTOBUF_CONTENT_TYPE
        return headers

    async def send(self, spans: Sequence[ResourceSpans], timeout: float) -> int:
        """POST ``spans`` to the destination within ``timeout`` seconds.

        Returns:
            The HTTP status code of the response, including non-2xx codes.

        Raises:
            SendError: if no response arrived before the deadline or the
                request could not be sent at all.
        """
        body = encode_export_request(spans)
        try:
            async with asyncio.timeout(max(timeout, 0.0)):
                response = await self._client.post(
                    self._destination, content=body, headers=self._request_headers()
                )
        except TimeoutError as e:
            raise SendError(
                f"deadline of {timeout:.3f}s exceeded sending spans to {self._destination}"
            ) from e
        except httpx.RequestError as e:
            raise SendError.from_httpx_error(e, self._destination) from e

        if not response.is_success:
            logger.warning(
                "Destination %s answered %d: %s",
                self._destination,
                response.status_code,
                response.text[:500],
            )
        return response.status_code

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
