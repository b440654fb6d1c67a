"""OTLP/HTTP ingest listener.

The function under observation points its OTLP exporter at
``http://localhost:4318/v1/traces``; every accepted request lands in the
span queue and waits there for the next lifecycle-driven flush.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

import uvicorn
from starlette.applications import Starlette
from starlette.requests import ClientDisconnect
from starlette.responses import Response
from starlette.routing import Route

from lambda_otel_exporter.shared.exceptions import (
    CapacityExceededError,
    DecodeError,
    UnsupportedContentTypeError,
)

from .codec import decode_resource_spans

if TYPE_CHECKING:
    from collections.abc import Iterator

    from starlette.requests import Request

    from .queue import SpanQueue

logger = logging.getLogger(__name__)

TRACES_PATH = "/v1/traces"


def create_ingest_app(queue: SpanQueue) -> Starlette:
    """Build the ASGI app that accepts OTLP trace exports into ``queue``."""

    async def add_to_queue(request: Request) -> Response:
        try:
            body = await request.body()
        except ClientDisconnect:
            logger.error("Failed to read trace request: client disconnected")
            return Response(status_code=400)

        content_type = request.headers.get("content-type")
        try:
            resource_spans = decode_resource_spans(content_type, body)
        except UnsupportedContentTypeError as e:
            logger.error("%s", e)
            return Response(status_code=400)
        except DecodeError as e:
            logger.error("%s", e)
            return Response(status_code=400)

        try:
            queue.append(resource_spans)
        except CapacityExceededError as e:
            logger.error("Failed to add spans to queue: %s", e)
            return Response(status_code=400)

        logger.info("Added %d resource spans to queue", len(resource_spans))
        return Response(status_code=200)

    return Starlette(routes=[Route(TRACES_PATH, add_to_queue, methods=["POST"])])


class IngestServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the extension runner."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return


def create_ingest_server(
    app: Starlette, *, host: str, port: int, verbose: bool = False
) -> IngestServer:
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        lifespan="off",
        # Propagate to the root handler configured by the CLI
        log_config=None,
        access_log=verbose,
        log_level="debug" if verbose else "warning",
    )
    return IngestServer(config)
