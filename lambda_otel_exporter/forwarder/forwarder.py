"""Batch forwarder: span queue + ingest listener + export client.

The forwarder owns the span queue.  Producers only reach it through the
ingest app, and the lifecycle loop only reaches it through :meth:`flush`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from lambda_otel_exporter.shared.exceptions import SendError

from .exporter import ExportClient
from .ingest import create_ingest_app, create_ingest_server
from .queue import DEFAULT_QUEUE_CAPACITY, SpanQueue

if TYPE_CHECKING:
    from starlette.applications import Starlette

    from lambda_otel_exporter.settings import Settings

    from .ingest import IngestServer

logger = logging.getLogger(__name__)

DEFAULT_LISTEN_PORT = 4318


class ForwarderConfig(BaseModel):
    """Where spans are received and where they are sent."""

    destination_endpoint: str
    headers: dict[str, str] = Field(default_factory=dict)
    listen_host: str = "0.0.0.0"  # noqa: S104
    listen_port: int = DEFAULT_LISTEN_PORT
    queue_capacity: int = Field(default=DEFAULT_QUEUE_CAPACITY, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> ForwarderConfig:
        return cls(
            destination_endpoint=settings.destination_endpoint,
            headers=settings.export_headers(),
            listen_host=settings.listen_host,
            listen_port=settings.listen_port,
            queue_capacity=settings.queue_capacity,
        )


@dataclass
class FlushResult:
    """Outcome of one flush. Logged, never stored."""

    span_groups: int
    duration: float
    status_code: int | None = None
    error: SendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchForwarder:
    """Collects spans between lifecycle events and ships them on demand."""

    def __init__(
        self,
        config: ForwarderConfig,
        *,
        queue: SpanQueue | None = None,
        exporter: ExportClient | None = None,
    ) -> None:
        self.config = config
        self._queue = queue if queue is not None else SpanQueue(config.queue_capacity)
        self._exporter = exporter or ExportClient(
            destination=config.destination_endpoint, headers=config.headers
        )
        self._app = create_ingest_app(self._queue)
        self._server: IngestServer | None = None
        self._stop_requested = False
        self._flush_lock = asyncio.Lock()

    @property
    def queue(self) -> SpanQueue:
        return self._queue

    @property
    def app(self) -> Starlette:
        return self._app

    async def run(self, *, verbose: bool = False) -> None:
        """Serve the ingest listener until :meth:`stop` is called."""
        self._server = create_ingest_server(
            self._app,
            host=self.config.listen_host,
            port=self.config.listen_port,
            verbose=verbose,
        )
        if self._stop_requested:
            self._server.should_exit = True
        logger.debug("Listening on %s:%d", self.config.listen_host, self.config.listen_port)
        try:
            await self._server.serve()
        except SystemExit as e:
            # uvicorn calls sys.exit() when it cannot bind
            raise RuntimeError(
                f"ingest server could not start on {self.config.listen_host}:"
                f"{self.config.listen_port}"
            ) from e

    def stop(self) -> None:
        self._stop_requested = True
        if self._server is not None:
            self._server.should_exit = True

    async def flush(self, timeout: float) -> FlushResult:
        """Drain the queue and export the drained spans within ``timeout`` seconds.

        Spans that arrive while the export is in flight stay queued for the
        next flush. Send failures are reported in the result, not raised.
        """
        async with self._flush_lock:
            logger.debug("Started flush with %.3fs budget", timeout)
            start = time.monotonic()

            spans = self._queue.drain_all()
            if not spans:
                logger.debug("Nothing queued, skipping export")
                return FlushResult(span_groups=0, duration=time.monotonic() - start)

            try:
                status_code = await self._exporter.send(spans, timeout)
            except SendError as e:
                return FlushResult(
                    span_groups=len(spans), duration=time.monotonic() - start, error=e
                )

            result = FlushResult(
                span_groups=len(spans),
                duration=time.monotonic() - start,
                status_code=status_code,
            )
            logger.info(
                "Completed flush: statusCode=%d resourceSpans=%d flushDuration=%.3fs",
                result.status_code,
                result.span_groups,
                result.duration,
            )
            return result

    async def aclose(self) -> None:
        await self._exporter.aclose()
