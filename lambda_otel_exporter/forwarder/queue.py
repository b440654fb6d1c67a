"""Bounded in-memory holding area for ingested resource spans.

Spans arrive from the ingest listener at any point during an invocation and
leave in one piece when the lifecycle loop flushes.  The queue exposes only
two mutations, both under the same lock, and the lock never covers I/O.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from lambda_otel_exporter.shared.exceptions import CapacityExceededError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from opentelemetry.proto.trace.v1.trace_pb2 import ResourceSpans

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_CAPACITY = 1000


class SpanQueue:
    """Thread-safe, bounded list of ``ResourceSpans``."""

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._queue: list[ResourceSpans] = []
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def append(self, spans: Sequence[ResourceSpans]) -> None:
        """Add all of ``spans`` or none of them.

        Raises:
            CapacityExceededError: if the queue would hold more than ``capacity`` groups.
        """
        with self._lock:
            queued = len(self._queue)
            if queued + len(spans) > self._capacity:
                logger.debug(
                    "Rejecting %d resource spans: %d queued, capacity %d",
                    len(spans),
                    queued,
                    self._capacity,
                )
                raise CapacityExceededError(self._capacity, queued, len(spans))
            self._queue.extend(spans)

    def drain_all(self) -> list[ResourceSpans]:
        """Take everything currently queued and leave the queue empty."""
        with self._lock:
            items = self._queue
            self._queue = []
        return items
