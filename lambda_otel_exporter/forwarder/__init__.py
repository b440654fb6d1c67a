"""Span ingestion, buffering and export."""

from __future__ import annotations

from .exporter import ExportClient
from .forwarder import BatchForwarder, FlushResult, ForwarderConfig
from .queue import DEFAULT_QUEUE_CAPACITY, SpanQueue

__all__ = [
    "DEFAULT_QUEUE_CAPACITY",
    "BatchForwarder",
    "ExportClient",
    "FlushResult",
    "ForwarderConfig",
    "SpanQueue",
]
