"""lambda-otel-exporter.

AWS Lambda extension that buffers OTLP trace exports from the function and
forwards them in one batch on every lifecycle event.
"""

from __future__ import annotations

from .forwarder import BatchForwarder, FlushResult, ForwarderConfig, SpanQueue
from .runner import run_extension

__all__ = [
    "BatchForwarder",
    "FlushResult",
    "ForwarderConfig",
    "SpanQueue",
    "run_extension",
]

try:
    from .version import __version__
except ImportError:
    __version__ = "unknown"
