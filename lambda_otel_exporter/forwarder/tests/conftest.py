from __future__ import annotations

from collections.abc import Callable

import pytest
from opentelemetry.proto.common.v1.common_pb2 import AnyValue, KeyValue
from opentelemetry.proto.resource.v1.resource_pb2 import Resource
from opentelemetry.proto.trace.v1.trace_pb2 import ResourceSpans, ScopeSpans, Span

TRACE_ID = bytes.fromhex("5b8efff798038103d269b633813fc60c")
SPAN_ID = bytes.fromhex("eee19b7ec3c1b174")


def resource_spans(service: str, span_name: str = "handler") -> ResourceSpans:
    return ResourceSpans(
        resource=Resource(
            attributes=[KeyValue(key="service.name", value=AnyValue(string_value=service))]
        ),
        scope_spans=[
            ScopeSpans(
                spans=[
                    Span(
                        trace_id=TRACE_ID,
                        span_id=SPAN_ID,
                        name=span_name,
                        kind=Span.SpanKind.SPAN_KIND_SERVER,
                        start_time_unix_nano=1_700_000_000_000_000_000,
                        end_time_unix_nano=1_700_000_000_500_000_000,
                    )
                ]
            )
        ],
    )


@pytest.fixture
def make_resource_spans() -> Callable[..., ResourceSpans]:
    return resource_spans
