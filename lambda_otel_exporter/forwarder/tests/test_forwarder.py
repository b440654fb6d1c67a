"""Tests for the batch forwarder flush protocol."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest

from lambda_otel_exporter.forwarder.exporter import ExportClient
from lambda_otel_exporter.forwarder.forwarder import BatchForwarder, ForwarderConfig
from lambda_otel_exporter.forwarder.queue import SpanQueue
from lambda_otel_exporter.settings import Settings
from lambda_otel_exporter.shared.exceptions import SendError

DESTINATION = "https://collector.example.com/v1/traces"


def _forwarder(handler, *, capacity: int = 10) -> BatchForwarder:
    config = ForwarderConfig(destination_endpoint=DESTINATION, queue_capacity=capacity)
    exporter = ExportClient(
        destination=DESTINATION,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return BatchForwarder(config, exporter=exporter)


def test_config_from_settings():
    settings = Settings(
        _env_file=None,
        HONEYCOMB_DATASET="lambda",
        HONEYCOMB_API_KEY="secret",
        LAMBDA_OTEL_LISTEN_PORT=4319,
        LAMBDA_OTEL_QUEUE_CAPACITY=50,
    )

    config = ForwarderConfig.from_settings(settings)

    assert config.destination_endpoint == "https://api.honeycomb.io/v1/traces"
    assert config.headers == {"x-honeycomb-dataset": "lambda", "x-honeycomb-team": "secret"}
    assert config.listen_port == 4319
    assert config.queue_capacity == 50


def test_forwarder_builds_queue_from_config():
    forwarder = _forwarder(lambda request: httpx.Response(200), capacity=7)
    assert forwarder.queue.capacity == 7


def test_forwarder_keeps_injected_empty_queue():
    queue = SpanQueue(capacity=3)
    forwarder = BatchForwarder(
        ForwarderConfig(destination_endpoint=DESTINATION), queue=queue
    )
    assert forwarder.queue is queue


@pytest.mark.asyncio
async def test_flush_drains_and_sends(make_resource_spans):
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200)

    forwarder = _forwarder(handler)
    forwarder.queue.append([make_resource_spans("a"), make_resource_spans("b")])

    result = await forwarder.flush(1.0)

    assert result.ok
    assert result.status_code == 200
    assert result.span_groups == 2
    assert len(forwarder.queue) == 0
    assert len(bodies) == 1
    assert len(ExportTraceServiceRequest.FromString(bodies[0]).resource_spans) == 2


@pytest.mark.asyncio
async def test_empty_flush_does_no_io():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200)

    forwarder = _forwarder(handler)

    result = await forwarder.flush(1.0)

    assert result.ok
    assert result.span_groups == 0
    assert result.status_code is None
    assert calls == 0


@pytest.mark.asyncio
async def test_non_2xx_flush_is_not_an_error(make_resource_spans):
    forwarder = _forwarder(lambda request: httpx.Response(500))
    forwarder.queue.append([make_resource_spans("a")])

    result = await forwarder.flush(1.0)

    assert result.ok
    assert result.status_code == 500


@pytest.mark.asyncio
async def test_failed_flush_loses_its_batch(make_resource_spans):
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    forwarder = _forwarder(slow)
    forwarder.queue.append([make_resource_spans("a"), make_resource_spans("b")])

    result = await forwarder.flush(0.05)

    assert not result.ok
    assert isinstance(result.error, SendError)
    assert result.status_code is None
    assert result.span_groups == 2
    assert len(forwarder.queue) == 0


@pytest.mark.asyncio
async def test_spans_arriving_during_flush_wait_for_next_flush(make_resource_spans):
    exported: list[int] = []
    forwarder: BatchForwarder

    async def handler(request: httpx.Request) -> httpx.Response:
        exported.append(len(ExportTraceServiceRequest.FromString(request.content).resource_spans))
        # A producer appends while the export is in flight
        forwarder.queue.append([make_resource_spans("late")])
        return httpx.Response(200)

    forwarder = _forwarder(handler)
    forwarder.queue.append([make_resource_spans("early")])

    await forwarder.flush(1.0)

    assert exported == [1]
    assert len(forwarder.queue) == 1

    await forwarder.flush(1.0)

    assert exported == [1, 1]


@pytest.mark.asyncio
async def test_one_flush_in_flight_at_a_time(make_resource_spans):
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200)

    forwarder = _forwarder(handler)

    async def flush_one(name: str) -> None:
        forwarder.queue.append([make_resource_spans(name)])
        await forwarder.flush(1.0)

    await asyncio.gather(flush_one("a"), flush_one("b"), flush_one("c"))

    assert peak == 1


@pytest.mark.asyncio
async def test_stop_before_run_exits_server():
    forwarder = BatchForwarder(
        ForwarderConfig(
            destination_endpoint=DESTINATION, listen_host="127.0.0.1", listen_port=0
        )
    )
    forwarder.stop()

    await asyncio.wait_for(forwarder.run(), timeout=5)
    await forwarder.aclose()
