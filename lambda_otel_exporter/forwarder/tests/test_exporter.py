"""Tests for the OTLP/HTTP export client."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest

from lambda_otel_exporter.forwarder.exporter import ExportClient
from lambda_otel_exporter.shared.exceptions import SendError

DESTINATION = "https://api.honeycomb.io/v1/traces"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_posts_protobuf_with_headers(make_resource_spans):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    exporter = ExportClient(
        destination=DESTINATION,
        headers={"x-honeycomb-dataset": "lambda", "x-honeycomb-team": "secret"},
        client=_client(handler),
    )
    spans = [make_resource_spans("a"), make_resource_spans("b")]

    status = await exporter.send(spans, timeout=1.0)

    assert status == 200
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == DESTINATION
    assert request.headers["content-type"] == "application/x-protobuf"
    assert request.headers["x-honeycomb-dataset"] == "lambda"
    assert request.headers["x-honeycomb-team"] == "secret"
    assert list(ExportTraceServiceRequest.FromString(request.content).resource_spans) == spans


@pytest.mark.asyncio
async def test_configured_content_type_is_overridden(make_resource_spans):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    exporter = ExportClient(
        destination=DESTINATION,
        headers={"content-type": "application/json"},
        client=_client(handler),
    )

    await exporter.send([make_resource_spans("a")], timeout=1.0)

    assert seen[0].headers.get_list("content-type") == ["application/x-protobuf"]


@pytest.mark.asyncio
async def test_non_2xx_status_is_returned_not_raised(make_resource_spans, caplog):
    exporter = ExportClient(
        destination=DESTINATION,
        client=_client(lambda request: httpx.Response(401, text="unknown API key")),
    )

    status = await exporter.send([make_resource_spans("a")], timeout=1.0)

    assert status == 401
    assert "unknown API key" in caplog.text


@pytest.mark.asyncio
async def test_send_times_out(make_resource_spans):
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    exporter = ExportClient(destination=DESTINATION, client=_client(slow))

    with pytest.raises(SendError, match="deadline"):
        await exporter.send([make_resource_spans("a")], timeout=0.05)


@pytest.mark.asyncio
async def test_expired_budget_fails_without_response(make_resource_spans):
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200)

    exporter = ExportClient(destination=DESTINATION, client=_client(slow))

    with pytest.raises(SendError):
        await exporter.send([make_resource_spans("a")], timeout=-1.0)


@pytest.mark.asyncio
async def test_network_error_becomes_send_error(make_resource_spans):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    exporter = ExportClient(destination=DESTINATION, client=_client(handler))

    with pytest.raises(SendError, match="connection refused"):
        await exporter.send([make_resource_spans("a")], timeout=1.0)


@pytest.mark.asyncio
async def test_send_does_not_retry(make_resource_spans):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503)

    exporter = ExportClient(destination=DESTINATION, client=_client(handler))

    assert await exporter.send([make_resource_spans("a")], timeout=1.0) == 503
    assert calls == 1


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    client = _client(lambda request: httpx.Response(200))
    exporter = ExportClient(destination=DESTINATION, client=client)

    await exporter.aclose()

    assert not client.is_closed
    await client.aclose()
