"""OTLP trace payload decoding and encoding.

Ingest accepts both OTLP/HTTP encodings of ``ExportTraceServiceRequest``:
binary protobuf and OTLP/JSON.  Egress always uses binary protobuf, so the
two sides never have to agree on a format.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from google.protobuf import json_format
from google.protobuf.message import DecodeError as ProtobufDecodeError
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest

from lambda_otel_exporter.shared.exceptions import DecodeError, UnsupportedContentTypeError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from opentelemetry.proto.trace.v1.trace_pb2 import ResourceSpans

logger = logging.getLogger(__name__)

PROTOBUF_CONTENT_TYPE = "application/x-protobuf"
JSON_CONTENT_TYPE = "application/json"

# OTLP/JSON carries ids as hex, protobuf's JSON mapping expects base64.
_HEX_ID_LENGTHS = {"traceId": 32, "spanId": 16, "parentSpanId": 16}


class PayloadDecoder(ABC):
    """Turns a request body into an ``ExportTraceServiceRequest``."""

    content_type: ClassVar[str]

    @abstractmethod
    def decode(self, body: bytes) -> ExportTraceServiceRequest:
        """Decode ``body`` or raise DecodeError."""


class ProtobufDecoder(PayloadDecoder):
    content_type = PROTOBUF_CONTENT_TYPE

    def decode(self, body: bytes) -> ExportTraceServiceRequest:
        try:
            return ExportTraceServiceRequest.FromString(body)
        except ProtobufDecodeError as e:
            raise DecodeError(f"failed to unmarshal protobuf data: {e}") from e


class JsonDecoder(PayloadDecoder):
    content_type = JSON_CONTENT_TYPE

    def decode(self, body: bytes) -> ExportTraceServiceRequest:
        try:
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"failed to unmarshal json data: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError("failed to unmarshal json data: expected a JSON object")

        _convert_hex_ids(data)
        message = ExportTraceServiceRequest()
        try:
            json_format.ParseDict(data, message, ignore_unknown_fields=True)
        except (json_format.ParseError, TypeError, ValueError) as e:
            raise DecodeError(f"failed to unmarshal json data: {e}") from e
        return message


def _hex_to_base64(value: Any, hex_length: int) -> Any:
    if not isinstance(value, str) or len(value) != hex_length:
        return value
    try:
        raw = binascii.unhexlify(value)
    except (binascii.Error, ValueError):
        return value
    return base64.b64encode(raw).decode("ascii")


def _convert_ids(obj: dict[str, Any]) -> None:
    for key, length in _HEX_ID_LENGTHS.items():
        if key in obj:
            obj[key] = _hex_to_base64(obj[key], length)


def _objects(parent: dict[str, Any], key: str) -> Iterator[dict[str, Any]]:
    # Anything but a list of objects is left for ParseDict to reject
    children = parent.get(key)
    if not isinstance(children, list):
        return
    for child in children:
        if isinstance(child, dict):
            yield child


def _convert_hex_ids(data: dict[str, Any]) -> None:
    """Rewrite OTLP/JSON hex span and trace ids in place."""
    for resource_spans in _objects(data, "resourceSpans"):
        for scope_spans in _objects(resource_spans, "scopeSpans"):
            for span in _objects(scope_spans, "spans"):
                _convert_ids(span)
                for link in _objects(span, "links"):
                    _convert_ids(link)


DECODERS: dict[str, PayloadDecoder] = {
    decoder.content_type: decoder for decoder in (ProtobufDecoder(), JsonDecoder())
}


def media_type(content_type: str | None) -> str:
    """Strip parameters such as ``; charset=utf-8`` from a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def decode_resource_spans(content_type: str | None, body: bytes) -> list[ResourceSpans]:
    """Decode an ingest request body into its resource span groups.

    Raises:
        UnsupportedContentTypeError: if no decoder handles ``content_type``.
        DecodeError: if the body does not parse.
    """
    decoder = DECODERS.get(media_type(content_type))
    if decoder is None:
        raise UnsupportedContentTypeError(content_type)
    resource_spans = list(decoder.decode(body).resource_spans)
    logger.debug(
        "Decoded %d resource spans from %s payload", len(resource_spans), decoder.content_type
    )
    return resource_spans


def encode_export_request(spans: Sequence[ResourceSpans]) -> bytes:
    """Serialize resource span groups into one binary ``ExportTraceServiceRequest``."""
    return ExportTraceServiceRequest(resource_spans=spans).SerializeToString()
