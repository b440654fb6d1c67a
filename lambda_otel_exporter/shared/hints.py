from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
logger = logging.getLogger(__name__)


@dataclass
class Hint:
    """Structured hint for operator guidance.

    Attributes:
        title: Short title describing the hint.
        message: Main explanatory message.
        tips: Optional list of short actionable tips.
        docs_url: Optional URL for documentation.
        code: Optional machine-readable code (e.g., "RUNTIME_API_MISSING").
        context: Optional context tags (e.g., ["lambda", "config"]).
    """

    title: str
    message: str
    tips: list[str] | None = None
    docs_url: str | None = None
    code: str | None = None
    context: list[str] | None = None


RUNTIME_API_MISSING = Hint(
    title="Lambda runtime API not found",
    message="AWS_LAMBDA_RUNTIME_API is not set.",
    tips=[
        "The Lambda service sets this variable inside the execution environment",
        "Run with --local-mode when testing outside of Lambda",
    ],
    docs_url="https://docs.aws.amazon.com/lambda/latest/dg/runtimes-extensions-api.html",
    code="RUNTIME_API_MISSING",
    context=["lambda", "config"],
)

HONEYCOMB_CREDENTIALS_MISSING = Hint(
    title="Honeycomb credentials required",
    message="Missing HONEYCOMB_DATASET or HONEYCOMB_API_KEY.",
    tips=[
        "Set both variables on the function configuration",
        "Or point LAMBDA_OTEL_DESTINATION_ENDPOINT at another OTLP/HTTP backend",
    ],
    code="HONEYCOMB_CREDENTIALS_MISSING",
    context=["config", "honeycomb"],
)

EXTENSION_REGISTRATION_FAILED = Hint(
    title="Extension registration failed",
    message="The Lambda extensions API rejected or did not answer the register call.",
    tips=[
        "Make sure the binary is deployed under /opt/extensions",
        "Check that the function runtime supports external extensions",
    ],
    code="EXTENSION_REGISTRATION_FAILED",
    context=["lambda"],
)

QUEUE_AT_CAPACITY = Hint(
    title="Span queue full",
    message="The span queue has no room for this export request.",
    tips=[
        "Raise LAMBDA_OTEL_QUEUE_CAPACITY",
        "Send fewer resource span groups per invocation",
    ],
    code="QUEUE_AT_CAPACITY",
    context=["ingest"],
)

INVALID_CONFIG = Hint(
    title="Invalid configuration",
    message="Configuration is invalid or incomplete.",
    tips=[
        "Check the LAMBDA_OTEL_* environment variables",
        "LAMBDA_OTEL_DESTINATION_HEADERS must be a JSON object",
    ],
    code="INVALID_CONFIG",
    context=["config"],
)


def render_hints(hints: Iterable[Hint] | None, *, design: Any | None = None) -> None:
    """Render a collection of hints using the console design system if available.

    If design is not provided, the module-level console is used.
    """
    if not hints:
        return

    if design is None:
        from lambda_otel_exporter.utils.console import console as design  # lazy import

    for hint in hints:
        try:
            # Compact rendering - skip title if same as message
            if hint.title and hint.title != hint.message:
                design.warning(f"{hint.title}: {hint.message}")
            else:
                design.warning(hint.message)

            if hint.tips:
                for tip in hint.tips:
                    design.info(f"  • {tip}")

            if hint.docs_url:
                design.link(hint.docs_url)
        except Exception:
            logger.warning("Failed to render hint: %s", hint)
            continue
