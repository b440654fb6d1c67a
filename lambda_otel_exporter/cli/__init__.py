"""Command-line entry point for the Lambda OTel exporter extension."""

from __future__ import annotations

import asyncio
import logging
import sys

import typer
from pydantic import ValidationError
from pydantic_settings import SettingsError

from lambda_otel_exporter.runner import run_extension
from lambda_otel_exporter.settings import get_settings
from lambda_otel_exporter.shared.exceptions import ConfigError, ExporterException
from lambda_otel_exporter.utils.console import console

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [lambda-otel-exporter] %(name)s: %(message)s"
DEBUG_LOG_FORMAT = (
    "%(asctime)s %(levelname)s [lambda-otel-exporter] %(name)s "
    "%(filename)s:%(lineno)d: %(message)s"
)

app = typer.Typer(
    name="lambda-otel-exporter",
    help="Lambda extension that buffers OTLP traces and forwards them before the sandbox freezes",
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


def configure_logging(debug: bool) -> None:
    """Send all logs to stderr, which Lambda ships to CloudWatch."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format=DEBUG_LOG_FORMAT if debug else LOG_FORMAT,
        force=True,
    )
    if not debug:
        logging.getLogger("uvicorn").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.command()
def run(
    local_mode: bool = typer.Option(
        False,
        "--local-mode",
        envvar="LAMBDA_OTEL_LOCAL_MODE",
        help="Do not register with the Lambda extensions API; run until interrupted",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging (same as OTEL_DEBUG=true)",
    ),
) -> None:
    """Receive spans on :4318/v1/traces and flush them on every Lambda lifecycle event."""
    try:
        settings = get_settings()
    except (ValidationError, SettingsError) as e:
        configure_logging(verbose)
        console.render_exception(ConfigError(f"Invalid configuration: {e}"))
        raise typer.Exit(1) from e

    debug = verbose or settings.debug
    configure_logging(debug)

    if local_mode:
        console.header("Lambda OTel exporter (local mode)")
        console.info(f"Listening on http://{settings.listen_host}:{settings.listen_port}/v1/traces")
        console.info(f"Forwarding to {settings.destination_endpoint}")

    try:
        asyncio.run(run_extension(settings, local_mode=local_mode, verbose=debug))
    except ExporterException as e:
        logger.critical("Extension failed: %s", e)
        console.render_exception(e)
        raise typer.Exit(1) from e

    if local_mode:
        console.success("Stopped")


def main() -> None:
    app()
